"""
metaquery - Vendor-neutral Query and Metadata Framework
Copyright © 2025-2026 Ilona Tag

This file is part of metaquery.

metaquery is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as
published by the Free Software Foundation, either version 3 of
the License, or (at your option) any later version.

metaquery is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with metaquery. If not, see <https://www.gnu.org/licenses/>.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Type

from metaquery.config.profiles import load_profile
from utils.env import env_first

from .ansi import AnsiDialect
from .base import SqlDialect
from .duckdb import DuckDBDialect
from .firebird import FirebirdDialect
from .generic import GenericDialect
from .mssql import MssqlDialect
from .postgres import PostgresDialect
from .sqlite import SqliteDialect

logger = logging.getLogger(__name__)

# Registry of known dialects.
_DIALECT_REGISTRY: dict[str, Type[SqlDialect]] = {
  "ansi": AnsiDialect,
  "duckdb": DuckDBDialect,
  "firebird": FirebirdDialect,
  "generic": GenericDialect,
  "mssql": MssqlDialect,
  "postgres": PostgresDialect,
  "sqlite": SqliteDialect,
}

DEFAULT_DIALECT = "ansi"


def get_available_dialect_names() -> List[str]:
  return sorted(_DIALECT_REGISTRY)


def register_dialect(name: str, dialect_cls: Type[SqlDialect]) -> None:
  """Register an additional dialect class under `name` (lower-cased)."""
  if not (isinstance(dialect_cls, type) and issubclass(dialect_cls, SqlDialect)):
    raise TypeError(f"{dialect_cls!r} is not a SqlDialect subclass")
  _DIALECT_REGISTRY[name.lower()] = dialect_cls


def _resolve_dialect_name(explicit: Optional[str] = None) -> str:
  """
  Resolve a dialect name from (in order):

  1. explicit argument
  2. environment variables (METAQUERY_SQL_DIALECT, METAQUERY_DIALECT)
  3. active profile.default_dialect
  4. hard fallback 'ansi'
  """
  # 1) Explicit argument
  if explicit:
    return explicit.lower()

  # 2) Env overrides
  env_name = env_first("METAQUERY_SQL_DIALECT", "METAQUERY_DIALECT")
  if env_name:
    return env_name.lower()

  # 3) Profile.default_dialect
  try:
    profile = load_profile()
    if profile.default_dialect:
      return profile.default_dialect.lower()
  except (FileNotFoundError, KeyError) as exc:
    # No usable profile: fall through to the hard default
    logger.debug("No profile dialect available: %s", exc)

  # 4) Hard fallback
  return DEFAULT_DIALECT


def get_active_dialect(name: Optional[str] = None, *, bind_parameters: bool = False) -> SqlDialect:
  """
  Return an instance of the active SqlDialect.

  Resolution order:
    - `name` argument (if provided)
    - METAQUERY_SQL_DIALECT / METAQUERY_DIALECT env vars
    - active profile's `default_dialect`
    - hard fallback 'ansi'

  Raises:
      ValueError: if the resolved name is not registered.
  """
  dialect_name = _resolve_dialect_name(name)

  try:
    dialect_cls = _DIALECT_REGISTRY[dialect_name]
  except KeyError as exc:
    available = ", ".join(get_available_dialect_names())
    raise ValueError(
      f"Unknown SQL dialect: {dialect_name!r}. "
      f"Available dialects: {available}."
    ) from exc

  return dialect_cls(bind_parameters=bind_parameters)
