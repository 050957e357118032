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

import datetime
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from metaquery.rendering.pagination import (
  PaginationStrategy, PaginationStyle, get_pagination_strategy,
)
from metaquery.schema import types_map


@dataclass(frozen=True)
class RenderedSql:
  """SQL text plus the values bound to its placeholders (empty when inlined)."""
  sql: str
  params: Union[Tuple[Any, ...], Dict[str, Any]] = ()
  dialect: str = ""

  def __str__(self) -> str:
    return self.sql


@dataclass
class RenderContext:
  """
  Per-call rendering state. Dialect instances hold configuration only, so
  one dialect can render any number of queries concurrently.
  """
  bind: bool = False
  paramstyle: str = "qmark"
  values: List[Any] = field(default_factory=list)

  def placeholder(self, value: Any) -> str:
    self.values.append(value)
    n = len(self.values)
    if self.paramstyle == "qmark":
      return "?"
    if self.paramstyle == "format":
      return "%s"
    if self.paramstyle == "numeric":
      return f":{n}"
    if self.paramstyle == "named":
      return f":p{n}"
    if self.paramstyle == "pyformat":
      return f"%(p{n})s"
    raise ValueError(f"Unsupported paramstyle: {self.paramstyle!r}")

  def params(self) -> Union[Tuple[Any, ...], Dict[str, Any]]:
    if self.paramstyle in ("named", "pyformat"):
      return {f"p{i}": v for i, v in enumerate(self.values, start=1)}
    return tuple(self.values)


_BARE_ALIAS_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$-]*$")


class SqlDialect(ABC):
  """
  Base interface for SQL dialects.
  Implementations translate Query objects into final SQL strings.
  """

  DIALECT_NAME = "base"
  QUOTE_CHAR = '"'
  PAGINATION_STYLE = PaginationStyle.NONE
  PARAMSTYLE = "qmark"

  def __init__(self, *, bind_parameters: bool = False, paramstyle: Optional[str] = None):
    self.bind_parameters = bind_parameters
    self.paramstyle = paramstyle or self.PARAMSTYLE

  def get_execution_engine(self, system) -> "BaseExecutionEngine":
    raise NotImplementedError(
      f"{self.__class__.__name__} does not provide an execution engine."
    )

  def new_context(self) -> RenderContext:
    return RenderContext(bind=self.bind_parameters, paramstyle=self.paramstyle)

  # ---------------------------------------------------------------------------
  # Capabilities (can be overridden by concrete dialects)
  # ---------------------------------------------------------------------------
  @property
  def supports_schemas(self) -> bool:
    """Whether table names are qualified with their schema name."""
    return True

  def pagination_strategy(self) -> PaginationStrategy:
    return get_pagination_strategy(self.PAGINATION_STYLE)

  # ---------------------------------------------------------------------------
  # Identifiers
  # ---------------------------------------------------------------------------
  def quote_ident(self, name: str) -> str:
    """
    Quote an identifier with the dialect's quote character.
    Embedded quote characters are escaped by doubling them.
    """
    q = self.QUOTE_CHAR
    escaped = name.replace(q, q + q)
    return f"{q}{escaped}{q}"

  def render_identifier(self, name: str) -> str:
    """Table and column identifiers are always quoted, reserved words included."""
    return self.quote_ident(name)

  def render_table_identifier(self, schema: str | None, name: str) -> str:
    """
    Render a table identifier with optional schema.

      render_table_identifier("hr", "EMPLOYEE") -> "hr"."EMPLOYEE"
      render_table_identifier(None, "EMPLOYEE") -> "EMPLOYEE"
    """
    name_sql = self.render_identifier(name)
    if schema and self.supports_schemas:
      return f"{self.render_identifier(schema)}.{name_sql}"
    return name_sql

  def should_quote_alias(self, alias: str) -> bool:
    """
    Aliases made of letters, digits, '_', '$' and '-' are emitted bare
    (e.g. AS hire-date); anything else is quoted.
    """
    return not _BARE_ALIAS_RE.match(alias)

  def render_alias(self, alias: str) -> str:
    if self.should_quote_alias(alias):
      return self.quote_ident(alias)
    return alias

  # ---------------------------------------------------------------------------
  # Literal rendering
  # ---------------------------------------------------------------------------
  def render_literal(self, value: Any) -> str:
    """
    Render a Python value as a SQL literal.
    Handles None, bool, int, float, Decimal, str, date, time, datetime, bytes, UUID.
    """
    if value is None:
      return "NULL"
    if isinstance(value, bool):
      return self.boolean_literal(value)
    if isinstance(value, int):
      return str(value)
    if isinstance(value, float):
      return repr(value)
    if isinstance(value, Decimal):
      return str(value)
    if isinstance(value, str):
      return self.string_literal(value)
    if isinstance(value, datetime.datetime):
      return self.timestamp_literal(value.isoformat(sep=" "))
    if isinstance(value, datetime.date):
      return self.date_literal(value.isoformat())
    if isinstance(value, datetime.time):
      return self.time_literal(value.isoformat())
    if isinstance(value, (bytes, bytearray)):
      return self.binary_literal(bytes(value))
    if isinstance(value, uuid.UUID):
      return self.string_literal(str(value))

    raise TypeError(f"Unsupported literal type: {type(value)}")

  def render_typed_literal(self, value: Any, canonical_type: Optional[str]) -> str:
    """
    Render `value` compared against a column of `canonical_type`: text
    compared with temporal columns becomes a typed temporal literal, 0/1
    compared with boolean columns becomes a boolean literal.
    """
    if isinstance(value, str):
      if canonical_type == types_map.DATE:
        return self.date_literal(value)
      if canonical_type == types_map.TIMESTAMP:
        return self.timestamp_literal(value)
      if canonical_type == types_map.TIME:
        return self.time_literal(value)
    if canonical_type == types_map.BOOLEAN and not isinstance(value, bool) and value in (0, 1):
      return self.boolean_literal(bool(value))
    return self.render_literal(value)

  def string_literal(self, value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"

  def boolean_literal(self, value: bool) -> str:
    return "TRUE" if value else "FALSE"

  def date_literal(self, iso: str) -> str:
    return f"DATE {self.string_literal(iso)}"

  def timestamp_literal(self, iso: str) -> str:
    return f"TIMESTAMP {self.string_literal(iso)}"

  def time_literal(self, iso: str) -> str:
    return f"TIME {self.string_literal(iso)}"

  def binary_literal(self, value: bytes) -> str:
    return f"X'{value.hex().upper()}'"

  def cast_expression(self, expr: str, target_type: str) -> str:
    """
    Wrap an expression in a CAST(... AS ...) construct.
    Dialects may override this if they need a different syntax.
    """
    return f"CAST({expr} AS {target_type})"

  # ---------------------------------------------------------------------------
  # Statement rendering
  # ---------------------------------------------------------------------------
  @abstractmethod
  def render_query(self, query) -> RenderedSql:
    raise NotImplementedError


class BaseExecutionEngine:
  """
  Connection collaborator: runs SQL text and hands back a DB-API style
  cursor (fetchmany / fetchall / close / description). Timeouts and retries
  are properties of the concrete driver, not of the engine.
  """

  def open_cursor(self, sql: str, params=None):
    raise NotImplementedError

  def execute(self, sql: str, params=None) -> int | None:
    raise NotImplementedError

  def close(self) -> None:
    pass

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc, tb) -> None:
    self.close()


class ClosingCursor:
  """
  DB-API cursor proxy that also closes the connection it was opened on.
  Closing is idempotent.
  """

  def __init__(self, cursor, connection=None):
    self._cursor = cursor
    self._connection = connection
    self._closed = False

  @property
  def description(self):
    return getattr(self._cursor, "description", None)

  def fetchmany(self, size: int):
    return self._cursor.fetchmany(size)

  def fetchall(self):
    return self._cursor.fetchall()

  def close(self) -> None:
    if self._closed:
      return
    self._closed = True
    try:
      self._cursor.close()
    finally:
      if self._connection is not None:
        self._connection.close()


def connection_string_from(system, label: str) -> str:
  """
  Extract the connection string from a ConnectionSpec-like object.

  Expected patterns for system.security:

  - security is a dict:
      {"connection_string": "..."} or {"dsn": "..."} or {"url": "..."}
      or {"database": "..."}
  - security is a plain string.
  """
  security = getattr(system, "security", None)
  conn_str = None

  if isinstance(security, dict):
    conn_str = (
      security.get("connection_string")
      or security.get("dsn")
      or security.get("url")
      or security.get("database")
    )
  elif isinstance(security, str):
    conn_str = security

  if not conn_str:
    raise ValueError(
      f"{label} system '{getattr(system, 'short_name', '?')}' has no usable connection string "
      f"in security. Expected security['connection_string'] or a string value."
    )
  return conn_str
