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

import datetime as _dt
from dataclasses import dataclass, asdict
from typing import Any, Dict

from metaquery.errors import UnsupportedPaginationError

from .base import SqlDialect
from .dialect_factory import get_available_dialect_names, get_active_dialect


@dataclass
class DialectDiagnostics:
  """Simple snapshot of a dialect's capabilities and behaviour."""

  name: str
  class_name: str
  quote_char: str
  paramstyle: str
  pagination_style: str
  supports_schemas: bool

  # Literal rendering examples
  literal_true: str
  literal_false: str
  literal_null: str
  literal_sample_date: str
  literal_sample_timestamp: str

  # Row window for max_rows=10 without skipped rows ("" when unsupported)
  sample_limit: str

  def to_dict(self) -> Dict[str, Any]:
    """Return a JSON-serializable representation."""
    return asdict(self)


def collect_dialect_diagnostics(dialect: SqlDialect) -> DialectDiagnostics:
  """Collect a minimal set of diagnostics for a single dialect instance."""
  # Fixed samples avoid timezone issues
  sample_date = _dt.date(2025, 1, 2)
  sample_ts = _dt.datetime(2025, 1, 2, 3, 4, 5)

  try:
    clause = dialect.pagination_strategy().render(
      dialect_name=dialect.DIALECT_NAME, max_rows=10, offset=0, has_order_by=False,
    )
    sample_limit = " ".join(p for p in (clause.head, clause.tail) if p)
  except UnsupportedPaginationError:
    sample_limit = ""

  return DialectDiagnostics(
    name=getattr(dialect, "DIALECT_NAME", dialect.__class__.__name__.lower()),
    class_name=dialect.__class__.__name__,
    quote_char=dialect.QUOTE_CHAR,
    paramstyle=dialect.paramstyle,
    pagination_style=dialect.PAGINATION_STYLE.value,
    supports_schemas=dialect.supports_schemas,
    literal_true=dialect.render_literal(True),
    literal_false=dialect.render_literal(False),
    literal_null=dialect.render_literal(None),
    literal_sample_date=dialect.render_literal(sample_date),
    literal_sample_timestamp=dialect.render_literal(sample_ts),
    sample_limit=sample_limit,
  )


def snapshot_all_dialects() -> Dict[str, DialectDiagnostics]:
  """
  Build diagnostics for all registered dialects.

  The keys of the result dict are dialect names as returned by
  get_available_dialect_names().
  """
  result: Dict[str, DialectDiagnostics] = {}

  for name in get_available_dialect_names():
    dialect = get_active_dialect(name)
    result[name] = collect_dialect_diagnostics(dialect)

  return result
