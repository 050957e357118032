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

from typing import Optional, Union

from metaquery.query.model import Query
from metaquery.rendering.dialects.ansi import AnsiDialect
from metaquery.rendering.dialects.base import RenderedSql, SqlDialect
from metaquery.rendering.dialects.dialect_factory import get_active_dialect

DialectLike = Union[SqlDialect, str, None]


def _as_dialect(dialect: DialectLike) -> SqlDialect:
  if dialect is None:
    return AnsiDialect()
  if isinstance(dialect, str):
    return get_active_dialect(dialect)
  return dialect


def render_query(query: Query, dialect: DialectLike = None) -> RenderedSql:
  """
  Render `query` for `dialect` (an instance or a registered name; ANSI when
  omitted). Pure: the query is not modified and the same input always yields
  the same text.
  """
  return _as_dialect(dialect).render_query(query)


def render_sql(query: Query, dialect: DialectLike = None) -> str:
  return render_query(query, dialect).sql
