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

from metaquery.rendering.pagination import PaginationStyle

from .ansi import AnsiDialect


class FirebirdDialect(AnsiDialect):
  """
  Firebird / InterBase dialect.

  Firebird has no schemas, so table names are never qualified, and row
  windows use SELECT FIRST n SKIP m (placed before DISTINCT). Execution
  goes through SQLAlchemy with a firebird URL.
  """

  DIALECT_NAME = "firebird"
  PAGINATION_STYLE = PaginationStyle.FIRST_SKIP

  @property
  def supports_schemas(self) -> bool:
    return False
