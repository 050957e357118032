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

"""
metaquery: vendor-neutral schema metadata, query building, SQL rendering
and tabular results.
"""

from metaquery.errors import (
  ExecutionError, InvalidJoinError, InvalidQueryError, InvalidRelationshipError,
  InvalidStyleError, MetaQueryError, NotFoundError, NotSupportedError,
  ResultShapeError, UnboundColumnError, UnsupportedPaginationError,
)
from metaquery.schema import Column, Relationship, Schema, Table, TableType, build_table
from metaquery.query import JoinType, Query, SelectItem
from metaquery.data import (
  NO_STYLE, Color, CursorDataSet, DataSet, InMemoryDataSet, Row, SizeUnit, Style,
  StyleBuilder, TextAlignment,
)
from metaquery.rendering import get_active_dialect, render_query, render_sql
from metaquery.execution import DataContext

__version__ = "0.1.0"
