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
Query model: expressions and the Query builder.
"""

from .expr import (
  AND, AVG, COL, COUNT, FUNC, L, MAX, MIN, OR, SUM,
  BoolGroup, ColumnRef, Comparison, DerivedColumn, Expr, FuncCall, Literal, Operator, RawSql,
  and_, compare, or_,
)
from .model import (
  FromItem, JoinSource, JoinType, OrderByItem, Query, SelectItem, SubquerySource, TableSource,
)
