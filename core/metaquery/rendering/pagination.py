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

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from metaquery.errors import UnsupportedPaginationError

"""
Pagination strategies.

Row windows are the one part of a SELECT whose syntax differs structurally
between backends. Each dialect names a PaginationStyle; the strategy for that
style turns (max rows, offset) into a clause placed right after SELECT
(`head`) and/or at the very end of the statement (`tail`).
"""


class PaginationStyle(str, Enum):
  LIMIT_OFFSET = "LIMIT_OFFSET"   # LIMIT n OFFSET m
  TOP = "TOP"                     # SELECT TOP n ... / OFFSET m ROWS FETCH NEXT n ROWS ONLY
  FETCH_FIRST = "FETCH_FIRST"     # OFFSET m ROWS FETCH FIRST n ROWS ONLY
  FIRST_SKIP = "FIRST_SKIP"       # SELECT FIRST n SKIP m ...
  NONE = "NONE"


@dataclass(frozen=True)
class PaginationClause:
  head: str = ""
  tail: str = ""
  # FIRST/SKIP must precede DISTINCT, TOP follows it
  head_before_distinct: bool = False


NO_PAGINATION = PaginationClause()


class PaginationStrategy(ABC):
  style: PaginationStyle

  def render(
    self,
    *,
    dialect_name: str,
    max_rows: Optional[int],
    offset: int,
    has_order_by: bool,
  ) -> PaginationClause:
    if max_rows is None and offset <= 0:
      return NO_PAGINATION
    return self._render(
      dialect_name=dialect_name, max_rows=max_rows, offset=offset, has_order_by=has_order_by,
    )

  @abstractmethod
  def _render(self, *, dialect_name: str, max_rows: Optional[int], offset: int, has_order_by: bool) -> PaginationClause:
    raise NotImplementedError


def _first_row(offset: int) -> Optional[int]:
  return offset + 1 if offset > 0 else None


class LimitOffsetPagination(PaginationStrategy):
  style = PaginationStyle.LIMIT_OFFSET

  def __init__(self, offset_requires_limit: bool = False):
    # SQLite / MySQL reject a bare OFFSET
    self.offset_requires_limit = offset_requires_limit

  def _render(self, *, dialect_name, max_rows, offset, has_order_by):
    parts = []
    if max_rows is not None:
      parts.append(f"LIMIT {max_rows}")
    elif self.offset_requires_limit:
      parts.append("LIMIT -1")
    if offset > 0:
      parts.append(f"OFFSET {offset}")
    return PaginationClause(tail=" ".join(parts))


class TopPagination(PaginationStrategy):
  """
  SQL Server: TOP n when no rows are skipped, otherwise the
  OFFSET .. ROWS FETCH NEXT .. ROWS ONLY form, which requires ORDER BY.
  """
  style = PaginationStyle.TOP

  def _render(self, *, dialect_name, max_rows, offset, has_order_by):
    if offset <= 0:
      return PaginationClause(head=f"TOP {max_rows}")

    if not has_order_by:
      raise UnsupportedPaginationError(
        dialect_name, max_rows, _first_row(offset),
        reason="skipping rows requires an ORDER BY clause",
      )
    tail = f"OFFSET {offset} ROWS"
    if max_rows is not None:
      tail += f" FETCH NEXT {max_rows} ROWS ONLY"
    return PaginationClause(tail=tail)


class FetchFirstPagination(PaginationStrategy):
  """SQL:2008 row limiting clause."""
  style = PaginationStyle.FETCH_FIRST

  def _render(self, *, dialect_name, max_rows, offset, has_order_by):
    parts = []
    if offset > 0:
      parts.append(f"OFFSET {offset} ROWS")
    if max_rows is not None:
      keyword = "NEXT" if offset > 0 else "FIRST"
      parts.append(f"FETCH {keyword} {max_rows} ROWS ONLY")
    return PaginationClause(tail=" ".join(parts))


class FirstSkipPagination(PaginationStrategy):
  """Firebird: SELECT FIRST n SKIP m ..."""
  style = PaginationStyle.FIRST_SKIP

  def _render(self, *, dialect_name, max_rows, offset, has_order_by):
    parts = []
    if max_rows is not None:
      parts.append(f"FIRST {max_rows}")
    if offset > 0:
      parts.append(f"SKIP {offset}")
    return PaginationClause(head=" ".join(parts), head_before_distinct=True)


class NoPagination(PaginationStrategy):
  style = PaginationStyle.NONE

  def _render(self, *, dialect_name, max_rows, offset, has_order_by):
    raise UnsupportedPaginationError(
      dialect_name, max_rows, _first_row(offset),
      reason="the dialect has no row limiting syntax",
    )


_STRATEGIES: Dict[PaginationStyle, PaginationStrategy] = {
  PaginationStyle.LIMIT_OFFSET: LimitOffsetPagination(),
  PaginationStyle.TOP: TopPagination(),
  PaginationStyle.FETCH_FIRST: FetchFirstPagination(),
  PaginationStyle.FIRST_SKIP: FirstSkipPagination(),
  PaginationStyle.NONE: NoPagination(),
}


def get_pagination_strategy(style: PaginationStyle) -> PaginationStrategy:
  return _STRATEGIES[PaginationStyle(style)]
