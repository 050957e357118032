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

from typing import Iterator, List, Optional, Tuple

from metaquery.errors import InvalidJoinError, InvalidQueryError, UnboundColumnError
from metaquery.query.expr import (
  BoolGroup, ColumnRef, Comparison, DerivedColumn, Expr, FuncCall, Literal, RawSql,
)
from metaquery.query.model import (
  FromItem, JoinSource, Query, SubquerySource, TableSource, iter_table_sources,
)
from metaquery.schema.model import Column, Relationship

"""
Name binding for a single query level.

The Binder knows which tables and derived sources the FROM items of one
query make available and resolves every column reference to the FROM item
that provides it. Sub-queries in FROM get their own Binder when they are
rendered.
"""


class Binder:
  def __init__(self, query: Query):
    if not query.from_items:
      raise InvalidQueryError("A query must reference at least one table in its FROM clause")

    self.query = query
    self.table_sources: List[TableSource] = []
    self.derived_aliases: List[str] = []
    for item in query.from_items:
      self._collect(item)

    aliases = [ts.alias for ts in self.table_sources if ts.alias] + self.derived_aliases
    dupes = sorted({a for a in aliases if aliases.count(a) > 1})
    if dupes:
      raise InvalidQueryError(f"Duplicate FROM item aliases: {', '.join(dupes)}")

    unaliased = [ts.table for ts in self.table_sources if not ts.alias]
    repeated = sorted({t.name for t in unaliased if sum(u is t for u in unaliased) > 1})
    if repeated:
      raise InvalidQueryError(
        f"Table(s) {', '.join(repeated)} bound more than once in FROM; "
        "alias each occurrence"
      )

  def _collect(self, item: FromItem) -> None:
    if isinstance(item, TableSource):
      self.table_sources.append(item)
    elif isinstance(item, SubquerySource):
      self.derived_aliases.append(item.alias)
    elif isinstance(item, JoinSource):
      self._collect(item.left)
      self._collect(item.right)
    else:
      raise TypeError(f"Unsupported FROM item: {type(item)!r}")

  # ---------------------------------------------------------------------------
  # Resolution
  # ---------------------------------------------------------------------------
  def source_for(self, ref: ColumnRef) -> TableSource:
    """The FROM item providing `ref`, or UnboundColumnError."""
    column = ref.column
    for ts in self.table_sources:
      if ts.table is not column.table:
        continue
      if ref.source_alias is None or ts.alias == ref.source_alias:
        return ts

    table_name = column.table.name if column.table is not None else None
    if ref.source_alias is not None and all(ts.alias != ref.source_alias for ts in self.table_sources):
      raise UnboundColumnError(column.name, table_name, source_alias=ref.source_alias)
    raise UnboundColumnError(column.name, table_name)

  def check_derived(self, ref: DerivedColumn) -> None:
    if ref.source_alias not in self.derived_aliases:
      raise UnboundColumnError(ref.name, None, source_alias=ref.source_alias)

  def relationship_pairs(self, join: JoinSource) -> List[Tuple[Column, TableSource, Column, TableSource]]:
    """
    (primary column, its source, foreign column, its source) for each column
    pair of the join's relationship, in relationship order.
    """
    rel: Relationship = join.relationship
    left = list(iter_table_sources(join.left))
    right = list(iter_table_sources(join.right))

    primary_src = _first_for(left, rel.primary_table)
    foreign_src = _first_for(right, rel.foreign_table)
    if primary_src is None or foreign_src is None:
      primary_src = _first_for(right, rel.primary_table)
      foreign_src = _first_for(left, rel.foreign_table)
    if primary_src is None or foreign_src is None:
      raise InvalidJoinError(f"{rel} does not connect the joined tables", relationship=rel)

    return [
      (p, primary_src, f, foreign_src)
      for p, f in rel.column_pairs()
    ]

  # ---------------------------------------------------------------------------
  # Validation
  # ---------------------------------------------------------------------------
  def validate(self) -> None:
    """
    Check every column reference of this query level before any SQL is
    emitted. Raises UnboundColumnError on the first unbound reference.
    """
    q = self.query
    for item in q.select_items:
      self._check(item.expr)
    for join in _iter_joins(q.from_items):
      if join.condition is not None:
        self._check(join.condition)
    if q.where_clause is not None:
      self._check(q.where_clause)
    for e in q.group_by_items:
      self._check(e)
    if q.having_clause is not None:
      self._check(q.having_clause)
    for ob in q.order_by_items:
      self._check(ob.expr)

  def _check(self, expr: Expr) -> None:
    for node in _walk(expr):
      if isinstance(node, ColumnRef):
        self.source_for(node)
      elif isinstance(node, DerivedColumn):
        self.check_derived(node)


def _first_for(sources: List[TableSource], table) -> Optional[TableSource]:
  for ts in sources:
    if ts.table is table:
      return ts
  return None


def _iter_joins(items: List[FromItem]) -> Iterator[JoinSource]:
  for item in items:
    if isinstance(item, JoinSource):
      yield item
      yield from _iter_joins([item.left, item.right])


def _walk(expr: Expr) -> Iterator[Expr]:
  yield expr
  if isinstance(expr, Comparison):
    yield from _walk(expr.left)
    yield from _walk(expr.right)
  elif isinstance(expr, BoolGroup):
    for item in expr.items:
      yield from _walk(item)
  elif isinstance(expr, FuncCall):
    for arg in expr.args:
      yield from _walk(arg)
  elif isinstance(expr, (ColumnRef, DerivedColumn, Literal, RawSql)):
    return
  else:
    raise TypeError(f"Unsupported expression type: {type(expr)!r}")
