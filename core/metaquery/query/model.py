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

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional, Sequence, Union

from metaquery.errors import InvalidJoinError, InvalidQueryError, NotFoundError
from metaquery.schema.model import Column, Relationship, Table
from metaquery.query.expr import (
  AND, BoolGroup, ColumnRef, COUNT, Expr, as_expr, compare, expr_label,
)

"""
Vendor-neutral SELECT query model.

A Query accumulates FROM items, select items, filters, grouping, having,
ordering and a row window through a fluent API; every method mutates the
instance and returns it. Insertion order is preserved into the rendered SQL.

FROM items form a closed set of variants (TableSource, SubquerySource,
JoinSource). The renderer dispatches on them exhaustively.
"""


class JoinType(str, Enum):
  INNER = "INNER"
  LEFT = "LEFT"
  RIGHT = "RIGHT"
  FULL = "FULL"


@dataclass(frozen=True)
class TableSource:
  table: Table
  alias: Optional[str] = None

  def __post_init__(self):
    if self.alias is not None:
      _check_alias(self.alias)


@dataclass(frozen=True, eq=False)
class SubquerySource:
  """A derived table: FROM (SELECT ...) alias"""
  query: "Query"
  alias: str

  def __post_init__(self):
    _check_alias(self.alias)


@dataclass(frozen=True)
class JoinSource:
  join_type: JoinType
  left: "FromItem"
  right: "FromItem"
  relationship: Optional[Relationship] = None
  condition: Optional[Expr] = None

  def __post_init__(self):
    object.__setattr__(self, "join_type", JoinType(self.join_type))

    if self.relationship is None and self.condition is None:
      raise InvalidJoinError(
        f"{self.join_type.value} JOIN requires a relationship or an explicit condition",
        tables=tuple(t.name for t in bound_tables(self)),
      )
    if self.relationship is not None:
      rel = self.relationship
      left_tables = set(bound_tables(self.left))
      right_tables = set(bound_tables(self.right))
      forward = rel.primary_table in left_tables and rel.foreign_table in right_tables
      backward = rel.foreign_table in left_tables and rel.primary_table in right_tables
      if not (forward or backward):
        raise InvalidJoinError(
          f"{rel} does not connect the joined tables "
          f"{sorted(t.name for t in left_tables)} and {sorted(t.name for t in right_tables)}",
          relationship=rel,
          tables=tuple(t.name for t in bound_tables(self)),
        )

  @classmethod
  def from_relationship(
    cls,
    join_type: JoinType,
    relationship: Relationship,
    left_alias: Optional[str] = None,
    right_alias: Optional[str] = None,
  ) -> "JoinSource":
    """
    Join the relationship's primary table (left) with its foreign table
    (right). A relationship from a table to itself needs both aliases.
    """
    return cls(
      join_type=join_type,
      left=TableSource(relationship.primary_table, left_alias),
      right=TableSource(relationship.foreign_table, right_alias),
      relationship=relationship,
    )


FromItem = Union[TableSource, SubquerySource, JoinSource]


def iter_table_sources(item: FromItem) -> Iterator[TableSource]:
  """TableSources of a FROM item, left to right. Sub-queries contribute none."""
  if isinstance(item, TableSource):
    yield item
  elif isinstance(item, JoinSource):
    yield from iter_table_sources(item.left)
    yield from iter_table_sources(item.right)
  elif isinstance(item, SubquerySource):
    return
  else:
    raise TypeError(f"Unsupported FROM item: {type(item)!r}")


def bound_tables(item: FromItem) -> List[Table]:
  return [ts.table for ts in iter_table_sources(item)]


def _check_alias(alias: object) -> None:
  if not isinstance(alias, str) or not alias.strip():
    raise InvalidQueryError(f"Alias must be a non-empty string, got {alias!r}")
  if any(ch in alias for ch in ("\n", "\r", "\0")):
    raise InvalidQueryError(f"Alias {alias!r} contains line breaks or NUL characters")


@dataclass(frozen=True)
class SelectItem:
  expr: Expr
  alias: Optional[str] = None

  def __post_init__(self):
    if self.alias is not None:
      _check_alias(self.alias)

  @classmethod
  def of(cls, value: Any, alias: Optional[str] = None) -> "SelectItem":
    if isinstance(value, SelectItem):
      return value if alias is None else cls(expr=value.expr, alias=alias)
    return cls(expr=as_expr(value), alias=alias)

  @property
  def label(self) -> str:
    return self.alias or expr_label(self.expr)

  @property
  def column(self) -> Optional[Column]:
    if isinstance(self.expr, ColumnRef):
      return self.expr.column
    return None


@dataclass(frozen=True)
class OrderByItem:
  expr: Expr
  descending: bool = False

  @property
  def direction(self) -> str:
    return "DESC" if self.descending else "ASC"


class Query:
  """
  Mutable SELECT specification.

    q = Query().from_(employee).select(employee.get_column_by_name("EMP_NO"))
    q.where(salary, ">", 1000).order_by(salary, descending=True).max_rows(10)

  Not safe for concurrent mutation; build one Query per thread.
  """

  def __init__(self) -> None:
    self.from_items: List[FromItem] = []
    self.select_items: List[SelectItem] = []
    self.is_distinct: bool = False
    self.where_clause: Optional[Expr] = None
    self.group_by_items: List[Expr] = []
    self.having_clause: Optional[Expr] = None
    self.order_by_items: List[OrderByItem] = []
    self.row_limit: Optional[int] = None
    self.start_row: Optional[int] = None

  # ---------------------------------------------------------------------------
  # FROM
  # ---------------------------------------------------------------------------
  def from_(self, *items: Union[Table, "Query", FromItem], alias: Optional[str] = None) -> "Query":
    if alias is not None and len(items) != 1:
      raise InvalidQueryError("An alias can only be given together with a single FROM item")
    for item in items:
      self.from_items.append(self._to_from_item(item, alias))
    return self

  def join(
    self,
    join_type: Union[JoinType, str],
    item: Union[Table, "Query", FromItem],
    on: Union[Relationship, Expr, Sequence[Expr], None] = None,
    alias: Optional[str] = None,
  ) -> "Query":
    """
    Join `item` to the last FROM item, e.g.

      q.from_(employee).join(JoinType.INNER, department, on=rel)
    """
    if not self.from_items:
      raise InvalidQueryError("join() requires a preceding FROM item")
    join_type = JoinType(join_type.upper() if isinstance(join_type, str) else join_type)
    right = self._to_from_item(item, alias)
    left = self.from_items[-1]

    relationship = on if isinstance(on, Relationship) else None
    condition: Optional[Expr] = None
    if isinstance(on, Expr):
      condition = on
    elif on is not None and relationship is None:
      parts = [as_expr(c) for c in on]
      if not parts:
        raise InvalidJoinError(
          f"{join_type.value} JOIN requires at least one condition",
          tables=tuple(t.name for t in bound_tables(left) + bound_tables(right)),
        )
      condition = parts[0] if len(parts) == 1 else AND(*parts)

    self.from_items[-1] = JoinSource(
      join_type=join_type,
      left=left,
      right=right,
      relationship=relationship,
      condition=condition,
    )
    return self

  @staticmethod
  def _to_from_item(item: Union[Table, "Query", FromItem], alias: Optional[str]) -> FromItem:
    if isinstance(item, Table):
      return TableSource(table=item, alias=alias)
    if isinstance(item, Query):
      if alias is None:
        raise InvalidQueryError("A sub-query in FROM requires an alias")
      return SubquerySource(query=item, alias=alias)
    if isinstance(item, (TableSource, SubquerySource, JoinSource)):
      if alias is not None:
        raise InvalidQueryError("Alias must be set on the FROM item itself")
      return item
    raise InvalidQueryError(f"Unsupported FROM item: {item!r}")

  # ---------------------------------------------------------------------------
  # SELECT
  # ---------------------------------------------------------------------------
  def select(self, *items: Union[Column, Expr, SelectItem, str]) -> "Query":
    for item in items:
      if isinstance(item, str):
        item = self._resolve_column_name(item)
      self.select_items.append(SelectItem.of(item))
    return self

  def select_count(self) -> "Query":
    self.select_items.append(SelectItem(expr=COUNT()))
    return self

  def distinct(self, value: bool = True) -> "Query":
    self.is_distinct = value
    return self

  def _resolve_column_name(self, name: str) -> Column:
    """Resolve "COL" or "TABLE.COL" against the tables bound so far."""
    table_name, _, col_name = name.rpartition(".")
    for item in self.from_items:
      for ts in iter_table_sources(item):
        if table_name and table_name not in (ts.table.name, ts.alias):
          continue
        try:
          return ts.table.get_column_by_name(col_name)
        except NotFoundError:
          continue
    raise NotFoundError("Column", name, container="the FROM items of this query")

  # ---------------------------------------------------------------------------
  # WHERE / GROUP BY / HAVING / ORDER BY
  # ---------------------------------------------------------------------------
  def where(self, *args: Any) -> "Query":
    """where(expr) or where(column, operator, value); repeated calls are AND-ed."""
    self.where_clause = self._combine(self.where_clause, self._to_condition(args))
    return self

  def having(self, *args: Any) -> "Query":
    self.having_clause = self._combine(self.having_clause, self._to_condition(args))
    return self

  def group_by(self, *items: Union[Column, Expr, str]) -> "Query":
    for item in items:
      if isinstance(item, str):
        item = self._resolve_column_name(item)
      self.group_by_items.append(as_expr(item))
    return self

  def order_by(self, item: Union[Column, Expr, SelectItem, OrderByItem, str], descending: bool = False) -> "Query":
    if isinstance(item, OrderByItem):
      self.order_by_items.append(item)
      return self
    if isinstance(item, str):
      item = self._resolve_column_name(item)
    if isinstance(item, SelectItem):
      item = item.expr
    self.order_by_items.append(OrderByItem(expr=as_expr(item), descending=descending))
    return self

  @staticmethod
  def _to_condition(args: tuple) -> Expr:
    if len(args) == 1 and isinstance(args[0], Expr):
      return args[0]
    if len(args) == 3:
      return compare(*args)
    raise InvalidQueryError(
      "Expected a single expression or (left, operator, right), "
      f"got {len(args)} arguments"
    )

  @staticmethod
  def _combine(existing: Optional[Expr], new: Expr) -> Expr:
    if existing is None:
      return new
    if isinstance(existing, BoolGroup) and existing.op == "AND":
      return BoolGroup(op="AND", items=existing.items + (new,))
    return AND(existing, new)

  # ---------------------------------------------------------------------------
  # Row window
  # ---------------------------------------------------------------------------
  def max_rows(self, n: Optional[int]) -> "Query":
    if n is not None and (isinstance(n, bool) or not isinstance(n, int) or n < 0):
      raise InvalidQueryError(f"max_rows must be a non-negative integer, got {n!r}")
    self.row_limit = n
    return self

  def first_row(self, n: Optional[int]) -> "Query":
    """1-based index of the first row to return."""
    if n is not None and (isinstance(n, bool) or not isinstance(n, int) or n < 1):
      raise InvalidQueryError(f"first_row must be an integer >= 1, got {n!r}")
    self.start_row = n
    return self

  @property
  def offset(self) -> int:
    """Number of rows skipped before the first returned row."""
    return (self.start_row or 1) - 1

  # ---------------------------------------------------------------------------
  # Copying / printing
  # ---------------------------------------------------------------------------
  def clone(self) -> "Query":
    q = Query()
    q.from_items = [_clone_from_item(i) for i in self.from_items]
    q.select_items = list(self.select_items)
    q.is_distinct = self.is_distinct
    q.where_clause = self.where_clause
    q.group_by_items = list(self.group_by_items)
    q.having_clause = self.having_clause
    q.order_by_items = list(self.order_by_items)
    q.row_limit = self.row_limit
    q.start_row = self.start_row
    return q

  def to_sql(self, dialect=None) -> str:
    from metaquery.rendering.renderer import render_sql
    return render_sql(self, dialect)

  def __str__(self) -> str:
    try:
      return self.to_sql()
    except InvalidQueryError:
      return repr(self)

  def __repr__(self) -> str:
    return f"Query[{len(self.from_items)} from items, {len(self.select_items)} select items]"

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, Query):
      return NotImplemented
    try:
      return self.to_sql() == other.to_sql()
    except InvalidQueryError:
      # not renderable yet (e.g. no FROM item): compare the parts
      return self._parts() == other._parts()

  def _parts(self) -> tuple:
    return (
      self.from_items, self.select_items, self.is_distinct, self.where_clause,
      self.group_by_items, self.having_clause, self.order_by_items, self.row_limit, self.start_row,
    )

  __hash__ = None  # mutable


def _clone_from_item(item: FromItem) -> FromItem:
  if isinstance(item, SubquerySource):
    return SubquerySource(query=item.query.clone(), alias=item.alias)
  if isinstance(item, JoinSource):
    return JoinSource(
      join_type=item.join_type,
      left=_clone_from_item(item.left),
      right=_clone_from_item(item.right),
      relationship=item.relationship,
      condition=item.condition,
    )
  return item
