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

from typing import Any, List, Optional

from metaquery.errors import InvalidQueryError
from metaquery.query.expr import (
  BoolGroup, ColumnRef, Comparison, DerivedColumn, Expr, FuncCall, Literal, Operator, RawSql,
)
from metaquery.query.model import (
  FromItem, JoinSource, Query, SelectItem, SubquerySource, TableSource,
)
from metaquery.rendering.binding import Binder
from metaquery.rendering.pagination import PaginationStyle
from metaquery.schema.model import Column

from .base import RenderContext, RenderedSql, SqlDialect


class AnsiDialect(SqlDialect):
  """
  Standard SQL dialect, and the rendering implementation every other
  dialect builds on.

  Assumptions:
  - Identifiers are quoted with double quotes.
  - String literals use single quotes.
  - Temporal literals use the DATE '...' / TIMESTAMP '...' forms.
  - Row windows use OFFSET .. ROWS FETCH FIRST .. ROWS ONLY.
  """

  DIALECT_NAME = "ansi"
  PAGINATION_STYLE = PaginationStyle.FETCH_FIRST

  def get_execution_engine(self, system):
    from .generic import SqlAlchemyExecutionEngine
    return SqlAlchemyExecutionEngine(system)

  # ---------------------------------------------------------------------------
  # Expression rendering
  # ---------------------------------------------------------------------------
  def render_expr(
    self,
    expr: Expr,
    binder: Optional[Binder] = None,
    ctx: Optional[RenderContext] = None,
    nested: bool = False,
  ) -> str:
    if ctx is None:
      ctx = RenderContext()

    if isinstance(expr, ColumnRef):
      return self.render_column(expr, binder)

    if isinstance(expr, DerivedColumn):
      if binder is not None:
        binder.check_derived(expr)
      return f"{self.render_alias(expr.source_alias)}.{self.render_identifier(expr.name)}"

    if isinstance(expr, FuncCall):
      name_upper = expr.name.upper()
      if not expr.args:
        if name_upper == "COUNT":
          return "COUNT(*)"
        return f"{name_upper}()"
      args_sql = ", ".join(self.render_expr(a, binder, ctx, nested=True) for a in expr.args)
      return f"{name_upper}({args_sql})"

    if isinstance(expr, Literal):
      return self.render_literal(expr.value)

    if isinstance(expr, RawSql):
      return expr.sql

    if isinstance(expr, Comparison):
      return self._render_comparison(expr, binder, ctx)

    if isinstance(expr, BoolGroup):
      if not expr.items:
        raise InvalidQueryError(f"Empty {expr.op} group")
      joiner = f" {expr.op} "
      inner = joiner.join(self.render_expr(i, binder, ctx, nested=True) for i in expr.items)
      if nested and len(expr.items) > 1:
        return f"({inner})"
      return inner

    raise TypeError(f"Unsupported expression type for {self.__class__.__name__}: {type(expr)!r}")

  def render_column(self, ref: ColumnRef, binder: Optional[Binder] = None) -> str:
    """
    Qualified column: <alias>."COL" when the FROM item has an alias,
    otherwise <table identifier>."COL".
    """
    if binder is not None:
      source = binder.source_for(ref)
      return self.qualify_column(ref.column, source)
    return self.qualify_column(ref.column, TableSource(ref.column.table, ref.source_alias))

  def qualify_column(self, column: Column, source: TableSource) -> str:
    if source.alias:
      qualifier = self.render_alias(source.alias)
    else:
      qualifier = self._render_table_name(source)
    return f"{qualifier}.{self.render_identifier(column.name)}"

  def _render_comparison(self, cmp: Comparison, binder: Optional[Binder], ctx: RenderContext) -> str:
    op = cmp.operator
    left_sql = self._render_operand(cmp.left, cmp.right, binder, ctx)

    if isinstance(cmp.right, Literal) and cmp.right.value is None:
      if op is Operator.EQUALS_TO:
        return f"{left_sql} IS NULL"
      if op is Operator.DIFFERENT_FROM:
        return f"{left_sql} IS NOT NULL"

    if op in (Operator.IN, Operator.NOT_IN):
      return f"{left_sql} {op.value} {self._render_in_list(cmp, binder, ctx)}"

    right_sql = self._render_operand(cmp.right, cmp.left, binder, ctx)
    return f"{left_sql} {op.value} {right_sql}"

  def _render_operand(self, operand: Expr, other: Expr, binder: Optional[Binder], ctx: RenderContext) -> str:
    """
    Literal operands are typed by the column on the other side of the
    comparison, or bound as parameters when the context binds.
    """
    if isinstance(operand, Literal):
      return self._render_value(operand.value, _canonical_type_of(other), ctx)
    return self.render_expr(operand, binder, ctx, nested=True)

  def _render_in_list(self, cmp: Comparison, binder: Optional[Binder], ctx: RenderContext) -> str:
    right = cmp.right
    if not isinstance(right, Literal):
      return f"({self.render_expr(right, binder, ctx, nested=True)})"
    values = right.value
    if not isinstance(values, (tuple, list, set, frozenset)):
      values = (values,)
    elif isinstance(values, (set, frozenset)):
      values = sorted(values, key=repr)
    if not values:
      raise InvalidQueryError(f"{cmp.operator.value} requires at least one value")
    canonical = _canonical_type_of(cmp.left)
    return "(" + ", ".join(self._render_value(v, canonical, ctx) for v in values) + ")"

  def _render_value(self, value: Any, canonical_type: Optional[str], ctx: RenderContext) -> str:
    if ctx.bind and value is not None:
      return ctx.placeholder(value)
    return self.render_typed_literal(value, canonical_type)

  # ---------------------------------------------------------------------------
  # FROM rendering
  # ---------------------------------------------------------------------------
  def _render_table_name(self, source: TableSource) -> str:
    table = source.table
    schema_name = table.schema.name if table.schema is not None else None
    return self.render_table_identifier(schema_name, table.name)

  def _render_from_item(self, item: FromItem, binder: Binder, ctx: RenderContext) -> str:
    """
    Render a base table, a sub-query or a join in FROM.
    """
    if isinstance(item, TableSource):
      table_sql = self._render_table_name(item)
      if item.alias:
        return f"{table_sql} {self.render_alias(item.alias)}"
      return table_sql

    if isinstance(item, SubquerySource):
      inner_sql = self._render_select(item.query, ctx)
      return f"({inner_sql}) {self.render_alias(item.alias)}"

    if isinstance(item, JoinSource):
      return self._render_join(item, binder, ctx)

    raise TypeError(f"Unsupported FROM item: {type(item)!r}")

  def _render_join(self, join: JoinSource, binder: Binder, ctx: RenderContext) -> str:
    left_sql = self._render_from_item(join.left, binder, ctx)
    right_sql = self._render_from_item(join.right, binder, ctx)
    if isinstance(join.right, JoinSource):
      right_sql = f"({right_sql})"

    conditions: List[str] = []
    if join.relationship is not None:
      for p_col, p_src, f_col, f_src in binder.relationship_pairs(join):
        conditions.append(f"{self.qualify_column(p_col, p_src)} = {self.qualify_column(f_col, f_src)}")
    if join.condition is not None:
      conditions.append(self.render_expr(join.condition, binder, ctx, nested=bool(conditions)))

    return f"{left_sql} {join.join_type.value} JOIN {right_sql} ON {' AND '.join(conditions)}"

  # ---------------------------------------------------------------------------
  # SELECT rendering
  # ---------------------------------------------------------------------------
  def _render_select_list(self, items: List[SelectItem], binder: Binder, ctx: RenderContext) -> str:
    rendered_items = []
    for item in items:
      expr_sql = self.render_expr(item.expr, binder, ctx)
      if item.alias:
        rendered_items.append(f"{expr_sql} AS {self.render_alias(item.alias)}")
      else:
        rendered_items.append(expr_sql)
    return ", ".join(rendered_items) if rendered_items else "*"

  def render_query(self, query: Query) -> RenderedSql:
    ctx = self.new_context()
    sql = self._render_select(query, ctx)
    return RenderedSql(sql=sql, params=ctx.params(), dialect=self.DIALECT_NAME)

  def _render_select(self, query: Query, ctx: RenderContext) -> str:
    """
    Render one query level. All column references are validated before
    any text is produced.
    """
    binder = Binder(query)
    binder.validate()

    page = self.pagination_strategy().render(
      dialect_name=self.DIALECT_NAME,
      max_rows=query.row_limit,
      offset=query.offset,
      has_order_by=bool(query.order_by_items),
    )

    parts: List[str] = ["SELECT"]
    if page.head and page.head_before_distinct:
      parts.append(page.head)
    if query.is_distinct:
      parts.append("DISTINCT")
    if page.head and not page.head_before_distinct:
      parts.append(page.head)
    parts.append(self._render_select_list(query.select_items, binder, ctx))

    parts.append("FROM")
    parts.append(", ".join(self._render_from_item(i, binder, ctx) for i in query.from_items))

    if query.where_clause is not None:
      parts.append("WHERE")
      parts.append(self.render_expr(query.where_clause, binder, ctx))

    if query.group_by_items:
      parts.append("GROUP BY")
      parts.append(", ".join(self.render_expr(e, binder, ctx) for e in query.group_by_items))

    if query.having_clause is not None:
      parts.append("HAVING")
      parts.append(self.render_expr(query.having_clause, binder, ctx))

    if query.order_by_items:
      ob_sql = ", ".join(
        f"{self.render_expr(ob.expr, binder, ctx)} {ob.direction}"
        for ob in query.order_by_items
      )
      parts.append("ORDER BY")
      parts.append(ob_sql)

    if page.tail:
      parts.append(page.tail)

    return " ".join(parts)


def _canonical_type_of(expr: Expr) -> Optional[str]:
  if isinstance(expr, ColumnRef):
    return expr.column.canonical_type
  return None
