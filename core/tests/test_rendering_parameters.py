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
Parameter binding: comparison values become placeholders and are collected
in textual order; select-list literals and row windows stay inline.
"""

from metaquery.query import DerivedColumn, JoinType, L, Query, SelectItem, compare
from metaquery.rendering import render_query
from metaquery.rendering.dialects import DuckDBDialect, PostgresDialect
from metaquery.rendering.dialects.ansi import AnsiDialect
from metaquery.rendering.dialects.base import RenderContext


def test_qmark_placeholders_in_textual_order(employee, col):
  q = (
    Query().from_(employee)
    .select(col("EMPLOYEE.EMP_NO"), SelectItem.of(L(1), "one"))
    .where(col("EMPLOYEE.SALARY"), ">", 1000)
    .where(col("EMPLOYEE.DEPT_NO"), "IN", ("100", "600"))
    .where(col("EMPLOYEE.LAST_NAME"), "=", None)
    .max_rows(5)
  )
  rendered = render_query(q, DuckDBDialect(bind_parameters=True))
  assert rendered.sql == (
    'SELECT "EMPLOYEE"."EMP_NO", 1 AS one FROM "EMPLOYEE" '
    'WHERE "EMPLOYEE"."SALARY" > ? AND "EMPLOYEE"."DEPT_NO" IN (?, ?) '
    'AND "EMPLOYEE"."LAST_NAME" IS NULL LIMIT 5'
  )
  assert rendered.params == (1000, "100", "600")
  assert rendered.dialect == "duckdb"


def test_format_placeholders_for_postgres(employee, col):
  q = Query().from_(employee).select(col("EMPLOYEE.EMP_NO")).where(col("EMPLOYEE.HIRE_DATE"), "<", "2001-01-01")
  rendered = render_query(q, PostgresDialect(bind_parameters=True))
  assert rendered.sql.endswith('WHERE "EMPLOYEE"."HIRE_DATE" < %s')
  assert rendered.params == ("2001-01-01",)


def test_join_condition_values_come_before_where_values(employee, department, col):
  q = (
    Query()
    .from_(employee)
    .join(
      JoinType.INNER, department,
      on=[
        compare(col("EMPLOYEE.DEPT_NO"), "=", col("DEPARTMENT.DEPT_NO")),
        compare(col("DEPARTMENT.BUDGET"), ">", 50000),
      ],
    )
    .select(col("EMPLOYEE.EMP_NO"))
    .where(col("EMPLOYEE.SALARY"), "<", 90000)
  )
  rendered = render_query(q, AnsiDialect(bind_parameters=True))
  assert rendered.sql == (
    'SELECT "EMPLOYEE"."EMP_NO" FROM "EMPLOYEE" INNER JOIN "DEPARTMENT" '
    'ON "EMPLOYEE"."DEPT_NO" = "DEPARTMENT"."DEPT_NO" AND "DEPARTMENT"."BUDGET" > ? '
    'WHERE "EMPLOYEE"."SALARY" < ?'
  )
  assert rendered.params == (50000, 90000)


def test_subquery_values_share_the_parameter_list(employee, col):
  inner = Query().from_(employee).select(col("EMPLOYEE.DEPT_NO")).where(col("EMPLOYEE.SALARY"), ">", 1)
  outer = Query().from_(inner, alias="s").join(
    JoinType.INNER, employee, on=compare(col("EMPLOYEE.EMP_NO"), ">", 2),
  ).select(DerivedColumn("s", "DEPT_NO"))
  rendered = render_query(outer, DuckDBDialect(bind_parameters=True))
  assert rendered.params == (1, 2)
  assert rendered.sql.startswith('SELECT s."DEPT_NO" FROM (SELECT "EMPLOYEE"."DEPT_NO" FROM "EMPLOYEE" WHERE "EMPLOYEE"."SALARY" > ?) s INNER JOIN')


def test_named_and_numeric_paramstyles():
  ctx = RenderContext(bind=True, paramstyle="named")
  assert ctx.placeholder("a") == ":p1"
  assert ctx.placeholder("b") == ":p2"
  assert ctx.params() == {"p1": "a", "p2": "b"}

  ctx = RenderContext(bind=True, paramstyle="numeric")
  assert ctx.placeholder(1) == ":1"
  assert ctx.params() == (1,)

  ctx = RenderContext(bind=True, paramstyle="pyformat")
  assert ctx.placeholder(1) == "%(p1)s"


def test_without_binding_values_are_inlined(employee, col):
  q = Query().from_(employee).select(col("EMPLOYEE.EMP_NO")).where(col("EMPLOYEE.LAST_NAME"), "=", "O'Brien")
  rendered = render_query(q, DuckDBDialect())
  assert rendered.sql.endswith("WHERE \"EMPLOYEE\".\"LAST_NAME\" = 'O''Brien'")
  assert rendered.params == ()
