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
SELECT rendering: quoting, qualification, joins, filters and grouping.
"""

import pytest

from metaquery.errors import InvalidQueryError, UnboundColumnError
from metaquery.query import (
  AND, COL, COUNT, OR, SUM, ColumnRef, DerivedColumn, JoinSource, JoinType, L, Query, RawSql,
  SelectItem, compare,
)
from metaquery.rendering import render_query, render_sql
from metaquery.rendering.dialects import AnsiDialect, FirebirdDialect, MssqlDialect
from metaquery.schema import Relationship, Schema, build_table


JOIN_SQL = (
  'SELECT "DEPARTMENT"."DEPARTMENT", "EMPLOYEE"."HIRE_DATE" AS hire-date '
  'FROM "EMPLOYEE" INNER JOIN "DEPARTMENT" ON "EMPLOYEE"."EMP_NO" = "DEPARTMENT"."MNGR_NO"'
)


def _join_query(schema):
  employee = schema.get_table_by_name("EMPLOYEE")
  department = schema.get_table_by_name("DEPARTMENT")
  rel = schema.get_relationships(employee, department)[0]
  return (
    Query()
    .from_(JoinSource.from_relationship(JoinType.INNER, rel))
    .select(department.get_column_by_name("DEPARTMENT"))
    .select(SelectItem.of(employee.get_column_by_name("HIRE_DATE"), "hire-date"))
  )


def test_relationship_join_default_dialect(schema):
  q = _join_query(schema)
  assert str(q) == JOIN_SQL
  assert render_sql(q, AnsiDialect()) == JOIN_SQL


def test_relationship_join_firebird_ignores_schema_name(make_schema):
  q = _join_query(make_schema("EMPLOYEE_DB"))
  assert render_sql(q, FirebirdDialect()) == JOIN_SQL
  assert render_sql(q, "firebird") == JOIN_SQL


def test_named_schema_qualifies_tables(make_schema):
  q = _join_query(make_schema("HR"))
  assert render_sql(q) == (
    'SELECT "HR"."DEPARTMENT"."DEPARTMENT", "HR"."EMPLOYEE"."HIRE_DATE" AS hire-date '
    'FROM "HR"."EMPLOYEE" INNER JOIN "HR"."DEPARTMENT" '
    'ON "HR"."EMPLOYEE"."EMP_NO" = "HR"."DEPARTMENT"."MNGR_NO"'
  )


def test_relationship_join_in_reverse_direction(employee, department, manager_rel, col):
  q = Query().from_(department).join(JoinType.LEFT, employee, on=manager_rel).select(col("DEPARTMENT.DEPT_NO"))
  assert render_sql(q) == (
    'SELECT "DEPARTMENT"."DEPT_NO" FROM "DEPARTMENT" LEFT JOIN "EMPLOYEE" '
    'ON "EMPLOYEE"."EMP_NO" = "DEPARTMENT"."MNGR_NO"'
  )


def test_join_with_explicit_condition_and_select_star(employee, department, col):
  q = Query().from_(employee).join(
    "full", department, on=compare(col("EMPLOYEE.DEPT_NO"), "=", col("DEPARTMENT.DEPT_NO")),
  )
  assert render_sql(q) == (
    'SELECT * FROM "EMPLOYEE" FULL JOIN "DEPARTMENT" '
    'ON "EMPLOYEE"."DEPT_NO" = "DEPARTMENT"."DEPT_NO"'
  )


def test_table_alias_qualifies_columns(employee, col):
  q = Query().from_(employee, alias="e").select(col("EMPLOYEE.EMP_NO"))
  assert render_sql(q) == 'SELECT e."EMP_NO" FROM "EMPLOYEE" e'


def test_self_join_with_aliases(employee, col):
  emp_no = col("EMPLOYEE.EMP_NO")
  q = (
    Query()
    .from_(employee, alias="a")
    .join(JoinType.INNER, employee, on=compare(COL(emp_no, "a"), "<", COL(emp_no, "b")), alias="b")
    .select(COL(emp_no, "a"), COL(emp_no, "b"))
  )
  assert render_sql(q) == (
    'SELECT a."EMP_NO", b."EMP_NO" FROM "EMPLOYEE" a '
    'INNER JOIN "EMPLOYEE" b ON a."EMP_NO" < b."EMP_NO"'
  )


def test_multiple_from_items_are_comma_separated(employee, department, col):
  q = Query().from_(employee, department).select(col("EMPLOYEE.EMP_NO"), col("DEPARTMENT.DEPT_NO"))
  assert render_sql(q) == (
    'SELECT "EMPLOYEE"."EMP_NO", "DEPARTMENT"."DEPT_NO" FROM "EMPLOYEE", "DEPARTMENT"'
  )


def test_aliases_outside_the_bare_pattern_are_quoted(employee, col):
  q = Query().from_(employee).select(
    SelectItem.of(col("EMPLOYEE.EMP_NO"), "emp no"),
    SelectItem.of(col("EMPLOYEE.LAST_NAME"), 'say "hi"'),
  )
  assert render_sql(q) == (
    'SELECT "EMPLOYEE"."EMP_NO" AS "emp no", "EMPLOYEE"."LAST_NAME" AS "say ""hi""" FROM "EMPLOYEE"'
  )


def test_identifier_quotes_are_doubled():
  dialect = AnsiDialect()
  assert dialect.quote_ident('we"ird') == '"we""ird"'
  assert dialect.render_table_identifier("hr", "EMPLOYEE") == '"hr"."EMPLOYEE"'
  assert dialect.render_table_identifier(None, "EMPLOYEE") == '"EMPLOYEE"'


def test_typed_literals_follow_column_type(employee, col):
  q = (
    Query().from_(employee).select(col("EMPLOYEE.EMP_NO"))
    .where(col("EMPLOYEE.HIRE_DATE"), ">=", "2020-01-01")
    .where(col("EMPLOYEE.ACTIVE"), "=", 1)
  )
  assert render_sql(q) == (
    'SELECT "EMPLOYEE"."EMP_NO" FROM "EMPLOYEE" '
    "WHERE \"EMPLOYEE\".\"HIRE_DATE\" >= TIMESTAMP '2020-01-01' AND \"EMPLOYEE\".\"ACTIVE\" = TRUE"
  )
  assert render_sql(q, MssqlDialect()) == (
    'SELECT "EMPLOYEE"."EMP_NO" FROM "EMPLOYEE" '
    "WHERE \"EMPLOYEE\".\"HIRE_DATE\" >= CAST('2020-01-01' AS DATETIME2) AND \"EMPLOYEE\".\"ACTIVE\" = 1"
  )


def test_null_and_in_comparisons(employee, col):
  q = (
    Query().from_(employee).select(col("EMPLOYEE.EMP_NO"))
    .where(col("EMPLOYEE.DEPT_NO"), "=", None)
    .where(col("EMPLOYEE.LAST_NAME"), "!=", None)
    .where(col("EMPLOYEE.EMP_NO"), "NOT IN", [2, 4])
    .where(col("EMPLOYEE.LAST_NAME"), "LIKE", "Mc%")
  )
  assert render_sql(q) == (
    'SELECT "EMPLOYEE"."EMP_NO" FROM "EMPLOYEE" WHERE "EMPLOYEE"."DEPT_NO" IS NULL '
    'AND "EMPLOYEE"."LAST_NAME" IS NOT NULL AND "EMPLOYEE"."EMP_NO" NOT IN (2, 4) '
    "AND \"EMPLOYEE\".\"LAST_NAME\" LIKE 'Mc%'"
  )


def test_empty_in_list_is_rejected(employee, col):
  q = Query().from_(employee).where(col("EMPLOYEE.EMP_NO"), "IN", ())
  with pytest.raises(InvalidQueryError):
    render_sql(q)


def test_nested_groups_are_parenthesised(employee, col):
  q = Query().from_(employee).select(col("EMPLOYEE.EMP_NO")).where(
    OR(
      compare(col("EMPLOYEE.SALARY"), ">", 1000),
      AND(
        compare(col("EMPLOYEE.DEPT_NO"), "=", "100"),
        compare(col("EMPLOYEE.LAST_NAME"), "LIKE", "B%"),
      ),
    )
  )
  assert render_sql(q) == (
    'SELECT "EMPLOYEE"."EMP_NO" FROM "EMPLOYEE" WHERE "EMPLOYEE"."SALARY" > 1000 '
    "OR (\"EMPLOYEE\".\"DEPT_NO\" = '100' AND \"EMPLOYEE\".\"LAST_NAME\" LIKE 'B%')"
  )


def test_group_by_having_order_by(employee, col):
  dept_no = col("EMPLOYEE.DEPT_NO")
  q = (
    Query().from_(employee)
    .select(dept_no, SelectItem.of(SUM(col("EMPLOYEE.SALARY")), "total"), COUNT())
    .group_by(dept_no)
    .having(COUNT(), ">", 2)
    .order_by(dept_no)
    .order_by(SUM(col("EMPLOYEE.SALARY")), descending=True)
  )
  assert render_sql(q) == (
    'SELECT "EMPLOYEE"."DEPT_NO", SUM("EMPLOYEE"."SALARY") AS total, COUNT(*) '
    'FROM "EMPLOYEE" GROUP BY "EMPLOYEE"."DEPT_NO" HAVING COUNT(*) > 2 '
    'ORDER BY "EMPLOYEE"."DEPT_NO" ASC, SUM("EMPLOYEE"."SALARY") DESC'
  )


def test_distinct_literal_and_raw_items(employee, col):
  q = Query().from_(employee).distinct().select(
    col("EMPLOYEE.DEPT_NO"), SelectItem.of(L("x"), "tag"), RawSql("CURRENT_DATE"),
  )
  assert render_sql(q) == (
    "SELECT DISTINCT \"EMPLOYEE\".\"DEPT_NO\", 'x' AS tag, CURRENT_DATE FROM \"EMPLOYEE\""
  )


def test_subquery_in_from(employee, col):
  dept_no = col("EMPLOYEE.DEPT_NO")
  inner = Query().from_(employee).select(dept_no, SelectItem.of(COUNT(), "cnt")).group_by(dept_no)
  q = Query().from_(inner, alias="s").select(DerivedColumn("s", "cnt"))
  assert render_sql(q) == (
    'SELECT s."cnt" FROM (SELECT "EMPLOYEE"."DEPT_NO", COUNT(*) AS cnt '
    'FROM "EMPLOYEE" GROUP BY "EMPLOYEE"."DEPT_NO") s'
  )


def test_unbound_column_is_rejected_before_rendering(department, col):
  q = Query().from_(department).select(col("EMPLOYEE.EMP_NO"))
  with pytest.raises(UnboundColumnError) as excinfo:
    render_sql(q)
  assert excinfo.value.column_name == "EMP_NO"
  assert excinfo.value.table_name == "EMPLOYEE"


def test_unknown_source_alias_is_rejected(employee, col):
  q = Query().from_(employee, alias="e").select(COL(col("EMPLOYEE.EMP_NO"), "x"))
  with pytest.raises(UnboundColumnError) as excinfo:
    render_sql(q)
  assert excinfo.value.source_alias == "x"


def test_unbound_column_in_where_is_rejected(department, col):
  q = Query().from_(department).where(col("EMPLOYEE.SALARY"), ">", 1)
  with pytest.raises(UnboundColumnError):
    render_sql(q)


def test_unknown_derived_alias_is_rejected(employee):
  q = Query().from_(employee).select(DerivedColumn("s", "cnt"))
  with pytest.raises(UnboundColumnError):
    render_sql(q)


def test_query_without_from_is_rejected(col):
  with pytest.raises(InvalidQueryError):
    render_sql(Query().select(col("EMPLOYEE.EMP_NO")))


def test_rendering_is_pure_and_deterministic(employee, col):
  q = Query().from_(employee).select(col("EMPLOYEE.EMP_NO")).where(col("EMPLOYEE.SALARY"), ">", 5)
  first = render_query(q, "duckdb")
  second = render_query(q, "duckdb")
  assert first == second
  assert first.params == ()
  assert len(q.select_items) == 1


# -----------------------------------------------------------------------------
# Relationship from a table to itself
# -----------------------------------------------------------------------------
@pytest.fixture
def org_units():
  units = build_table("DEPARTMENT", [("DEPT_NO", "CHAR(3)"), ("HEAD_DEPT", "CHAR(3)")], primary_keys=["DEPT_NO"])
  reports_to = Relationship.between(units, ["DEPT_NO"], units, ["HEAD_DEPT"])
  Schema(name=None, tables=(units,), relationships=(reports_to,))
  return units, reports_to


def test_self_relationship_needs_aliases(org_units):
  units, reports_to = org_units
  q = (
    Query()
    .from_(JoinSource.from_relationship(JoinType.INNER, reports_to))
    .select(units.get_column_by_name("DEPT_NO"))
  )
  with pytest.raises(InvalidQueryError, match="DEPARTMENT"):
    render_sql(q)


def test_self_relationship_with_aliases(org_units):
  units, reports_to = org_units
  dept_no = units.get_column_by_name("DEPT_NO")
  q = (
    Query()
    .from_(JoinSource.from_relationship(JoinType.INNER, reports_to, left_alias="head", right_alias="d"))
    .select(ColumnRef(dept_no, "d"), SelectItem.of(ColumnRef(dept_no, "head"), "head_dept"))
  )
  assert render_sql(q) == (
    'SELECT d."DEPT_NO", head."DEPT_NO" AS head_dept '
    'FROM "DEPARTMENT" head INNER JOIN "DEPARTMENT" d ON head."DEPT_NO" = d."HEAD_DEPT"'
  )


def test_same_table_twice_in_from(employee):
  with pytest.raises(InvalidQueryError):
    render_sql(Query().from_(employee, employee))
  assert render_sql(Query().from_(employee).from_(employee, alias="e2")) == 'SELECT * FROM "EMPLOYEE", "EMPLOYEE" e2'
