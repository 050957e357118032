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

import logging

import pytest
from sqlalchemy import create_engine

from metaquery.discovery import discovery_summary, read_schema, read_schema_names
from metaquery.execution import DataContext
from metaquery.query import JoinSource, JoinType
from metaquery.rendering.dialects import SqliteDialect
from metaquery.rendering.dialects.generic import SqlAlchemyExecutionEngine
from metaquery.schema import TableType


DDL = [
  "CREATE TABLE DEPARTMENT (DEPT_NO CHAR(3) NOT NULL PRIMARY KEY, DEPARTMENT VARCHAR(25) NOT NULL, "
  "MNGR_NO SMALLINT REFERENCES EMPLOYEE (EMP_NO), LOCATION VARCHAR(15))",
  "CREATE TABLE EMPLOYEE (EMP_NO SMALLINT NOT NULL PRIMARY KEY, LAST_NAME VARCHAR(20) NOT NULL, "
  "DEPT_NO CHAR(3) REFERENCES DEPARTMENT (DEPT_NO))",
  "CREATE TABLE AUDIT (ID INTEGER PRIMARY KEY, EMP_REF INTEGER REFERENCES OTHER_TABLE (ID))",
  "CREATE VIEW V_EMP AS SELECT EMP_NO, LAST_NAME FROM EMPLOYEE",
  "INSERT INTO EMPLOYEE VALUES (2, 'Nelson', '600'), (4, 'Young', '621'), (5, 'Lambert', '130')",
  "INSERT INTO DEPARTMENT VALUES ('600', 'Engineering', 2, 'Monterey'), "
  "('621', 'Software Products Div.', 4, 'Monterey'), ('130', 'Field Office: East Coast', NULL, 'Boston')",
]


@pytest.fixture
def sa_engine():
  engine = create_engine("sqlite://")
  with engine.begin() as conn:
    for statement in DDL:
      conn.exec_driver_sql(statement)
  yield engine
  engine.dispose()


def test_tables_and_views_in_name_order(sa_engine):
  schema = read_schema(sa_engine)
  assert schema.name is None
  assert schema.table_names == ["AUDIT", "DEPARTMENT", "EMPLOYEE", "V_EMP"]
  assert schema.get_table_by_name("V_EMP").table_type is TableType.VIEW
  assert schema.get_table_by_name("EMPLOYEE").table_type is TableType.TABLE


def test_columns_carry_type_nullability_and_keys(sa_engine):
  department = read_schema(sa_engine).get_table_by_name("DEPARTMENT")
  assert department.column_names == ["DEPT_NO", "DEPARTMENT", "MNGR_NO", "LOCATION"]
  assert [c.name for c in department.primary_keys] == ["DEPT_NO"]

  name = department.get_column_by_name("DEPARTMENT")
  assert name.column_type == "VARCHAR(25)"
  assert name.nullable is False
  assert department.get_column_by_name("LOCATION").nullable is True
  assert department.get_column_by_name("MNGR_NO").column_type == "SMALLINT"
  assert name.ordinal_position == 1
  assert name.table is department


def test_foreign_keys_become_relationships(sa_engine, caplog):
  with caplog.at_level(logging.WARNING, logger="metaquery.discovery.introspect"):
    schema = read_schema(sa_engine)

  pairs = [
    (
      r.primary_table.name, [c.name for c in r.primary_columns],
      r.foreign_table.name, [c.name for c in r.foreign_columns],
    )
    for r in schema.relationships
  ]
  assert pairs == [
    ("EMPLOYEE", ["EMP_NO"], "DEPARTMENT", ["MNGR_NO"]),
    ("DEPARTMENT", ["DEPT_NO"], "EMPLOYEE", ["DEPT_NO"]),
  ]
  assert "OTHER_TABLE" in caplog.text

  employee = schema.get_table_by_name("EMPLOYEE")
  department = schema.get_table_by_name("DEPARTMENT")
  assert len(schema.get_relationships(employee, department)) == 2


def test_summary_and_schema_names(sa_engine):
  summary = discovery_summary(read_schema(sa_engine))
  assert summary["tables"]["EMPLOYEE"] == {
    "type": "TABLE",
    "columns": ["EMP_NO", "LAST_NAME", "DEPT_NO"],
    "primary_keys": ["EMP_NO"],
  }
  assert len(summary["relationships"]) == 2
  assert "main" in read_schema_names(sa_engine)


def test_discovered_schema_drives_a_query(sa_engine):
  schema = read_schema(sa_engine)
  employee = schema.get_table_by_name("EMPLOYEE")
  department = schema.get_table_by_name("DEPARTMENT")
  works_in = schema.get_relationships(department, employee)[1]
  assert works_in.primary_table is department

  ctx = DataContext(SqliteDialect(), SqlAlchemyExecutionEngine(engine=sa_engine), schemas=[schema])
  q = (
    ctx.query()
    .from_(JoinSource.from_relationship(JoinType.INNER, works_in))
    .select(department.get_column_by_name("DEPARTMENT"), employee.get_column_by_name("LAST_NAME"))
    .order_by(employee.get_column_by_name("LAST_NAME"))
    .first_row(2)
    .max_rows(2)
  )
  assert ctx.render(q).sql.endswith("LIMIT 2 OFFSET 1")

  with ctx.execute_query(q) as rows:
    result = [(row["DEPARTMENT"], row["LAST_NAME"]) for row in rows]
  assert result == [("Engineering", "Nelson"), ("Software Products Div.", "Young")]
