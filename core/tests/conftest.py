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

import pytest

from metaquery.schema import Relationship, Schema, build_table


def build_employee_schema(name=None, case_sensitive=True):
  """
  A slice of the Firebird EMPLOYEE sample database:
  DEPARTMENT.MNGR_NO references EMPLOYEE.EMP_NO and
  EMPLOYEE.DEPT_NO references DEPARTMENT.DEPT_NO.
  """
  department = build_table(
    "DEPARTMENT",
    [
      ("DEPT_NO", "CHAR(3)"),
      ("DEPARTMENT", "VARCHAR(25)"),
      ("MNGR_NO", "SMALLINT"),
      ("BUDGET", "DECIMAL(12,2)"),
      ("LOCATION", "VARCHAR(15)"),
    ],
    primary_keys=["DEPT_NO"],
  )
  employee = build_table(
    "EMPLOYEE",
    [
      ("EMP_NO", "SMALLINT"),
      ("FIRST_NAME", "VARCHAR(15)"),
      ("LAST_NAME", "VARCHAR(20)"),
      ("HIRE_DATE", "TIMESTAMP"),
      ("DEPT_NO", "CHAR(3)"),
      ("SALARY", "DECIMAL(10,2)"),
      ("ACTIVE", "BOOLEAN"),
    ],
    primary_keys=["EMP_NO"],
  )
  manager = Relationship.between(employee, ["EMP_NO"], department, ["MNGR_NO"])
  works_in = Relationship.between(department, ["DEPT_NO"], employee, ["DEPT_NO"])
  return Schema(
    name=name,
    tables=(department, employee),
    relationships=(manager, works_in),
    case_sensitive=case_sensitive,
  )


@pytest.fixture
def schema():
  return build_employee_schema()


@pytest.fixture
def employee(schema):
  return schema.get_table_by_name("EMPLOYEE")


@pytest.fixture
def department(schema):
  return schema.get_table_by_name("DEPARTMENT")


@pytest.fixture
def manager_rel(schema, employee, department):
  """EMPLOYEE.EMP_NO (primary) <- DEPARTMENT.MNGR_NO (foreign)."""
  return schema.relationships[0]


@pytest.fixture
def works_in_rel(schema):
  """DEPARTMENT.DEPT_NO (primary) <- EMPLOYEE.DEPT_NO (foreign)."""
  return schema.relationships[1]


@pytest.fixture
def col(employee, department):
  """col("EMPLOYEE.SALARY") -> Column"""
  tables = {"EMPLOYEE": employee, "DEPARTMENT": department}

  def _col(qualified):
    table_name, column_name = qualified.split(".")
    return tables[table_name].get_column_by_name(column_name)

  return _col


class FakeCursor:
  """DB-API style cursor over a list of tuples; records fetch sizes and close()."""

  def __init__(self, rows, description=None):
    self.rows = list(rows)
    self.description = description
    self.fetch_sizes = []
    self.closed = False

  def fetchmany(self, size):
    if self.closed:
      raise RuntimeError("cursor is closed")
    self.fetch_sizes.append(size)
    batch, self.rows = self.rows[:size], self.rows[size:]
    return batch

  def fetchall(self):
    batch, self.rows = self.rows, []
    return batch

  def close(self):
    self.closed = True


@pytest.fixture
def fake_cursor():
  return FakeCursor


@pytest.fixture
def make_schema():
  """Factory for fresh sample schemas, e.g. make_schema("HR") or make_schema(case_sensitive=False)."""
  return build_employee_schema
