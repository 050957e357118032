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

from metaquery.rendering.pagination import PaginationStyle

from .ansi import AnsiDialect
from .base import BaseExecutionEngine, ClosingCursor, connection_string_from


def _pyodbc():
  try:
    import pyodbc
  except ImportError as exc:
    raise ImportError(
      "The mssql dialect needs the 'pyodbc' package "
      "(pip install metaquery[mssql])."
    ) from exc
  return pyodbc


class MssqlExecutionEngine(BaseExecutionEngine):
  def __init__(self, system):
    self.conn_str = connection_string_from(system, "MSSQL")

  def open_cursor(self, sql: str, params=None):
    conn = _pyodbc().connect(self.conn_str, autocommit=True)
    try:
      cursor = conn.cursor()
      if params:
        cursor.execute(sql, params)
      else:
        cursor.execute(sql)
    except Exception:
      conn.close()
      raise
    return ClosingCursor(cursor, conn)

  def execute(self, sql: str, params=None) -> int | None:
    conn = _pyodbc().connect(self.conn_str, autocommit=False)
    try:
      cursor = conn.cursor()
      if params:
        cursor.execute(sql, params)
      else:
        cursor.execute(sql)
      conn.commit()
      return cursor.rowcount
    except Exception:
      conn.rollback()
      raise
    finally:
      conn.close()


class MssqlDialect(AnsiDialect):
  """
  SQL Server / T-SQL dialect.

  MSSQL-specific behaviour:
    - SELECT TOP n; skipping rows needs OFFSET .. FETCH NEXT and an ORDER BY
    - Booleans as 1 / 0
    - DATE / DATETIME2 / TIME literals via CAST(...)
    - Binary literals as 0x...
  """

  DIALECT_NAME = "mssql"
  PAGINATION_STYLE = PaginationStyle.TOP

  def get_execution_engine(self, system):
    return MssqlExecutionEngine(system)

  # ---------------------------------------------------------------------------
  # Literal rendering
  # ---------------------------------------------------------------------------
  def boolean_literal(self, value: bool) -> str:
    return "1" if value else "0"

  def date_literal(self, iso: str) -> str:
    return self.cast_expression(self.string_literal(iso), "DATE")

  def timestamp_literal(self, iso: str) -> str:
    return self.cast_expression(self.string_literal(iso), "DATETIME2")

  def time_literal(self, iso: str) -> str:
    return self.cast_expression(self.string_literal(iso), "TIME")

  def binary_literal(self, value: bytes) -> str:
    return f"0x{value.hex().upper()}"
