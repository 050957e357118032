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

import duckdb

from metaquery.rendering.pagination import PaginationStyle

from .ansi import AnsiDialect
from .base import BaseExecutionEngine, ClosingCursor, connection_string_from


class DuckDbExecutionEngine(BaseExecutionEngine):
  """
  Execution engine for DuckDB based on the target system's security configuration.

  Accepted connection strings:
      duckdb:///./core/dwh.duckdb  -> ./core/dwh.duckdb
      duckdb:///:memory:           -> :memory:
  Anything else is treated as a database path.
  """

  def __init__(self, system=None, *, database: str | None = None):
    if database is None:
      conn_str = connection_string_from(system, "DuckDB")
      if conn_str.startswith("duckdb:///"):
        database = conn_str[len("duckdb:///"):]
      else:
        database = conn_str

    if not database:
      raise ValueError("No database path could be derived for DuckDB")

    self._database = database
    self._conn = None

  def _get_conn(self):
    # One connection per engine; an in-memory database lives as long as it.
    if self._conn is None:
      self._conn = duckdb.connect(self._database)
    return self._conn

  def open_cursor(self, sql: str, params=None):
    cursor = self._get_conn().cursor()
    try:
      if params:
        cursor.execute(sql, list(params) if isinstance(params, tuple) else params)
      else:
        cursor.execute(sql)
    except Exception:
      cursor.close()
      raise
    return ClosingCursor(cursor)

  def execute(self, sql: str, params=None) -> int | None:
    """
    Execute SQL against DuckDB. Supports multi-statement SQL when no
    parameters are given.
    """
    if not sql:
      return 0
    conn = self._get_conn()
    cursor = conn.execute(sql, params) if params else conn.execute(sql)
    return getattr(cursor, "rowcount", None)

  def close(self) -> None:
    if self._conn is not None:
      try:
        self._conn.close()
      finally:
        self._conn = None


class DuckDBDialect(AnsiDialect):
  """
  DuckDB SQL dialect: ANSI rendering with LIMIT / OFFSET row windows.
  """

  DIALECT_NAME = "duckdb"
  PAGINATION_STYLE = PaginationStyle.LIMIT_OFFSET

  def get_execution_engine(self, system):
    return DuckDbExecutionEngine(system)
