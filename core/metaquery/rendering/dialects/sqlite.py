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

import sqlite3

from metaquery.rendering.pagination import LimitOffsetPagination, PaginationStrategy, PaginationStyle

from .ansi import AnsiDialect
from .base import BaseExecutionEngine, ClosingCursor, connection_string_from


class SqliteExecutionEngine(BaseExecutionEngine):
  """
  Execution engine on the standard library sqlite3 module.
  Accepts a plain path, ':memory:' or a sqlite:/// URL.
  """

  def __init__(self, system=None, *, database: str | None = None):
    if database is None:
      conn_str = connection_string_from(system, "SQLite")
      database = conn_str[len("sqlite:///"):] if conn_str.startswith("sqlite:///") else conn_str
    self._database = database or ":memory:"
    self._conn = None

  def _get_conn(self):
    if self._conn is None:
      self._conn = sqlite3.connect(self._database)
    return self._conn

  def open_cursor(self, sql: str, params=None):
    cursor = self._get_conn().cursor()
    try:
      cursor.execute(sql, params or ())
    except Exception:
      cursor.close()
      raise
    return ClosingCursor(cursor)

  def execute(self, sql: str, params=None) -> int | None:
    conn = self._get_conn()
    if params:
      cursor = conn.execute(sql, params)
    else:
      cursor = conn.executescript(sql)
    conn.commit()
    return cursor.rowcount

  def close(self) -> None:
    if self._conn is not None:
      try:
        self._conn.close()
      finally:
        self._conn = None


class SqliteDialect(AnsiDialect):
  """
  SQLite: no native boolean or temporal types, so booleans render as
  1 / 0 and dates as plain ISO strings. OFFSET needs a LIMIT.
  """

  DIALECT_NAME = "sqlite"
  PAGINATION_STYLE = PaginationStyle.LIMIT_OFFSET

  def get_execution_engine(self, system):
    return SqliteExecutionEngine(system)

  def pagination_strategy(self) -> PaginationStrategy:
    return LimitOffsetPagination(offset_requires_limit=True)

  def boolean_literal(self, value: bool) -> str:
    return "1" if value else "0"

  def date_literal(self, iso: str) -> str:
    return self.string_literal(iso)

  def timestamp_literal(self, iso: str) -> str:
    return self.string_literal(iso)

  def time_literal(self, iso: str) -> str:
    return self.string_literal(iso)
