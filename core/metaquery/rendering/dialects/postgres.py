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


def _psycopg2():
  try:
    import psycopg2
  except ImportError as exc:
    raise ImportError(
      "The postgres dialect needs the 'psycopg2' package "
      "(pip install metaquery[postgres])."
    ) from exc
  return psycopg2


class PostgresExecutionEngine(BaseExecutionEngine):
  def __init__(self, system):
    self.conn_str = connection_string_from(system, "Postgres")

  def open_cursor(self, sql: str, params=None):
    conn = _psycopg2().connect(self.conn_str)
    try:
      cursor = conn.cursor()
      cursor.execute(sql, params or None)
    except Exception:
      conn.close()
      raise
    return ClosingCursor(cursor, conn)

  def execute(self, sql: str, params=None) -> int | None:
    with _psycopg2().connect(self.conn_str) as conn:
      with conn.cursor() as cur:
        cur.execute(sql, params or None)

        # rowcount may be -1 depending on statement type
        return cur.rowcount


class PostgresDialect(AnsiDialect):
  """
  SQL dialect for PostgreSQL. psycopg2 uses the 'format' paramstyle (%s).
  """

  DIALECT_NAME = "postgres"
  PAGINATION_STYLE = PaginationStyle.LIMIT_OFFSET
  PARAMSTYLE = "format"

  def get_execution_engine(self, system):
    return PostgresExecutionEngine(system)

  def binary_literal(self, value: bytes) -> str:
    return f"'\\x{value.hex()}'::bytea"
