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

from typing import Optional

"""
Error taxonomy for metaquery.

Every error is raised synchronously at the point of violation and carries
the structured context (names, dialect, counts, SQL) needed to act on it.
Each class also derives from the closest builtin so callers that only know
about LookupError / ValueError keep working.
"""


class MetaQueryError(Exception):
  """Base class for all metaquery errors."""


# -----------------------------------------------------------------------------
# Metadata
# -----------------------------------------------------------------------------
class NotFoundError(MetaQueryError, LookupError):
  """A schema, table or column lookup did not match anything."""

  def __init__(self, kind: str, name: str, container: Optional[str] = None):
    self.kind = kind
    self.name = name
    self.container = container
    where = f" in {container}" if container else ""
    super().__init__(f"{kind} {name!r} not found{where}")


class InvalidRelationshipError(MetaQueryError, ValueError):
  """A relationship violates its column list invariants."""


# -----------------------------------------------------------------------------
# Query model
# -----------------------------------------------------------------------------
class InvalidQueryError(MetaQueryError, ValueError):
  """The query cannot be rendered as it stands (e.g. it has no FROM item)."""


class InvalidJoinError(InvalidQueryError):
  """A join has no condition, or its relationship does not match its tables."""

  def __init__(self, message: str, *, relationship=None, tables: tuple[str, ...] = ()):
    self.relationship = relationship
    self.tables = tables
    super().__init__(message)


class UnboundColumnError(InvalidQueryError):
  """A column is referenced whose table is not part of any FROM item."""

  def __init__(self, column_name: str, table_name: Optional[str], source_alias: Optional[str] = None):
    self.column_name = column_name
    self.table_name = table_name
    self.source_alias = source_alias
    if source_alias:
      msg = f"Column {column_name!r} refers to unknown FROM item alias {source_alias!r}"
    else:
      msg = f"Column {column_name!r} of table {table_name!r} is not bound by any FROM item"
    super().__init__(msg)


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------
class UnsupportedPaginationError(MetaQueryError, NotImplementedError):
  """The dialect cannot express the requested max rows / first row window."""

  def __init__(self, dialect: str, max_rows: Optional[int], first_row: Optional[int], reason: str = ""):
    self.dialect = dialect
    self.max_rows = max_rows
    self.first_row = first_row
    detail = f": {reason}" if reason else ""
    super().__init__(
      f"Dialect {dialect!r} cannot render pagination "
      f"(max_rows={max_rows}, first_row={first_row}){detail}"
    )


# -----------------------------------------------------------------------------
# Styling
# -----------------------------------------------------------------------------
class InvalidStyleError(MetaQueryError, ValueError):
  """Style construction arguments are out of range."""


# -----------------------------------------------------------------------------
# Results / execution
# -----------------------------------------------------------------------------
class NotSupportedError(MetaQueryError, NotImplementedError):
  """The operation is not supported by this kind of dataset."""


class ResultShapeError(MetaQueryError):
  """The cursor returned a column count that does not match the select items."""

  def __init__(self, expected: int, actual: int, row_index: Optional[int] = None):
    self.expected = expected
    self.actual = actual
    self.row_index = row_index
    where = f" at row {row_index}" if row_index is not None else ""
    super().__init__(
      f"Result shape mismatch{where}: expected {expected} columns, got {actual}"
    )


class ExecutionError(MetaQueryError, RuntimeError):
  """
  Opaque backend failure. The original driver exception is kept as
  __cause__ and the offending statement as `sql`.
  """

  def __init__(self, message: str, *, sql: Optional[str] = None, dialect: Optional[str] = None):
    self.sql = sql
    self.dialect = dialect
    super().__init__(message)
