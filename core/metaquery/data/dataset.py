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

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from metaquery.errors import NotFoundError, NotSupportedError, ResultShapeError
from metaquery.query.expr import Expr
from metaquery.query.model import SelectItem
from metaquery.schema.model import Column

from .style import NO_STYLE, Style

logger = logging.getLogger(__name__)

"""
Tabular results.

Rows are positionally aligned with the select items of the query that
produced them. A DataSet is either fully in memory (random access,
re-iterable) or backed by an open cursor (forward-only, single pass).
"""

# (row_index, column_index) -> Style, None meaning NO_STYLE
StyleSupplier = Callable[[int, int], Optional[Style]]

ColumnKey = Union[int, str, SelectItem, Column, Expr]


class DataSetHeader:
  """The select items a dataset's rows are aligned with."""

  def __init__(self, select_items: Iterable[Union[SelectItem, Column, Expr]]):
    self._items: Tuple[SelectItem, ...] = tuple(SelectItem.of(i) for i in select_items)

  @property
  def select_items(self) -> Tuple[SelectItem, ...]:
    return self._items

  @property
  def size(self) -> int:
    return len(self._items)

  @property
  def labels(self) -> List[str]:
    return [item.label for item in self._items]

  def index_of(self, key: ColumnKey) -> int:
    """
    Position of a column given as index, label, "TABLE.COL", SelectItem,
    Column or expression. Raises NotFoundError when nothing matches.
    """
    if isinstance(key, bool):
      raise TypeError("Column key must not be a bool")
    if isinstance(key, int):
      if -self.size <= key < self.size:
        return key % self.size
      raise IndexError(f"Column index {key} out of range for {self.size} columns")

    for i, item in enumerate(self._items):
      if isinstance(key, str):
        if item.label == key:
          return i
      elif isinstance(key, SelectItem):
        if item == key:
          return i
      elif isinstance(key, Column):
        if item.column is key:
          return i
      elif item.expr == key:
        return i

    if isinstance(key, str):
      for i, item in enumerate(self._items):
        if item.column is not None and item.column.qualified_label == key:
          return i
    label = key if isinstance(key, str) else getattr(key, "label", None) or repr(key)
    raise NotFoundError("Column", label, container="the dataset header")

  def __len__(self) -> int:
    return self.size

  def __iter__(self) -> Iterator[SelectItem]:
    return iter(self._items)

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, DataSetHeader):
      return NotImplemented
    return self._items == other._items

  def __repr__(self) -> str:
    return f"DataSetHeader[{', '.join(self.labels)}]"


class Row:
  """One result row: values and per-cell styles, read-only."""

  __slots__ = ("_header", "_values", "_styles")

  def __init__(self, header: DataSetHeader, values: Sequence[Any], styles: Optional[Sequence[Style]] = None):
    values = tuple(values)
    if len(values) != header.size:
      raise ResultShapeError(header.size, len(values))
    if styles is None:
      styles = (NO_STYLE,) * header.size
    else:
      styles = tuple(NO_STYLE if s is None else s for s in styles)
      if len(styles) != header.size:
        raise ResultShapeError(header.size, len(styles))
    self._header = header
    self._values = values
    self._styles = styles

  @property
  def header(self) -> DataSetHeader:
    return self._header

  @property
  def values(self) -> Tuple[Any, ...]:
    return self._values

  @property
  def styles(self) -> Tuple[Style, ...]:
    return self._styles

  def get_value(self, key: ColumnKey) -> Any:
    return self._values[self._header.index_of(key)]

  def get_style(self, key: ColumnKey) -> Style:
    return self._styles[self._header.index_of(key)]

  def __getitem__(self, key: ColumnKey) -> Any:
    return self.get_value(key)

  def __len__(self) -> int:
    return len(self._values)

  def __iter__(self) -> Iterator[Any]:
    return iter(self._values)

  def __eq__(self, other: object) -> bool:
    if isinstance(other, Row):
      return self._values == other._values and self._styles == other._styles
    if isinstance(other, tuple):
      return self._values == other
    return NotImplemented

  __hash__ = None

  def __repr__(self) -> str:
    return f"Row[values={self._values!r}]"


def _build_row(
  header: DataSetHeader,
  raw: Sequence[Any],
  row_index: int,
  style_supplier: Optional[StyleSupplier],
) -> Row:
  values = tuple(raw)
  if len(values) != header.size:
    raise ResultShapeError(header.size, len(values), row_index=row_index)
  if style_supplier is None:
    return Row(header, values)
  styles = [style_supplier(row_index, c) or NO_STYLE for c in range(header.size)]
  return Row(header, values, styles)


class DataSet(ABC):
  """Common interface of in-memory and cursor-backed results."""

  def __init__(self, header: DataSetHeader):
    self.header = header

  @property
  def select_items(self) -> Tuple[SelectItem, ...]:
    return self.header.select_items

  @abstractmethod
  def __iter__(self) -> Iterator[Row]:
    raise NotImplementedError

  def close(self) -> None:
    pass

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc, tb) -> None:
    self.close()


class InMemoryDataSet(DataSet):
  """Fully materialized rows: random access and any number of iterations."""

  def __init__(self, header: DataSetHeader, rows: Sequence[Row] = ()):
    super().__init__(header)
    self._rows: Tuple[Row, ...] = tuple(rows)
    for i, row in enumerate(self._rows):
      if len(row) != header.size:
        raise ResultShapeError(header.size, len(row), row_index=i)

  @classmethod
  def from_tuples(
    cls,
    header: DataSetHeader,
    tuples: Iterable[Sequence[Any]],
    style_supplier: Optional[StyleSupplier] = None,
  ) -> "InMemoryDataSet":
    rows = [_build_row(header, raw, i, style_supplier) for i, raw in enumerate(tuples)]
    return cls(header, rows)

  def __iter__(self) -> Iterator[Row]:
    return iter(self._rows)

  def __len__(self) -> int:
    return len(self._rows)

  def __getitem__(self, index: int) -> Row:
    return self._rows[index]

  def to_rows(self) -> List[Row]:
    return list(self._rows)

  def get_value(self, row: int, column: ColumnKey) -> Any:
    return self._rows[row].get_value(column)

  def __repr__(self) -> str:
    return f"InMemoryDataSet[{len(self._rows)} rows x {self.header.size} columns]"


class CursorDataSet(DataSet):
  """
  Forward-only rows streamed from a DB-API style cursor (fetchmany, close,
  optional description). The cursor is closed on exhaustion, on early
  termination of the iteration, on errors and by close().
  """

  def __init__(
    self,
    header: DataSetHeader,
    cursor,
    style_supplier: Optional[StyleSupplier] = None,
    fetch_size: int = 500,
  ):
    super().__init__(header)
    if fetch_size < 1:
      raise ValueError(f"fetch_size must be >= 1, got {fetch_size!r}")
    self._cursor = cursor
    self._style_supplier = style_supplier
    self._fetch_size = fetch_size
    self._started = False
    self._closed = False

    description = getattr(cursor, "description", None)
    if description is not None and len(description) != header.size:
      self.close()
      raise ResultShapeError(header.size, len(description))

  @property
  def closed(self) -> bool:
    return self._closed

  def __iter__(self) -> Iterator[Row]:
    if self._started:
      raise NotSupportedError("CursorDataSet can only be iterated once; call materialize() for re-iteration")
    if self._closed:
      raise NotSupportedError("CursorDataSet is closed")
    self._started = True
    return self._stream()

  def _stream(self) -> Iterator[Row]:
    row_index = 0
    try:
      while not self._closed:
        batch = self._cursor.fetchmany(self._fetch_size)
        if not batch:
          break
        for raw in batch:
          yield _build_row(self.header, raw, row_index, self._style_supplier)
          row_index += 1
    finally:
      logger.debug("Cursor dataset released after %d rows", row_index)
      self.close()

  def __len__(self) -> int:
    raise NotSupportedError("CursorDataSet does not know its length; call materialize() first")

  def __getitem__(self, index):
    raise NotSupportedError("CursorDataSet does not support random access; call materialize() first")

  def materialize(self) -> InMemoryDataSet:
    """
    Read all rows into an InMemoryDataSet and release the cursor. Only
    possible before iteration has started.
    """
    return InMemoryDataSet(self.header, list(self))

  def close(self) -> None:
    if self._closed:
      return
    self._closed = True
    self._cursor.close()

  def __repr__(self) -> str:
    state = "closed" if self._closed else "open"
    return f"CursorDataSet[{self.header.size} columns, {state}]"
