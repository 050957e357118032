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
from typing import Iterable, List, Optional, Union

from metaquery.config.profiles import load_profile
from metaquery.config.targets import resolve_connection_name
from metaquery.data.dataset import (
  CursorDataSet, DataSet, DataSetHeader, StyleSupplier,
)
from metaquery.discovery.introspect import read_schema
from metaquery.errors import ExecutionError, MetaQueryError, NotFoundError, NotSupportedError
from metaquery.query.expr import ColumnRef, DerivedColumn
from metaquery.query.model import (
  FromItem, JoinSource, Query, SelectItem, SubquerySource, TableSource,
)
from metaquery.rendering.dialects.base import BaseExecutionEngine, RenderedSql, SqlDialect
from metaquery.rendering.dialects.dialect_factory import get_active_dialect
from metaquery.schema.model import Schema, Table

logger = logging.getLogger(__name__)


class _GuardedCursor:
  """Cursor proxy that reports driver failures while fetching as ExecutionError."""

  def __init__(self, cursor, sql: str, dialect: str):
    self._cursor = cursor
    self._sql = sql
    self._dialect = dialect

  @property
  def description(self):
    return getattr(self._cursor, "description", None)

  def fetchmany(self, size: int):
    try:
      return self._cursor.fetchmany(size)
    except Exception as exc:
      raise ExecutionError(
        f"Fetching rows failed on {self._dialect}: {exc}", sql=self._sql, dialect=self._dialect,
      ) from exc

  def close(self) -> None:
    self._cursor.close()


class DataContext:
  """
  Entry point tying schema metadata, a dialect and an execution engine
  together:

    ctx = DataContext(DuckDBDialect(), engine, schemas=[schema])
    q = ctx.query().from_(employee).select(emp_no)
    with ctx.execute_query(q) as rows:
      for row in rows:
        ...

  The context is stateless beyond its collaborators; each execute_query
  call opens its own cursor.
  """

  def __init__(
    self,
    dialect: Union[SqlDialect, str, None] = None,
    engine: Optional[BaseExecutionEngine] = None,
    schemas: Iterable[Schema] = (),
    *,
    fetch_size: int = 500,
    case_sensitive: bool = True,
  ):
    if dialect is None or isinstance(dialect, str):
      dialect = get_active_dialect(dialect)
    self.dialect = dialect
    self.engine = engine
    self.fetch_size = fetch_size
    # lookup policy for schemas read through discover_schema()
    self.case_sensitive = case_sensitive

    self._schemas = tuple(schemas)
    _check_schema_names(self._schemas)

  @classmethod
  def from_profile(
    cls,
    connection: Optional[str] = None,
    *,
    profiles_path: Optional[str] = None,
    schemas: Iterable[Schema] = (),
  ) -> "DataContext":
    """
    Build dialect and engine from a connection of the active profile.
    The connection's `type` names the dialect. Engines that know their
    driver's paramstyle (SQLAlchemy URLs) set the dialect's placeholders.
    """
    profile = load_profile(profiles_path)
    spec = profile.get_connection(resolve_connection_name(connection))
    dialect = get_active_dialect(spec.type, bind_parameters=profile.bind_parameters)
    engine = dialect.get_execution_engine(spec)
    driver_paramstyle = getattr(engine, "driver_paramstyle", None)
    if driver_paramstyle:
      dialect.paramstyle = driver_paramstyle
    logger.info(
      "DataContext for connection '%s' (%s) from profile '%s'",
      spec.short_name, dialect.DIALECT_NAME, profile.name,
    )
    return cls(
      dialect, engine, schemas,
      fetch_size=profile.fetch_size,
      case_sensitive=profile.case_sensitive,
    )

  # ---------------------------------------------------------------------------
  # Schema access
  # ---------------------------------------------------------------------------
  def get_schemas(self) -> List[Schema]:
    return list(self._schemas)

  def get_schema_names(self) -> List[Optional[str]]:
    return [s.name for s in self._schemas]

  def get_default_schema(self) -> Schema:
    """The first schema given to the context."""
    if not self._schemas:
      raise NotFoundError("Schema", "(default)", container="data context")
    return self._schemas[0]

  def get_schema_by_name(self, name: Optional[str]) -> Schema:
    for schema in self._schemas:
      if schema.name == name:
        return schema
    raise NotFoundError("Schema", str(name), container="data context")

  def get_table_by_name(self, name: str) -> Table:
    """Look up "TABLE" in the default schema or "SCHEMA.TABLE" explicitly."""
    schema_name, _, table_name = name.rpartition(".")
    schema = self.get_schema_by_name(schema_name) if schema_name else self.get_default_schema()
    return schema.get_table_by_name(table_name)

  def discover_schema(self, schema: Optional[str] = None) -> Schema:
    """
    Read `schema` from the backend and add it to the context. Needs an
    engine backed by SQLAlchemy (generic, ansi and firebird connections).
    """
    sa_engine = getattr(self.engine, "engine", None)
    if sa_engine is None:
      raise NotSupportedError(
        f"{type(self.engine).__name__} does not support schema discovery"
      )
    discovered = read_schema(sa_engine, schema, case_sensitive=self.case_sensitive)
    schemas = self._schemas + (discovered,)
    _check_schema_names(schemas)
    self._schemas = schemas
    return discovered

  # ---------------------------------------------------------------------------
  # Queries
  # ---------------------------------------------------------------------------
  def query(self) -> Query:
    return Query()

  def render(self, query: Query) -> RenderedSql:
    return self.dialect.render_query(query)

  def header_for(self, query: Query) -> DataSetHeader:
    """
    The select items of `query`; for SELECT * the columns of every bound
    table (and the columns of sub-queries) in FROM order.
    """
    if query.select_items:
      return DataSetHeader(query.select_items)
    items: List[SelectItem] = []
    for from_item in query.from_items:
      items.extend(self._star_items(from_item))
    return DataSetHeader(items)

  def _star_items(self, item: FromItem) -> List[SelectItem]:
    if isinstance(item, TableSource):
      return [SelectItem(ColumnRef(c, item.alias)) for c in item.table.columns]
    if isinstance(item, SubquerySource):
      inner = self.header_for(item.query)
      return [SelectItem(DerivedColumn(item.alias, label)) for label in inner.labels]
    if isinstance(item, JoinSource):
      return self._star_items(item.left) + self._star_items(item.right)
    raise TypeError(f"Unsupported FROM item: {type(item)!r}")

  def execute_query(
    self,
    query: Query,
    *,
    materialize: bool = False,
    style_supplier: Optional[StyleSupplier] = None,
  ) -> DataSet:
    """
    Render and run `query`. Rendering errors are raised before the engine
    is touched; driver failures surface as ExecutionError.

    Returns a forward-only CursorDataSet, or an InMemoryDataSet when
    `materialize` is set.
    """
    rendered = self.render(query)
    header = self.header_for(query)

    if self.engine is None:
      raise ExecutionError("DataContext has no execution engine", sql=rendered.sql, dialect=rendered.dialect)

    logger.debug("Executing on %s: %s params=%r", rendered.dialect, rendered.sql, rendered.params)
    try:
      cursor = self.engine.open_cursor(rendered.sql, rendered.params or None)
    except MetaQueryError:
      raise
    except Exception as exc:
      raise ExecutionError(
        f"Query failed on {rendered.dialect}: {exc}", sql=rendered.sql, dialect=rendered.dialect,
      ) from exc

    dataset = CursorDataSet(
      header,
      _GuardedCursor(cursor, rendered.sql, rendered.dialect),
      style_supplier=style_supplier,
      fetch_size=self.fetch_size,
    )
    if materialize:
      return dataset.materialize()
    return dataset

  def close(self) -> None:
    if self.engine is not None:
      self.engine.close()

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc, tb) -> None:
    self.close()

  def __repr__(self) -> str:
    return f"DataContext[dialect={self.dialect.DIALECT_NAME},schemas={self.get_schema_names()}]"


def _check_schema_names(schemas) -> None:
  names = [s.name for s in schemas]
  dupes = sorted({str(n) for n in names if names.count(n) > 1})
  if dupes:
    raise ValueError(f"Duplicate schema names: {', '.join(dupes)}")
