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
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import CompileError

from metaquery.errors import InvalidRelationshipError, NotFoundError
from metaquery.schema.model import Column, Relationship, Schema, Table, TableType

logger = logging.getLogger(__name__)


def _type_text(sa_type, dialect) -> Optional[str]:
  """Declared type as the backend spells it, e.g. VARCHAR(15)."""
  if sa_type is None:
    return None
  try:
    return sa_type.compile(dialect=dialect)
  except CompileError:
    return None


def _table_comment(insp, table: str, schema: Optional[str]) -> Optional[str]:
  try:
    return (insp.get_table_comment(table, schema=schema) or {}).get("text")
  except NotImplementedError:
    # e.g. SQLite has no table comments
    return None


def _read_table(insp, dialect, name: str, schema: Optional[str], table_type: TableType) -> Table:
  cols = insp.get_columns(name, schema=schema)
  pk = insp.get_pk_constraint(name, schema=schema) or {}
  pk_cols = set(pk.get("constrained_columns") or [])

  columns = [
    Column(
      name=c["name"],
      column_type=_type_text(c.get("type"), dialect),
      nullable=c.get("nullable"),
      remarks=c.get("comment"),
      primary_key=c["name"] in pk_cols,
    )
    for c in cols
  ]
  return Table(
    name=name,
    columns=tuple(columns),
    table_type=table_type,
    remarks=_table_comment(insp, name, schema),
  )


def _read_relationships(
  insp,
  tables: Dict[str, Table],
  schema: Optional[str],
) -> List[Relationship]:
  relationships: List[Relationship] = []
  for name, table in tables.items():
    if table.table_type is not TableType.TABLE:
      continue
    for fk in insp.get_foreign_keys(name, schema=schema) or []:
      referred = fk.get("referred_table")
      referred_schema = fk.get("referred_schema")
      if referred not in tables or (referred_schema not in (None, schema)):
        logger.warning(
          "Skipping foreign key %s.%s -> %s.%s: referenced table is outside the schema",
          schema, name, referred_schema, referred,
        )
        continue
      try:
        relationships.append(Relationship.between(
          tables[referred], fk.get("referred_columns") or [],
          table, fk.get("constrained_columns") or [],
        ))
      except (InvalidRelationshipError, NotFoundError) as exc:
        logger.warning("Skipping foreign key %s.%s -> %s: %s", schema, name, referred, exc)
  return relationships


def read_schema(engine, schema: Optional[str] = None, case_sensitive: bool = True) -> Schema:
  """
  Discover one schema from a live backend via the SQLAlchemy inspector.

  Tables and views are read in name order with their columns (declared
  type text, nullability, comments, primary keys); foreign keys between
  tables of the schema become relationships.
  """
  insp = inspect(engine)
  dialect = engine.dialect

  tables: Dict[str, Table] = {}
  for name in sorted(insp.get_table_names(schema=schema)):
    tables[name] = _read_table(insp, dialect, name, schema, TableType.TABLE)
  for name in sorted(insp.get_view_names(schema=schema)):
    tables[name] = _read_table(insp, dialect, name, schema, TableType.VIEW)

  relationships = _read_relationships(insp, tables, schema)

  # keep tables and views in one name-ordered sequence
  ordered = [tables[n] for n in sorted(tables)]
  logger.info(
    "Discovered schema %s: %d tables/views, %d relationships",
    schema, len(ordered), len(relationships),
  )
  return Schema(
    name=schema,
    tables=tuple(ordered),
    relationships=tuple(relationships),
    case_sensitive=case_sensitive,
  )


def read_schema_names(engine) -> List[str]:
  return list(inspect(engine).get_schema_names())


def discovery_summary(schema: Schema) -> Dict[str, Any]:
  """Plain-data overview of a discovered schema, e.g. for logging or JSON output."""
  return {
    "schema": schema.name,
    "tables": {
      t.name: {
        "type": t.table_type.value,
        "columns": [c.name for c in t.columns],
        "primary_keys": [c.name for c in t.primary_keys],
      }
      for t in schema.tables
    },
    "relationships": [str(r) for r in schema.relationships],
  }
