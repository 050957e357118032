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

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from metaquery.errors import InvalidRelationshipError, NotFoundError
from metaquery.schema.types_map import canonical_type

"""
Schema metadata model.

Ownership is a plain tree: Schema -> Table -> Column. Columns and tables keep
a back reference to their owner (set once at construction) so a Column can be
qualified without a lookup. Relationships are not owned by tables; the schema
indexes them by the unordered pair of tables they connect.

All objects are frozen after construction. Tables and columns compare by
identity: two tables with the same name in different schemas are different
tables.
"""


class TableType(str, Enum):
  TABLE = "TABLE"
  VIEW = "VIEW"
  SYSTEM_TABLE = "SYSTEM_TABLE"
  GLOBAL_TEMPORARY = "GLOBAL_TEMPORARY"
  LOCAL_TEMPORARY = "LOCAL_TEMPORARY"
  ALIAS = "ALIAS"
  SYNONYM = "SYNONYM"
  OTHER = "OTHER"

  @classmethod
  def parse(cls, value: object) -> "TableType":
    """Map driver-reported type names ("BASE TABLE", "view", ...) to a TableType."""
    if isinstance(value, TableType):
      return value
    raw = str(value or "").strip().upper().replace(" ", "_")
    if raw in ("", "BASE_TABLE"):
      return cls.TABLE
    if raw == "SYSTEM_VIEW":
      return cls.VIEW
    try:
      return cls(raw)
    except ValueError:
      return cls.OTHER

  def __str__(self) -> str:
    return self.value


def _names_equal(a: str, b: str, case_sensitive: bool) -> bool:
  if case_sensitive:
    return a == b
  return a.casefold() == b.casefold()


@dataclass(frozen=True, eq=False)
class Column:
  """
  A column of a table. `ordinal_position` (0-based) and `table` are assigned
  by the owning Table.
  """
  name: str
  column_type: Optional[str] = None
  nullable: Optional[bool] = None
  remarks: Optional[str] = None
  primary_key: bool = False
  ordinal_position: int = field(default=-1, init=False)
  table: Optional["Table"] = field(default=None, init=False, repr=False)

  def __post_init__(self):
    if not self.name:
      raise ValueError("Column name must be a non-empty string")

  @property
  def canonical_type(self) -> Optional[str]:
    return canonical_type(self.column_type)

  @property
  def qualified_label(self) -> str:
    if self.table is None:
      return self.name
    return f"{self.table.name}.{self.name}"

  def __repr__(self) -> str:
    return (
      f"Column[name={self.name},columnNumber={self.ordinal_position},"
      f"type={self.column_type},nullable={self.nullable}]"
    )


@dataclass(frozen=True, eq=False)
class Table:
  name: str
  columns: Tuple[Column, ...] = ()
  table_type: TableType = TableType.TABLE
  remarks: Optional[str] = None
  schema: Optional["Schema"] = field(default=None, init=False, repr=False)

  def __post_init__(self):
    if not self.name:
      raise ValueError("Table name must be a non-empty string")

    cols = tuple(self.columns)
    object.__setattr__(self, "columns", cols)
    object.__setattr__(self, "table_type", TableType.parse(self.table_type))

    seen: set[str] = set()
    for idx, col in enumerate(cols):
      if col.table is not None:
        raise ValueError(
          f"Column {col.name!r} already belongs to table {col.table.name!r}"
        )
      if col.name in seen:
        raise ValueError(f"Duplicate column {col.name!r} in table {self.name!r}")
      seen.add(col.name)
      object.__setattr__(col, "table", self)
      object.__setattr__(col, "ordinal_position", idx)

  # ---------------------------------------------------------------------------
  # Lookups
  # ---------------------------------------------------------------------------
  @property
  def column_names(self) -> List[str]:
    return [c.name for c in self.columns]

  @property
  def primary_keys(self) -> List[Column]:
    return [c for c in self.columns if c.primary_key]

  @property
  def qualified_name(self) -> str:
    if self.schema is not None and self.schema.name:
      return f"{self.schema.name}.{self.name}"
    return self.name

  def get_column_by_name(self, name: str, case_sensitive: Optional[bool] = None) -> Column:
    if case_sensitive is None:
      case_sensitive = self.schema.case_sensitive if self.schema is not None else True
    for col in self.columns:
      if _names_equal(col.name, name, case_sensitive):
        return col
    raise NotFoundError("Column", name, container=f"table {self.name!r}")

  def get_relationships(self, other: Optional["Table"] = None) -> List["Relationship"]:
    """
    Relationships this table takes part in. With `other`, only the ones
    connecting this table and `other` (in either direction).
    """
    if self.schema is None:
      return []
    if other is None:
      return [r for r in self.schema.relationships if r.contains_table(self)]
    return self.schema.get_relationships(self, other)

  def __str__(self) -> str:
    return f"Table[name={self.name},type={self.table_type},remarks={self.remarks}]"

  __repr__ = __str__


@dataclass(frozen=True)
class Relationship:
  """
  Directed foreign-key style association: primary columns of `primary_table`
  are referenced by the pairwise corresponding foreign columns of
  `foreign_table`.
  """
  primary_table: Table
  primary_columns: Tuple[Column, ...]
  foreign_table: Table
  foreign_columns: Tuple[Column, ...]

  def __post_init__(self):
    object.__setattr__(self, "primary_columns", tuple(self.primary_columns))
    object.__setattr__(self, "foreign_columns", tuple(self.foreign_columns))

    if not self.primary_columns:
      raise InvalidRelationshipError("Relationship requires at least one column pair")
    if len(self.primary_columns) != len(self.foreign_columns):
      raise InvalidRelationshipError(
        f"Relationship {self.primary_table.name} -> {self.foreign_table.name}: "
        f"{len(self.primary_columns)} primary columns but "
        f"{len(self.foreign_columns)} foreign columns"
      )
    for table, cols in (
      (self.primary_table, self.primary_columns),
      (self.foreign_table, self.foreign_columns),
    ):
      for col in cols:
        if col.table is not table:
          owner = col.table.name if col.table is not None else None
          raise InvalidRelationshipError(
            f"Column {col.name!r} belongs to table {owner!r}, not {table.name!r}"
          )

  @classmethod
  def between(
    cls,
    primary_table: Table,
    primary_columns: Sequence[str],
    foreign_table: Table,
    foreign_columns: Sequence[str],
  ) -> "Relationship":
    """Build a relationship from column names."""
    return cls(
      primary_table=primary_table,
      primary_columns=tuple(primary_table.get_column_by_name(n) for n in primary_columns),
      foreign_table=foreign_table,
      foreign_columns=tuple(foreign_table.get_column_by_name(n) for n in foreign_columns),
    )

  def column_pairs(self) -> List[Tuple[Column, Column]]:
    return list(zip(self.primary_columns, self.foreign_columns))

  def contains_table(self, table: Table) -> bool:
    return table is self.primary_table or table is self.foreign_table

  def __str__(self) -> str:
    pcols = ",".join(c.name for c in self.primary_columns)
    fcols = ",".join(c.name for c in self.foreign_columns)
    return (
      f"Relationship[primaryTable={self.primary_table.name},primaryColumns={{{pcols}}},"
      f"foreignTable={self.foreign_table.name},foreignColumns={{{fcols}}}]"
    )

  __repr__ = __str__


@dataclass(frozen=True, eq=False)
class Schema:
  name: Optional[str]
  tables: Tuple[Table, ...] = ()
  relationships: Tuple[Relationship, ...] = ()
  case_sensitive: bool = True
  _relationship_index: Dict[FrozenSet[Table], Tuple[Relationship, ...]] = field(
    default_factory=dict, init=False, repr=False,
  )

  def __post_init__(self):
    tables = tuple(self.tables)
    rels = tuple(self.relationships)
    object.__setattr__(self, "tables", tables)
    object.__setattr__(self, "relationships", rels)

    seen: set[str] = set()
    for t in tables:
      key = t.name if self.case_sensitive else t.name.casefold()
      if key in seen:
        raise ValueError(f"Duplicate table {t.name!r} in schema {self.name!r}")
      seen.add(key)
      if t.schema is not None:
        raise ValueError(f"Table {t.name!r} already belongs to schema {t.schema.name!r}")
      object.__setattr__(t, "schema", self)

    index: Dict[FrozenSet[Table], List[Relationship]] = {}
    members = set(tables)
    for r in rels:
      if r.primary_table not in members or r.foreign_table not in members:
        raise InvalidRelationshipError(
          f"{r} references a table outside schema {self.name!r}"
        )
      index.setdefault(frozenset((r.primary_table, r.foreign_table)), []).append(r)

    self._relationship_index.update({k: tuple(v) for k, v in index.items()})

  @property
  def table_names(self) -> List[str]:
    return [t.name for t in self.tables]

  def get_table_by_name(self, name: str) -> Table:
    for t in self.tables:
      if _names_equal(t.name, name, self.case_sensitive):
        return t
    raise NotFoundError("Table", name, container=f"schema {self.name!r}")

  def get_relationships(self, a: Table, b: Table) -> List[Relationship]:
    """All relationships where {primary, foreign} == {a, b}, in declaration order."""
    return list(self._relationship_index.get(frozenset((a, b)), ()))

  def __str__(self) -> str:
    return f"Schema[name={self.name}]"

  __repr__ = __str__


def build_table(
  name: str,
  columns: Iterable[Tuple[str, Optional[str]] | str],
  *,
  table_type: TableType = TableType.TABLE,
  remarks: Optional[str] = None,
  primary_keys: Sequence[str] = (),
) -> Table:
  """
  Shorthand for static table definitions:

    build_table("EMPLOYEE", [("EMP_NO", "SMALLINT"), ("FIRST_NAME", "VARCHAR(15)")],
                primary_keys=["EMP_NO"])
  """
  cols: List[Column] = []
  for spec in columns:
    if isinstance(spec, str):
      col_name, col_type = spec, None
    else:
      col_name, col_type = spec
    cols.append(Column(
      name=col_name,
      column_type=col_type,
      primary_key=col_name in primary_keys,
    ))
  return Table(name=name, columns=tuple(cols), table_type=table_type, remarks=remarks)
