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
from typing import Any, Optional, Tuple, Union

from metaquery.schema.model import Column


class Expr:
  """Marker base class for all query expression nodes."""
  pass


@dataclass(frozen=True)
class ColumnRef(Expr):
  """
  Reference to a schema column. `source_alias` pins the reference to a
  specific FROM item alias (needed when a table is joined to itself).
  """
  column: Column
  source_alias: Optional[str] = None


@dataclass(frozen=True)
class DerivedColumn(Expr):
  """A column produced by a sub-query FROM item, addressed as <alias>.<name>."""
  source_alias: str
  name: str


@dataclass(frozen=True)
class Literal(Expr):
  """Literal value: string, number, bool, date/datetime, None, or a tuple for IN lists."""
  value: Any


@dataclass(frozen=True)
class FuncCall(Expr):
  """
  Function call, mostly aggregates: COUNT(col), SUM(col), ...
  A COUNT without arguments renders as COUNT(*).
  """
  name: str
  args: Tuple[Expr, ...] = ()


@dataclass(frozen=True)
class RawSql(Expr):
  """Already-valid SQL in the target platform, rendered verbatim."""
  sql: str


class Operator(str, Enum):
  EQUALS_TO = "="
  DIFFERENT_FROM = "<>"
  LESS_THAN = "<"
  GREATER_THAN = ">"
  LESS_THAN_OR_EQUAL = "<="
  GREATER_THAN_OR_EQUAL = ">="
  LIKE = "LIKE"
  NOT_LIKE = "NOT LIKE"
  IN = "IN"
  NOT_IN = "NOT IN"

  @classmethod
  def parse(cls, value: Union["Operator", str]) -> "Operator":
    if isinstance(value, Operator):
      return value
    token = " ".join(str(value).split()).upper()
    if token in ("==", "EQ"):
      return cls.EQUALS_TO
    if token in ("!=", "NE"):
      return cls.DIFFERENT_FROM
    return cls(token)


@dataclass(frozen=True)
class Comparison(Expr):
  left: Expr
  operator: Operator
  right: Expr


@dataclass(frozen=True)
class BoolGroup(Expr):
  """Items combined with AND or OR."""
  op: str
  items: Tuple[Expr, ...] = field(default_factory=tuple)

  def __post_init__(self):
    op = self.op.upper()
    if op not in ("AND", "OR"):
      raise ValueError(f"BoolGroup operator must be AND or OR, got {self.op!r}")
    object.__setattr__(self, "op", op)
    object.__setattr__(self, "items", tuple(self.items))


# ---------------------------------------------------------------------------
# Convenience constructors
# ---------------------------------------------------------------------------

def as_expr(value: Any) -> Expr:
  """Columns become ColumnRefs, expressions pass through, anything else is a Literal."""
  if isinstance(value, Expr):
    return value
  if isinstance(value, Column):
    return ColumnRef(column=value)
  if isinstance(value, list):
    value = tuple(value)
  return Literal(value=value)


def L(value: Any) -> Literal:
  """Helper for creating a Literal."""
  return Literal(value=tuple(value) if isinstance(value, list) else value)


def COL(column: Column, source_alias: Optional[str] = None) -> ColumnRef:
  """Helper for creating a ColumnRef."""
  return ColumnRef(column=column, source_alias=source_alias)


def FUNC(name: str, *args: Any) -> FuncCall:
  """Helper for generic function calls."""
  return FuncCall(name=name.upper(), args=tuple(as_expr(a) for a in args))


def COUNT(arg: Any = None) -> FuncCall:
  return FUNC("COUNT") if arg is None else FUNC("COUNT", arg)


def SUM(arg: Any) -> FuncCall:
  return FUNC("SUM", arg)


def AVG(arg: Any) -> FuncCall:
  return FUNC("AVG", arg)


def MIN(arg: Any) -> FuncCall:
  return FUNC("MIN", arg)


def MAX(arg: Any) -> FuncCall:
  return FUNC("MAX", arg)


def compare(left: Any, operator: Union[Operator, str], right: Any) -> Comparison:
  """compare(salary_col, ">", 1000) -> Comparison(ColumnRef, GREATER_THAN, Literal(1000))"""
  return Comparison(left=as_expr(left), operator=Operator.parse(operator), right=as_expr(right))


def AND(*items: Expr) -> BoolGroup:
  return BoolGroup(op="AND", items=items)


def OR(*items: Expr) -> BoolGroup:
  return BoolGroup(op="OR", items=items)


and_ = AND
or_ = OR


def expr_label(expr: Expr) -> str:
  """Human readable label of an expression, used as default column label."""
  if isinstance(expr, ColumnRef):
    return expr.column.name
  if isinstance(expr, DerivedColumn):
    return expr.name
  if isinstance(expr, FuncCall):
    inner = ",".join(expr_label(a) for a in expr.args) or "*"
    return f"{expr.name}({inner})"
  if isinstance(expr, Literal):
    return str(expr.value)
  if isinstance(expr, RawSql):
    return expr.sql
  return type(expr).__name__
