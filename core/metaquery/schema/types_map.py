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

import re
from typing import Optional

"""
Canonical type classification for declared column types.

Declared types come straight from the backend (e.g. "VARCHAR(35)",
"TIMESTAMP WITH TIME ZONE", "NUMERIC(10,2)"). The renderer only needs to
know the broad family of a column to type the literals compared against it,
so every declared type is normalized into one of the canonical names below.
"""

# Canonical normalized types
STRING = "STRING"
INTEGER = "INTEGER"   # SMALLINT/TINYINT normalize to INTEGER
BIGINT = "BIGINT"
DECIMAL = "DECIMAL"
FLOAT = "FLOAT"
BOOLEAN = "BOOLEAN"
DATE = "DATE"
TIME = "TIME"
TIMESTAMP = "TIMESTAMP"
BINARY = "BINARY"
UUID = "UUID"
JSON = "JSON"

_PARAMS_RE = re.compile(r"\(([^)]+)\)")  # matches content inside parentheses, e.g. "(10,2)"

_BIGINT_NAMES = frozenset({"bigint", "bigserial", "hugeint", "int8", "int64", "long", "ubigint"})
_INTEGER_NAMES = frozenset({
  "int", "integer", "smallint", "tinyint", "mediumint", "int2", "int4", "int16", "int32",
  "serial", "smallserial", "uinteger", "usmallint", "utinyint",
})


def canonical_type(raw_type: object) -> Optional[str]:
  """
  Normalize a declared type (string or SQLAlchemy type object) into a
  canonical type name. Returns None when nothing is declared.
  """
  if raw_type is None:
    return None
  if not isinstance(raw_type, str):
    raw_type = str(raw_type)

  # parameters do not influence the family
  t = _PARAMS_RE.sub("", raw_type).strip().lower()
  if not t:
    return None

  if t == "date":
    return DATE
  if t.startswith("timestamp") or "datetime" in t or t in ("smalldatetime", "seconddate"):
    return TIMESTAMP
  if t.startswith("time"):
    return TIME
  if "uuid" in t or "uniqueidentifier" in t:
    return UUID
  if any(x in t for x in ["json", "variant", "super"]):
    return JSON
  if any(x in t for x in ["char", "text", "string", "clob"]):
    return STRING
  if t in ("bit", "bool", "boolean"):
    return BOOLEAN
  if any(x in t for x in ["numeric", "decimal", "number", "money"]):
    return DECIMAL
  if any(x in t for x in ["double", "float", "real"]):
    return FLOAT
  # integer families match on the leading word only (INTERVAL, POINT are not integers)
  head = t.split()[0]
  if head in _BIGINT_NAMES:
    return BIGINT
  if head in _INTEGER_NAMES:
    return INTEGER
  if any(x in t for x in ["bytea", "binary", "blob", "image", "raw", "bytes"]):
    return BINARY

  # Unknown declared type: treat as text, which renders as a quoted literal
  return STRING
