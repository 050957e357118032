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

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class ConnectionSpec:
  """
  Where a DataContext connects to. `type` names a registered dialect,
  `security` holds the connection string (or a dict carrying it under
  connection_string / dsn / url / database).
  """
  short_name: str
  type: str
  security: Union[str, Dict[str, Any]] = field(default_factory=dict)


def resolve_connection_name(explicit: Optional[str] = None) -> str:
  """
  Decide which profile connection a DataContext uses.

  Resolution order:
    1. explicit argument
    2. env var METAQUERY_CONNECTION
    3. otherwise: fail with a clear error
  """
  if explicit:
    return explicit

  env_name = os.getenv("METAQUERY_CONNECTION")
  if env_name:
    return env_name

  raise RuntimeError(
    "No connection specified. "
    "Provide an explicit connection name, or set METAQUERY_CONNECTION."
  )
