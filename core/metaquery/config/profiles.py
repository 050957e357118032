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
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from metaquery.config.targets import ConnectionSpec

"""
Profile loading for metaquery.

Profiles define environment-specific configuration such as:
- the default SQL dialect for rendering
- whether rendered queries bind parameters instead of inlining literals
- the fetch size used by cursor-backed datasets
- named connections (type + connection string)

They do NOT define schema metadata; that comes from discovery or code.
"""

PROFILES_FILE = "metaquery_profiles.yaml"


@dataclass
class Profile:
  name: str

  # Dialect used for SQL rendering (unless env override)
  default_dialect: str = "ansi"

  # Default lookup behaviour of discovered schemas
  case_sensitive: bool = True

  # Render placeholders + params instead of inline literals
  bind_parameters: bool = False

  # Rows requested per fetchmany() call
  fetch_size: int = 500

  # short_name -> ConnectionSpec
  connections: Dict[str, ConnectionSpec] = field(default_factory=dict)

  def get_connection(self, short_name: str) -> ConnectionSpec:
    try:
      return self.connections[short_name]
    except KeyError as exc:
      available = ", ".join(sorted(self.connections)) or "(none)"
      raise KeyError(
        f"Connection '{short_name}' not defined in profile '{self.name}'. "
        f"Available connections: {available}."
      ) from exc


def _find_profiles_path(explicit_path: str | None = None) -> Path:
  """
  Locate metaquery_profiles.yaml in several common locations:

  1. explicit_path argument (if provided and exists)
  2. METAQUERY_PROFILES_PATH env var (if set and exists)
  3. ./config/ relative to the working directory, then /etc/metaquery/

  Raises:
      FileNotFoundError: if no suitable file can be found.
  """
  candidates: list[Path] = []

  if explicit_path:
    candidates.append(Path(explicit_path))

  env_path = os.getenv("METAQUERY_PROFILES_PATH")
  if env_path:
    candidates.append(Path(env_path))

  candidates += [
    Path.cwd() / "config" / PROFILES_FILE,
    Path("/etc/metaquery") / PROFILES_FILE,
  ]

  for c in candidates:
    if c.is_file():
      return c

  raise FileNotFoundError(
    f"{PROFILES_FILE} not found in expected locations. "
    "Provide an explicit path or configure METAQUERY_PROFILES_PATH."
  )


def _parse_connection(short_name: str, raw: Any) -> ConnectionSpec:
  if isinstance(raw, str):
    return ConnectionSpec(short_name=short_name, type="generic", security=raw)

  raw = dict(raw or {})
  conn_type = raw.pop("type", "generic")

  # connection_string_env: read the secret from the environment at load time
  env_key = raw.pop("connection_string_env", None)
  if env_key:
    value = os.getenv(env_key)
    if not value:
      raise KeyError(
        f"Connection '{short_name}' expects its connection string in "
        f"environment variable {env_key}, which is not set."
      )
    raw["connection_string"] = value

  return ConnectionSpec(short_name=short_name, type=conn_type, security=raw)


def load_profile(profiles_path: Optional[str] = None) -> Profile:
  """
  Load and return the current active profile.

  Resolution order:
    - METAQUERY_PROFILE env var
    - `active_profile` key in metaquery_profiles.yaml
    - default 'dev'
  """
  path = _find_profiles_path(profiles_path)

  with open(path, "r", encoding="utf-8") as f:
    data = yaml.safe_load(f) or {}

  active = os.getenv("METAQUERY_PROFILE") or data.get("active_profile", "dev")
  profiles = data.get("profiles") or {}

  if active not in profiles:
    available = ", ".join(sorted(profiles)) if profiles else "(none)"
    raise KeyError(
      f"Active profile '{active}' not found in {PROFILES_FILE} "
      f"at {path}. Available profiles: {available}."
    )

  p = profiles[active] or {}
  connections = {
    name: _parse_connection(name, raw)
    for name, raw in (p.get("connections") or {}).items()
  }

  return Profile(
    name=active,
    default_dialect=p.get("default_dialect", "ansi"),
    case_sensitive=bool(p.get("case_sensitive", True)),
    bind_parameters=bool(p.get("bind_parameters", False)),
    fetch_size=int(p.get("fetch_size", 500)),
    connections=connections,
  )
