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

"""
Dialect diagnostics smoke tests.

These tests validate that the diagnostics module can build a consistent
snapshot for all registered dialects.
"""

from metaquery.rendering.dialects.dialect_factory import (
  get_available_dialect_names,
  get_active_dialect,
)
from metaquery.rendering.dialects.diagnostics import (
  collect_dialect_diagnostics,
  snapshot_all_dialects,
)


def test_collect_dialect_diagnostics_for_each_registered_dialect():
  for name in get_available_dialect_names():
    dialect = get_active_dialect(name)
    diag = collect_dialect_diagnostics(dialect)

    assert diag.name == name
    assert diag.class_name.endswith("Dialect")
    assert diag.quote_char == '"'
    assert isinstance(diag.supports_schemas, bool)

    # Literal examples should be non-empty strings
    assert diag.literal_true and diag.literal_false
    assert diag.literal_null == "NULL"
    assert "2025-01-02" in diag.literal_sample_date
    assert "2025-01-02 03:04:05" in diag.literal_sample_timestamp


def test_snapshot_spot_checks():
  snapshot = snapshot_all_dialects()
  assert set(snapshot) == set(get_available_dialect_names())

  assert snapshot["mssql"].sample_limit == "TOP 10"
  assert snapshot["duckdb"].sample_limit == "LIMIT 10"
  assert snapshot["firebird"].sample_limit == "FIRST 10"
  assert snapshot["ansi"].sample_limit == "FETCH FIRST 10 ROWS ONLY"
  assert snapshot["generic"].sample_limit == ""
  assert snapshot["firebird"].supports_schemas is False
  assert snapshot["postgres"].paramstyle == "format"

  as_dict = snapshot["sqlite"].to_dict()
  for key in ["name", "class_name", "pagination_style", "literal_true", "sample_limit"]:
    assert key in as_dict
  assert as_dict["literal_true"] == "1"
