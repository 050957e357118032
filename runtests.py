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

import sys
from pathlib import Path

import pytest


def main():
  """Run the metaquery test suite with pytest."""
  root = Path(__file__).resolve().parent

  # Ensure 'core' (metaquery) and the repository root (utils) are importable
  for path in (root / "core", root):
    if str(path) not in sys.path:
      sys.path.insert(0, str(path))

  # Run tests in core/tests
  return pytest.main([str(root / "core" / "tests"), *sys.argv[1:]])


if __name__ == "__main__":
  raise SystemExit(main())
