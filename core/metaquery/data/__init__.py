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
Result data: datasets, rows and cell styles.
"""

from .dataset import (
  CursorDataSet, DataSet, DataSetHeader, InMemoryDataSet, Row, StyleSupplier,
)
from .style import NO_STYLE, Color, SizeUnit, Style, StyleBuilder, TextAlignment
