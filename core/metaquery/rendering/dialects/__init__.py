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
SQL dialect adapters.

Each dialect implements SqlDialect and knows how to render Query
instances into concrete SQL strings for one backend.
"""

from .base import BaseExecutionEngine, RenderedSql, SqlDialect
from .ansi import AnsiDialect
from .duckdb import DuckDBDialect
from .firebird import FirebirdDialect
from .generic import GenericDialect
from .mssql import MssqlDialect
from .postgres import PostgresDialect
from .sqlite import SqliteDialect
from .dialect_factory import get_active_dialect, get_available_dialect_names, register_dialect
