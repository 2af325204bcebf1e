"""
SQLite-based settings storage
"""
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from settings_store.backends.base import BackingStore
from settings_store.errors import BackingStoreError

# Standard logging; backends are usable without loguru sinks configured
logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote a table or column name for use in SQL"""
    if not name or "\x00" in name:
        raise BackingStoreError(f"Invalid identifier: {name!r}")
    return '"' + name.replace('"', '""') + '"'


class SQLiteBackingStore(BackingStore):
    """
    Settings table in a SQLite database file.

    A connection is opened per call and closed afterwards.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    def get_db_connection(self) -> sqlite3.Connection:
        """Get database connection"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: tuple = (), fetch: bool = False):
        try:
            conn = self.get_db_connection()
        except (sqlite3.Error, OSError) as e:
            raise BackingStoreError(f"Could not open {self.db_path}: {e}") from e
        try:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            if fetch:
                return cursor.fetchall()
            conn.commit()
            return cursor.rowcount
        except (sqlite3.Error, OverflowError) as e:
            raise BackingStoreError(f"Query failed on {self.db_path}: {e}") from e
        finally:
            conn.close()

    def create_table(self, table: str, key_field: str, value_field: str) -> None:
        """Create the settings table if it does not exist"""
        # The value column has no declared type so values keep their storage class
        self._execute(
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(table)} ("
            f"{quote_identifier(key_field)} TEXT PRIMARY KEY, "
            f"{quote_identifier(value_field)})"
        )
        logger.info(f"Settings table ready: {table} ({self.db_path})")

    def read_all_rows(self, table: str) -> List[Dict[str, Any]]:
        rows = self._execute(f"SELECT * FROM {quote_identifier(table)}", fetch=True)
        logger.debug(f"Read {len(rows)} rows from {table}")
        return [dict(row) for row in rows]

    def insert_row(self, table: str, row: Mapping[str, Any]) -> None:
        columns = list(row.keys())
        placeholders = ", ".join("?" for _ in columns)
        column_sql = ", ".join(quote_identifier(c) for c in columns)
        self._execute(
            f"INSERT INTO {quote_identifier(table)} ({column_sql}) VALUES ({placeholders})",
            tuple(row[c] for c in columns),
        )
        logger.debug(f"Inserted row into {table}")

    def update_row(
        self,
        table: str,
        key_field: str,
        key: Any,
        values: Mapping[str, Any],
    ) -> None:
        columns = list(values.keys())
        assignments = ", ".join(f"{quote_identifier(c)} = ?" for c in columns)
        count = self._execute(
            f"UPDATE {quote_identifier(table)} SET {assignments} "
            f"WHERE {quote_identifier(key_field)} = ?",
            tuple(values[c] for c in columns) + (key,),
        )
        logger.debug(f"Updated {count} row(s) in {table}")
