"""
In-memory backing store
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from settings_store.backends.base import BackingStore


class MemoryBackingStore(BackingStore):
    """
    Tables held as lists of row dicts.

    Key uniqueness is not enforced; an update touches every matching row.
    """

    def __init__(self, tables: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }

        # Call counters
        self.reads = 0
        self.inserts = 0
        self.updates = 0

    def read_all_rows(self, table: str) -> List[Dict[str, Any]]:
        self.reads += 1
        return [dict(row) for row in self.tables.get(table, [])]

    def insert_row(self, table: str, row: Mapping[str, Any]) -> None:
        self.inserts += 1
        self.tables.setdefault(table, []).append(dict(row))

    def update_row(
        self,
        table: str,
        key_field: str,
        key: Any,
        values: Mapping[str, Any],
    ) -> None:
        self.updates += 1
        for row in self.tables.get(table, []):
            if row.get(key_field) == key:
                row.update(values)
