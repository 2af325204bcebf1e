"""
Backing store interface: a plain key/value row reader-writer
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping


class BackingStore(ABC):
    """Persistence for the settings table"""

    @abstractmethod
    def read_all_rows(self, table: str) -> List[Dict[str, Any]]:
        """Return every row of the table as a dict, in storage order"""

    @abstractmethod
    def insert_row(self, table: str, row: Mapping[str, Any]) -> None:
        """Insert a new row"""

    @abstractmethod
    def update_row(
        self,
        table: str,
        key_field: str,
        key: Any,
        values: Mapping[str, Any],
    ) -> None:
        """Set `values` on the rows where `key_field` equals `key`"""
