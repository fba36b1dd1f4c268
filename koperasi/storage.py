"""
Storage Backend Module

Table-oriented record storage behind the meeting store and the audit trail.
Records are kept as JSON-safe dictionaries and every read hands out an
independent copy, so callers can mutate what they load without touching
stored state.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from datetime import datetime
import json
import threading
from dataclasses import dataclass, asdict


@dataclass
class StorageRecord:
    """Base class for all stored records"""
    id: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = asdict(self)
        result['created_at'] = self.created_at.isoformat()
        result['updated_at'] = self.updated_at.isoformat()
        return result


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Insert or overwrite a record"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record, None if absent"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        pass

    @abstractmethod
    def exists(self, table: str, record_id: str) -> bool:
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        pass

    @abstractmethod
    def close(self) -> None:
        """Release backend resources"""
        pass


class InMemoryStorage(StorageInterface):
    """Process-local storage; contents are lost on restart"""

    def __init__(self):
        self._tables: Dict[str, Dict[str, str]] = {}
        self._lock = threading.RLock()

    def _table(self, table: str) -> Dict[str, str]:
        return self._tables.setdefault(table, {})

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        # Stored serialized, so later mutation of `data` cannot leak in
        encoded = json.dumps(data, default=str)
        with self._lock:
            self._table(table)[record_id] = encoded

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            encoded = self._table(table).get(record_id)
        if encoded is None:
            return None
        return json.loads(encoded)

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            encoded = list(self._table(table).values())
        return [json.loads(record) for record in encoded]

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            return record_id in self._table(table)

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._table(table))

    def close(self) -> None:
        with self._lock:
            self._tables.clear()
