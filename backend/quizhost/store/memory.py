import copy
from typing import Any, Dict, Iterable, Optional

from .base import PartitionedStore


class InMemoryStore(PartitionedStore):
    """Process-local store. Used by tests and single-process runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None, authorizer=None):
        super().__init__(authorizer)
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def _load(self, partitions: Iterable[str]) -> Dict[str, Any]:
        with self._write_lock:
            return {name: copy.deepcopy(self._data.get(name)) for name in partitions}

    def _save(self, changes: Dict[str, Any]) -> None:
        for name, value in changes.items():
            if value is None:
                self._data.pop(name, None)
            else:
                self._data[name] = value

    def dump(self) -> Dict[str, Any]:
        with self._write_lock:
            return copy.deepcopy(self._data)
