import copy
from typing import Any, Dict, Optional
from ..domain.interfaces import IKeyValueStore


class InMemoryKeyValueStore(IKeyValueStore):
    """Process-local store. Values are deep-copied so callers can't mutate stored state."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
