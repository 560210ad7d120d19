from abc import ABC, abstractmethod
from typing import Any, Optional

class IKeyValueStore(ABC):
    """
    Contract for the local persistent store.
    Values are JSON-serialisable; implementations raise StorageFailure on I/O errors.
    """
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Returns the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Stores `value` under `key`, overwriting any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Deletes `key`. Removing an absent key is a no-op."""
        pass
