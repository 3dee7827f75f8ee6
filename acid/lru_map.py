"""A fixed-capacity mapping that evicts the least recently used entry."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Hashable


class LRUMap:
    """Mapping of at most ``capacity`` entries; the oldest is evicted first."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._data: OrderedDict[Hashable, Any] = OrderedDict()

    def set(self, key: Hashable, value: Any) -> None:
        """Store ``value`` under ``key`` and mark it as the newest entry."""
        if key in self._data:
            self._data.move_to_end(key)
        elif self._data and len(self._data) >= self.capacity:
            self._data.popitem(last=False)
        self._data[key] = value

    def get(self, key: Hashable) -> Any:
        """Return the value for ``key`` (marking it newest), or ``None``."""
        if key not in self._data:
            return None
        self._data.move_to_end(key)
        return self._data[key]

    def remove(self, key: Hashable) -> None:
        """Drop ``key`` if present."""
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data