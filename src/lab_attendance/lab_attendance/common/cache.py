from __future__ import annotations

from threading import Lock
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LookupCache(Generic[K, V]):
    """Small read-through cache owned by the collaborator adapter that uses it.

    The owner calls ``invalidate()`` whenever the underlying data is written.
    """

    def __init__(self) -> None:
        self._values: Dict[K, V] = {}
        self._lock = Lock()

    def get_or_load(self, key: K, loader: Callable[[K], V]) -> V:
        with self._lock:
            if key in self._values:
                return self._values[key]
        value = loader(key)
        with self._lock:
            self._values[key] = value
        return value

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._values.get(key)

    def replace_all(self, values: Dict[K, V]) -> None:
        with self._lock:
            self._values = dict(values)

    def invalidate(self) -> None:
        with self._lock:
            self._values.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)
