"""
Thread-safe compute-if-absent maps.
"""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Hashable, Iterator, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class KeyedLocks(Generic[K]):
    """
    One lock per key, created on first use.

    The table only grows; it is bounded by the number of distinct keys.
    """

    __slots__ = ("_locks", "_guard", "_factory")

    def __init__(self, reentrant: bool = False):
        self._locks: Dict[K, Any] = {}
        self._guard = threading.Lock()
        self._factory = threading.RLock if reentrant else threading.Lock

    def get(self, key: K):
        lock = self._locks.get(key)
        if lock is None:
            with self._guard:
                lock = self._locks.get(key)
                if lock is None:
                    lock = self._locks[key] = self._factory()
        return lock

    @contextmanager
    def hold(self, key: K) -> Iterator[None]:
        with self.get(key):
            yield


class ComputeCache(Generic[K, V]):
    """
    Map whose values are built at most once per key.

    Reads are lock-free. A miss takes the key's lock, re-checks, and runs
    the factory; concurrent callers for the same key wait and then see the
    single stored value. A factory that raises stores nothing.
    """

    __slots__ = ("_values", "_locks")

    def __init__(self):
        self._values: Dict[K, V] = {}
        self._locks: KeyedLocks[K] = KeyedLocks()

    def get(self, key: K) -> Optional[V]:
        return self._values.get(key)

    def get_or_create(self, key: K, factory: Callable[[], V]) -> V:
        value = self._values.get(key, _MISSING)
        if value is not _MISSING:
            return value

        with self._locks.hold(key):
            value = self._values.get(key, _MISSING)
            if value is _MISSING:
                value = factory()
                self._values[key] = value
            return value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def keys(self):
        return list(self._values)
