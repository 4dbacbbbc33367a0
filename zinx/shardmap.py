"""A thread-safe string-keyed map split into independently locked shards."""

from __future__ import annotations

import json
import threading
from typing import Any, Callable, Iterator

from zinx.hashing import Fnv32Hash, default_hash

DEFAULT_SHARD_COUNT = 32


class _Shard:
    """One shard: a plain dict guarded by its own lock."""

    __slots__ = ("items", "lock")

    def __init__(self) -> None:
        self.items: dict[str, Any] = {}
        self.lock = threading.Lock()


class ShardLockMap:
    """A concurrent map whose keys are spread over several locked shards."""

    def __init__(
        self, hasher: Fnv32Hash | None = None, shard_count: int = DEFAULT_SHARD_COUNT
    ) -> None:
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self._hasher = hasher if hasher is not None else default_hash()
        self._shard_count = shard_count
        self._shards = [_Shard() for _ in range(shard_count)]

    @property
    def shard_count(self) -> int:
        return self._shard_count

    def get_shard(self, key: str) -> _Shard:
        """Return the shard responsible for ``key``."""
        return self._shards[self._hasher.sum(key) % self._shard_count]

    def count(self) -> int:
        """Return the number of stored elements."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.items)
        return total

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value under ``key``, or ``default`` if absent."""
        shard = self.get_shard(key)
        with shard.lock:
            return shard.items.get(key, default)

    def set(self, key: str, value: Any) -> None:
        shard = self.get_shard(key)
        with shard.lock:
            shard.items[key] = value

    def set_nx(self, key: str, value: Any) -> bool:
        """Store ``value`` only if ``key`` is absent; return whether it was stored."""
        shard = self.get_shard(key)
        with shard.lock:
            if key in shard.items:
                return False
            shard.items[key] = value
            return True

    def mset(self, data: dict[str, Any]) -> None:
        for key, value in data.items():
            self.set(key, value)

    def has(self, key: str) -> bool:
        shard = self.get_shard(key)
        with shard.lock:
            return key in shard.items

    def remove(self, key: str) -> None:
        shard = self.get_shard(key)
        with shard.lock:
            shard.items.pop(key, None)

    def remove_cb(self, key: str, callback: Callable[[str, Any, bool], bool]) -> bool:
        """Call ``callback(key, value, exists)`` under the shard lock.

        The element is removed when the callback returns true and it exists.
        The callback's result is returned either way.
        """
        shard = self.get_shard(key)
        with shard.lock:
            exists = key in shard.items
            value = shard.items.get(key)
            remove = bool(callback(key, value, exists))
            if remove and exists:
                del shard.items[key]
            return remove

    def pop(self, key: str) -> tuple[Any, bool]:
        """Remove ``key`` and return ``(value, existed)``."""
        shard = self.get_shard(key)
        with shard.lock:
            if key in shard.items:
                return shard.items.pop(key), True
            return None, False

    def clear(self) -> None:
        for key, _ in self.iter_buffered():
            self.remove(key)

    def is_empty(self) -> bool:
        return self.count() == 0

    def iter_buffered(self) -> Iterator[tuple[str, Any]]:
        """Return an iterator over a snapshot of ``(key, value)`` pairs.

        The snapshot is taken when this method is called, so later changes
        to the map are not seen by the iterator.
        """
        snapshot: list[tuple[str, Any]] = []
        for shard in self._shards:
            with shard.lock:
                snapshot.extend(shard.items.items())
        return iter(snapshot)

    def items(self) -> dict[str, Any]:
        return dict(self.iter_buffered())

    def keys(self) -> list[str]:
        result: list[str] = []
        for shard in self._shards:
            with shard.lock:
                result.extend(shard.items)
        return result

    def iter_cb(self, callback: Callable[[str, Any], None]) -> None:
        """Call ``callback(key, value)`` for every element, shard by shard."""
        for shard in self._shards:
            with shard.lock:
                for key, value in shard.items.items():
                    callback(key, value)

    def to_json(self) -> str:
        """Serialise the contents as a compact JSON object with sorted keys."""
        return json.dumps(self.items(), sort_keys=True, separators=(",", ":"))

    def load_json(self, data: str | bytes) -> None:
        """Merge the entries of a JSON object into the map."""
        decoded = json.loads(data)
        if not isinstance(decoded, dict):
            raise ValueError("JSON document is not an object")
        for key, value in decoded.items():
            self.set(key, value)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)