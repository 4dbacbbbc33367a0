"""32-bit FNV-1 hashing used to pick shards."""

PRIME = 16777619
OFFSET_BASIS = 2166136261
_MASK32 = 0xFFFFFFFF


class Fnv32Hash:
    """FNV-1 hash producing an unsigned 32-bit integer."""

    def sum(self, key: str | bytes) -> int:
        """Return the FNV-1 hash of ``key`` (strings are hashed as UTF-8)."""
        raw = key.encode("utf-8") if isinstance(key, str) else bytes(key)
        value = OFFSET_BASIS
        for byte in raw:
            value = (value * PRIME) & _MASK32
            value ^= byte
        return value


def default_hash() -> Fnv32Hash:
    """Return the hasher used by default for sharded maps."""
    return Fnv32Hash()