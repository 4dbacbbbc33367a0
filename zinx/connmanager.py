"""Registry of the live connections of a server, keyed by connection id."""

from __future__ import annotations

import logging
from typing import Any, Callable

from zinx.shardmap import ShardLockMap

logger = logging.getLogger(__name__)

_MAX_UINT64 = 2**64 - 1


class ConnectionNotFoundError(LookupError):
    """Raised when no connection is registered under the requested id."""


def _parse_conn_id(key: str) -> int | None:
    if not (key.isascii() and key.isdigit()):
        return None
    value = int(key)
    return value if value <= _MAX_UINT64 else None


class ConnManager:
    """Keeps connections in a sharded map under their string id.

    A connection is any object with ``conn_id``, ``conn_id_str`` and
    ``stop()``.
    """

    def __init__(self) -> None:
        self._connections = ShardLockMap()

    def add(self, conn: Any) -> None:
        self._connections.set(conn.conn_id_str, conn)
        logger.info("connection add to ConnManager successfully: conn num = %d", len(self))

    def remove(self, conn: Any) -> None:
        self._connections.remove(conn.conn_id_str)
        logger.info(
            "connection Remove ConnID=%d successfully: conn num = %d",
            conn.conn_id,
            len(self),
        )

    def get(self, conn_id: int) -> Any:
        """Return the connection with numeric id ``conn_id``."""
        return self.get_by_str(str(conn_id))

    def get_by_str(self, conn_id_str: str) -> Any:
        """Return the connection registered under the string id ``conn_id_str``."""
        sentinel = object()
        conn = self._connections.get(conn_id_str, sentinel)
        if conn is sentinel:
            raise ConnectionNotFoundError("connection not found")
        return conn

    def __len__(self) -> int:
        return self._connections.count()

    def clear_conn(self) -> None:
        """Stop every connection; stopping removes each from the manager."""
        for _, conn in self._connections.iter_buffered():
            conn.stop()
        logger.info("Clear All Connections successfully: conn num = %d", len(self))

    def all_conn_ids(self) -> list[int]:
        """Return the numeric ids of all connections; non-numeric keys are skipped."""
        ids: list[int] = []
        for key in self._connections.keys():
            conn_id = _parse_conn_id(key)
            if conn_id is None:
                logger.info("GetAllConnID Id: %s, error: invalid id", key)
                continue
            ids.append(conn_id)
        return ids

    def all_conn_id_strs(self) -> list[str]:
        return self._connections.keys()

    def range(self, callback: Callable[[int, Any, Any], None], args: Any = None) -> None:
        """Call ``callback(conn_id, conn, args)`` for every connection.

        Failures are logged and iteration continues; if the last call
        failed, its exception is raised afterwards.
        """
        failure: Exception | None = None
        for key, conn in self._connections.iter_buffered():
            conn_id = _parse_conn_id(key)
            try:
                callback(0 if conn_id is None else conn_id, conn, args)
                failure = None
            except Exception as exc:
                logger.info("Range key: %s, v: %r, error: %s", key, conn, exc)
                failure = exc
        if failure is not None:
            raise failure

    def range_str(self, callback: Callable[[str, Any, Any], None], args: Any = None) -> None:
        """Like :meth:`range` but passes each connection's string id."""
        failure: Exception | None = None
        for key, conn in self._connections.iter_buffered():
            try:
                callback(conn.conn_id_str, conn, args)
                failure = None
            except Exception as exc:
                logger.info("Range2 key: %s, v: %r, error: %s", key, conn, exc)
                failure = exc
        if failure is not None:
            raise failure