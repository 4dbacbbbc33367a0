"""Map user-defined ids to connections and push messages to them."""

from __future__ import annotations

import logging
from typing import Any

from zinx.connmanager import ConnectionNotFoundError
from zinx.shardmap import ShardLockMap

logger = logging.getLogger(__name__)


class Notifier:
    """Sends messages to connections registered under user-chosen ids.

    A connection is any object with ``send_msg(msg_id, data)`` and
    ``send_buff_msg(msg_id, data)``.
    """

    def __init__(self) -> None:
        self._conns = ShardLockMap()

    def conn_nums(self) -> int:
        return self._conns.count()

    def has_id_conn(self, conn_id: int) -> bool:
        return self._conns.has(str(conn_id))

    def set_notify_id(self, conn_id: int, conn: Any) -> None:
        self._conns.set(str(conn_id), conn)

    def get_notify_by_id(self, conn_id: int) -> Any:
        sentinel = object()
        conn = self._conns.get(str(conn_id), sentinel)
        if conn is sentinel:
            raise ConnectionNotFoundError(" Not Find UserId")
        return conn

    def del_notify_by_id(self, conn_id: int) -> None:
        self._conns.remove(str(conn_id))

    def notify_to_conn_by_id(self, conn_id: int, msg_id: int, data: bytes) -> None:
        """Send directly to one connection; send failures propagate."""
        conn = self.get_notify_by_id(conn_id)
        try:
            conn.send_msg(msg_id, data)
        except Exception as exc:
            logger.error("Notify to %d err:%s", conn_id, exc)
            raise

    def notify_all(self, msg_id: int, data: bytes) -> None:
        """Send directly to every connection; failures are logged only."""
        for key, conn in self._conns.iter_buffered():
            try:
                conn.send_msg(msg_id, data)
            except Exception as exc:
                logger.error("Notify to %s err:%s", key, exc)

    def notify_buff_to_conn_by_id(self, conn_id: int, msg_id: int, data: bytes) -> None:
        """Queue a message for one connection; send failures propagate."""
        conn = self.get_notify_by_id(conn_id)
        try:
            conn.send_buff_msg(msg_id, data)
        except Exception as exc:
            logger.error("Notify to %d err:%s", conn_id, exc)
            raise

    def notify_buff_all(self, msg_id: int, data: bytes) -> None:
        """Queue a message for every connection; failures are logged only."""
        for key, conn in self._conns.iter_buffered():
            try:
                conn.send_buff_msg(msg_id, data)
            except Exception as exc:
                logger.error("Notify to %s err:%s", key, exc)