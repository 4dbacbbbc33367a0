"""Periodic heartbeat sending and liveness checking for a connection."""

from __future__ import annotations

import datetime as _dt
import logging
import threading
from typing import Any, Callable

from zinx.router import BaseRouter, RouterHandler

logger = logging.getLogger(__name__)

HEARTBEAT_DEFAULT_MSG_ID = 99999

HeartBeatMsgFunc = Callable[[Any], bytes]
OnRemoteNotAlive = Callable[[Any], None]
HeartBeatFunc = Callable[[Any], None]


class HeartBeatDefaultRouter(BaseRouter):
    """Logs heartbeats received from the remote side."""

    def handle(self, request: Any) -> None:
        heartbeat_default_handle(request)


def heartbeat_default_handle(request: Any) -> None:
    """Log a heartbeat received from the remote side."""
    logger.info(
        "Recv Heartbeat from %s, MsgID = %s, Data = %s",
        request.connection.remote_addr,
        request.msg_id,
        bytes(request.data).decode("utf-8", "replace"),
    )


def _make_default_msg(conn: Any) -> bytes:
    now = _dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    return ('{"time":"' + now + '"}\r\n').encode("utf-8")


def _not_alive_default(conn: Any) -> None:
    logger.info("Remote connection %s is not alive, stop it", conn.remote_addr)
    conn.stop()


def _seconds(interval: float | _dt.timedelta) -> float:
    if isinstance(interval, _dt.timedelta):
        return interval.total_seconds()
    return float(interval)


class HeartbeatChecker:
    """Every ``interval`` seconds checks the bound connection.

    A dead connection is handed to the not-alive handler; a live one is sent
    a heartbeat. The connection needs ``is_alive()``, ``send_msg(msg_id,
    data)``, ``set_heartbeat(checker)``, ``stop()`` and ``remote_addr``.
    """

    def __init__(self, interval: float | _dt.timedelta) -> None:
        self.interval = _seconds(interval)
        self.conn: Any = None
        self._make_msg: HeartBeatMsgFunc = _make_default_msg
        self._on_remote_not_alive: OnRemoteNotAlive = _not_alive_default
        self._beat_func: HeartBeatFunc | None = None
        self._msg_id = HEARTBEAT_DEFAULT_MSG_ID
        self._router: Any = HeartBeatDefaultRouter()
        self._router_slices: list[RouterHandler] = [heartbeat_default_handle]
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def msg_id(self) -> int:
        return self._msg_id

    @property
    def router(self) -> Any:
        return self._router

    @property
    def router_slices(self) -> list[RouterHandler]:
        return self._router_slices

    def set_on_remote_not_alive(self, func: OnRemoteNotAlive | None) -> None:
        if func is not None:
            self._on_remote_not_alive = func

    def set_heartbeat_msg_func(self, func: HeartBeatMsgFunc | None) -> None:
        if func is not None:
            self._make_msg = func

    def set_heartbeat_func(self, func: HeartBeatFunc | None) -> None:
        if func is not None:
            self._beat_func = func

    def bind_router(self, msg_id: int, router: Any) -> None:
        """Use ``router`` for heartbeats under ``msg_id`` (not the default id)."""
        if router is not None and msg_id != HEARTBEAT_DEFAULT_MSG_ID:
            self._msg_id = msg_id
            self._router = router

    def bind_router_slices(self, msg_id: int, *handlers: RouterHandler) -> None:
        """Append ``handlers`` to the heartbeat chain under ``msg_id`` (not the default id)."""
        if handlers and msg_id != HEARTBEAT_DEFAULT_MSG_ID:
            self._msg_id = msg_id
            self._router_slices.extend(handlers)

    def start(self) -> None:
        """Begin checking on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        stop = threading.Event()
        self._stop_event = stop
        self._thread = threading.Thread(
            target=self._loop, args=(stop,), daemon=True, name="heartbeat"
        )
        self._thread.start()

    def stop(self) -> None:
        logger.info(
            "heartbeat checker stop, connID=%s",
            getattr(self.conn, "conn_id", None),
        )
        self._stop_event.set()

    def _loop(self, stop: threading.Event) -> None:
        while not stop.wait(self.interval):
            try:
                self.check()
            except Exception as exc:
                logger.error("heartbeat check error: %s", exc)

    def send_heartbeat_msg(self) -> None:
        """Send one heartbeat to the bound connection; send failures propagate."""
        msg = self._make_msg(self.conn)
        try:
            self.conn.send_msg(self._msg_id, msg)
        except Exception as exc:
            logger.error(
                "send heartbeat msg error: %s, msgId=%s msg=%r", exc, self._msg_id, msg
            )
            raise

    def check(self) -> None:
        """Run one liveness check on the bound connection, if any."""
        if self.conn is None:
            return
        if not self.conn.is_alive():
            self._on_remote_not_alive(self.conn)
        elif self._beat_func is not None:
            self._beat_func(self.conn)
        else:
            self.send_heartbeat_msg()

    def bind_conn(self, conn: Any) -> None:
        self.conn = conn
        conn.set_heartbeat(self)

    def clone(self) -> HeartbeatChecker:
        """Return a copy with the same settings and no bound connection."""
        copy = HeartbeatChecker(self.interval)
        copy._make_msg = self._make_msg
        copy._on_remote_not_alive = self._on_remote_not_alive
        copy._beat_func = self._beat_func
        copy._msg_id = self._msg_id
        copy._router = self._router
        copy._router_slices = list(self._router_slices)
        return copy