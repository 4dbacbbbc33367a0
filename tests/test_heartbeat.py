import re
import time

import pytest

from zinx.heartbeat import (
    HEARTBEAT_DEFAULT_MSG_ID,
    HeartBeatDefaultRouter,
    HeartbeatChecker,
    heartbeat_default_handle,
)
from zinx.router import BaseRouter


class FakeConn:
    def __init__(self, alive=True, fail=False):
        self.alive = alive
        self.fail = fail
        self.sent = []
        self.stopped = False
        self.heartbeat = None
        self.conn_id = 1
        self.remote_addr = "127.0.0.1:9000"

    def is_alive(self):
        return self.alive

    def send_msg(self, msg_id, data):
        if self.fail:
            raise ConnectionError("closed")
        self.sent.append((msg_id, data))

    def set_heartbeat(self, checker):
        self.heartbeat = checker

    def stop(self):
        self.stopped = True


def handler(request):
    pass


def test_defaults():
    hc = HeartbeatChecker(1)
    assert hc.msg_id == HEARTBEAT_DEFAULT_MSG_ID
    assert isinstance(hc.router, HeartBeatDefaultRouter)
    assert hc.router_slices == [heartbeat_default_handle]


def test_bind_router_ignores_default_id_and_none():
    hc = HeartbeatChecker(1)
    router = BaseRouter()
    hc.bind_router(HEARTBEAT_DEFAULT_MSG_ID, router)
    hc.bind_router(5, None)
    assert isinstance(hc.router, HeartBeatDefaultRouter)
    assert hc.msg_id == HEARTBEAT_DEFAULT_MSG_ID
    hc.bind_router(5, router)
    assert hc.router is router
    assert hc.msg_id == 5


def test_bind_router_slices_appends():
    hc = HeartbeatChecker(1)
    hc.bind_router_slices(HEARTBEAT_DEFAULT_MSG_ID, handler)
    assert hc.router_slices == [heartbeat_default_handle]
    hc.bind_router_slices(7, handler)
    assert hc.router_slices == [heartbeat_default_handle, handler]
    assert hc.msg_id == 7


def test_bind_conn_links_both_ways():
    hc = HeartbeatChecker(1)
    conn = FakeConn()
    hc.bind_conn(conn)
    assert hc.conn is conn
    assert conn.heartbeat is hc


def test_check_alive_sends_default_message():
    hc = HeartbeatChecker(1)
    conn = FakeConn()
    hc.bind_conn(conn)
    hc.check()
    assert len(conn.sent) == 1
    msg_id, data = conn.sent[0]
    assert msg_id == HEARTBEAT_DEFAULT_MSG_ID
    assert re.fullmatch(rb'\{"time":"\d{4}-\d\d-\d\d \d\d:\d\d:\d\d"\}\r\n', data)


def test_check_dead_stops_connection():
    hc = HeartbeatChecker(1)
    conn = FakeConn(alive=False)
    hc.bind_conn(conn)
    hc.check()
    assert conn.stopped
    assert conn.sent == []


def test_custom_callbacks_are_used():
    hc = HeartbeatChecker(1)
    dead = []
    hc.set_on_remote_not_alive(dead.append)
    hc.set_heartbeat_msg_func(lambda conn: b"ping")
    hc.set_on_remote_not_alive(None)
    conn = FakeConn()
    hc.bind_conn(conn)
    hc.check()
    assert conn.sent == [(HEARTBEAT_DEFAULT_MSG_ID, b"ping")]
    conn.alive = False
    hc.check()
    assert dead == [conn]
    assert not conn.stopped


def test_beat_func_replaces_sending():
    hc = HeartbeatChecker(1)
    beats = []
    hc.set_heartbeat_func(beats.append)
    conn = FakeConn()
    hc.bind_conn(conn)
    hc.check()
    assert beats == [conn]
    assert conn.sent == []


def test_send_failure_propagates():
    hc = HeartbeatChecker(1)
    hc.bind_conn(FakeConn(fail=True))
    with pytest.raises(ConnectionError):
        hc.send_heartbeat_msg()


def test_clone_copies_settings_without_conn():
    hc = HeartbeatChecker(2)
    hc.bind_router_slices(8, handler)
    hc.bind_conn(FakeConn())
    copy = hc.clone()
    assert copy.conn is None
    assert copy.msg_id == 8
    assert copy.interval == hc.interval
    assert copy.router_slices == hc.router_slices
    assert copy.router_slices is not hc.router_slices


def test_start_sends_periodically_until_stopped():
    hc = HeartbeatChecker(0.02)
    conn = FakeConn()
    hc.bind_conn(conn)
    hc.start()
    deadline = time.monotonic() + 2
    while not conn.sent and time.monotonic() < deadline:
        time.sleep(0.01)
    hc.stop()
    assert len(conn.sent) >= 1
    time.sleep(0.1)
    count = len(conn.sent)
    time.sleep(0.1)
    assert len(conn.sent) == count