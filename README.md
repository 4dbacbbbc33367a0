# zinx

Building blocks for message-oriented network servers, written with the
standard library only.

## What is inside

- `zinx.message`: the `Message` dataclass (`msg_id`, `data_len`, `data`,
  `raw_data`) and the helpers `new_msg_package`, `new_message` and
  `new_message_by_msg_id`.
- `zinx.datapack`: packet codecs with an 8-byte header. `DataPack` writes
  id then length, big-endian; `DataPackLtv` writes length then id,
  little-endian. `new_pack(kind, max_packet_size)` picks one by `PackKind`
  (`TLV` or `LTV`; unknown kinds give `TLV`). `unpack` decodes the header
  only and raises `PacketTooLargeError` when the announced length exceeds a
  non-zero `max_packet_size`.
- `zinx.hashing`: `Fnv32Hash`, a 32-bit FNV-1 hash, and `default_hash()`.
- `zinx.shardmap`: `ShardLockMap`, a thread-safe string-keyed map split
  into independently locked shards, with `set_nx`, `remove_cb`, `pop`,
  snapshot iteration (`iter_buffered`), `to_json` and `load_json`.
- `zinx.snowflake`: `IDWorker`, a snowflake ID generator (10-bit worker id,
  12-bit sequence); raises `ClockMovedBackwardsError` if the clock goes back.
- `zinx.logwriter`: `RotatingWriter`, a buffered log file writer that
  rotates by day and by size, zips the rotated file and removes archives
  older than `max_age` days; also `zip_to_file` and `zip_to_stream`.
- `zinx.delayfunc`, `zinx.timer`, `zinx.timewheel`, `zinx.scheduler`:
  `DelayFunc` (a call whose exceptions are logged), one-shot `Timer`s
  (`new_timer_at`, `new_timer_after`, `unix_milli`), layered `TimeWheel`s,
  and `TimerScheduler` / `new_auto_exec_timer_scheduler()` which run them on
  hour, minute and second wheels.
- `zinx.request`: `Request`, which drives a classic router through its
  `HandleStep` stages or runs a chain of handler functions, and
  `FuncRequest`, which carries a plain function.
- `zinx.router`: `BaseRouter` (pre-handle, handle, post-handle),
  `RouterSlices` and `GroupRouter` for handler chains, and the chain
  handlers `router_recovery` and `router_time`. Registering a message id
  twice raises `RepeatedRouteError`.
- `zinx.connmanager`: `ConnManager`, a registry of connections by id;
  lookups of unknown ids raise `ConnectionNotFoundError`.
- `zinx.notify`: `Notifier`, which maps user-chosen ids to connections and
  sends messages to one or all of them.
- `zinx.heartbeat`: `HeartbeatChecker`, which periodically sends a
  heartbeat to a bound connection or hands a dead one to a callback.

Connections are duck-typed: the manager, notifier and heartbeat checker
describe in their docstrings which attributes and methods they call.

## Examples

```python
from zinx.datapack import PackKind, new_pack
from zinx.message import new_msg_package

dp = new_pack(PackKind.TLV, 4096)
frame = dp.pack(new_msg_package(1, b"hello"))
head = dp.unpack(frame[: dp.head_len])
assert (head.msg_id, head.data_len) == (1, 5)
assert frame[dp.head_len : dp.head_len + head.data_len] == b"hello"
```

```python
from zinx.message import new_msg_package
from zinx.request import Request
from zinx.router import RouterSlices

seen = []
routes = RouterSlices()
routes.use(lambda req: seen.append("shared"))
group = routes.group(1, 10, lambda req: seen.append("group"))
group.add_handler(2, lambda req: seen.append(req.msg_id))

req = Request(None, new_msg_package(2, b""), router_slices_mode=True)
req.bind_router_slices(routes.get_handlers(2))
req.router_slices_next()
assert seen == ["shared", "group", 2]
```

```python
from zinx.shardmap import ShardLockMap

users = ShardLockMap()
users.set("alice", 1)
assert "alice" in users and len(users) == 1
```

## What this package does not do

It has no server or client: nothing here listens on a socket, accepts or
dials connections, reads or writes frames on the network, or runs a worker
pool. The connection manager, notifier and heartbeat checker work on
connection objects that you supply.

## Tests

Install with the `test` extra and run `pytest`.