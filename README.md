# acid

Building blocks for network servers and replicated state. Each module can be
used on its own.

## What is in the package

- `acid.byte_array.ByteArray`: a growable binary buffer with a read/write
  `position`. It writes and reads fixed-width integers (`write_int8` …
  `write_uint64`), zigzag and plain varints (`write_varint32`,
  `write_varuint64`, …), floats and doubles, and strings prefixed by a 16, 32
  or 64 bit length or a varint (`write_string_f16`, `write_string_vint`, …).
  It is big-endian unless `little_endian` is set. Reads past the data raise
  `IndexError`; string reads return `bytes`.
- `acid.stream.Stream`: an abstract byte stream. Subclasses provide `read`
  and `write`; `read_fix_size` reads exactly a given length (raising
  `EOFError` if the stream ends first) and `write_fix_size` writes all of the
  data or a `ByteArray`'s readable bytes (raising `ConnectionError` if the
  stream stops accepting data).
- `acid.config`: named, typed configuration variables. `lookup(name, default,
  description)` creates or returns a `ConfigVar`; `find`, `visit`,
  `load_from_yaml` and `load_from_file` look variables up and assign them from
  YAML by dotted path. Names may only use `[a-z0-9._]` (otherwise
  `ValueError`), and looking a name up again with a value of another type
  raises `TypeError`. A `ConfigVar` has a `value` property, `to_string` /
  `from_string`, and change listeners called with `(old, new)`.
- `acid.log`: `Logger`, `LogManager`, `LogEvent`, `LogFormatter` with `%`
  patterns (`%m`, `%p`, `%c`, `%d{...}`, …), and the appenders
  `StdoutLogAppender` and `FileLogAppender`. `get_logger(name)` returns a
  logger from a process-wide manager; loggers without appenders forward to
  the root logger, which writes to standard output.
- `acid.timer.TimerManager`: one-shot and recurring millisecond timers kept in
  deadline order. `add_timer`, `add_condition_timer`, `next_timeout` and
  `expired_callbacks`; a `Timer` can be `cancel`led, `refresh`ed or `reset`.
  The clock can be passed in, which makes the manager easy to drive in tests.
- `acid.lru_map.LRUMap`: a fixed-capacity map that evicts the least recently
  used entry.
- `acid.lexical_cast`: `lexical_cast(value, target)` between `str`, `int`,
  `float` and `bool`, and `parse_bool`, which accepts only `"true"` and
  `"false"`.
- `acid.http`: `HttpMethod`, `HttpStatus` (with reason phrases),
  `HttpContentType`, `CaseInsensitiveDict`, and the `HttpRequest` and
  `HttpResponse` dataclasses with header, parameter, cookie and JSON helpers.
  `str()` of a message gives its HTTP/1.x text form.
- `acid.servlet`: `Servlet`, `FunctionServlet`, `NotFoundServlet` and
  `ServletDispatch`, which routes a request by exact path, then by the first
  matching glob pattern, then to its `default` servlet.
- `acid.raft`: the log side of Raft. `storage.MemoryStorage` holds entries and
  snapshots in memory and raises `CompactedError`, `UnavailableError` or
  `SnapshotOutOfDateError`; `unstable.Unstable` holds entries not yet
  persisted; `raft_log.RaftLog` combines the two with commit and apply
  indexes; `snapshot.Snapshotter` saves snapshots as
  `<term>-<index>.snap` files in a directory and loads the newest one.

## What it does not do

The package has no sockets, no event loop or scheduler, no HTTP parser or
server, and no RPC. The HTTP classes only build and hold messages, and the
servlets only fill in responses handed to them. The Raft modules keep and
query the log; there is no node that elects a leader or replicates entries to
peers.

## Installation

```
pip install .
```

## Examples

```python
from acid.byte_array import ByteArray

buf = ByteArray()
buf.write_varint32(-5)
buf.write_string_f16("hello")
buf.position = 0
assert buf.read_varint32() == -5
assert buf.read_string_f16() == b"hello"
```

```python
from acid import config

port = config.lookup("server.port", 8080, "listening port")
port.add_listener(lambda old, new: print(f"port {old} -> {new}"))
config.load_from_yaml({"server": {"port": 9090}})
assert port.value == 9090
```

```python
from acid.lru_map import LRUMap

cache = LRUMap(2)
cache.set("a", 1)
cache.set("b", 2)
cache.get("a")
cache.set("c", 3)     # evicts "b"
assert "b" not in cache
```

```python
from acid.http import HttpRequest, HttpResponse
from acid.servlet import ServletDispatch

def hello(request, response, session):
    response.body = "hello"
    return 0

dispatch = ServletDispatch()
dispatch.add_servlet("/hello", hello)
response = HttpResponse()
dispatch.handle(HttpRequest(path="/hello"), response, None)
assert response.body == "hello"
```

```python
from acid.raft.storage import MemoryStorage, Entry
from acid.raft.raft_log import RaftLog

log = RaftLog(MemoryStorage())
log.append([Entry(index=1, term=1, data=b"x")])
assert log.last_index() == 1
```

## Running the tests

```
pip install .[test]
pytest
```