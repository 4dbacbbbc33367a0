"""A log file writer that rotates by day and by size and zips old files."""

from __future__ import annotations

import datetime as _dt
import os
import sys
import threading
import zipfile
from typing import IO, Iterator

SIZE_MIB = 1024 * 1024
DEFAULT_MAX_AGE = 31
DEFAULT_MAX_SIZE = 64 * SIZE_MIB
FLUSH_INTERVAL = 5.0

_STAMP_FORMAT = ".%Y-%m-%d-%H%M%S"
_DAY_FORMAT = "%Y-%m-%d"


class RotatingWriter:
    """Buffered writer to a log file.

    The file is rotated when the day changes or when it would reach the
    maximum size; the rotated file is compressed into a zip archive next to
    it. Archives older than the maximum age (in days) are removed once a day.
    A background thread flushes the buffer every few seconds.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = os.fspath(path)
        self._dir = os.path.dirname(self._path) or "."
        base = os.path.basename(self._path)
        dot = base.rfind(".")
        suffix = base[dot:] if dot >= 0 else ""
        self._name = base[: len(base) - len(suffix)]
        self._suffix = suffix or ".log"
        self._zip_suffix = ".zip"
        self._max_size = DEFAULT_MAX_SIZE
        self._max_age = DEFAULT_MAX_AGE
        self._console = False
        self._size = 0
        self._created = _dt.datetime.now()
        self._created_day = ""
        self._file: IO[bytes] | None = None
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._daemon: threading.Thread | None = None
        os.makedirs(self._dir, exist_ok=True)
        self._start_daemon()

    @property
    def path(self) -> str:
        return self._path

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def max_age(self) -> int:
        return self._max_age

    def set_max_age(self, days: int) -> None:
        """Set how many days rotated archives are kept; 0 or less keeps them all."""
        with self._lock:
            self._max_age = days

    def set_max_size(self, size: int) -> None:
        """Set the largest size of one log file; values below 1 are ignored."""
        if size < 1:
            return
        with self._lock:
            self._max_size = size

    def set_console(self, enabled: bool) -> None:
        """Also copy everything written to standard error."""
        with self._lock:
            self._console = enabled

    def write(self, data: bytes | bytearray | memoryview | str) -> int:
        """Write ``data`` and return the number of bytes written."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        with self._lock:
            if self._console:
                _echo(payload)
            if self._file is None:
                try:
                    self._rotate()
                except OSError:
                    _echo(payload)
                    raise

            today = _dt.datetime.now().strftime(_DAY_FORMAT)
            if self._created_day != today:
                threading.Thread(target=self._delete_old, daemon=True).start()
                self._rotate()

            if self._size + len(payload) >= self._max_size:
                self._rotate()

            assert self._file is not None
            written = self._file.write(payload)
            self._size += written
            return written

    def flush(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        """Flush and close the current file; a later write reopens it."""
        self._stop.set()
        self.flush()
        with self._lock:
            if self._file is None:
                return
            try:
                os.fsync(self._file.fileno())
            finally:
                self._file.close()
                self._file = None

    def __enter__(self) -> RotatingWriter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _rotate(self) -> None:
        now = _dt.datetime.now()
        if self._file is not None:
            self._file.flush()
            os.fsync(self._file.fileno())
            self._file.close()
            self._file = None
            backup = self._name + self._created.strftime(_STAMP_FORMAT)
            backup_path = os.path.join(self._dir, backup + self._suffix)
            try:
                os.replace(self._path, backup_path)
            except OSError:
                pass
            else:
                try:
                    zip_to_file(os.path.join(self._dir, backup + ".zip"), backup_path)
                except OSError as exc:
                    print(exc, file=sys.stderr)
                else:
                    os.remove(backup_path)
            self._size = 0

        try:
            info = os.stat(self._path)
        except OSError:
            self._created = now
        else:
            self._size = info.st_size
            self._created = _dt.datetime.fromtimestamp(info.st_mtime)
        self._created_day = self._created.strftime(_DAY_FORMAT)
        self._file = open(self._path, "ab")
        self._start_daemon()

    def _delete_old(self) -> None:
        if self._max_age <= 0:
            return
        cutoff = _dt.datetime.now() - _dt.timedelta(days=self._max_age)
        try:
            entries = list(os.scandir(self._dir))
        except OSError:
            return
        for entry in entries:
            if entry.is_dir():
                continue
            stamp = self._parse_stamp(entry.name)
            if stamp is not None and stamp < cutoff:
                try:
                    os.remove(entry.path)
                except OSError:
                    pass

    def _parse_stamp(self, name: str) -> _dt.datetime | None:
        trimmed = name.removeprefix(self._name).removesuffix(self._zip_suffix)
        try:
            return _dt.datetime.strptime(trimmed, _STAMP_FORMAT)
        except ValueError:
            return None

    def _start_daemon(self) -> None:
        if self._daemon is not None and self._daemon.is_alive() and not self._stop.is_set():
            return
        stop = threading.Event()
        self._stop = stop
        self._daemon = threading.Thread(
            target=self._flush_loop, args=(stop,), daemon=True, name="log-flush"
        )
        self._daemon.start()

    def _flush_loop(self, stop: threading.Event) -> None:
        while not stop.wait(FLUSH_INTERVAL):
            try:
                self.flush()
            except (OSError, ValueError):
                pass


def _echo(payload: bytes) -> None:
    stream = sys.stderr
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        buffer.write(payload)
        buffer.flush()
    else:
        stream.write(payload.decode("utf-8", "replace"))


def zip_to_file(dst: str | os.PathLike[str], src: str | os.PathLike[str]) -> None:
    """Compress the file or directory ``src`` into a new zip file ``dst``."""
    with open(os.path.normpath(os.fspath(dst)), "wb") as handle:
        zip_to_stream(handle, src)


def zip_to_stream(dst: IO[bytes], src: str | os.PathLike[str]) -> None:
    """Compress the file or directory ``src`` into the writable stream ``dst``."""
    source = os.path.normpath(os.fspath(src))
    base = os.path.basename(source)
    os.stat(source)
    with zipfile.ZipFile(dst, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in _walk(source):
            archive.write(path, _archive_name(path, base))


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))


def _archive_name(path: str, base: str) -> str:
    index = path.find(base) if base else -1
    if index > -1:
        path = path[index:]
    return path.strip(os.sep).replace("\\", "/")