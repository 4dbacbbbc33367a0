import datetime as dt
import io
import os
import sys
import time
import zipfile

import pytest

from zinx.logwriter import (
    DEFAULT_MAX_SIZE,
    RotatingWriter,
    zip_to_file,
    zip_to_stream,
)


def test_write_then_close_persists(tmp_path):
    path = tmp_path / "logs" / "app.log"
    writer = RotatingWriter(path)
    count = writer.write(b"first line\n")
    writer.close()
    assert count == len(b"first line\n")
    assert path.read_bytes() == b"first line\n"


def test_write_accepts_text(tmp_path):
    path = tmp_path / "app.log"
    with RotatingWriter(path) as writer:
        count = writer.write("line\n")
    assert count == len("line\n")
    assert path.read_text() == "line\n"


def test_appends_to_existing_file(tmp_path):
    path = tmp_path / "app.log"
    path.write_bytes(b"old\n")
    with RotatingWriter(path) as writer:
        writer.write(b"new\n")
    assert path.read_bytes() == b"old\nnew\n"


def test_size_rotation_zips_previous_file(tmp_path):
    path = tmp_path / "app.log"
    writer = RotatingWriter(path)
    writer.set_max_size(10)
    writer.write(b"12345")
    writer.write(b"67890")
    writer.close()

    archives = list(tmp_path.glob("app.*.zip"))
    assert len(archives) == 1
    with zipfile.ZipFile(archives[0]) as archive:
        names = archive.namelist()
        assert len(names) == 1
        assert names[0].startswith("app.") and names[0].endswith(".log")
        assert archive.read(names[0]) == b"12345"
    assert path.read_bytes() == b"67890"
    assert list(tmp_path.glob("app.*.log")) == []


def test_path_without_suffix_uses_log_for_backups(tmp_path):
    path = tmp_path / "app"
    writer = RotatingWriter(path)
    writer.set_max_size(6)
    writer.write(b"abcd")
    writer.write(b"efgh")
    writer.close()
    assert path.read_bytes() == b"efgh"
    archives = list(tmp_path.glob("app.*.zip"))
    assert len(archives) == 1
    with zipfile.ZipFile(archives[0]) as archive:
        (name,) = archive.namelist()
        assert name.endswith(".log")
        assert archive.read(name) == b"abcd"


def test_setters(tmp_path):
    writer = RotatingWriter(tmp_path / "app.log")
    writer.set_max_size(0)
    assert writer.max_size == DEFAULT_MAX_SIZE
    writer.set_max_size(2048)
    assert writer.max_size == 2048
    writer.set_max_age(5)
    assert writer.max_age == 5
    writer.close()


def test_console_copy(tmp_path, monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stream)
    with RotatingWriter(tmp_path / "app.log") as writer:
        writer.set_console(True)
        writer.write(b"hello\n")
    assert stream.getvalue() == "hello\n"
    assert (tmp_path / "app.log").read_bytes() == b"hello\n"


def test_day_change_rotates_and_removes_stale_archives(tmp_path):
    path = tmp_path / "app.log"
    path.write_bytes(b"earlier\n")
    old = int(time.time()) - 2 * 86400
    os.utime(path, (old, old))
    stale = tmp_path / "app.2000-01-01-000000.zip"
    stale.write_bytes(b"")
    unrelated = tmp_path / "notes.zip"
    unrelated.write_bytes(b"")

    with RotatingWriter(path) as writer:
        writer.write(b"today\n")

    assert path.read_bytes() == b"today\n"
    stamp = dt.datetime.fromtimestamp(old).strftime(".%Y-%m-%d-%H%M%S")
    rotated = tmp_path / ("app" + stamp + ".zip")
    assert rotated.exists()
    with zipfile.ZipFile(rotated) as archive:
        assert archive.read("app" + stamp + ".log") == b"earlier\n"

    deadline = time.monotonic() + 5
    while stale.exists() and time.monotonic() < deadline:
        time.sleep(0.02)
    assert not stale.exists()
    assert unrelated.exists()
    assert rotated.exists()


def test_zip_directory(tmp_path):
    source = tmp_path / "payload"
    (source / "sub").mkdir(parents=True)
    (source / "a.txt").write_bytes(b"alpha")
    (source / "sub" / "b.txt").write_bytes(b"beta")
    target = tmp_path / "out.zip"

    zip_to_file(target, source)

    with zipfile.ZipFile(target) as archive:
        assert archive.namelist() == [
            "payload/",
            "payload/a.txt",
            "payload/sub/",
            "payload/sub/b.txt",
        ]
        assert archive.read("payload/a.txt") == b"alpha"
        assert archive.read("payload/sub/b.txt") == b"beta"


def test_zip_single_file_to_stream(tmp_path):
    source = tmp_path / "notes.txt"
    source.write_bytes(b"some text " * 20)
    buffer = io.BytesIO()
    zip_to_stream(buffer, source)
    buffer.seek(0)
    with zipfile.ZipFile(buffer) as archive:
        info = archive.getinfo("notes.txt")
        assert info.compress_type == zipfile.ZIP_DEFLATED
        assert archive.read("notes.txt") == b"some text " * 20


def test_zip_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        zip_to_stream(io.BytesIO(), tmp_path / "missing")