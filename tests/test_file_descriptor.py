import errno
import os

import pytest

from spongekit.buffer import BufferList, BufferViewList
from spongekit.file_descriptor import FileDescriptor
from spongekit.util import UnixError


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    reader = FileDescriptor(read_fd)
    writer = FileDescriptor(write_fd)
    yield reader, writer
    for handle in (reader, writer):
        if not handle.closed():
            handle.close()


def test_write_then_read(pipe):
    reader, writer = pipe
    assert writer.write(b"hello") == 5
    assert reader.read() == b"hello"
    assert writer.write_count() == 1
    assert reader.read_count() == 1


def test_read_respects_limit(pipe):
    reader, writer = pipe
    writer.write(b"hello")
    assert reader.read(2) == b"he"
    assert reader.read(10) == b"llo"


def test_write_accepts_str_and_buffer_lists(pipe):
    reader, writer = pipe
    parts = BufferList(b"ab")
    parts.append(BufferList(b"cd"))
    writer.write("xy")
    writer.write(parts)
    writer.write(BufferViewList(b"ef"))
    assert reader.read() == b"xyabcdef"


def test_eof_after_writer_closed(pipe):
    reader, writer = pipe
    writer.write(b"z")
    writer.close()
    assert writer.closed()
    assert writer.eof()
    assert reader.read() == b"z"
    assert not reader.eof()
    assert reader.read() == b""
    assert reader.eof()


def test_zero_limit_does_not_mark_eof(pipe):
    reader, writer = pipe
    writer.close()
    assert reader.read(0) == b""
    assert not reader.eof()


def test_duplicate_shares_state(pipe):
    reader, writer = pipe
    twin = writer.duplicate()
    assert twin.fd_num() == writer.fd_num()
    twin.write(b"q")
    assert writer.write_count() == 1
    twin.close()
    assert writer.closed()
    assert reader.read() == b"q"


def test_double_close_raises(pipe):
    _reader, writer = pipe
    writer.close()
    with pytest.raises(UnixError) as info:
        writer.close()
    assert info.value.errno == errno.EBADF
    assert info.value.attempt == "close"


def test_negative_fd_rejected():
    with pytest.raises(ValueError):
        FileDescriptor(-1)


def test_nonblocking_read_on_empty_pipe(pipe):
    reader, _writer = pipe
    reader.set_blocking(False)
    with pytest.raises(UnixError) as info:
        reader.read()
    assert info.value.errno == errno.EAGAIN
    assert reader.read_count() == 0


def test_write_all_false_reports_count(pipe):
    reader, writer = pipe
    written = writer.write(b"partial", write_all=False)
    assert 0 < written <= len(b"partial")
    assert reader.read() == b"partial"[:written]


def test_context_manager_closes(pipe):
    _reader, writer = pipe
    with writer as handle:
        handle.write(b"x")
    assert writer.closed()


def test_last_handle_going_away_closes_descriptor():
    read_fd, write_fd = os.pipe()
    with FileDescriptor(read_fd) as reader:
        writer = FileDescriptor(write_fd)
        twin = writer.duplicate()
        del writer
        twin.write(b"k")
        del twin
        assert reader.read() == b"k"
        assert reader.read() == b""
        assert reader.eof()