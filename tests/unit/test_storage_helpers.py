import threading

import pytest

from blobstore_lib.storage import MemoryStorage, OperationCancelled
from blobstore_lib.storage.helpers import read_bytes, read_text, walk, write_bytes, write_text


def test_read_missing_returns_none():
    m = MemoryStorage('m')
    assert read_bytes(m, 'nope') is None
    assert read_text(m, 'nope') is None


def test_write_bytes_slice_and_max_length():
    m = MemoryStorage('m')
    assert write_bytes(m, 'f', b'0123456789', offset=2, length=5) is True
    assert read_bytes(m, 'f') == b'23456'
    assert read_bytes(m, 'f', max_length=3) == b'234'
    assert read_bytes(m, 'f', max_length=100) == b'23456'


def test_write_bytes_validates_range():
    m = MemoryStorage('m')
    with pytest.raises(ValueError):
        write_bytes(m, 'f', b'abc', offset=2, length=5)
    with pytest.raises(TypeError):
        write_bytes(m, 'f', None)


def test_text_round_trip():
    m = MemoryStorage('m')
    assert write_text(m, 'notes/today.md', 'héllo') is True
    assert read_text(m, 'notes/today.md') == 'héllo'


def test_walk_is_depth_first():
    m = MemoryStorage('m')
    for p in ('a/1', 'a/b/2', 'c'):
        write_bytes(m, p, b'x')
    assert [b.full_name for b in walk(m)] == ['a', 'a/1', 'a/b', 'a/b/2', 'c']


def test_cancelled_read():
    m = MemoryStorage('m')
    write_bytes(m, 'f', b'abc')
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(OperationCancelled):
        read_bytes(m, 'f', cancel=cancel)
