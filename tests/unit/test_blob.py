import io

import pytest

from blobstore_lib.storage import Blob, BlobKind, MemoryStorage


class RecordingStorage(MemoryStorage):
    """Memory storage that records which capability calls reached it."""

    def __init__(self, identifier='rec'):
        super().__init__(identifier)
        self.calls = []

    def list(self, full_name, cancel=None):
        self.calls.append(('list', full_name))
        return super().list(full_name, cancel)

    def open_read(self, full_name, cancel=None):
        self.calls.append(('open_read', full_name))
        return super().open_read(full_name, cancel)


def test_equality_uses_identifier_and_path():
    s1 = MemoryStorage('default')
    s2 = MemoryStorage('default')
    a = Blob(s1, 'a/b', BlobKind.FILE)
    b = Blob(s2, 'a/b', BlobKind.FILE)
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1
    assert Blob(MemoryStorage('other'), 'a/b', BlobKind.FILE) != a
    assert Blob(s1, 'A/b', BlobKind.FILE) != a


def test_equal_across_queries():
    s = MemoryStorage('default')
    s.write('a/b', io.BytesIO(b'1'))
    assert s.query('a/b') == s.query('/a/b')
    assert s.list('a')[0] == s.query('a/b')


def test_blank_identifier_renders_as_default():
    blob = Blob(MemoryStorage('  '), 'x/y', BlobKind.DIRECTORY)
    assert str(blob) == 'default:x/y'
    assert blob == Blob(MemoryStorage('default'), 'x/y', BlobKind.FILE)


def test_descriptor_is_immutable():
    blob = Blob(MemoryStorage('m'), 'x', BlobKind.FILE)
    with pytest.raises(AttributeError):
        blob.kind = BlobKind.DIRECTORY


def test_name_and_parent():
    blob = Blob(MemoryStorage('m'), 'a/b/c.txt', BlobKind.FILE)
    assert blob.name == 'c.txt'
    assert blob.parent == 'a/b'
    assert blob.is_file and not blob.is_directory


def test_list_on_file_does_not_contact_storage():
    s = RecordingStorage()
    s.write('a/b', io.BytesIO(b'1'))
    blob = s.query('a/b')
    assert blob.list() == []
    assert s.calls == []


def test_open_read_on_directory_does_not_contact_storage():
    s = RecordingStorage()
    s.write('a/b', io.BytesIO(b'1'))
    blob = s.query('a')
    assert blob.open_read() is None
    assert s.calls == []
    assert [b.full_name for b in blob.list()] == ['a/b']
    assert s.calls == [('list', 'a')]


def test_forwarding_operations():
    s = MemoryStorage('m')
    s.write('dir/file.txt', io.BytesIO(b'old'))
    blob = s.query('dir/file.txt')
    assert blob.read_bytes() == b'old'
    assert blob.write_bytes(b'new') is True
    assert blob.read_bytes() == b'new'
    assert blob.rename('renamed.txt') is True
    assert s.query('dir/renamed.txt') is not None
    renamed = s.query('dir/renamed.txt')
    assert renamed.delete() is True
    assert s.query('dir') is None


def test_to_dict():
    blob = Blob(MemoryStorage('m'), 'a/b.txt', BlobKind.FILE)
    assert blob.to_dict() == {'storage': 'm', 'full_name': 'a/b.txt', 'name': 'b.txt', 'kind': 'file'}
