import pytest

from blobstore_lib.services import ServiceContainer
from blobstore_lib.storage import FileStorage, MemoryStorage, StorageNotRegisteredError


def test_generic_services():
    c = ServiceContainer()
    c.register_singleton('a', 1)
    built = []
    c.register_factory('b', lambda: built.append(1) or 'value')
    assert c.get('a') == 1
    assert c.get('b') == 'value'
    assert c.get('b') == 'value'
    assert built == [1]
    with pytest.raises(KeyError):
        c.get('missing')


def test_add_memory_storage(container):
    container.add_memory_storage(None, size_limit=8)
    storage = container.get_storage()
    assert isinstance(storage, MemoryStorage)
    assert storage.identifier == 'default'
    assert storage.size_left == 8
    assert container.get_storage('default') is storage


def test_add_file_storage_creates_root(container, tmp_path):
    root = tmp_path / 'root'
    container.add_file_storage('disk', root, base_uri='http://example.com/files')
    storage = container.get_storage('disk')
    assert isinstance(storage, FileStorage)
    assert root.is_dir()
    assert storage.base_uri == 'http://example.com/files/'


def test_get_required_storage_raises_for_unknown(container):
    assert container.get_storage('nope') is None
    with pytest.raises(StorageNotRegisteredError) as exc:
        container.get_required_storage('nope')
    assert exc.value.identifier == 'nope'
    with pytest.raises(LookupError):
        container.get_required_storage(None)


def test_context_factory_gets_container(container):
    container.register_singleton('limit', 3)
    container.add_storage_factory_with_context(
        'ctx', lambda c: MemoryStorage('ctx', c.get('limit')))
    assert container.get_required_storage('ctx').size_left == 3


def test_dispose_storages(container):
    container.add_memory_storage('m')
    storage = container.get_storage('m')
    container.dispose_storages()
    assert storage.is_disposed
