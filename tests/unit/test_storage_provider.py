import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from blobstore_lib.services import StorageProvider, StorageRegistry
from blobstore_lib.storage import MemoryStorage, StorageDisposedError


def test_unknown_identifier_returns_none():
    provider = StorageProvider(StorageRegistry())
    assert provider.get_storage('nope') is None
    assert provider.is_constructed('nope') is False


def test_same_instance_every_call():
    registry = StorageRegistry().register('x', lambda: MemoryStorage('x'))
    provider = StorageProvider(registry)
    first = provider.get_storage('x')
    assert first is provider.get_storage('x')
    assert provider.is_constructed('x')


def test_blank_identifier_resolves_default():
    registry = StorageRegistry().register(None, lambda: MemoryStorage('default'))
    provider = StorageProvider(registry)
    assert provider.get_storage('   ') is provider.get_storage('default')
    assert provider.get_storage(None) is provider.get_storage('default')
    assert 'default' in registry


def test_factory_invoked_once_under_concurrent_first_access():
    calls = []
    gate = threading.Event()

    def factory():
        calls.append(1)
        # widen the race window
        time.sleep(0.05)
        return MemoryStorage('x')

    provider = StorageProvider(StorageRegistry().register('x', factory))

    def resolve(_):
        gate.wait()
        return provider.get_storage('x')

    with ThreadPoolExecutor(max_workers=16) as pool:
        futures = [pool.submit(resolve, i) for i in range(16)]
        gate.set()
        results = [f.result() for f in futures]

    assert len(calls) == 1
    assert all(r is results[0] for r in results)


def test_slow_construction_does_not_block_other_identifiers():
    started = threading.Event()
    release = threading.Event()

    def slow():
        started.set()
        release.wait(5)
        return MemoryStorage('slow')

    registry = StorageRegistry().register('slow', slow).register('fast', lambda: MemoryStorage('fast'))
    provider = StorageProvider(registry)
    t = threading.Thread(target=provider.get_storage, args=('slow',))
    t.start()
    try:
        assert started.wait(5)
        assert provider.get_storage('fast') is not None
    finally:
        release.set()
        t.join()


def test_reregistration_only_affects_unconstructed():
    registry = StorageRegistry().register('x', lambda: MemoryStorage('first'))
    provider = StorageProvider(registry)
    first = provider.get_storage('x')
    registry.register('x', lambda: MemoryStorage('second'))
    assert provider.get_storage('x') is first

    registry.register('y', lambda: MemoryStorage('y1'))
    registry.register('y', lambda: MemoryStorage('y2'))
    assert provider.get_storage('y').identifier == 'y2'


def test_context_factory_receives_context():
    seen = []

    def factory(ctx):
        seen.append(ctx)
        return MemoryStorage('ctx')

    marker = object()
    provider = StorageProvider(StorageRegistry().register_with_context('ctx', factory), context=marker)
    provider.get_storage('ctx')
    assert seen == [marker]


def test_factory_errors_propagate_and_allow_retry():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError('boom')
        return MemoryStorage('flaky')

    provider = StorageProvider(StorageRegistry().register('flaky', flaky))
    with pytest.raises(RuntimeError):
        provider.get_storage('flaky')
    assert provider.get_storage('flaky') is not None


def test_dispose_all_keeps_instances_but_disposes_them():
    provider = StorageProvider(StorageRegistry().register('x', lambda: MemoryStorage('x')))
    storage = provider.get_storage('x')
    provider.dispose_all()
    assert provider.get_storage('x') is storage
    with pytest.raises(StorageDisposedError):
        storage.query('a')


def test_register_rejects_none_factory():
    with pytest.raises(TypeError):
        StorageRegistry().register('x', None)


def test_unknown_identifiers_leave_no_build_locks():
    provider = StorageProvider(StorageRegistry())
    for i in range(10000):
        assert provider.get_storage(f'nope-{i}') is None
    assert provider._build_locks == {}


def test_build_lock_dropped_after_construction_and_failure():
    registry = (StorageRegistry()
                .register('ok', lambda: MemoryStorage('ok'))
                .register('none', lambda: None))
    provider = StorageProvider(registry)
    assert provider.get_storage('ok') is not None
    assert provider.get_storage('none') is None
    assert provider.is_constructed('none') is False
    assert provider._build_locks == {}


def test_concurrent_resolution_of_failing_factory_leaves_no_locks():
    calls = []

    def failing():
        calls.append(1)
        time.sleep(0.01)
        raise RuntimeError('down')

    provider = StorageProvider(StorageRegistry().register('x', failing))

    def resolve(_):
        with pytest.raises(RuntimeError):
            provider.get_storage('x')

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(resolve, range(8)))
    assert len(calls) == 8
    assert provider._build_locks == {}
