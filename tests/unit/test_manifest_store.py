"""
Unit tests for the file manifest.

Tests FileManifestStore ordering, capacity and failure handling.
"""
import gc
import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from firestarter.core.exceptions import LocalStorageError, ValidationError
from firestarter.core.models import FileRecord
from firestarter.core.storage import (
    DEFAULT_FILES_KEY,
    FileManifestStore,
    MemoryStorage,
    account_files_key,
)
from firestarter.core.storage import manifest_store

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_record(n, name=None):
    return FileRecord(
        identifier=f"id{n}",
        display_name=name or f"file{n}.txt",
        size=n,
        hash_value=f"id{n}",
        uploaded_at=BASE + timedelta(minutes=n),
    )


class FailingWrites(MemoryStorage):
    def set_item(self, key, value):
        raise LocalStorageError('quota exceeded')


class FailingReads(MemoryStorage):
    def get_item(self, key):
        raise LocalStorageError('read failed')


class TestFileManifestStore:
    """Tests for FileManifestStore."""

    @pytest.fixture
    def manifest(self):
        """Manifest over a fresh in-memory medium."""
        return FileManifestStore(MemoryStorage(), key='test_manifest_default')

    def test_empty(self, manifest):
        """Test a new manifest is empty."""
        assert manifest.list() == []
        assert len(manifest) == 0

    def test_most_recent_first(self, manifest):
        """Test records are listed newest first."""
        for n in range(3):
            manifest.upsert(make_record(n))

        assert [r.identifier for r in manifest.list()] == ['id2', 'id1', 'id0']

    def test_upsert_replaces_in_place(self, manifest):
        """Test an existing identifier is replaced without moving."""
        for n in range(3):
            manifest.upsert(make_record(n))
        manifest.upsert(make_record(0, name='renamed.txt'))

        records = manifest.list()
        assert [r.identifier for r in records] == ['id2', 'id1', 'id0']
        assert records[2].display_name == 'renamed.txt'
        assert manifest.count() == 3

    def test_capacity_drops_oldest(self):
        """Test records beyond max_files are dropped from the tail."""
        manifest = FileManifestStore(MemoryStorage(), key='test_manifest_cap', max_files=3)
        for n in range(5):
            manifest.add_file(make_record(n))

        assert [r.identifier for r in manifest.list()] == ['id4', 'id3', 'id2']

    def test_default_capacity(self):
        """Test the default capacity is 1000."""
        assert FileManifestStore(MemoryStorage()).max_files == 1000

    def test_invalid_capacity(self):
        """Test non-positive capacity is rejected."""
        with pytest.raises(ValidationError):
            FileManifestStore(MemoryStorage(), max_files=0)

    def test_get_and_find(self, manifest):
        """Test lookups by identifier and by name."""
        manifest.upsert(make_record(1, name='a.txt'))
        manifest.upsert(make_record(2, name='a.txt'))

        assert manifest.get('id1').size == 1
        assert manifest.get('missing') is None
        assert len(manifest.find_by_name('a.txt')) == 2

    def test_remove(self, manifest):
        """Test removing by identifier."""
        manifest.upsert(make_record(1))

        assert manifest.remove_file('id1') is True
        assert manifest.remove('id1') is False
        assert manifest.list() == []

    def test_remove_by_name(self, manifest):
        """Test removing every record with a name."""
        manifest.upsert(make_record(1, name='a.txt'))
        manifest.upsert(make_record(2, name='a.txt'))
        manifest.upsert(make_record(3, name='b.txt'))

        assert manifest.remove_by_name('a.txt') == 2
        assert manifest.remove_by_name('a.txt') == 0
        assert [r.identifier for r in manifest.list()] == ['id3']

    def test_clear(self, manifest):
        """Test clearing all records."""
        manifest.upsert(make_record(1))
        manifest.clear()

        assert manifest.list() == []

    def test_default_key(self):
        """Test the unscoped manifest key."""
        storage = MemoryStorage()
        FileManifestStore(storage).upsert(make_record(1))

        assert json.loads(storage.get_item(DEFAULT_FILES_KEY))[0]['identifier'] == 'id1'
        FileManifestStore(storage).clear()

    def test_for_account_is_scoped(self):
        """Test per-account manifests do not share records."""
        storage = MemoryStorage()
        alice = FileManifestStore.for_account(storage, 'alice1234')
        bob = FileManifestStore.for_account(storage, 'bob12345')
        alice.upsert(make_record(1))

        assert alice.key == account_files_key('alice1234') == 'firestarter_files_alice1234'
        assert bob.list() == []
        assert len(alice) == 1

    def test_for_account_requires_username(self):
        """Test an empty username is rejected."""
        with pytest.raises(ValidationError):
            FileManifestStore.for_account(MemoryStorage(), '')

    def test_metadata_persisted(self, manifest):
        """Test metadata survives a write and read."""
        record = make_record(1)
        record.metadata = {'tags': ['x']}
        manifest.upsert(record)

        assert manifest.get('id1').metadata == {'tags': ['x']}

    def test_corrupt_data_reads_empty(self):
        """Test corrupt JSON reads as an empty list."""
        storage = MemoryStorage({'corrupt': '{oops'})
        manifest = FileManifestStore(storage, key='corrupt')

        assert manifest.list() == []
        manifest.upsert(make_record(1))
        assert manifest.count() == 1

    def test_non_list_reads_empty(self):
        """Test a non-list payload reads as empty."""
        storage = MemoryStorage({'shape': json.dumps({'identifier': 'x'})})
        assert FileManifestStore(storage, key='shape').list() == []

    def test_malformed_entries_skipped(self):
        """Test entries missing fields are skipped."""
        payload = json.dumps([
            {'identifier': 'ok', 'display_name': 'a', 'size': 1},
            {'display_name': 'no id', 'size': 1},
            'junk',
        ])
        manifest = FileManifestStore(MemoryStorage({'mixed': payload}), key='mixed')

        assert [r.identifier for r in manifest.list()] == ['ok']

    def test_write_failure_raises(self):
        """Test write failures propagate from upsert."""
        manifest = FileManifestStore(FailingWrites(), key='test_manifest_fail')

        with pytest.raises(LocalStorageError):
            manifest.upsert(make_record(1))

    def test_read_failure_lists_empty(self):
        """Test list degrades to empty when the medium cannot be read."""
        manifest = FileManifestStore(FailingReads(), key='test_manifest_unreadable')
        assert manifest.list() == []

    def test_concurrent_upserts(self):
        """Test concurrent writers sharing a key lose no records."""
        storage = MemoryStorage()
        stores = [FileManifestStore(storage, key='test_manifest_threads') for _ in range(4)]

        def worker(offset, store):
            for n in range(25):
                store.upsert(make_record(offset * 100 + n))

        threads = [threading.Thread(target=worker, args=(i, s)) for i, s in enumerate(stores)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert stores[0].count() == 100

    def test_lock_shared_while_stores_alive(self):
        """Test stores on one key share a lock that is released with them."""
        first = FileManifestStore(MemoryStorage(), key='test_manifest_lock_scope')
        second = FileManifestStore(MemoryStorage(), key='test_manifest_lock_scope')

        assert first._lock is second._lock
        assert 'test_manifest_lock_scope' in manifest_store._key_locks

        del first, second
        gc.collect()

        assert 'test_manifest_lock_scope' not in manifest_store._key_locks
