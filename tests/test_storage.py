import pytest

from filevault.exceptions import StorageError


def test_put_and_get_primary(storage):
    storage.put("abc.enc", b"\x00\x01envelope")

    assert storage.get("abc.enc") == b"\x00\x01envelope"


def test_buckets_are_separate(storage):
    storage.put("abc.enc", b"primary")
    storage.put("abc.enc", b"backup", bucket=storage.backup_bucket)

    assert storage.get("abc.enc") == b"primary"
    assert storage.get("abc.enc", storage.backup_bucket) == b"backup"


def test_missing_key(storage):
    with pytest.raises(StorageError, match="not found"):
        storage.get("missing.enc")


def test_missing_bucket(storage):
    with pytest.raises(StorageError):
        storage.put("abc.enc", b"data", bucket="no-such-bucket")
