# tests/conftest.py
from __future__ import annotations

import uuid

import boto3
import httpx
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from moto import mock_aws

from filevault.config import Settings
from filevault.database import FileRepository, FILES_COLLECTION
from filevault.envelope import EnvelopeCodec
from filevault.main import app, get_codec, get_repository, get_storage, get_transfer
from filevault.storage import ObjectStorage

TEST_KEY_HEX = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
PRIMARY_BUCKET = "test-primary"
BACKUP_BUCKET = "test-backup"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        secret_key_hex=TEST_KEY_HEX,
        aws_region="us-east-1",
        primary_bucket=PRIMARY_BUCKET,
        backup_bucket=BACKUP_BUCKET,
    )


@pytest.fixture
def codec(settings) -> EnvelopeCodec:
    return EnvelopeCodec(settings)


# --------------------------------------------------------------------
# S3 mocked with moto, both buckets created
# --------------------------------------------------------------------
@pytest.fixture
def s3_client(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")

    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=PRIMARY_BUCKET)
        client.create_bucket(Bucket=BACKUP_BUCKET)
        yield client


@pytest.fixture
def storage(s3_client) -> ObjectStorage:
    return ObjectStorage(s3_client, PRIMARY_BUCKET, BACKUP_BUCKET)


# --------------------------------------------------------------------
# MongoDB replaced by mongomock-motor
# --------------------------------------------------------------------
@pytest.fixture
def collection():
    return AsyncMongoMockClient()[f"test_{uuid.uuid4().hex}"][FILES_COLLECTION]


@pytest.fixture
def repository(collection) -> FileRepository:
    return FileRepository(collection)


# --------------------------------------------------------------------
# Transfer double that records what the upload route hands to MFT
# --------------------------------------------------------------------
class RecordingTransfer:
    def __init__(self):
        self.sent: list[tuple[str, bytes]] = []

    def send(self, filename: str, data: bytes) -> None:
        self.sent.append((filename, data))


@pytest.fixture
def transfer() -> RecordingTransfer:
    return RecordingTransfer()


# --------------------------------------------------------------------
# FastAPI test client wired to the fixtures above (lifespan not run)
# --------------------------------------------------------------------
@pytest.fixture
def wired_app(codec, repository, storage, transfer):
    app.dependency_overrides[get_codec] = lambda: codec
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_transfer] = lambda: transfer
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(wired_app):
    return TestClient(wired_app)


# same wiring, but requests run on the test's own event loop so
# background transfer tasks can be awaited
@pytest.fixture
async def async_client(wired_app):
    transport = httpx.ASGITransport(app=wired_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
