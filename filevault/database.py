from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from filevault.config import Settings
from filevault.exceptions import NotFoundError, StorageError
from filevault.logging_config import get_logger
from filevault.models import FileRecord, FileSummary

logger = get_logger(__name__)

FILES_COLLECTION = "files_primary"


class Database:
    client: AsyncIOMotorClient | None = None
    db = None

db = Database()

async def connect_db(settings: Settings):
    db.client = AsyncIOMotorClient(settings.mongo_uri)
    db.db = db.client[settings.db_name]

    await FileRepository(db.db[FILES_COLLECTION]).ensure_indexes()
    logger.info(f"Connected to MongoDB database '{settings.db_name}'")

async def close_db():
    if db.client is not None:
        db.client.close()
        db.client = None
        db.db = None

def get_db():
    return db.db


class FileRepository:
    """Metadata records for stored envelopes, keyed by file id."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self):
        await self.collection.create_index("id", unique=True)
        await self.collection.create_index("created_at")

    async def create(
        self,
        file_id: str,
        filename: str,
        storage_path: str,
        checksum: str
    ) -> FileRecord:
        record = FileRecord(
            id=file_id,
            filename=filename,
            storage_path=storage_path,
            checksum=checksum,
            created_at=datetime.now(timezone.utc)
        )
        try:
            await self.collection.insert_one(record.model_dump())
        except PyMongoError as e:
            raise StorageError(f"Could not save metadata for {file_id}") from e
        return record

    async def get(self, file_id: str) -> FileRecord:
        try:
            doc = await self.collection.find_one({"id": file_id}, {"_id": 0})
        except PyMongoError as e:
            raise StorageError(f"Could not read metadata for {file_id}") from e
        if not doc:
            raise NotFoundError(f"No file with id {file_id}")
        return FileRecord(**doc)

    async def list_files(self) -> list[FileSummary]:
        files = []

        cursor = self.collection.find(
            {}, {"_id": 0, "id": 1, "filename": 1, "created_at": 1}
        ).sort("created_at", DESCENDING)
        try:
            async for doc in cursor:
                files.append(FileSummary(**doc))
        except PyMongoError as e:
            raise StorageError("Could not list metadata") from e

        return files

    async def delete(self, file_id: str) -> None:
        try:
            result = await self.collection.delete_one({"id": file_id})
        except PyMongoError as e:
            raise StorageError(f"Could not delete metadata for {file_id}") from e
        if result.deleted_count == 0:
            raise NotFoundError(f"No file with id {file_id}")
