from fastapi import FastAPI, UploadFile, File, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool
from contextlib import asynccontextmanager
from urllib.parse import quote
import io
import os
import uuid

from filevault.config import Settings
from filevault.database import connect_db, close_db, get_db, FileRepository, FILES_COLLECTION
from filevault.envelope import EnvelopeCodec
from filevault.exceptions import FileVaultError, IntegrityError, NotFoundError, StorageError
from filevault.logging_config import setup_logging, get_logger
from filevault.models import FileRecord, FileSummary, UploadResponse, MessageResponse
from filevault.storage import ObjectStorage
from filevault.transfer import MFTTransfer

setup_logging("filevault")
logger = get_logger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


# =========================
# LIFESPAN (CONFIG + DB CONNECT)
# =========================

@asynccontextmanager
async def lifespan(app: FastAPI):
    # raises ConfigurationError, so a bad secret stops startup
    settings = Settings.from_env()
    setup_logging("filevault", settings.log_level)

    await connect_db(settings)

    app.state.codec = EnvelopeCodec(settings)
    app.state.repository = FileRepository(get_db()[FILES_COLLECTION])
    app.state.storage = ObjectStorage.from_settings(settings)
    app.state.transfer = MFTTransfer(settings)

    yield

    await app.state.transfer.aclose()
    await close_db()


# =========================
# DEPENDENCIES
# =========================

def get_codec(request: Request) -> EnvelopeCodec:
    return request.app.state.codec

def get_repository(request: Request) -> FileRepository:
    return request.app.state.repository

def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage

def get_transfer(request: Request) -> MFTTransfer:
    return request.app.state.transfer


# =========================
# FASTAPI APP
# =========================

app = FastAPI(
    title="File Vault Gateway",
    description="Encrypted file upload/download gateway",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================
# HEALTH CHECK
# =========================

@app.get("/")
async def root():
    return {"status": "ok"}


# =========================
# UPLOAD
# =========================

@app.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile | None = File(None),
    codec: EnvelopeCodec = Depends(get_codec),
    repository: FileRepository = Depends(get_repository),
    storage: ObjectStorage = Depends(get_storage),
    transfer: MFTTransfer = Depends(get_transfer)
):
    if file is None:
        raise HTTPException(400, "file required")

    file_id = str(uuid.uuid4())
    original_name = file.filename or file_id
    storage_path = f"{file_id}.enc"

    try:
        data = await file.read()

        logger.info(f"[UPLOAD] Encrypting file '{original_name}' as {file_id}")
        encrypted = codec.encode(data)
        checksum = codec.digest(encrypted)

        await run_in_threadpool(storage.put, storage_path, encrypted)

        # not awaited: transfer errors never affect the upload result
        transfer.send(storage_path, encrypted)

        logger.info(f"[UPLOAD] Saving metadata for {file_id}")
        await repository.create(file_id, original_name, storage_path, checksum)
    except FileVaultError:
        logger.exception(f"[UPLOAD] Failed for '{original_name}'")
        raise HTTPException(500, "upload failed")

    return UploadResponse(id=file_id, filename=original_name)


# =========================
# DOWNLOAD
# =========================

async def _read_plaintext(
    meta: FileRecord,
    bucket: str,
    codec: EnvelopeCodec,
    storage: ObjectStorage
) -> bytes:
    try:
        encrypted = await run_in_threadpool(storage.get, meta.storage_path, bucket)
        codec.verify(encrypted, meta.checksum)
    except StorageError:
        raise HTTPException(500, "read error")
    except IntegrityError as e:
        logger.error(f"{meta.id}: {e}")
        raise HTTPException(500, "Checksum mismatch")

    try:
        return codec.decode(encrypted)
    except IntegrityError as e:
        logger.error(f"{meta.id}: {e}")
        raise HTTPException(500, "read error")


def _ascii_filename(filename: str) -> str:
    # header values must be printable ASCII without quotes
    ascii_name = filename.encode("ascii", "replace").decode("ascii")
    return "".join(c for c in ascii_name if 0x20 <= ord(c) < 0x7f and c != "\"")


def _attachment(meta: FileRecord, plain: bytes) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(plain),
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": (
                f"attachment; filename=\"{_ascii_filename(meta.filename)}\"; "
                f"filename*=UTF-8''{quote(meta.filename)}"
            ),
            "Content-Length": str(len(plain))
        }
    )


async def _find(repository: FileRepository, file_id: str) -> FileRecord:
    try:
        return await repository.get(file_id)
    except NotFoundError:
        raise HTTPException(404, "not found")
    except StorageError:
        logger.exception(f"Metadata lookup failed for {file_id}")
        raise HTTPException(500, "read error")


@app.get("/files/{file_id}")
async def download_file(
    file_id: str,
    codec: EnvelopeCodec = Depends(get_codec),
    repository: FileRepository = Depends(get_repository),
    storage: ObjectStorage = Depends(get_storage)
):
    logger.info(f"[GET /files/{file_id}]")

    meta = await _find(repository, file_id)
    plain = await _read_plaintext(meta, storage.primary_bucket, codec, storage)
    return _attachment(meta, plain)


# Manual alternate read path; there is no automatic failover to it.
@app.get("/files-backup/{file_id}")
async def download_file_backup(
    file_id: str,
    codec: EnvelopeCodec = Depends(get_codec),
    repository: FileRepository = Depends(get_repository),
    storage: ObjectStorage = Depends(get_storage)
):
    logger.info(f"[GET /files-backup/{file_id}]")

    meta = await _find(repository, file_id)
    plain = await _read_plaintext(meta, storage.backup_bucket, codec, storage)
    return _attachment(meta, plain)


# =========================
# LIST FILES
# =========================

@app.get("/list", response_model=list[FileSummary])
async def list_files(repository: FileRepository = Depends(get_repository)):
    try:
        return await repository.list_files()
    except StorageError:
        logger.exception("Listing metadata failed")
        raise HTTPException(500, "read error")


# =========================
# DELETE FILE
# =========================

@app.delete("/files/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str,
    repository: FileRepository = Depends(get_repository)
):
    logger.info(f"[DELETE /files/{file_id}]")

    try:
        await repository.delete(file_id)
    except NotFoundError:
        raise HTTPException(404, "File not found")
    except StorageError:
        logger.exception(f"[DELETE] Failed for {file_id}")
        raise HTTPException(500, "delete failed")

    return MessageResponse(message="File deleted successfully")


# =========================
# LOCAL RUN
# =========================

if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run(
        "filevault.main:app",
        host=settings.host,
        port=settings.port
    )
