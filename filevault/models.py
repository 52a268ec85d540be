from pydantic import BaseModel
from datetime import datetime


class FileRecord(BaseModel):
    id: str
    filename: str
    storage_path: str
    checksum: str
    created_at: datetime


class FileSummary(BaseModel):
    id: str
    filename: str
    created_at: datetime


class UploadResponse(BaseModel):
    id: str
    filename: str


class MessageResponse(BaseModel):
    message: str
