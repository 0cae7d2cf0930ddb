from pydantic import BaseModel
from typing import Optional


class DatasetStatusResponse(BaseModel):
    id: str
    status: str
    version: Optional[str] = None
    total_images: int = 0
    size_bytes: int = 0
    created_at: str


class DatasetFileResponse(BaseModel):
    id: str
    dataset_id: str
    filename: str
    file_type: str
    file_size: int
    storage_path: str
    created_at: str
