"""
Dataset ingestion: a dataset row is created in ``processing``, each file is
pushed to object storage and recorded, then totals are written and the row is
flipped to ``ready``. A file whose upload fails is logged and skipped; any
other failure after the row exists marks it ``failed``.
"""
import asyncio
import os
import uuid
import logging
from typing import List, Optional

from visionm.core.database import db
from visionm.core.errors import Forbidden, NotFound, UpstreamFailure, ValidationFailed, upstream_details
from visionm.services import s3
from visionm.utils import utc_now_iso

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
TERMINAL_STATUSES = ("ready", "failed")

STATUS_FIELDS = {"_id": 0, "id": 1, "status": 1, "version": 1, "total_images": 1, "size_bytes": 1, "created_at": 1}


def is_image(filename: str) -> bool:
    return os.path.splitext(filename.lower())[1] in IMAGE_EXTENSIONS


async def _store_file(dataset: dict, filename: str, content_type: str, data: bytes) -> Optional[dict]:
    key = s3.dataset_key(dataset["company_id"], dataset["project_id"], dataset["id"], filename)
    try:
        await asyncio.to_thread(s3.upload_bytes, key, data, content_type)
    except Exception as e:
        logger.error(f"Upload error for {key}, skipping: {e}")
        return None

    record = {
        "id": str(uuid.uuid4()),
        "dataset_id": dataset["id"],
        "filename": filename,
        "file_type": content_type,
        "file_size": len(data),
        "storage_path": key,
        "created_at": utc_now_iso(),
    }
    await db.dataset_files.insert_one(record)
    record.pop("_id", None)
    return record


async def upload_dataset(user: dict, company_id: str, project_id: str, version: Optional[str], files: List) -> dict:
    """`files` are (filename, content_type, bytes) tuples."""
    if not company_id or not project_id:
        raise ValidationFailed("company and project are required")
    if not files:
        raise ValidationFailed("No files provided")
    if user.get("company_id") != company_id:
        raise Forbidden("Not a member of this company")

    project = await db.projects.find_one({"id": project_id, "company_id": company_id}, {"_id": 0, "id": 1})
    if not project:
        raise NotFound("Project not found")

    dataset = {
        "id": str(uuid.uuid4()),
        "company_id": company_id,
        "project_id": project_id,
        "version": version or None,
        "status": "processing",
        "total_images": 0,
        "size_bytes": 0,
        "created_by": user["id"],
        "created_at": utc_now_iso(),
        "error_message": None,
    }
    await db.datasets.insert_one(dataset)

    try:
        total_images = 0
        total_size = 0
        stored = 0
        for index, (filename, content_type, data) in enumerate(files):
            filename = os.path.basename(filename or "") or f"file-{index}"
            record = await _store_file(dataset, filename, content_type or "application/octet-stream", data)
            if record is None:
                continue
            stored += 1
            total_size += record["file_size"]
            if is_image(filename):
                total_images += 1

        await db.datasets.update_one(
            {"id": dataset["id"]},
            {"$set": {"total_images": total_images, "size_bytes": total_size, "status": "ready"}},
        )
    except Exception as e:
        logger.error(f"Dataset {dataset['id']} failed: {e}")
        await db.datasets.update_one(
            {"id": dataset["id"]},
            {"$set": {"status": "failed", "error_message": str(e)}},
        )
        raise UpstreamFailure("Dataset upload failed", details=upstream_details(e))

    logger.info(
        f"Dataset {dataset['id']} ready: {stored}/{len(files)} files, "
        f"{total_images} images, {total_size} bytes"
    )
    return {"dataset_id": dataset["id"], "files_stored": stored}


async def get_status(dataset_id: str, company_id: str) -> dict:
    dataset = await db.datasets.find_one({"id": dataset_id, "company_id": company_id}, STATUS_FIELDS)
    if not dataset:
        raise NotFound("Dataset not found")
    return dataset


async def _get_for_company(dataset_id: str, company_id: str) -> dict:
    dataset = await db.datasets.find_one({"id": dataset_id, "company_id": company_id}, {"_id": 0})
    if not dataset:
        raise NotFound("Dataset not found")
    return dataset


async def list_datasets(project_id: str, company_id: str) -> list:
    return await db.datasets.find(
        {"project_id": project_id, "company_id": company_id}, {"_id": 0}
    ).sort("created_at", -1).to_list(500)


async def list_files(dataset_id: str, company_id: str) -> list:
    await _get_for_company(dataset_id, company_id)
    return await db.dataset_files.find({"dataset_id": dataset_id}, {"_id": 0}).to_list(10000)


async def delete_dataset(dataset_id: str, company_id: str):
    await _get_for_company(dataset_id, company_id)
    files = await db.dataset_files.find({"dataset_id": dataset_id}, {"_id": 0, "storage_path": 1}).to_list(10000)
    for f in files:
        await asyncio.to_thread(s3.delete_object, f["storage_path"])
    await db.dataset_files.delete_many({"dataset_id": dataset_id})
    await db.datasets.delete_one({"id": dataset_id})
    logger.info(f"Dataset {dataset_id} deleted ({len(files)} files)")
