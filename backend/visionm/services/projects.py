import uuid
import logging
from typing import Optional

from visionm.core.database import db
from visionm.core.errors import NotFound, ValidationFailed
from visionm.services import datasets
from visionm.utils import utc_now_iso

logger = logging.getLogger(__name__)


async def create_project(user: dict, name: str, description: Optional[str] = None) -> dict:
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Project name is required")
    now = utc_now_iso()
    doc = {
        "id": str(uuid.uuid4()),
        "company_id": user["company_id"],
        "name": name,
        "description": description,
        "created_by": user["id"],
        "created_at": now,
        "updated_at": now,
    }
    await db.projects.insert_one(doc)
    doc.pop("_id", None)
    logger.info(f"Project {doc['id']} created in company {user['company_id']}")
    return doc


async def list_projects(company_id: str) -> list:
    return await db.projects.find(
        {"company_id": company_id}, {"_id": 0}
    ).sort("created_at", -1).to_list(1000)


async def get_project(project_id: str, company_id: str) -> dict:
    """Company members see every project of their company."""
    project = await db.projects.find_one({"id": project_id, "company_id": company_id}, {"_id": 0})
    if not project:
        raise NotFound("Project not found")
    return project


async def update_project(project_id: str, company_id: str, updates: dict) -> dict:
    await get_project(project_id, company_id)
    updates = {k: v for k, v in updates.items() if v is not None}
    if "name" in updates and not updates["name"].strip():
        raise ValidationFailed("Project name cannot be empty")
    updates["updated_at"] = utc_now_iso()
    await db.projects.update_one({"id": project_id}, {"$set": updates})
    return await get_project(project_id, company_id)


async def delete_project(project_id: str, company_id: str):
    """Removes the project with its access rows, datasets and stored files."""
    await get_project(project_id, company_id)
    for dataset in await datasets.list_datasets(project_id, company_id):
        await datasets.delete_dataset(dataset["id"], company_id)
    await db.projects.delete_one({"id": project_id})
    await db.project_users.delete_many({"project_id": project_id})
    logger.info(f"Project {project_id} deleted")
