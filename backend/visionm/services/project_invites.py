"""
Password-gated project access.

A project user is an email plus a bcrypt hash of a shared project password,
scoped to one project and independent of company membership. The invite email
carries only the project link; the password travels out of band. Because the
email is the only way the invitee learns the record exists, a failed send is
fatal: the freshly inserted row is removed and the caller is told to retry.
"""
import asyncio
import uuid
import logging

from pymongo.errors import DuplicateKeyError

from visionm.core.config import APP_URL, PROJECT_PASSWORD_BCRYPT_ROUNDS
from visionm.core.database import db
from visionm.core.errors import Conflict, NotFound, UpstreamFailure, ValidationFailed, upstream_details
from visionm.core.security import hash_password, verify_password
from visionm.services import notifications
from visionm.utils import utc_now_iso

logger = logging.getLogger(__name__)


def project_link(project_id: str) -> str:
    return f"{APP_URL}/dataset/{project_id}"


async def invite_project_user(project_id: str, user_email: str, project_password: str, invited_by: str) -> dict:
    if not project_id or not user_email or not project_password or not invited_by:
        raise ValidationFailed("projectId, userEmail, projectPassword and invitedBy are required")

    project = await db.projects.find_one({"id": project_id}, {"_id": 0, "id": 1, "name": 1})
    if not project:
        raise NotFound("Project not found")

    existing = await db.project_users.find_one({"project_id": project_id, "user_email": user_email})
    if existing:
        raise Conflict("User already invited to this project")

    # bcrypt is CPU bound; keep it off the event loop.
    hashed = await asyncio.to_thread(hash_password, project_password, PROJECT_PASSWORD_BCRYPT_ROUNDS)
    doc = {
        "id": str(uuid.uuid4()),
        "project_id": project_id,
        "user_email": user_email,
        "hashed_password": hashed,
        "invited_by": invited_by,
        "created_at": utc_now_iso(),
    }
    try:
        await db.project_users.insert_one(doc)
    except DuplicateKeyError:
        raise Conflict("User already invited to this project")

    subject, body = notifications.project_invite_email(project_link(project_id), project.get("name") or "")
    try:
        await notifications.send_email(user_email, subject, body)
    except notifications.NotificationError as e:
        await db.project_users.delete_one({"id": doc["id"]})
        logger.error(f"Project invite for {user_email} rolled back, email failed: {e}")
        raise UpstreamFailure(
            "Failed to send project invitation email",
            details=upstream_details(e),
            status_code=502,
        )

    logger.info(f"Project user {user_email} invited to {project_id} by {invited_by}")
    return {"id": doc["id"], "project_id": project_id, "user_email": user_email}


async def check_project_access(project_id: str, user_email: str, password: str) -> bool:
    if not project_id or not user_email or not password:
        raise ValidationFailed("projectId, userEmail and password are required")
    record = await db.project_users.find_one(
        {"project_id": project_id, "user_email": user_email}, {"_id": 0, "hashed_password": 1}
    )
    if not record:
        return False
    return await asyncio.to_thread(verify_password, password, record["hashed_password"])
