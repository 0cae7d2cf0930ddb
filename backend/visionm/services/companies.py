import uuid
import logging
from typing import Optional, Tuple

from visionm.core.database import db
from visionm.core.errors import Conflict, NotFound, UpstreamFailure, ValidationFailed, upstream_details
from visionm.services import profiles
from visionm.utils import utc_now_iso

logger = logging.getLogger(__name__)


def _company_doc(name: str, admin_email: str, created_by: str) -> dict:
    return {
        "id": str(uuid.uuid4()),
        "name": name,
        "admin_email": admin_email,
        "created_by": created_by,
        "created_at": utc_now_iso(),
    }


async def _insert(doc: dict) -> dict:
    try:
        await db.companies.insert_one(doc)
    except Exception as e:
        logger.error(f"Company insert failed for {doc['name']}: {e}")
        raise UpstreamFailure("Failed to create company", details=upstream_details(e))
    doc.pop("_id", None)
    return doc


async def create_company(user_id: str, email: str, company_name: str, admin_email: str) -> dict:
    """Explicit company creation; the creator becomes its admin."""
    company_name = (company_name or "").strip()
    if not company_name or not admin_email:
        raise ValidationFailed("Company name and admin email are required")

    profile = await profiles.get_profile(user_id)
    if not profile:
        profile = await profiles.upsert_profile(user_id, email)

    existing = await db.companies.find_one({"name": company_name}, {"_id": 0, "id": 1, "name": 1})
    if existing:
        raise Conflict("Company already exists", details={"company": existing})

    company = await _insert(_company_doc(company_name, admin_email, user_id))

    result = await db.profiles.update_one(
        {"id": user_id},
        {"$set": {"company_id": company["id"], "role": "admin"}},
    )
    if not result.matched_count:
        logger.warning(f"Company {company['id']} created but profile {user_id} was not updated")

    logger.info(f"Company created: {company['id']} ({company_name}) by {user_id}")
    return company


async def find_or_create_for_request(request: dict) -> Tuple[dict, bool]:
    """Resolve the join request's target company, creating it when absent.

    A new company records the requester's own profile email as admin_email,
    not the request's admin_email. Returns (company, is_new).
    """
    company = await db.companies.find_one(
        {"name": request["company_name"], "admin_email": request["admin_email"]},
        {"_id": 0},
    )
    if company:
        return company, False

    requester = await profiles.get_profile(request["user_id"])
    if not requester or not requester.get("email"):
        raise UpstreamFailure("Requester email not found. Cannot create company.")

    company = await _insert(_company_doc(request["company_name"], requester["email"], request["user_id"]))
    logger.info(f"Company {company['id']} created while approving request {request['id']}")
    return company, True


async def get_company_or_404(company_id: str) -> dict:
    company = await db.companies.find_one({"id": company_id}, {"_id": 0})
    if not company:
        raise NotFound("Company not found")
    return company


async def list_members(company_id: str) -> list:
    return await db.profiles.find(
        {"company_id": company_id}, {"_id": 0}
    ).sort("created_at", 1).to_list(1000)


async def find_member_by_email(company_id: str, email: str) -> Optional[dict]:
    return await db.profiles.find_one({"company_id": company_id, "email": email}, {"_id": 0})


async def delete_company(company_id: str):
    await db.companies.delete_one({"id": company_id})
    logger.info(f"Company {company_id} removed")
