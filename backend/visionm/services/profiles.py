"""
Profile/session resolution: one profile per auth identity, with the admin
flag derived from the profile + company pair.
"""
import logging
from typing import Optional

from visionm.core.database import db
from visionm.utils import is_company_admin, utc_now_iso

logger = logging.getLogger(__name__)


async def get_profile(user_id: str) -> Optional[dict]:
    return await db.profiles.find_one({"id": user_id}, {"_id": 0})


async def get_company(company_id: Optional[str]) -> Optional[dict]:
    if not company_id:
        return None
    return await db.companies.find_one({"id": company_id}, {"_id": 0})


async def resolve_session(user_id: str) -> dict:
    """Hydrate profile and company and derive admin status."""
    profile = await get_profile(user_id)
    company = await get_company(profile.get("company_id")) if profile else None
    return {
        "profile": profile,
        "company": company,
        "is_admin": is_company_admin(profile, company),
    }


async def upsert_profile(user_id: str, email: str, name: Optional[str] = None, phone: Optional[str] = None) -> dict:
    """Create the caller's profile on first use, or update name/phone.

    Email always comes from the verified identity, never from the client.
    """
    now = utc_now_iso()
    updates = {"email": email}
    if name is not None:
        updates["name"] = name
    if phone is not None:
        updates["phone"] = phone

    await db.profiles.update_one(
        {"id": user_id},
        {
            "$set": updates,
            "$setOnInsert": {
                "company_id": None,
                "role": None,
                "created_at": now,
            },
        },
        upsert=True,
    )
    profile = await get_profile(user_id)
    logger.info(f"Profile upserted: {user_id}")
    return profile
