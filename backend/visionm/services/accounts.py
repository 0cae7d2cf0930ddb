"""
Helpers that talk to the external auth provider's admin API, plus email
verification tokens.
"""
import uuid
import logging
from datetime import datetime, timezone, timedelta

import httpx

from visionm.core.config import APP_URL, AUTH_URL, AUTH_SERVICE_ROLE_KEY, VERIFICATION_TTL_HOURS
from visionm.core.database import db
from visionm.core.errors import Expired, NotFound, UpstreamFailure, ValidationFailed, upstream_details
from visionm.services import notifications
from visionm.utils import is_expired, utc_now_iso

logger = logging.getLogger(__name__)

USERS_PER_PAGE = 1000


async def list_users(page: int, per_page: int = USERS_PER_PAGE) -> list:
    """One page of the provider's user listing."""
    headers = {
        "apikey": AUTH_SERVICE_ROLE_KEY,
        "Authorization": f"Bearer {AUTH_SERVICE_ROLE_KEY}",
    }
    async with httpx.AsyncClient(timeout=15.0) as client:
        resp = await client.get(
            f"{AUTH_URL}/auth/v1/admin/users",
            params={"page": page, "per_page": per_page},
            headers=headers,
        )
        resp.raise_for_status()
        return resp.json().get("users", [])


async def email_exists(email: str) -> bool:
    """Case-insensitive search through every page of auth users."""
    if not email or not isinstance(email, str):
        raise ValidationFailed("Email is required")
    normalized = email.strip().lower()

    page = 1
    while True:
        try:
            users = await list_users(page, USERS_PER_PAGE)
        except Exception as e:
            logger.error(f"Error listing users (page {page}): {e}")
            raise UpstreamFailure("Failed to check email", details=upstream_details(e))

        if any((u.get("email") or "").lower() == normalized for u in users):
            return True
        if len(users) < USERS_PER_PAGE:
            return False
        page += 1


async def send_verification_email(user_id: str, email: str) -> dict:
    if not user_id or not email:
        raise ValidationFailed("userId and email are required")

    now = datetime.now(timezone.utc)
    token = uuid.uuid4().hex
    await db.email_verification_tokens.insert_one({
        "user_id": user_id,
        "email": email,
        "token": token,
        "expires_at": (now + timedelta(hours=VERIFICATION_TTL_HOURS)).isoformat(),
        "used": False,
        "created_at": now.isoformat(),
    })

    link = f"{APP_URL}/verify-email?token={token}"
    subject, body = notifications.verification_email(link, VERIFICATION_TTL_HOURS)
    try:
        await notifications.send_email(email, subject, body)
    except notifications.NotificationError as e:
        raise UpstreamFailure("Failed to send verification email", details=upstream_details(e))
    return {"sent": True}


async def verify_email(token: str) -> dict:
    if not token:
        raise ValidationFailed("token required")
    record = await db.email_verification_tokens.find_one({"token": token, "used": False}, {"_id": 0})
    if not record:
        raise NotFound("Invalid or already used verification link")
    if is_expired(record["expires_at"]):
        raise Expired("Verification link expired")

    await db.email_verification_tokens.update_one({"token": token}, {"$set": {"used": True}})
    await db.profiles.update_one(
        {"id": record["user_id"]},
        {"$set": {"email_verified_at": utc_now_iso()}},
    )
    logger.info(f"Email verified for {record['user_id']}")
    return {"user_id": record["user_id"], "email": record["email"]}
