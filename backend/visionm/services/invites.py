"""
Company invites: an admin invites a specific email address into the company.

Accepting touches two documents (the invitee's profile and the invite) and the
store gives no cross-document transaction here, so acceptance is a
claim/commit sequence:

1. claim the invite (acceptable status -> ``accepting``) with a conditional
   update, so a second accept of the same token cannot proceed;
2. update the profile; on failure the claim is released back to its previous
   status with the error recorded;
3. commit the invite (``accepting`` -> ``accepted``); on failure the invite is
   marked ``accept_failed`` with ``accepted_by`` and the error set. If even
   that write fails it stays ``accepting``. Both are recoverable states an
   operator can finish by hand, and both refuse further accepts.
"""
import uuid
import logging
from datetime import datetime, timezone, timedelta
from urllib.parse import quote

from pymongo import ReturnDocument

from visionm.core.config import APP_URL, INVITE_TTL_DAYS
from visionm.core.database import db
from visionm.core.errors import (
    AlreadyAccepted,
    AlreadyTerminal,
    Conflict,
    EmailMismatch,
    Expired,
    Forbidden,
    NotFound,
    PartialFailure,
    Revoked,
    UpstreamFailure,
    ValidationFailed,
    upstream_details,
)
from visionm.services import companies, notifications, profiles
from visionm.utils import is_company_admin, is_expired, utc_now_iso

logger = logging.getLogger(__name__)

ACCEPTABLE_STATUSES = ("pending", "email_sent", "email_failed")


def invite_link(token: str) -> str:
    return f"{APP_URL}/auth?invite={quote(token)}"


def _check_usable(invite: dict):
    """Existence -> accepted -> revoked -> expiry, in that order."""
    status = invite.get("status")
    if status in ("accepted", "accepting", "accept_failed"):
        raise AlreadyAccepted("invite already accepted")
    if status == "revoked":
        raise Revoked("invite revoked")
    if is_expired(invite.get("expires_at")):
        raise Expired("invite expired")
    if status not in ACCEPTABLE_STATUSES:
        raise AlreadyTerminal(f"invite is {status}")


async def _find_by_token(token: str) -> dict:
    invite = await db.company_invites.find_one({"token": token}, {"_id": 0})
    if not invite:
        raise NotFound("invite not found")
    return invite


async def create_invite(inviter: dict, company_id: str, invite_email: str, invite_name: str = None) -> dict:
    if not company_id or not invite_email:
        raise ValidationFailed("companyId and inviteEmail are required")

    company = await companies.get_company_or_404(company_id)
    if not is_company_admin(inviter, company):
        raise Forbidden("Insufficient permissions: must be company admin")

    if await companies.find_member_by_email(company_id, invite_email):
        err = Conflict("User already a member")
        err.code = "USER_ALREADY_MEMBER"
        raise err

    now = datetime.now(timezone.utc)
    token = uuid.uuid4().hex
    invite = {
        "id": str(uuid.uuid4()),
        "company_id": company_id,
        "email": invite_email,
        "invite_name": invite_name,
        "token": token,
        "status": "pending",
        "created_by": inviter["id"],
        "created_at": now.isoformat(),
        "expires_at": (now + timedelta(days=INVITE_TTL_DAYS)).isoformat(),
        "accepted_by": None,
        "accepted_at": None,
        "error_message": None,
    }
    try:
        await db.company_invites.insert_one(invite)
    except Exception as e:
        logger.error(f"Insert invite error: {e}")
        raise UpstreamFailure("Failed to create invite", details=upstream_details(e))

    link = invite_link(token)
    subject, body = notifications.company_invite_email(link, company["name"], invite_name or "")
    try:
        await notifications.send_email(invite_email, subject, body)
    except notifications.NotificationError as e:
        await db.company_invites.update_one(
            {"id": invite["id"]},
            {"$set": {"status": "email_failed", "error_message": str(e)}},
        )
        raise UpstreamFailure(
            "Failed to send invite email",
            details={"message": str(e), "inviteLink": link, "inviteId": invite["id"]},
        )

    await db.company_invites.update_one({"id": invite["id"]}, {"$set": {"status": "email_sent"}})
    logger.info(f"Invite {invite['id']} for {invite_email} into company {company_id} sent")
    return {"invite_id": invite["id"], "invite_link": link}


async def validate_invite(token: str) -> dict:
    """Read-only check used to pre-fill the signup form."""
    if not token:
        raise ValidationFailed("token required")
    invite = await _find_by_token(token)
    _check_usable(invite)

    company = await db.companies.find_one({"id": invite["company_id"]}, {"_id": 0, "id": 1, "name": 1})
    return {
        "id": invite["id"],
        "company_id": invite["company_id"],
        "company_name": (company or {}).get("name"),
        "invite_email": invite["email"],
    }


async def accept_invite(token: str, user_id: str) -> dict:
    if not token or not user_id:
        raise ValidationFailed("token and userId required")

    invite = await _find_by_token(token)
    _check_usable(invite)

    profile = await profiles.get_profile(user_id)
    if not profile:
        raise NotFound("User profile not found")
    # Exact, case-sensitive comparison.
    if profile.get("email") != invite["email"]:
        raise EmailMismatch("Email does not match invite")

    claimed = await db.company_invites.find_one_and_update(
        {"id": invite["id"], "status": {"$in": list(ACCEPTABLE_STATUSES)}},
        {"$set": {"status": "accepting", "accepted_by": user_id}},
        return_document=ReturnDocument.BEFORE,
    )
    if claimed is None:
        _check_usable(await _find_by_token(token))
        raise AlreadyAccepted("invite already accepted")

    try:
        result = await db.profiles.update_one(
            {"id": user_id},
            {"$set": {"company_id": invite["company_id"], "role": "member"}},
        )
        if not result.matched_count:
            raise RuntimeError("profile disappeared during accept")
    except Exception as e:
        logger.error(f"accept-invite profile update error: {e}")
        await db.company_invites.update_one(
            {"id": invite["id"], "status": "accepting"},
            {"$set": {"status": claimed["status"], "accepted_by": None, "error_message": str(e)}},
        )
        raise PartialFailure("failed to update profile with company", details=upstream_details(e))

    try:
        await db.company_invites.update_one(
            {"id": invite["id"]},
            {"$set": {"status": "accepted", "accepted_at": utc_now_iso(), "error_message": None}},
        )
    except Exception as e:
        logger.error(f"accept-invite status update error for {invite['id']}: {e}")
        try:
            await db.company_invites.update_one(
                {"id": invite["id"], "status": "accepting"},
                {"$set": {"status": "accept_failed", "error_message": str(e)}},
            )
        except Exception as mark_error:
            logger.error(f"Could not mark invite {invite['id']} accept_failed: {mark_error}")
        raise PartialFailure("failed to update invite status", details=upstream_details(e))

    logger.info(f"Invite {invite['id']} accepted by {user_id}")
    return {"company_id": invite["company_id"]}


async def revoke_invite(admin: dict, invite_id: str) -> dict:
    invite = await db.company_invites.find_one(
        {"id": invite_id, "company_id": admin.get("company_id")}, {"_id": 0}
    )
    if not invite:
        raise NotFound("invite not found")

    revoked = await db.company_invites.find_one_and_update(
        {"id": invite_id, "status": {"$in": list(ACCEPTABLE_STATUSES)}},
        {"$set": {"status": "revoked"}},
        return_document=ReturnDocument.AFTER,
    )
    if revoked is None:
        if invite["status"] == "revoked":
            raise Revoked("invite already revoked")
        raise AlreadyAccepted("invite already accepted")
    revoked.pop("_id", None)
    revoked.pop("token", None)
    logger.info(f"Invite {invite_id} revoked by {admin['id']}")
    return revoked


async def list_invites(company_id: str) -> list:
    return await db.company_invites.find(
        {"company_id": company_id}, {"_id": 0, "token": 0}
    ).sort("created_at", -1).to_list(500)
