"""
Workspace join requests.

A profile asks to join (or create) a company by name. The request carries a
random token that is a bearer capability: whoever holds it may approve or
reject the request without authenticating.

    pending ──email ok──▶ email_sent ─┐
       │                              ├──▶ approved | rejected | ignored
       └──email failed──▶ email_failed┘

Every decision is a compare-and-swap on the open statuses, so two concurrent
approvals of one token cannot both promote the requester or both create the
company.
"""
import uuid
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from pymongo import ReturnDocument

from visionm.core.config import JOIN_REQUEST_TTL_DAYS
from visionm.core.database import db
from visionm.core.errors import (
    AlreadyTerminal,
    Expired,
    Forbidden,
    NotFound,
    UpstreamFailure,
    ValidationFailed,
    WorkflowError,
    upstream_details,
)
from visionm.services import companies, notifications, profiles
from visionm.utils import is_expired, utc_now_iso

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("pending", "email_sent", "email_failed")
TERMINAL_STATUSES = ("approved", "rejected", "ignored")


def _public(request: dict) -> dict:
    return {k: v for k, v in request.items() if k not in ("_id", "token")}


async def create_join_request(user_id: str, company_name: str, admin_email: str) -> dict:
    """Store a pending request and email its admin. Returns {request, email_sent}.

    The request survives a failed notification; it is marked email_failed with
    the provider error so it can be retried.
    """
    if not user_id or not company_name or not admin_email:
        raise ValidationFailed("Missing userId/companyName/adminEmail in request body")

    try:
        profile = await profiles.get_profile(user_id)
    except Exception as e:
        logger.error(f"Profile lookup error for {user_id}: {e}")
        raise UpstreamFailure("Failed to load requester profile", details=upstream_details(e))

    requester_email = (profile or {}).get("email")
    if not requester_email:
        raise ValidationFailed("Requester email not available in profiles")
    requester_name = profile.get("name") or "A user"

    now = datetime.now(timezone.utc)
    request = {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "company_name": company_name,
        "admin_email": admin_email,
        "requester_email": requester_email,
        "requester_name": requester_name,
        "token": uuid.uuid4().hex,
        "status": "pending",
        "error_message": None,
        "created_at": now.isoformat(),
        "expires_at": (now + timedelta(days=JOIN_REQUEST_TTL_DAYS)).isoformat(),
        "decided_at": None,
    }
    try:
        await db.workspace_join_requests.insert_one(request)
    except Exception as e:
        logger.error(f"Insert join request error: {e}")
        raise UpstreamFailure("Failed to create request", details=upstream_details(e))
    request.pop("_id", None)

    subject, body = notifications.join_request_email(
        request["token"], requester_name, requester_email, company_name
    )
    try:
        await notifications.send_email(admin_email, subject, body)
    except notifications.NotificationError as e:
        await db.workspace_join_requests.update_one(
            {"id": request["id"]},
            {"$set": {"status": "email_failed", "error_message": str(e)}},
        )
        request.update(status="email_failed", error_message=str(e))
        logger.warning(f"Join request {request['id']} stored but email to {admin_email} failed")
        return {"request": request, "email_sent": False}

    await db.workspace_join_requests.update_one(
        {"id": request["id"], "status": "pending"},
        {"$set": {"status": "email_sent"}},
    )
    request["status"] = "email_sent"
    logger.info(f"Join request {request['id']} from {user_id} sent to {admin_email}")
    return {"request": request, "email_sent": True}


async def _find_open(query: dict, not_found: str) -> dict:
    request = await db.workspace_join_requests.find_one(query, {"_id": 0})
    if not request:
        raise NotFound(not_found)
    if request["status"] in TERMINAL_STATUSES:
        raise AlreadyTerminal(f"Request already {request['status']}")
    if is_expired(request.get("expires_at")):
        raise Expired("Request expired")
    return request


async def _transition(request: dict, new_status: str) -> dict:
    """Atomically move an open request to `new_status`; the loser of a race gets AlreadyTerminal."""
    updated = await db.workspace_join_requests.find_one_and_update(
        {"id": request["id"], "status": {"$in": list(OPEN_STATUSES)}},
        {"$set": {"status": new_status, "decided_at": utc_now_iso()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        current = await db.workspace_join_requests.find_one({"id": request["id"]}, {"_id": 0, "status": 1})
        status = (current or {}).get("status", "unknown")
        raise AlreadyTerminal(f"Request already {status}")
    updated.pop("_id", None)
    return updated


async def _revert(request: dict, error: str, created_company: Optional[dict] = None):
    if created_company is not None:
        try:
            await companies.delete_company(created_company["id"])
        except Exception as e:
            logger.error(f"Could not remove company {created_company['id']} after failed approval: {e}")
    await db.workspace_join_requests.update_one(
        {"id": request["id"], "status": "approved"},
        {"$set": {"status": request["status"], "decided_at": None, "error_message": error}},
    )


async def _notify_requester(user_id: str, build_email) -> bool:
    """Look up the requester and send the email built by `build_email(profile)`; never raises."""
    try:
        profile = await profiles.get_profile(user_id)
        if not profile or not profile.get("email"):
            logger.error(f"Could not fetch profile for notification email: {user_id}")
            return False
        subject, body = build_email(profile)
        return await notifications.notify(profile["email"], subject, body)
    except Exception as e:
        logger.error(f"Notification to {user_id} failed: {e}")
        return False


async def approve_join_request(token: str) -> dict:
    """Approve by token: resolve or create the company, then promote the requester.

    If the promotion fails the request is reopened, and a company created by
    this approval is removed again so a retry resolves the same way.
    """
    if not token:
        raise ValidationFailed("Invalid token")

    request = await _find_open({"token": token}, "Request not found")
    approved = await _transition(request, "approved")

    created = None
    try:
        company, is_new = await companies.find_or_create_for_request(approved)
        if is_new:
            created = company
        role = "admin" if is_new else "member"
        result = await db.profiles.update_one(
            {"id": approved["user_id"]},
            {"$set": {"company_id": company["id"], "role": role}},
        )
        if not result.matched_count:
            raise UpstreamFailure("Requester profile not found")
    except WorkflowError as e:
        await _revert(request, e.error, created)
        raise
    except Exception as e:
        logger.error(f"Approval of request {request['id']} failed: {e}")
        await _revert(request, str(e), created)
        raise UpstreamFailure("Failed to approve request", details=upstream_details(e))

    logger.info(
        f"Request {request['id']} approved: user {approved['user_id']} -> "
        f"company {company['id']} as {role}"
    )

    notification_sent = await _notify_requester(
        approved["user_id"],
        lambda profile: notifications.approval_email(profile.get("name"), approved["company_name"]),
    )

    return {
        "request": _public(approved),
        "company_id": company["id"],
        "is_new_company": is_new,
        "notification_sent": notification_sent,
    }


async def _reject(request: dict, status: str) -> dict:
    rejected = await _transition(request, status)
    logger.info(f"Request {request['id']} {status}")

    notification_sent = False
    if status == "rejected":
        email = rejected.get("requester_email")
        if email:
            subject, body = notifications.rejection_email(rejected.get("requester_name"), rejected["company_name"])
            notification_sent = await notifications.notify(email, subject, body)
        else:
            notification_sent = await _notify_requester(
                rejected["user_id"],
                lambda profile: notifications.rejection_email(profile.get("name"), rejected["company_name"]),
            )

    return {"request": _public(rejected), "notification_sent": notification_sent}


async def reject_join_request(token: str) -> dict:
    if not token:
        raise ValidationFailed("Invalid token")
    request = await _find_open({"token": token}, "Request not found")
    return await _reject(request, "rejected")


async def _find_addressed(request_id: str, admin: dict) -> dict:
    request = await _find_open({"id": request_id}, "Request not found")
    if request["admin_email"] != admin.get("email"):
        raise Forbidden("Request is not addressed to you")
    return request


async def reject_by_admin(request_id: str, admin: dict) -> dict:
    request = await _find_addressed(request_id, admin)
    return await _reject(request, "rejected")


async def ignore_by_admin(request_id: str, admin: dict) -> dict:
    request = await _find_addressed(request_id, admin)
    return await _reject(request, "ignored")


async def list_pending(admin_email: Optional[str]) -> list:
    """Open requests addressed to `admin_email`, newest first."""
    if not admin_email:
        return []
    requests = await db.workspace_join_requests.find(
        {"admin_email": admin_email, "status": {"$in": list(OPEN_STATUSES)}},
        {"_id": 0},
    ).sort("created_at", -1).to_list(200)

    for request in requests:
        if not request.get("requester_email"):
            try:
                profile = await profiles.get_profile(request["user_id"])
            except Exception as e:
                logger.warning(f"Requester lookup for {request['id']} failed: {e}")
                profile = None
            request["requester_email"] = (profile or {}).get("email")
            request["requester_name"] = (profile or {}).get("name")
    return requests
