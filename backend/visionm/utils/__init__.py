"""Shared helpers for role and token checks."""
from datetime import datetime, timezone
from typing import Optional


def is_company_admin(profile: Optional[dict], company: Optional[dict]) -> bool:
    """Return True if `profile` administers `company`.

    The explicit role decides; rows written before the role column existed
    are also matched by profile email against the company admin_email.
    """
    if not profile or not company:
        return False
    if profile.get("company_id") and company.get("id") and profile["company_id"] != company["id"]:
        return False

    if profile.get("role") == "admin":
        return True

    # Deprecated: legacy rows predating profiles.role. Remove once every row
    # has been backfilled.
    return bool(profile.get("email")) and profile.get("email") == company.get("admin_email")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_expired(expires_at, now: Optional[datetime] = None) -> bool:
    """Expiry check for stored ISO timestamps. Missing expiry never expires."""
    if not expires_at:
        return False
    if isinstance(expires_at, datetime):
        moment = expires_at
    else:
        moment = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment < (now or datetime.now(timezone.utc))
