from datetime import datetime, timezone, timedelta
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from visionm.core.config import (
    AUTH_JWT_SECRET,
    AUTH_JWT_ALGORITHM,
    AUTH_JWT_AUDIENCE,
    AUTH_JWT_EXPIRATION_HOURS,
)
from visionm.core.database import db
from visionm.utils import is_company_admin

security = HTTPBearer()


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds) if rounds else bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def create_token(user_id: str, email: str) -> str:
    """Mint a token shaped like the auth provider's (local tooling and tests)."""
    payload = {
        "sub": user_id,
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=AUTH_JWT_EXPIRATION_HOURS),
    }
    if AUTH_JWT_AUDIENCE:
        payload["aud"] = AUTH_JWT_AUDIENCE
    return jwt.encode(payload, AUTH_JWT_SECRET, algorithm=AUTH_JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    options = {} if AUTH_JWT_AUDIENCE else {"verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=[AUTH_JWT_ALGORITHM],
            audience=AUTH_JWT_AUDIENCE,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload


async def get_current_identity(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Caller identity as asserted by the auth provider. The profile may not exist yet."""
    payload = decode_token(credentials.credentials)
    return {"id": payload["sub"], "email": payload.get("email")}


async def get_current_user(identity=Depends(get_current_identity)):
    profile = await db.profiles.find_one({"id": identity["id"]}, {"_id": 0})
    if not profile:
        raise HTTPException(status_code=403, detail="Profile not found")
    return profile


async def get_member_user(user=Depends(get_current_user)):
    if not user.get("company_id"):
        raise HTTPException(status_code=403, detail="No company")
    return user


async def get_admin_user(user=Depends(get_member_user)):
    company = await db.companies.find_one({"id": user["company_id"]}, {"_id": 0})
    if not is_company_admin(user, company):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
