from fastapi import APIRouter, Depends
from visionm.core.security import get_current_identity
from visionm.models.profile import ProfileUpdate, SessionResponse
from visionm.services import profiles

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/me", response_model=SessionResponse)
async def get_me(identity=Depends(get_current_identity)):
    return await profiles.resolve_session(identity["id"])


@router.put("/me", response_model=SessionResponse)
async def update_me(data: ProfileUpdate, identity=Depends(get_current_identity)):
    await profiles.upsert_profile(identity["id"], identity.get("email"), data.name, data.phone)
    return await profiles.resolve_session(identity["id"])
