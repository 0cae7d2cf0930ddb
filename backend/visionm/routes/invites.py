import logging
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from visionm.core.errors import WorkflowError, error_response
from visionm.core.security import get_current_user, get_admin_user
from visionm.models.company import TokenBody
from visionm.models.invite import InviteCreate, InviteAccept
from visionm.services import invites

router = APIRouter(tags=["invites"])
logger = logging.getLogger(__name__)


@router.post("/create-invite")
async def create_invite(data: InviteCreate, user=Depends(get_current_user)):
    try:
        result = await invites.create_invite(user, data.company_id, data.invite_email, data.invite_name)
    except WorkflowError as e:
        body = {"success": False, **e.to_dict()}
        if isinstance(e.details, dict) and "inviteLink" in e.details:
            body["inviteLink"] = e.details["inviteLink"]
        return JSONResponse(status_code=e.status_code, content=body)
    return {"success": True, "inviteId": result["invite_id"], "inviteLink": result["invite_link"]}


async def _validate(token: Optional[str]):
    try:
        invite = await invites.validate_invite(token)
    except WorkflowError as e:
        return error_response(e, flag="ok")
    return {"ok": True, "invite": invite}


@router.post("/validate-invite")
async def validate_invite_post(data: TokenBody, token: Optional[str] = None):
    return await _validate(token or data.token)


@router.get("/validate-invite")
async def validate_invite_get(token: Optional[str] = None):
    return await _validate(token)


@router.post("/accept-invite")
async def accept_invite(data: InviteAccept):
    try:
        await invites.accept_invite(data.token, data.user_id)
    except WorkflowError as e:
        return error_response(e, flag="ok")
    return {"ok": True}


@router.get("/invites")
async def list_invites(user=Depends(get_admin_user)):
    return await invites.list_invites(user["company_id"])


@router.post("/invites/{invite_id}/revoke")
async def revoke_invite(invite_id: str, user=Depends(get_admin_user)):
    try:
        invite = await invites.revoke_invite(user, invite_id)
    except WorkflowError as e:
        return error_response(e, flag="ok")
    return {"ok": True, "invite": invite}
