from fastapi import APIRouter

from visionm.core.errors import WorkflowError, error_response
from visionm.models.account import EmailCheck, VerificationRequest
from visionm.models.company import TokenBody
from visionm.services import accounts

router = APIRouter(tags=["accounts"])


@router.post("/check-email-exists")
async def check_email_exists(data: EmailCheck):
    try:
        exists = await accounts.email_exists(data.email)
    except WorkflowError as e:
        return error_response(e)
    return {"exists": exists}


@router.post("/send-verification-email")
async def send_verification_email(data: VerificationRequest):
    try:
        await accounts.send_verification_email(data.user_id, data.email)
    except WorkflowError as e:
        return error_response(e)
    return {"success": True}


@router.post("/verify-email")
async def verify_email(data: TokenBody):
    try:
        result = await accounts.verify_email(data.token)
    except WorkflowError as e:
        return error_response(e)
    return {"success": True, "userId": result["user_id"]}
