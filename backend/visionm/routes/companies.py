import logging
from fastapi import APIRouter, Depends, HTTPException

from visionm.core.errors import WorkflowError, error_response
from visionm.core.security import get_current_identity, get_member_user
from visionm.models.company import CompanyCreate
from visionm.models.profile import CompanyResponse, ProfileResponse
from visionm.services import companies

router = APIRouter(tags=["companies"])
logger = logging.getLogger(__name__)


@router.post("/create-company")
async def create_company(data: CompanyCreate, identity=Depends(get_current_identity)):
    try:
        company = await companies.create_company(
            identity["id"], identity.get("email"), data.company_name, data.admin_email
        )
    except WorkflowError as e:
        return error_response(e, flag="ok")
    return {"ok": True, "company": company}


@router.get("/companies/my", response_model=CompanyResponse)
async def get_my_company(user=Depends(get_member_user)):
    try:
        return await companies.get_company_or_404(user["company_id"])
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)


@router.get("/companies/my/members", response_model=list[ProfileResponse])
async def list_my_members(user=Depends(get_member_user)):
    return await companies.list_members(user["company_id"])
