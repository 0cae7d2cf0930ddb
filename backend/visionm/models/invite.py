from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class InviteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_id: Optional[str] = Field(None, alias="companyId")
    invite_email: Optional[str] = Field(None, alias="inviteEmail")
    invite_name: Optional[str] = Field(None, alias="inviteName")


class InviteAccept(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    user_id: Optional[str] = Field(None, alias="userId")


class InviteInfo(BaseModel):
    id: str
    company_id: str
    company_name: Optional[str] = None
    invite_email: str
