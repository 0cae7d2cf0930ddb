from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CompanyCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: Optional[str] = Field(None, alias="companyName")
    admin_email: Optional[str] = Field(None, alias="adminEmail")


class WorkspaceRequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    company_name: Optional[str] = Field(None, alias="companyName")
    admin_email: Optional[str] = Field(None, alias="adminEmail")


class TokenBody(BaseModel):
    token: Optional[str] = None
