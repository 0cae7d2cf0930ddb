from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    created_by: str
    created_at: str
    updated_at: str


class ProjectUserInvite(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: Optional[str] = Field(None, alias="projectId")
    user_email: Optional[str] = Field(None, alias="userEmail")
    project_password: Optional[str] = Field(None, alias="projectPassword")
    invited_by: Optional[str] = Field(None, alias="invitedBy")


class ProjectAccessCheck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: Optional[str] = Field(None, alias="projectId")
    user_email: Optional[str] = Field(None, alias="userEmail")
    password: Optional[str] = None
