import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException

from visionm.core.errors import WorkflowError, error_response
from visionm.core.security import get_member_user, get_admin_user
from visionm.models.project import (
    ProjectCreate, ProjectUpdate, ProjectResponse,
    ProjectUserInvite, ProjectAccessCheck
)
from visionm.services import datasets, project_invites, projects

logger = logging.getLogger(__name__)
router = APIRouter(tags=["projects"])


@router.post("/projects", response_model=ProjectResponse)
async def create_project(data: ProjectCreate, user=Depends(get_member_user)):
    try:
        return await projects.create_project(user, data.name, data.description)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)


@router.get("/projects", response_model=List[ProjectResponse])
async def list_projects(user=Depends(get_member_user)):
    return await projects.list_projects(user["company_id"])


@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, user=Depends(get_member_user)):
    try:
        return await projects.get_project(project_id, user["company_id"])
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: str, data: ProjectUpdate, user=Depends(get_member_user)):
    try:
        return await projects.update_project(project_id, user["company_id"], data.model_dump())
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, user=Depends(get_admin_user)):
    try:
        await projects.delete_project(project_id, user["company_id"])
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)
    return {"message": "Project deleted"}


@router.get("/projects/{project_id}/datasets")
async def list_project_datasets(project_id: str, user=Depends(get_member_user)):
    return await datasets.list_datasets(project_id, user["company_id"])


# ── Password-gated project access ──

@router.post("/invite-project-user")
async def invite_project_user(data: ProjectUserInvite):
    try:
        await project_invites.invite_project_user(
            data.project_id, data.user_email, data.project_password, data.invited_by
        )
    except WorkflowError as e:
        return error_response(e)
    return {"success": True}


@router.post("/project-access")
async def project_access(data: ProjectAccessCheck):
    try:
        granted = await project_invites.check_project_access(data.project_id, data.user_email, data.password)
    except WorkflowError as e:
        return error_response(e)
    return {"success": True, "access": granted}
