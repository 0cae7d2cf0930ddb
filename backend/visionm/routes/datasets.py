import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from visionm.core.errors import WorkflowError, error_response
from visionm.core.security import get_member_user, get_admin_user
from visionm.models.dataset import DatasetStatusResponse, DatasetFileResponse
from visionm.services import datasets

logger = logging.getLogger(__name__)
router = APIRouter(tags=["datasets"])


@router.post("/upload-dataset")
async def upload_dataset(
    company: str = Form(...),
    project: str = Form(...),
    version: Optional[str] = Form(None),
    files: List[UploadFile] = File(...),
    user=Depends(get_member_user),
):
    payload = []
    for upload in files:
        payload.append((upload.filename, upload.content_type, await upload.read()))

    try:
        result = await datasets.upload_dataset(user, company, project, version, payload)
    except WorkflowError as e:
        return error_response(e)
    return {"datasetId": result["dataset_id"], "filesStored": result["files_stored"]}


@router.get("/dataset-status/{dataset_id}", response_model=DatasetStatusResponse)
async def dataset_status(dataset_id: str, user=Depends(get_member_user)):
    try:
        return await datasets.get_status(dataset_id, user["company_id"])
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)


@router.get("/datasets/{dataset_id}/files", response_model=List[DatasetFileResponse])
async def dataset_files(dataset_id: str, user=Depends(get_member_user)):
    try:
        return await datasets.list_files(dataset_id, user["company_id"])
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)


@router.delete("/datasets/{dataset_id}")
async def delete_dataset(dataset_id: str, user=Depends(get_admin_user)):
    try:
        await datasets.delete_dataset(dataset_id, user["company_id"])
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.error)
    return {"message": "Dataset deleted"}
