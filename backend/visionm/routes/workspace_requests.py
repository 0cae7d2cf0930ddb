import html
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from visionm.core.errors import WorkflowError, error_response
from visionm.core.security import get_current_user
from visionm.models.company import WorkspaceRequestCreate
from visionm.services import join_requests

router = APIRouter(tags=["workspace-requests"])
logger = logging.getLogger(__name__)


def _wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    content_type = request.headers.get("content-type", "")
    return "application/json" in accept or "application/json" in content_type


async def _token_from(request: Request):
    """Token from the query string (email links) or the JSON body (in-app panel)."""
    token = request.query_params.get("token")
    if token:
        return token
    if request.method == "POST":
        try:
            body = await request.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("token")
    return None


def _page(title: str, heading: str, message: str, ok: bool, status_code: int = 200) -> HTMLResponse:
    mark, color = ("&#10003;", "#22c55e") if ok else ("&times;", "#ef4444")
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
  <head>
    <title>{html.escape(title)}</title>
    <style>
      body {{ font-family: system-ui; padding: 40px; text-align: center; }}
      .mark {{ color: {color}; font-size: 48px; }}
    </style>
  </head>
  <body>
    <div class="mark">{mark}</div>
    <h1>{html.escape(heading)}</h1>
    <p>{html.escape(message)}</p>
  </body>
</html>""",
        status_code=status_code,
    )


@router.post("/send-workspace-request")
async def send_workspace_request(data: WorkspaceRequestCreate):
    try:
        result = await join_requests.create_join_request(data.user_id, data.company_name, data.admin_email)
    except WorkflowError as e:
        return error_response(e)
    return {
        "success": True,
        "emailSent": result["email_sent"],
        "requestId": result["request"]["id"],
    }


@router.api_route("/approve-workspace-request", methods=["GET", "POST"])
async def approve_workspace_request(request: Request):
    as_json = _wants_json(request)
    token = await _token_from(request)
    try:
        result = await join_requests.approve_join_request(token)
    except WorkflowError as e:
        if as_json:
            return error_response(e)
        return _page("Request Not Approved", "Workspace Request Not Approved", e.error, ok=False,
                     status_code=e.status_code)

    if as_json:
        return {
            "success": True,
            "message": "Request approved",
            "companyId": result["company_id"],
            "isNewCompany": result["is_new_company"],
            "notificationSent": result["notification_sent"],
        }
    notified = "and notified by email" if result["notification_sent"] else "(the notification email could not be sent)"
    return _page(
        "Request Approved",
        "Workspace Request Approved",
        f"The user has been added to the workspace {notified}.",
        ok=True,
    )


@router.api_route("/reject-workspace-request", methods=["GET", "POST"])
async def reject_workspace_request(request: Request):
    as_json = _wants_json(request)
    token = await _token_from(request)
    try:
        result = await join_requests.reject_join_request(token)
    except WorkflowError as e:
        if as_json:
            return error_response(e)
        return _page("Request Not Rejected", "Workspace Request Not Rejected", e.error, ok=False,
                     status_code=e.status_code)

    if as_json:
        return {
            "success": True,
            "message": "Request rejected",
            "notificationSent": result["notification_sent"],
        }
    return _page(
        "Request Rejected",
        "Workspace Request Rejected",
        "The user's request to join the workspace has been rejected.",
        ok=False,
    )


# ── In-app panel (authenticated addressee) ──

@router.get("/workspace-requests/pending")
async def list_pending_requests(user=Depends(get_current_user)):
    return await join_requests.list_pending(user.get("email"))


@router.post("/workspace-requests/{request_id}/reject")
async def reject_request(request_id: str, user=Depends(get_current_user)):
    try:
        result = await join_requests.reject_by_admin(request_id, user)
    except WorkflowError as e:
        return error_response(e)
    return {"success": True, "notificationSent": result["notification_sent"]}


@router.post("/workspace-requests/{request_id}/ignore")
async def ignore_request(request_id: str, user=Depends(get_current_user)):
    try:
        await join_requests.ignore_by_admin(request_id, user)
    except WorkflowError as e:
        return error_response(e)
    return {"success": True}
