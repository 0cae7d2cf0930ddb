"""
Thin async client over the workspace API, used by the pollers and the session
resolver. Error envelopes (`{success|ok: false, error, code}`) are raised as
VisionMClientError so callers can show `error` in a toast.
"""
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class VisionMClientError(Exception):
    def __init__(self, error: str, status_code: int = 0, code: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.status_code = status_code
        self.code = code


class VisionMClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _request(self, method: str, path: str, **kwargs):
        resp = await self._client.request(method, path, **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.is_error or (isinstance(body, dict) and (body.get("success") is False or body.get("ok") is False)):
            if isinstance(body, dict):
                error = body.get("error") or body.get("detail") or resp.reason_phrase
                code = body.get("code")
            else:
                error, code = resp.reason_phrase or "Request failed", None
            logger.warning(f"{method} {path} failed ({resp.status_code}): {error}")
            raise VisionMClientError(str(error), status_code=resp.status_code, code=code)
        return body

    # ── Session ──

    async def get_profile(self) -> dict:
        return await self._request("GET", "/api/profile/me")

    # ── Datasets ──

    async def dataset_status(self, dataset_id: str) -> dict:
        return await self._request("GET", f"/api/dataset-status/{dataset_id}")

    async def list_datasets(self, project_id: str) -> list:
        return await self._request("GET", f"/api/projects/{project_id}/datasets")

    # ── Join requests ──

    async def pending_requests(self) -> list:
        return await self._request("GET", "/api/workspace-requests/pending")

    async def approve_request(self, token: str) -> dict:
        return await self._request("POST", "/api/approve-workspace-request", json={"token": token})

    async def reject_request(self, request_id: str) -> dict:
        return await self._request("POST", f"/api/workspace-requests/{request_id}/reject")

    async def ignore_request(self, request_id: str) -> dict:
        return await self._request("POST", f"/api/workspace-requests/{request_id}/ignore")

    # ── Invites ──

    async def validate_invite(self, token: str) -> dict:
        body = await self._request("POST", "/api/validate-invite", json={"token": token})
        return body["invite"]

    async def accept_invite(self, token: str, user_id: str) -> dict:
        return await self._request("POST", "/api/accept-invite", json={"token": token, "userId": user_id})

    # ── Accounts ──

    async def check_email_exists(self, email: str) -> bool:
        body = await self._request("POST", "/api/check-email-exists", json={"email": email})
        return bool(body.get("exists"))
