"""
Outbound email through Resend.

`send_email` raises on provider failure; callers that treat a notification as
best-effort go through `notify`, which logs the failure and reports whether
the message went out.
"""
import asyncio
import html
import logging

import resend

from visionm.core.config import RESEND_API_KEY, SENDER_EMAIL, APP_URL

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class NotificationError(Exception):
    pass


async def send_email(to: str, subject: str, html_body: str) -> dict:
    params = {
        "from": SENDER_EMAIL,
        "to": [to],
        "subject": subject,
        "html": html_body,
    }
    try:
        result = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        logger.error(f"Resend failed for {to} ({subject}): {e}")
        raise NotificationError(str(e)) from e
    logger.info(f"Email sent to {to}: {subject}")
    return result or {}


async def notify(to: str, subject: str, html_body: str) -> bool:
    """Best-effort send. Returns False instead of raising."""
    if not to:
        logger.warning(f"Skipping notification without recipient: {subject}")
        return False
    try:
        await send_email(to, subject, html_body)
        return True
    except NotificationError:
        return False


def _button(href: str, label: str, color: str) -> str:
    return (
        f'<a href="{html.escape(href, quote=True)}" style="display:inline-block;padding:10px 16px;'
        f'background:{color};color:#ffffff;text-decoration:none;border-radius:6px;margin-right:8px;">'
        f"{label}</a>"
    )


# ── Templates ──

def join_request_email(token: str, requester_name: str, requester_email: str, company_name: str):
    approve_link = f"{APP_URL}/dashboard?token={token}&action=approve"
    reject_link = f"{APP_URL}/dashboard?token={token}&action=reject"
    subject = f"Workspace Join Request: {company_name}"
    body = f"""
    <h2>Workspace Join Request</h2>
    <p><strong>{html.escape(requester_name)}</strong> ({html.escape(requester_email)}) has requested to join <b>{html.escape(company_name)}</b>.</p>
    <div style="margin:18px 0;">
      {_button(approve_link, "Approve", "#16a34a")}
      {_button(reject_link, "Reject", "#ef4444")}
    </div>
    <p>If the buttons do not work, copy/paste the following link to your browser:</p>
    <p>Approve: {html.escape(approve_link)}</p>
    <p>Reject: {html.escape(reject_link)}</p>
    """
    return subject, body


def approval_email(name: str, company_name: str):
    workspace_link = f"{APP_URL}/dashboard"
    body = f"""
    <h1>Access Approved</h1>
    <p>Hi {html.escape(name or "")},</p>
    <p>Your request to join the workspace for <strong>{html.escape(company_name)}</strong> has been approved.</p>
    <p>{_button(workspace_link, "Open Workspace", "#0f766e")}</p>
    <p>If you did not request this, please ignore this email.</p>
    """
    return "Workspace Access Approved", body


def rejection_email(name: str, company_name: str):
    body = f"""
    <h1>Request Declined</h1>
    <p>Hi {html.escape(name or "")},</p>
    <p>Your request to join the workspace for <strong>{html.escape(company_name)}</strong> was declined by its administrator.</p>
    <p>If you think this is a mistake, contact the workspace administrator directly.</p>
    """
    return "Workspace Request Declined", body


def company_invite_email(invite_link: str, company_name: str, invite_name: str = ""):
    greeting = f"Hi {html.escape(invite_name)}," if invite_name else "Hi,"
    body = f"""
    <h1>You're invited to {html.escape(company_name)}</h1>
    <p>{greeting}</p>
    <p>You have been invited to join the <strong>{html.escape(company_name)}</strong> workspace on VisionM.</p>
    <p>{_button(invite_link, "Accept Invitation", "#0088cc")}</p>
    <p>Or copy this link into your browser:</p>
    <p>{html.escape(invite_link)}</p>
    """
    return f"Invitation to join {company_name} on VisionM", body


def project_invite_email(project_link: str, project_name: str):
    # The shared password is never part of this message.
    body = f"""
    <h1>Project Invitation</h1>
    <p>You've been invited to access the project "{html.escape(project_name)}".</p>
    <p>To access the project, you'll need to use the project password that was shared with you separately.</p>
    <div style="margin: 20px 0;">{_button(project_link, "Access Project", "#0088cc")}</div>
    <p>Or copy this link into your browser:</p>
    <p>{html.escape(project_link)}</p>
    <p><strong>Important:</strong> Keep your project password secure and don't share it with unauthorized users.</p>
    """
    return f"You've been invited to {project_name}", body


def verification_email(verification_link: str, ttl_hours: int):
    body = f"""
    <h1>Welcome to VisionM!</h1>
    <p>Please verify your email address by clicking the link below:</p>
    <p>{_button(verification_link, "Verify Email", "#0088cc")}</p>
    <p>Or copy and paste this link into your browser:</p>
    <p>{html.escape(verification_link)}</p>
    <p>This link will expire in {ttl_hours} hours.</p>
    <p>If you didn't create this account, please ignore this email.</p>
    """
    return "Verify your VisionM account", body
