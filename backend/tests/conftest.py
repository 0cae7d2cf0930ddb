"""
Shared fixtures: an in-memory Mongo (mongomock-motor) patched into every
module that holds `db`, a recording stand-in for Resend, an S3 stub and an
in-process HTTP client over the ASGI app.
"""
import os
import sys
import uuid

os.environ["APP_URL"] = "https://app.visionm.test"
os.environ["AUTH_JWT_SECRET"] = "visionm-test-secret-with-at-least-32-bytes"
os.environ["AUTH_JWT_AUDIENCE"] = ""

import pytest
import resend
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from visionm.core import database
from visionm.core.security import create_token
from visionm.main import app
from visionm.services import s3


class FakeResend:
    """Records every send; set `fail` to make the provider raise."""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.fail_for = set()

    def send(self, params):
        if self.fail or any(to in self.fail_for for to in params["to"]):
            raise Exception("Resend API error: rate limited")
        self.sent.append(params)
        return {"id": f"email_{len(self.sent)}"}

    def to(self, address):
        return [p for p in self.sent if address in p["to"]]


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail_keys = set()

    def upload_bytes(self, key, data, content_type="application/octet-stream"):
        if any(key.endswith(name) for name in self.fail_keys):
            raise Exception("S3 upload failed")
        self.objects[key] = data
        return key

    def delete_object(self, key):
        self.objects.pop(key, None)


@pytest.fixture
def db(monkeypatch):
    """Fresh in-memory database for every test."""
    mock_db = AsyncMongoMockClient()[f"visionm_test_{uuid.uuid4().hex[:8]}"]
    real_db = database.db
    for name, module in list(sys.modules.items()):
        if name.startswith("visionm") and getattr(module, "db", None) is real_db:
            monkeypatch.setattr(module, "db", mock_db)
    return mock_db


@pytest.fixture
def mailer(monkeypatch):
    fake = FakeResend()
    monkeypatch.setattr(resend.Emails, "send", fake.send)
    return fake


@pytest.fixture
def storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(s3, "upload_bytes", fake.upload_bytes)
    monkeypatch.setattr(s3, "delete_object", fake.delete_object)
    return fake


@pytest.fixture
async def client(db, mailer, storage):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(user_id, email):
    return {"Authorization": f"Bearer {create_token(user_id, email)}"}


async def make_profile(db, email, name=None, company_id=None, role=None):
    profile = {
        "id": str(uuid.uuid4()),
        "email": email,
        "name": name or email.split("@")[0].title(),
        "phone": None,
        "company_id": company_id,
        "role": role,
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    await db.profiles.insert_one(profile)
    profile.pop("_id", None)
    return profile


async def make_company(db, name, admin_email, created_by=None):
    company = {
        "id": str(uuid.uuid4()),
        "name": name,
        "admin_email": admin_email,
        "created_by": created_by,
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    await db.companies.insert_one(company)
    company.pop("_id", None)
    return company


async def make_admin(db, company_name="Acme", email="admin@acme.com"):
    """A company plus its admin profile."""
    admin = await make_profile(db, email, name="Ada Admin", role="admin")
    company = await make_company(db, company_name, email, created_by=admin["id"])
    await db.profiles.update_one({"id": admin["id"]}, {"$set": {"company_id": company["id"]}})
    admin["company_id"] = company["id"]
    return admin, company
