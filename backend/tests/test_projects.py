"""
Tests for projects and password-gated project access
Tests:
- POST/GET/PATCH/DELETE /api/projects - company-scoped CRUD
- POST /api/invite-project-user - bcrypt-hashed shared password, link-only email
- POST /api/project-access - password check against the stored hash
"""
import bcrypt

from conftest import auth_headers, make_admin, make_profile


async def make_project(client, user, name="Road signs"):
    response = await client.post(
        "/api/projects",
        json={"name": name, "description": "Detection set"},
        headers=auth_headers(user["id"], user["email"]),
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestProjectCrud:
    """Tests for /api/projects"""

    async def test_create_and_list(self, client, db):
        admin, company = await make_admin(db)
        project = await make_project(client, admin)
        assert project["company_id"] == company["id"]
        assert project["created_by"] == admin["id"]

        response = await client.get("/api/projects", headers=auth_headers(admin["id"], admin["email"]))
        assert [p["id"] for p in response.json()] == [project["id"]]

    async def test_other_company_cannot_see_project(self, client, db):
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)
        other_admin, _ = await make_admin(db, company_name="Globex", email="boss@globex.com")

        response = await client.get(
            f"/api/projects/{project['id']}", headers=auth_headers(other_admin["id"], other_admin["email"])
        )
        assert response.status_code == 404

    async def test_user_without_company(self, client, db):
        loner = await make_profile(db, "solo@example.com")
        response = await client.get("/api/projects", headers=auth_headers(loner["id"], loner["email"]))
        assert response.status_code == 403

    async def test_update(self, client, db):
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)
        response = await client.patch(
            f"/api/projects/{project['id']}",
            json={"name": "Traffic lights"},
            headers=auth_headers(admin["id"], admin["email"]),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Traffic lights"
        assert data["description"] == "Detection set"

    async def test_blank_name_rejected(self, client, db):
        admin, _ = await make_admin(db)
        response = await client.post(
            "/api/projects", json={"name": "  "}, headers=auth_headers(admin["id"], admin["email"])
        )
        assert response.status_code == 400

    async def test_delete_requires_admin(self, client, db):
        admin, company = await make_admin(db)
        member = await make_profile(db, "mo@acme.com", company_id=company["id"], role="member")
        project = await make_project(client, admin)

        denied = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers(member["id"], member["email"]))
        assert denied.status_code == 403

        response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers(admin["id"], admin["email"]))
        assert response.status_code == 200
        assert await db.projects.count_documents({}) == 0


class TestInviteProjectUser:
    """Tests for POST /api/invite-project-user"""

    async def _invite(self, client, project_id, email="pat@example.com", password="Secr3t!"):
        return await client.post("/api/invite-project-user", json={
            "projectId": project_id,
            "userEmail": email,
            "projectPassword": password,
            "invitedBy": "inviter-1",
        })

    async def test_password_is_hashed(self, client, db, mailer):
        """Stored hash is a bcrypt hash of the password, never the plaintext"""
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)

        response = await self._invite(client, project["id"])
        assert response.status_code == 200
        assert response.json() == {"success": True}

        record = await db.project_users.find_one({"project_id": project["id"]})
        assert record["user_email"] == "pat@example.com"
        assert record["hashed_password"] != "Secr3t!"
        assert record["hashed_password"].startswith("$2")
        assert bcrypt.checkpw(b"Secr3t!", record["hashed_password"].encode())
        assert not bcrypt.checkpw(b"wrong", record["hashed_password"].encode())

    async def test_email_has_link_not_password(self, client, db, mailer):
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)
        await self._invite(client, project["id"])

        sent = mailer.to("pat@example.com")
        assert len(sent) == 1
        assert f"https://app.visionm.test/dataset/{project['id']}" in sent[0]["html"]
        assert "Secr3t!" not in sent[0]["html"]

    async def test_email_failure_removes_row(self, client, db, mailer):
        """Failed send is fatal and leaves no orphaned access row"""
        mailer.fail = True
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)

        response = await self._invite(client, project["id"])
        assert response.status_code == 502
        data = response.json()
        assert data["success"] is False
        assert data["details"]["message"]
        assert await db.project_users.count_documents({}) == 0

    async def test_retry_after_failure(self, client, db, mailer):
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)
        mailer.fail = True
        await self._invite(client, project["id"])
        mailer.fail = False

        response = await self._invite(client, project["id"])
        assert response.status_code == 200
        assert await db.project_users.count_documents({}) == 1

    async def test_duplicate_invite(self, client, db):
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)
        await self._invite(client, project["id"])
        response = await self._invite(client, project["id"])
        assert response.status_code == 400
        assert response.json()["code"] == "CONFLICT"

    async def test_unknown_project(self, client, db):
        response = await self._invite(client, "missing")
        assert response.status_code == 404

    async def test_missing_password(self, client, db):
        response = await client.post("/api/invite-project-user", json={"projectId": "p", "userEmail": "a@b.c"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestProjectAccess:
    """Tests for POST /api/project-access"""

    async def test_access_check(self, client, db):
        admin, _ = await make_admin(db)
        project = await make_project(client, admin)
        await client.post("/api/invite-project-user", json={
            "projectId": project["id"],
            "userEmail": "pat@example.com",
            "projectPassword": "Secr3t!",
            "invitedBy": admin["id"],
        })

        ok = await client.post("/api/project-access", json={
            "projectId": project["id"], "userEmail": "pat@example.com", "password": "Secr3t!",
        })
        assert ok.json()["access"] is True

        wrong = await client.post("/api/project-access", json={
            "projectId": project["id"], "userEmail": "pat@example.com", "password": "guess",
        })
        assert wrong.json()["access"] is False

        stranger = await client.post("/api/project-access", json={
            "projectId": project["id"], "userEmail": "eve@example.com", "password": "Secr3t!",
        })
        assert stranger.json()["access"] is False
