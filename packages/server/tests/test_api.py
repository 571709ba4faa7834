"""
HTTP-level tests: routing, the response envelope and error mapping.

The database session and the resolved caller are overridden; everything
between them (routes, services, exception handlers) is real.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.auth import Caller, get_optional_caller
from app.core.database import get_session
from app.main import create_app
from devshowcase_shared.schemas.common import ProjectStatus


class CallerSwitch:
    """Mutable stand-in for the session-derived caller."""

    def __init__(self):
        self.caller: Optional[Caller] = None

    def __call__(self) -> Optional[Caller]:
        return self.caller


@pytest.fixture
def as_caller():
    return CallerSwitch()


@pytest.fixture
async def client(session, as_caller):
    app = create_app()

    async def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_optional_caller] = as_caller
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def _project_body(category_id, **overrides) -> dict:
    body = {
        "title": "Realtime Chat",
        "description": "WebSocket chat server with rooms and presence.",
        "githubUrl": "https://github.com/example/chat",
        "websiteUrl": "",
        "categoryIds": [str(category_id)],
    }
    body.update(overrides)
    return body


class TestEnvelope:
    async def test_explore_listing(self, client, factory):
        author = await factory.user("Ada Lovelace")
        await factory.project(author, "Visible")
        await factory.project(author, "Hidden", status=ProjectStatus.PENDING)

        resp = await client.get("/api/v1/projects")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert [p["title"] for p in body["data"]] == ["Visible"]
        assert body["pagination"] == {"totalCount": 1, "totalPages": 1, "currentPage": 1}

        project = body["data"][0]
        assert project["authorName"] == "Ada Lovelace"
        assert project["stats"] == {"upvotes": 0, "downvotes": 0, "commentCount": 0}

    async def test_query_parameters(self, client, factory):
        author = await factory.user()
        tools = await factory.category("CLI Tools")
        await factory.project(author, "Zsh Theme", categories=[tools])
        await factory.project(author, "Awk Helper", categories=[tools])
        await factory.project(author, "Unrelated")

        resp = await client.get(
            "/api/v1/projects",
            params={"categoryIds": str(tools.id), "sortBy": "alphabetical", "pageSize": 1},
        )
        body = resp.json()
        assert [p["title"] for p in body["data"]] == ["Awk Helper"]
        assert body["pagination"]["totalPages"] == 2

    async def test_unknown_status_filter(self, client):
        resp = await client.get("/api/v1/admin/projects", params={"status": "archived"})
        assert resp.status_code == 422
        assert resp.json()["fieldErrors"][0]["field"] == "status"

    async def test_not_found(self, client):
        resp = await client.get("/api/v1/projects/missing-abcde")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Project not found"}

    async def test_categories(self, client, factory):
        await factory.category("Backend")
        resp = await client.get("/api/v1/categories")
        data = resp.json()["data"]
        assert data[0]["name"] == "Backend"
        assert data[0]["projectCount"] == 0


class TestSubmission:
    async def test_submit(self, client, factory, as_caller):
        author = await factory.user()
        category = await factory.category()
        as_caller.caller = factory.caller(author)

        resp = await client.post("/api/v1/projects", json=_project_body(category.id))
        assert resp.status_code == 201
        body = resp.json()
        assert body["data"]["status"] == "pending"
        assert body["message"].startswith("Project submitted successfully")

    async def test_field_errors(self, client, factory, as_caller):
        author = await factory.user()
        as_caller.caller = factory.caller(author)

        resp = await client.post(
            "/api/v1/projects",
            json=_project_body(uuid.uuid4(), title="ab", githubUrl="https://example.com/x"),
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Invalid data"
        fields = {fe["field"]: fe["message"] for fe in body["fieldErrors"]}
        assert fields == {
            "title": "Title must be at least 3 characters",
            "githubUrl": "Must be a valid GitHub URL",
        }

    async def test_anonymous(self, client, factory):
        category = await factory.category()
        resp = await client.post("/api/v1/projects", json=_project_body(category.id))
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Unauthorized"}


class TestAdminRoutes:
    async def test_non_admin_cannot_approve(self, client, factory, as_caller):
        author = await factory.user()
        project = await factory.project(author, status=ProjectStatus.PENDING)
        as_caller.caller = factory.caller(author)

        resp = await client.patch(
            f"/api/v1/admin/projects/{project.id}/status", json={"status": "approved"}
        )
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "error": "Unauthorized"}

    async def test_admin_approves(self, client, factory, as_caller):
        author = await factory.user()
        admin = await factory.admin()
        project = await factory.project(author, status=ProjectStatus.PENDING)
        as_caller.caller = factory.caller(admin)

        resp = await client.patch(
            f"/api/v1/admin/projects/{project.id}/status", json={"status": "approved"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["data"]["status"] == "approved"
        assert body["message"] == "Project approved successfully"

    async def test_admin_category_crud(self, client, factory, as_caller):
        admin = await factory.admin()
        as_caller.caller = factory.caller(admin)

        resp = await client.post(
            "/api/v1/admin/categories", json={"name": "Games", "color": "bg-rose-500/15"}
        )
        assert resp.status_code == 201
        category_id = resp.json()["data"]["id"]

        resp = await client.delete(f"/api/v1/admin/categories/{category_id}")
        assert resp.status_code == 200
        assert (await client.get("/api/v1/categories")).json()["data"] == []


class TestSocialRoutes:
    async def test_vote_flow(self, client, factory, as_caller):
        author = await factory.user()
        project = await factory.project(author)

        resp = await client.put(f"/api/v1/projects/{project.id}/vote", json={"value": 1})
        assert resp.status_code == 401
        assert resp.json()["error"] == "You must be signed in to vote"

        as_caller.caller = factory.caller(author)
        resp = await client.put(f"/api/v1/projects/{project.id}/vote", json={"value": -1})
        assert resp.json()["data"] == {"projectId": str(project.id), "value": -1}

        resp = await client.get(f"/api/v1/projects/{project.slug}")
        assert resp.json()["data"]["stats"]["downvotes"] == 1

        resp = await client.get(f"/api/v1/projects/{project.id}/vote")
        assert resp.json()["data"]["value"] == -1

    async def test_invalid_vote(self, client, factory, as_caller):
        author = await factory.user()
        project = await factory.project(author)
        as_caller.caller = factory.caller(author)

        resp = await client.put(f"/api/v1/projects/{project.id}/vote", json={"value": 5})
        assert resp.status_code == 422
        assert resp.json()["error"] == "Invalid vote value"

    async def test_comment_pages(self, client, factory, as_caller):
        author = await factory.user()
        project = await factory.project(author)
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(6):
            await factory.comment(author, project, f"c{i}", created_at=base + timedelta(minutes=i))

        resp = await client.get(f"/api/v1/projects/{project.id}/comments")
        body = resp.json()
        assert [c["content"] for c in body["data"]] == ["c5", "c4", "c3", "c2", "c1"]
        assert body["pagination"] == {"totalCount": 6, "hasMore": True}

        resp = await client.get(f"/api/v1/projects/{project.id}/comments", params={"page": 2})
        assert resp.json()["pagination"]["hasMore"] is False

        as_caller.caller = factory.caller(author)
        resp = await client.post(
            f"/api/v1/projects/{project.id}/comments", json={"content": "   "}
        )
        assert resp.status_code == 422
        assert resp.json()["fieldErrors"] == [
            {"field": "content", "message": "Comment cannot be empty"}
        ]


class TestMyProjectsRoutes:
    async def test_status_counts(self, client, factory, as_caller):
        me = await factory.user()
        await factory.project(me, "Pending", status=ProjectStatus.PENDING)
        await factory.project(me, "Rejected", status=ProjectStatus.REJECTED)
        as_caller.caller = factory.caller(me)

        resp = await client.get("/api/v1/me/projects", params={"status": "all"})
        body = resp.json()
        assert len(body["data"]) == 2
        assert body["statusCounts"] == {"all": 2, "pending": 1, "approved": 0, "rejected": 1}

    async def test_stranger_delete_is_not_found(self, client, factory, as_caller):
        author = await factory.user()
        stranger = await factory.user("Stranger")
        project = await factory.project(author)
        as_caller.caller = factory.caller(stranger)

        resp = await client.delete(f"/api/v1/me/projects/{project.id}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Project not found or unauthorized"
