"""Integration tests for the content workflow endpoints."""
from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.content import ContentStatus
from core.domain.events import ContentCreated, ContentStatusChanged, ContentUpdated, EventKind
from core.errors import StoreFailure
from infrastructure.database.models import ContentRecord, User
from services.content_query import ContentQueryService
from services.event_bus import EventBus

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/content"

DRAFT = {
    "title": "Election night recap",
    "body": "Turnout was the highest in a decade.",
    "sector": "POLITICS",
}


async def _create_draft(client: AsyncClient, headers: dict, **overrides) -> str:
    response = await client.post(f"{BASE}/drafts", headers=headers, json={**DRAFT, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["content_id"]


class TestAuthentication:
    """Tests for X-User-Id identity resolution."""

    async def test_missing_header_is_unauthorized(self, async_client: AsyncClient):
        response = await async_client.post(f"{BASE}/drafts", json=DRAFT)
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    async def test_unknown_user_is_unauthorized(self, async_client: AsyncClient):
        response = await async_client.get(BASE, headers={"X-User-Id": "no-such-user"})
        assert response.status_code == 401


class TestCreateDraft:
    """Tests for POST /content/drafts."""

    async def test_create_draft(
        self,
        async_client: AsyncClient,
        editor_user: User,
        headers_for,
        event_bus: EventBus,
    ):
        received = []
        event_bus.subscribe(EventKind.CONTENT_CREATED, received.append)

        response = await async_client.post(
            f"{BASE}/drafts", headers=headers_for(editor_user), json=DRAFT
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Draft created successfully"
        assert data["status"] == ContentStatus.DRAFT.value
        assert data["content_id"]

        assert len(received) == 1
        assert isinstance(received[0], ContentCreated)
        assert received[0].content.created_by == editor_user.id
        assert received[0].content.author.name == editor_user.name

    async def test_reviewer_may_create_draft(
        self, async_client: AsyncClient, reviewer_user: User, headers_for
    ):
        await _create_draft(async_client, headers_for(reviewer_user))

    @pytest.mark.parametrize(
        "payload",
        [
            {**DRAFT, "title": "ab"},
            {**DRAFT, "body": "too short"},
            {**DRAFT, "sector": "GARDENING"},
            {"title": "Missing fields"},
        ],
    )
    async def test_invalid_draft_rejected(
        self, async_client: AsyncClient, editor_user: User, headers_for, payload
    ):
        response = await async_client.post(
            f"{BASE}/drafts", headers=headers_for(editor_user), json=payload
        )
        assert response.status_code == 422


class TestUpdateContent:
    """Tests for PUT /content/{id}."""

    async def test_owner_updates_draft(
        self,
        async_client: AsyncClient,
        editor_user: User,
        headers_for,
        event_bus: EventBus,
        db_session: AsyncSession,
    ):
        content_id = await _create_draft(async_client, headers_for(editor_user))
        received = []
        event_bus.subscribe(EventKind.CONTENT_UPDATED, received.append)

        response = await async_client.put(
            f"{BASE}/{content_id}",
            headers=headers_for(editor_user),
            json={"title": "Election night, revisited"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Draft updated successfully"
        assert isinstance(received[0], ContentUpdated)
        assert received[0].changes == {"title": "Election night, revisited"}
        assert received[0].actor.name == editor_user.name

        record = await db_session.get(ContentRecord, content_id, populate_existing=True)
        assert record.title == "Election night, revisited"
        assert record.body == DRAFT["body"]

    async def test_non_owner_forbidden(
        self,
        async_client: AsyncClient,
        editor_user: User,
        other_editor_user: User,
        headers_for,
    ):
        content_id = await _create_draft(async_client, headers_for(editor_user))

        response = await async_client.put(
            f"{BASE}/{content_id}",
            headers=headers_for(other_editor_user),
            json={"title": "Not mine to change"},
        )
        assert response.status_code == 403

    async def test_admin_updates_any_draft(
        self, async_client: AsyncClient, editor_user: User, admin_user: User, headers_for
    ):
        content_id = await _create_draft(async_client, headers_for(editor_user))

        response = await async_client.put(
            f"{BASE}/{content_id}",
            headers=headers_for(admin_user),
            json={"sector": "SCIENCE"},
        )
        assert response.status_code == 200

    async def test_reviewer_lacks_capability(
        self, async_client: AsyncClient, editor_user: User, reviewer_user: User, headers_for
    ):
        content_id = await _create_draft(async_client, headers_for(editor_user))

        response = await async_client.put(
            f"{BASE}/{content_id}",
            headers=headers_for(reviewer_user),
            json={"title": "Reviewer edit"},
        )
        assert response.status_code == 403

    async def test_unknown_content_not_found(
        self, async_client: AsyncClient, editor_user: User, headers_for
    ):
        response = await async_client.put(
            f"{BASE}/does-not-exist",
            headers=headers_for(editor_user),
            json={"title": "Anything"},
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Content not found"

    async def test_explicit_null_rejected(
        self, async_client: AsyncClient, editor_user: User, headers_for
    ):
        content_id = await _create_draft(async_client, headers_for(editor_user))

        response = await async_client.put(
            f"{BASE}/{content_id}", headers=headers_for(editor_user), json={"title": None}
        )
        assert response.status_code == 422

    async def test_in_review_content_not_editable(
        self, async_client: AsyncClient, editor_user: User, headers_for
    ):
        headers = headers_for(editor_user)
        content_id = await _create_draft(async_client, headers)
        await async_client.post(f"{BASE}/{content_id}/submit", headers=headers)

        response = await async_client.put(
            f"{BASE}/{content_id}", headers=headers, json={"title": "Too late"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "only draft content is editable"


class TestWorkflow:
    """Tests for submit and approve transitions."""

    async def test_full_publication_flow(
        self,
        async_client: AsyncClient,
        editor_user: User,
        reviewer_user: User,
        headers_for,
        event_bus: EventBus,
    ):
        received = []
        for kind in EventKind:
            event_bus.subscribe(kind, received.append)

        author = headers_for(editor_user)
        reviewer = headers_for(reviewer_user)
        content_id = await _create_draft(async_client, author)

        # Approving a draft skips review and is refused
        response = await async_client.post(f"{BASE}/{content_id}/approve", headers=reviewer)
        assert response.status_code == 400
        assert response.json()["detail"] == "only in-review content can be approved"

        response = await async_client.post(f"{BASE}/{content_id}/submit", headers=author)
        assert response.status_code == 200
        assert response.json() == {
            "message": "Content submitted for review",
            "content_id": content_id,
            "status": "IN_REVIEW",
        }

        response = await async_client.post(f"{BASE}/{content_id}/submit", headers=author)
        assert response.status_code == 400
        assert response.json()["detail"] == "only draft content can be submitted"

        response = await async_client.post(f"{BASE}/{content_id}/approve", headers=reviewer)
        assert response.status_code == 200
        assert response.json()["message"] == "Content approved and published"
        assert response.json()["status"] == "PUBLISHED"

        response = await async_client.post(f"{BASE}/{content_id}/approve", headers=reviewer)
        assert response.status_code == 400

        assert [type(e) for e in received] == [
            ContentCreated,
            ContentStatusChanged,
            ContentStatusChanged,
        ]
        assert received[-1].actor_id == reviewer_user.id

    async def test_editor_cannot_approve(
        self, async_client: AsyncClient, editor_user: User, headers_for
    ):
        headers = headers_for(editor_user)
        content_id = await _create_draft(async_client, headers)
        await async_client.post(f"{BASE}/{content_id}/submit", headers=headers)

        response = await async_client.post(f"{BASE}/{content_id}/approve", headers=headers)
        assert response.status_code == 403

    async def test_reviewer_cannot_submit(
        self, async_client: AsyncClient, reviewer_user: User, headers_for
    ):
        headers = headers_for(reviewer_user)
        content_id = await _create_draft(async_client, headers)

        response = await async_client.post(f"{BASE}/{content_id}/submit", headers=headers)
        assert response.status_code == 403

    async def test_non_owner_cannot_submit(
        self,
        async_client: AsyncClient,
        editor_user: User,
        other_editor_user: User,
        headers_for,
    ):
        content_id = await _create_draft(async_client, headers_for(editor_user))

        response = await async_client.post(
            f"{BASE}/{content_id}/submit", headers=headers_for(other_editor_user)
        )
        assert response.status_code == 403

    async def test_approve_unknown_content(
        self, async_client: AsyncClient, reviewer_user: User, headers_for
    ):
        response = await async_client.post(
            f"{BASE}/does-not-exist/approve", headers=headers_for(reviewer_user)
        )
        assert response.status_code == 404


class TestListContents:
    """Tests for GET /content."""

    async def _seed(self, db_session: AsyncSession, owner: User, count: int, **fields) -> None:
        base = datetime(2026, 3, 1, tzinfo=UTC)
        for i in range(count):
            db_session.add(
                ContentRecord(
                    title=f"Story {i:02d}",
                    body="Body text that is long enough.",
                    sector=fields.get("sector", "TECHNOLOGY"),
                    status=fields.get("status", "DRAFT"),
                    created_by=owner.id,
                    created_at=base + timedelta(minutes=i),
                )
            )
        await db_session.commit()

    async def test_pagination(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        editor_user: User,
        reviewer_user: User,
        headers_for,
    ):
        await self._seed(db_session, editor_user, 45)
        headers = headers_for(reviewer_user)

        sizes = []
        for page in (1, 2, 3):
            response = await async_client.get(BASE, headers=headers, params={"page": page})
            assert response.status_code == 200
            data = response.json()
            assert data["total"] == 45
            assert data["pages"] == 3
            assert data["page_size"] == 20
            sizes.append(len(data["items"]))

        assert sizes == [20, 20, 5]

    async def test_newest_first_without_body(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        editor_user: User,
        headers_for,
    ):
        await self._seed(db_session, editor_user, 3)

        response = await async_client.get(BASE, headers=headers_for(editor_user))

        items = response.json()["items"]
        assert [item["title"] for item in items] == ["Story 02", "Story 01", "Story 00"]
        assert "body" not in items[0]
        assert items[0]["created_by"] == {"id": editor_user.id, "name": editor_user.name}

    async def test_filters(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        editor_user: User,
        headers_for,
    ):
        await self._seed(db_session, editor_user, 2)
        await self._seed(db_session, editor_user, 3, sector="HEALTH", status="PUBLISHED")

        response = await async_client.get(
            BASE,
            headers=headers_for(editor_user),
            params={"status": "PUBLISHED", "sector": "HEALTH"},
        )

        data = response.json()
        assert data["total"] == 3
        assert {item["status"] for item in data["items"]} == {"PUBLISHED"}
        assert {item["sector"] for item in data["items"]} == {"HEALTH"}

    @pytest.mark.parametrize(
        "params",
        [{"page": 0}, {"page_size": 0}, {"page_size": 101}, {"status": "ARCHIVED"}],
    )
    async def test_invalid_query_rejected(
        self, async_client: AsyncClient, editor_user: User, headers_for, params
    ):
        response = await async_client.get(BASE, headers=headers_for(editor_user), params=params)
        assert response.status_code == 422

    async def test_empty_listing(self, async_client: AsyncClient, editor_user: User, headers_for):
        response = await async_client.get(BASE, headers=headers_for(editor_user))

        assert response.json() == {
            "items": [],
            "total": 0,
            "page": 1,
            "page_size": 20,
            "pages": 0,
        }


class TestStoreFailures:
    """Persistence errors surface as a generic 500."""

    async def test_store_failure_is_internal_error(
        self,
        async_client: AsyncClient,
        editor_user: User,
        headers_for,
        mock_repository,
    ):
        from api.dependencies import get_query_service
        from main import app

        mock_repository.find_many.side_effect = StoreFailure("connection reset by peer")
        app.dependency_overrides[get_query_service] = lambda: ContentQueryService(mock_repository)

        response = await async_client.get(BASE, headers=headers_for(editor_user))

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert "connection reset" not in response.text


class TestRateLimiting:
    """Writes are limited per acting user."""

    async def test_write_limit_exceeded(
        self, async_client: AsyncClient, editor_user: User, headers_for
    ):
        headers = headers_for(editor_user)
        for _ in range(30):
            response = await async_client.post(f"{BASE}/drafts", headers=headers, json=DRAFT)
            assert response.status_code == 201

        response = await async_client.post(f"{BASE}/drafts", headers=headers, json=DRAFT)
        assert response.status_code == 429


class TestHealth:
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_db_reports_pending_deliveries(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/db")
        data = response.json()
        assert data["database"] == "connected"
        assert data["pending_event_deliveries"] == 0

    async def test_readiness_lists_event_kinds(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/ready")
        data = response.json()
        assert data["ready"] is True
        assert set(data["event_subscribers"]) == {kind.value for kind in EventKind}

    async def test_request_id_header(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/live")
        assert response.headers["X-Request-ID"]
        assert response.headers["X-Content-Type-Options"] == "nosniff"
