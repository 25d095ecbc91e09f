"""HTTP tests for the comment, proposal, tour and organization routes.

Services run over in-memory repositories via dependency overrides.
"""

import asyncio
import uuid
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from kitasuro.app.api.deps import (
    get_comment_rate_limiter,
    get_comment_service,
    get_onboarding_service,
    get_proposal_service,
    get_settings_service,
    get_tour_service,
)
from kitasuro.app.db.inmemory import (
    InMemoryOrganizationRepository,
    InMemoryRateLimiter,
    InMemoryTourRepository,
)
from kitasuro.app.main import app
from kitasuro.app.models.tour import Tour, TourDay
from kitasuro.app.services.comments import CommentService
from kitasuro.app.services.onboarding import OnboardingService
from kitasuro.app.services.org_settings import OrganizationSettingsService
from kitasuro.app.services.proposals import ProposalService
from kitasuro.app.services.tours import TourService

ORG_ID = "00000000-0000-0000-0000-000000000001"
MEMBER_ID = "00000000-0000-0000-0000-000000000003"
MEMBER_AUTH = {"Authorization": f"Bearer {ORG_ID}:{MEMBER_ID}"}


@pytest.fixture
def limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter(max_requests=100)


@pytest.fixture
def client(
    comment_service: CommentService,
    proposal_service: ProposalService,
    org_repo: InMemoryOrganizationRepository,
    tour_repo: InMemoryTourRepository,
    limiter: InMemoryRateLimiter,
) -> Iterator[TestClient]:
    app.dependency_overrides[get_comment_service] = lambda: comment_service
    app.dependency_overrides[get_proposal_service] = lambda: proposal_service
    app.dependency_overrides[get_tour_service] = lambda: TourService(tour_repo)
    app.dependency_overrides[get_onboarding_service] = lambda: OnboardingService(
        org_repo, tour_repo
    )
    app.dependency_overrides[get_settings_service] = lambda: OrganizationSettingsService(
        org_repo
    )
    app.dependency_overrides[get_comment_rate_limiter] = lambda: limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


def proposal_body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "name": "Okafor honeymoon",
        "tour_title": "Serengeti and Zanzibar",
        "theme": "safari-portal",
        "start_date": "2026-08-10",
        "start_city": "Arusha",
        "end_city": "Stone Town",
        "days": [{"title": "Arusha"}, {"title": "Serengeti"}],
        "pricing_rows": [{"traveler_type": "Adult", "unit_price": 3000, "count": 2}],
    }
    body.update(overrides)
    return body


def create_proposal(client: TestClient, **overrides: Any) -> dict[str, Any]:
    response = client.post("/proposals", json=proposal_body(**overrides))
    assert response.status_code == 201
    return response.json()


def post_comment(client: TestClient, proposal_id: str, **overrides: Any) -> Any:
    body: dict[str, Any] = {
        "author_name": "Ngozi",
        "content": "Can we see the lodge?",
        "anchor": {"pos_x": 25, "pos_y": 40},
    }
    body.update(overrides)
    return client.post(f"/proposals/{proposal_id}/comments", json=body)


class TestCommentRoutes:
    def test_comment_reply_resolve_flow(self, client: TestClient) -> None:
        proposal_id = create_proposal(client)["proposal_id"]

        created = post_comment(client, proposal_id)
        assert created.status_code == 201
        comment_id = created.json()["comment_id"]

        reply = client.post(
            f"/comments/{comment_id}/replies",
            json={"author_name": "Agent", "content": "Photos are on day 2"},
        )
        assert reply.status_code == 201

        listed = client.get(f"/proposals/{proposal_id}/comments", params={"status": "open"})
        assert listed.status_code == 200
        assert [r["content"] for r in listed.json()[0]["replies"]] == ["Photos are on day 2"]

        resolved = client.post(f"/comments/{comment_id}/resolve")
        assert resolved.status_code == 200
        assert resolved.json()["status"] == "resolved"

        assert client.get(f"/proposals/{proposal_id}/comments?status=open").json() == []
        assert len(client.get(f"/proposals/{proposal_id}/comments").json()) == 1

        closed = client.post(
            f"/comments/{comment_id}/replies",
            json={"author_name": "Ngozi", "content": "One more thing"},
        )
        assert closed.status_code == 409

    def test_invalid_comment_bodies(self, client: TestClient) -> None:
        proposal_id = create_proposal(client)["proposal_id"]

        assert post_comment(client, proposal_id, author_name="   ").status_code == 422
        out_of_bounds = post_comment(client, proposal_id, anchor={"pos_x": 120, "pos_y": 5})
        assert out_of_bounds.status_code == 422

    def test_unknown_targets_return_404(self, client: TestClient) -> None:
        assert post_comment(client, "missing").status_code == 404
        assert client.get("/proposals/missing/comments").status_code == 404
        assert client.post(f"/comments/{uuid.uuid4()}/resolve").status_code == 404

    def test_comment_rate_limit(self, client: TestClient) -> None:
        proposal_id = create_proposal(client)["proposal_id"]
        strict = InMemoryRateLimiter(max_requests=1)
        app.dependency_overrides[get_comment_rate_limiter] = lambda: strict

        assert post_comment(client, proposal_id).status_code == 201
        limited = post_comment(client, proposal_id, author_name=" ngozi")

        assert limited.status_code == 429
        assert int(limited.headers["Retry-After"]) >= 1
        assert post_comment(client, proposal_id, author_name="Chidi").status_code == 201


class TestProposalRoutes:
    def test_create_update_and_conflict(self, client: TestClient) -> None:
        created = create_proposal(client)
        proposal_id = created["proposal_id"]
        assert created["version"] == 1
        assert [d["day_number"] for d in created["days"]] == [1, 2]

        updated = client.put(
            f"/proposals/{proposal_id}", json=proposal_body(name="Revised", expected_version=1)
        )
        assert updated.status_code == 200
        assert updated.json()["version"] == 2

        stale = client.put(
            f"/proposals/{proposal_id}", json=proposal_body(name="Stale", expected_version=1)
        )
        assert stale.status_code == 409
        assert stale.json()["detail"]["expected_version"] == 1
        assert stale.json()["detail"]["current_version"] == 2

        missing_version = client.put(f"/proposals/{proposal_id}", json=proposal_body())
        assert missing_version.status_code == 422
        assert "expected_version" in missing_version.json()["detail"]["field_errors"]

    def test_update_unknown_proposal_returns_404(self, client: TestClient) -> None:
        response = client.put(
            "/proposals/deleted-or-typo-id", json=proposal_body(expected_version=7)
        )
        assert response.status_code == 404
        assert client.get("/proposals/deleted-or-typo-id").status_code == 404

    def test_dashboard_views(self, client: TestClient) -> None:
        proposal_id = create_proposal(client)["proposal_id"]

        mine = client.get("/proposals", params={"view": "mine"})
        assert [p["proposal_id"] for p in mine.json()] == [proposal_id]
        assert client.get("/proposals", params={"view": "mine"}, headers=MEMBER_AUTH).json() == []
        assert len(client.get("/proposals", headers=MEMBER_AUTH).json()) == 1

    def test_assignment_requires_admin(self, client: TestClient) -> None:
        proposal_id = create_proposal(client)["proposal_id"]
        path = f"/proposals/{proposal_id}/assignments/{MEMBER_ID}"

        assert client.post(path, headers=MEMBER_AUTH).status_code == 403
        assert client.post(path).json() == {"changed": True}
        assert client.post(path).json() == {"changed": False}
        assert client.delete(path).json() == {"changed": True}
        stranger = client.post(f"/proposals/{proposal_id}/assignments/{uuid.uuid4()}")
        assert stranger.status_code == 400

    def test_share_view_confirm(self, client: TestClient) -> None:
        proposal_id = create_proposal(client)["proposal_id"]

        shared = client.post(f"/proposals/{proposal_id}/share", json={"expected_version": 1})
        assert shared.status_code == 200
        assert shared.json()["share_url"] == f"https://app.example.com/proposal/{proposal_id}"
        assert shared.json()["proposal"]["status"] == "shared"

        view = client.get(f"/proposals/{proposal_id}/view")
        assert view.status_code == 200
        data = view.json()
        assert data["agency_name"] == "Serengeti Trails"
        assert data["comments_enabled"] is True
        page = data["page"]
        assert page["theme"] == "safari-portal"
        anchors = [section["anchor_id"] for section in page["sections"]]
        assert anchors[0] == "section-nav"
        assert {"day-1", "day-2"} <= set(anchors)

        confirmed = client.post(f"/proposals/{proposal_id}/confirm", json={"client_name": "Ada"})
        assert confirmed.status_code == 200
        assert confirmed.json()["confirmed_by"] == "Ada"

        again = client.post(f"/proposals/{proposal_id}/confirm", json={})
        assert again.status_code == 409

    def test_other_organization_gets_404(self, client: TestClient) -> None:
        proposal_id = create_proposal(client)["proposal_id"]
        other = {"Authorization": f"Bearer {uuid.uuid4()}:{uuid.uuid4()}:admin"}

        assert client.get(f"/proposals/{proposal_id}", headers=other).status_code == 404

    def test_bad_authorization_header(self, client: TestClient) -> None:
        response = client.get("/proposals", headers={"Authorization": "Token abc"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestTourAndOrganizationRoutes:
    def test_clone_template_then_edit(
        self, client: TestClient, tour_repo: InMemoryTourRepository
    ) -> None:
        now = datetime.now(timezone.utc)
        template = Tour(
            tour_id=uuid.uuid4(),
            org_id=None,
            tour_name="Kenya Highlights",
            overview="Masai Mara and Amboseli in one week.",
            pricing=2800,
            country="Kenya",
            tags=["classic"],
            number_of_days=1,
            days=[TourDay(day_number=1, title="Nairobi")],
            created_at=now,
            updated_at=now,
        )
        asyncio.run(tour_repo.save_tour(template))

        templates = client.get("/tours/templates")
        assert [t["tour_name"] for t in templates.json()] == ["Kenya Highlights"]

        cloned = client.post(f"/tours/templates/{template.tour_id}/clone")
        assert cloned.status_code == 201
        tour_id = cloned.json()["tour_id"]

        bad = client.put(f"/tours/{tour_id}", json={"tour_name": "K"})
        assert bad.status_code == 422
        assert "tour_name" in bad.json()["detail"]["field_errors"]

        onboarding = client.get("/onboarding").json()
        assert onboarding["steps"]["has_tours"]["complete"] is True
        assert onboarding["is_complete"] is True

    def test_settings_admin_only(self, client: TestClient) -> None:
        assert client.get("/settings/organization", headers=MEMBER_AUTH).status_code == 403

        patched = client.patch("/settings/organization", json={"primary_color": "#0f766e"})
        assert patched.status_code == 200
        assert patched.json()["primary_color"] == "#0f766e"
        assert patched.json()["name"] == "Serengeti Trails"

        invalid = client.patch("/settings/organization", json={"primary_color": "green"})
        assert invalid.status_code == 422
