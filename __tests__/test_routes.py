"""HTTP tests against the FastAPI app with services swapped out."""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient

from main import app
from src.services.behavior import ValidationError
from src.services.service_factory import get_behavior_record_service, get_search_engine


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def search_client(client, search_engine):
    app.dependency_overrides[get_search_engine] = lambda: search_engine
    return client


@pytest.fixture
def record_service():
    service = Mock()
    service.create_incident = AsyncMock()
    service.create_merit = AsyncMock()
    service.get_record = AsyncMock()
    app.dependency_overrides[get_behavior_record_service] = lambda: service
    return service


async def test_health_without_dependencies(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["dependencies"] == {"redis": "not_configured", "database": "not_configured"}


async def test_post_search(search_client):
    response = await search_client.post("/api/v1/search", json={
        "query": "ali",
        "filters": {"types": ["student"]},
        "limit": 10,
    })

    assert response.status_code == 200
    body = response.json()["body"]
    assert [r["id"] for r in body["results"]] == ["s1", "s3"]
    assert body["results"][0]["score"] == 100
    assert body["is_searching"] is True
    assert response.headers["X-Request-ID"]


@pytest.mark.parametrize("filters", [
    {"types": ["student"], "min_score": 5},
    {"types": ["student"], "minScore": 5},
])
async def test_post_search_score_filter_accepts_both_spellings(search_client, filters):
    response = await search_client.post("/api/v1/search", json={"query": "ali", "filters": filters})

    assert response.status_code == 200
    assert response.json()["body"]["results"] == []


async def test_post_search_camel_case_date_range(search_client):
    response = await search_client.post("/api/v1/search", json={
        "query": "fight",
        "filters": {"types": ["incident"], "dateRange": {"start": "sometime"}},
    })

    assert response.status_code == 400


async def test_post_search_unknown_filter_is_422(search_client):
    response = await search_client.post("/api/v1/search", json={
        "query": "ali",
        "filters": {"minimumScore": 5},
    })

    assert response.status_code == 422


async def test_post_search_with_location_filter(search_client):
    response = await search_client.post("/api/v1/search", json={
        "query": "hallway",
        "filters": {"locations": ["Hostel"]},
    })

    assert response.status_code == 200
    assert response.json()["body"]["results"] == []


async def test_blank_search(search_client):
    response = await search_client.post("/api/v1/search", json={"query": "   "})

    body = response.json()["body"]
    assert body["results"] == []
    assert body["is_searching"] is False


async def test_get_search(search_client):
    response = await search_client.get("/api/v1/search", params={"q": "fight", "types": ["incident"], "highlight": True})

    assert response.status_code == 200
    results = response.json()["body"]["results"]
    assert [r["id"] for r in results] == ["r1"]
    assert results[0]["title"] == "**Fight**ing"


async def test_search_with_inverted_score_range_is_400(search_client):
    response = await search_client.get("/api/v1/search", params={"q": "ali", "min_score": 8, "max_score": 2})

    assert response.status_code == 400
    assert response.json()["body"] is None


async def test_search_with_bad_date_is_400(search_client):
    response = await search_client.post("/api/v1/search", json={
        "query": "ali",
        "filters": {"date_range": {"start": "sometime"}},
    })
    assert response.status_code == 400


async def test_incident_validation_error_is_400(client, record_service):
    record_service.create_incident.side_effect = ValidationError("Sanction is required")

    response = await client.post("/api/v1/behavior-records/incidents", json={
        "student_id": str(uuid.uuid4()),
        "misdemeanor_id": str(uuid.uuid4()),
        "location": "Main School",
    })

    assert response.status_code == 400
    assert response.json()["response_message"] == "Sanction is required"


async def test_unknown_location_is_422(client, record_service):
    response = await client.post("/api/v1/behavior-records/incidents", json={
        "student_id": str(uuid.uuid4()),
        "misdemeanor_id": str(uuid.uuid4()),
        "location": "Library",
    })

    assert response.status_code == 422
    record_service.create_incident.assert_not_called()


async def test_bad_user_header_is_400(client, record_service):
    response = await client.post(
        "/api/v1/behavior-records/merits",
        json={"student_id": str(uuid.uuid4()), "merit_tier": "Gold", "description": "Top in maths"},
        headers={"X-User-ID": "not-a-uuid"},
    )

    assert response.status_code == 400
    record_service.create_merit.assert_not_called()


async def test_reporter_comes_from_user_header(client, record_service):
    reporter = uuid.uuid4()
    student_id = uuid.uuid4()
    record_service.create_merit.return_value = SimpleNamespace(
        id=uuid.uuid4(), type="merit", student_id=student_id, description="Top in maths",
        location=None, timestamp=None, reported_by=reporter, misdemeanor_id=None,
        offense_number=None, sanction=None, status=None, resolved_at=None,
        merit_tier="Gold", points=3.0, attachment_url=None, created_at=None,
        student=None, misdemeanor=None,
    )

    response = await client.post(
        "/api/v1/behavior-records/merits",
        json={"student_id": str(student_id), "merit_tier": "Gold", "description": "Top in maths"},
        headers={"X-User-ID": str(reporter)},
    )

    assert response.status_code == 201
    assert record_service.create_merit.call_args.args[0].reported_by == reporter
    assert response.json()["body"]["points"] == 3.0


async def test_missing_record_is_404(client, record_service):
    record_service.get_record.side_effect = HTTPException(status_code=404, detail="Behaviour record not found")

    response = await client.get(f"/api/v1/behavior-records/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["response_message"] == "Behaviour record not found"
