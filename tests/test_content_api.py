"""Content collections over HTTP: isolation, tenant stamping and gating."""

import uuid

import pytest
from httpx import AsyncClient

from app.core.permissions import UserRole
from app.core.plans import Plan
from app.models.organization import SubscriptionStatus


@pytest.fixture
async def two_schools(make_org, make_user, headers_for):
    await make_org("greenfield")
    await make_org("riverside")
    admin_a = await make_user("admin@greenfield.test", organization_id="greenfield")
    admin_b = await make_user("admin@riverside.test", organization_id="riverside")
    staff_a = await make_user(
        "staff@greenfield.test", role=UserRole.STAFF, organization_id="greenfield",
    )
    root = await make_user("root@platform.test", role=UserRole.SUPER_ADMIN)
    return {
        "a": headers_for(admin_a),
        "b": headers_for(admin_b),
        "staff_a": headers_for(staff_a),
        "root": headers_for(root),
    }


@pytest.mark.asyncio
async def test_create_and_list(client: AsyncClient, two_schools):
    resp = await client.post(
        "/v1/programs", json={"title": "Robotics", "level": "senior"}, headers=two_schools["a"],
    )
    assert resp.status_code == 201
    record = resp.json()
    assert record["organization_id"] == "greenfield"
    assert record["collection"] == "programs"
    assert record["data"] == {"title": "Robotics", "level": "senior"}

    resp = await client.get("/v1/programs", headers=two_schools["a"])
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [record["id"]]

    resp = await client.get(f"/v1/programs/{record['id']}", headers=two_schools["a"])
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Robotics"


@pytest.mark.asyncio
async def test_create_ignores_client_tenant(client: AsyncClient, two_schools):
    resp = await client.post(
        "/v1/programs",
        json={"title": "Planted", "organization_id": "riverside"},
        headers=two_schools["a"],
    )
    assert resp.status_code == 201
    assert resp.json()["organization_id"] == "greenfield"

    resp = await client.get("/v1/programs", headers=two_schools["b"])
    assert resp.json() == []


@pytest.mark.asyncio
async def test_foreign_record_reads_as_missing(client: AsyncClient, two_schools):
    resp = await client.post(
        "/v1/news_events", json={"title": "Sports day"}, headers=two_schools["a"],
    )
    record_id = resp.json()["id"]

    foreign = await client.put(
        f"/v1/news_events/{record_id}", json={"title": "Hijacked"}, headers=two_schools["b"],
    )
    missing = await client.put(
        f"/v1/news_events/{uuid.uuid4()}", json={"title": "Hijacked"}, headers=two_schools["b"],
    )
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json() == {"detail": "News item not found"}

    resp = await client.get(f"/v1/news_events/{record_id}", headers=two_schools["b"])
    assert resp.status_code == 404

    resp = await client.delete(f"/v1/news_events/{record_id}", headers=two_schools["b"])
    assert resp.status_code == 404

    resp = await client.get(f"/v1/news_events/{record_id}", headers=two_schools["a"])
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Sports day"


@pytest.mark.asyncio
async def test_update_cannot_move_tenant(client: AsyncClient, two_schools):
    resp = await client.post("/v1/testimonials", json={"quote": "Great"}, headers=two_schools["a"])
    record_id = resp.json()["id"]

    resp = await client.put(
        f"/v1/testimonials/{record_id}",
        json={"quote": "Brilliant", "organization_id": "riverside", "id": str(uuid.uuid4())},
        headers=two_schools["a"],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == record_id
    assert body["organization_id"] == "greenfield"
    assert body["data"] == {"quote": "Brilliant"}


@pytest.mark.asyncio
async def test_delete(client: AsyncClient, two_schools):
    resp = await client.post("/v1/quick_links", json={"url": "/apply"}, headers=two_schools["a"])
    record_id = resp.json()["id"]

    resp = await client.delete(f"/v1/quick_links/{record_id}", headers=two_schools["a"])
    assert resp.status_code == 204
    resp = await client.get(f"/v1/quick_links/{record_id}", headers=two_schools["a"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_requires_token(client: AsyncClient, two_schools):
    resp = await client.get("/v1/programs")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient, two_schools):
    resp = await client.get("/v1/programs", headers={"Authorization": "Bearer nonsense"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Malformed token"


@pytest.mark.asyncio
async def test_foreign_tenant_header_forbidden(client: AsyncClient, two_schools):
    headers = {**two_schools["a"], "X-Organization-Id": "riverside"}
    resp = await client.get("/v1/programs", headers=headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_foreign_tenant_path_forbidden(client: AsyncClient, two_schools):
    resp = await client.get("/v1/orgs/riverside/programs", headers=two_schools["a"])
    assert resp.status_code == 403

    resp = await client.get("/v1/orgs/greenfield/programs", headers=two_schools["a"])
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_staff_cannot_write_students(client: AsyncClient, two_schools):
    resp = await client.post(
        "/v1/students", json={"name": "Ada"}, headers=two_schools["staff_a"],
    )
    assert resp.status_code == 403
    assert "manage_students" in resp.json()["detail"]

    resp = await client.get("/v1/students", headers=two_schools["staff_a"])
    assert resp.status_code == 200

    resp = await client.post("/v1/programs", json={"title": "Art"}, headers=two_schools["staff_a"])
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_feature_gated_collection(client: AsyncClient, make_org, make_user, headers_for):
    await make_org("small_school", plan=Plan.BASIC)
    admin = await make_user("admin@small.test", organization_id="small_school")

    resp = await client.post(
        "/v1/news_events", json={"title": "Fair"}, headers=headers_for(admin),
    )
    assert resp.status_code == 403
    assert "events" in resp.json()["detail"]

    resp = await client.post("/v1/students", json={"name": "Ada"}, headers=headers_for(admin))
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_suspended_org_denied(client: AsyncClient, make_org, make_user, headers_for):
    await make_org("lapsed", status=SubscriptionStatus.SUSPENDED)
    admin = await make_user("admin@lapsed.test", organization_id="lapsed")

    resp = await client.get("/v1/programs", headers=headers_for(admin))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Organization subscription is not active"


@pytest.mark.asyncio
async def test_super_admin_reads_across_tenants(client: AsyncClient, two_schools):
    await client.post("/v1/programs", json={"title": "A"}, headers=two_schools["a"])
    await client.post("/v1/programs", json={"title": "B"}, headers=two_schools["b"])

    resp = await client.get("/v1/programs", headers=two_schools["root"])
    assert resp.status_code == 200
    assert {r["organization_id"] for r in resp.json()} == {"greenfield", "riverside"}

    headers = {**two_schools["root"], "X-Organization-Id": "riverside"}
    resp = await client.get("/v1/programs", headers=headers)
    assert [r["data"]["title"] for r in resp.json()] == ["B"]

    resp = await client.get("/v1/orgs/greenfield/programs", headers=two_schools["root"])
    assert [r["data"]["title"] for r in resp.json()] == ["A"]


@pytest.mark.asyncio
async def test_super_admin_creates_for_chosen_tenant(client: AsyncClient, two_schools):
    resp = await client.post(
        "/v1/programs",
        json={"title": "Assigned", "organization_id": "riverside"},
        headers=two_schools["root"],
    )
    assert resp.status_code == 201
    assert resp.json()["organization_id"] == "riverside"


@pytest.mark.asyncio
async def test_super_admin_create_needs_a_tenant(client: AsyncClient, two_schools):
    resp = await client.post("/v1/programs", json={"title": "Nowhere"}, headers=two_schools["root"])
    assert resp.status_code == 400

    resp = await client.post(
        "/v1/programs",
        json={"title": "Ghost", "organization_id": "ghost"},
        headers=two_schools["root"],
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_super_admin_updates_any_record(client: AsyncClient, two_schools):
    resp = await client.post("/v1/programs", json={"title": "B"}, headers=two_schools["b"])
    record_id = resp.json()["id"]

    resp = await client.put(
        f"/v1/programs/{record_id}", json={"title": "B2"}, headers=two_schools["root"],
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "B2"
    assert resp.json()["organization_id"] == "riverside"
