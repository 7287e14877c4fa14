"""HTTP surface: routing, authentication and error translation."""

import pytest
from fastapi.testclient import TestClient

from cohort.core.security import create_access_token
from cohort.database import get_db
from cohort.main import app

GROUPS = "/api/v1/groups"


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth(actor):
    token = create_access_token({"sub": str(actor.id)})
    return {"Authorization": f"Bearer {token}"}


def create_group(client, actor, **overrides):
    payload = {"name": "Book Lovers Club", "max_capacity": 2, "visibility": "PUBLIC"}
    payload.update(overrides)
    response = client.post(GROUPS, json=payload, headers=auth(actor))
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_requires_token(client):
    assert client.get(f"{GROUPS}/me").status_code == 401


def test_rejects_bad_token(client):
    response = client.get(f"{GROUPS}/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_create_and_fetch_own_group(client, owner):
    group = create_group(client, owner, visibility="PRIVATE", description="Monthly reads")

    assert group["owner_id"] == owner.id
    assert group["owner"]["email"] == owner.email
    assert group["member_count"] == 1
    assert group["visibility"] == "PRIVATE"
    assert len(group["invite_code"]) == 8

    mine = client.get(f"{GROUPS}/me", headers=auth(owner)).json()
    assert mine["id"] == group["id"]


def test_no_group_is_null(client, alice):
    response = client.get(f"{GROUPS}/me", headers=auth(alice))
    assert response.status_code == 200
    assert response.json() is None


def test_invalid_capacity_is_rejected_by_schema(client, owner):
    response = client.post(
        GROUPS,
        json={"name": "Too Small", "max_capacity": 1, "visibility": "PUBLIC"},
        headers=auth(owner),
    )
    assert response.status_code == 422


def test_join_request_flow(client, owner, alice, bob):
    group = create_group(client, owner)

    join = client.post(f"{GROUPS}/{group['id']}/join", headers=auth(alice))
    assert join.status_code == 201
    request_id = join.json()["id"]
    assert join.json()["status"] == "PENDING"

    pending = client.get(f"{GROUPS}/{group['id']}/join-requests", headers=auth(owner)).json()
    assert [r["user"]["email"] for r in pending] == [alice.email]

    approved = client.put(f"{GROUPS}/join-requests/{request_id}/approve", headers=auth(owner))
    assert approved.status_code == 200
    assert approved.json()["user_id"] == alice.id
    assert approved.json()["status"] == "ACTIVE"

    # Group is now full
    full = client.post(f"{GROUPS}/{group['id']}/join", headers=auth(bob))
    assert full.status_code == 400
    assert full.json()["code"] == "CAPACITY_EXCEEDED"

    again = client.put(f"{GROUPS}/join-requests/{request_id}/reject", headers=auth(owner))
    assert again.status_code == 409
    assert again.json()["code"] == "ALREADY_PROCESSED"


def test_reject_returns_request(client, owner, alice):
    group = create_group(client, owner)
    request_id = client.post(f"{GROUPS}/{group['id']}/join", headers=auth(alice)).json()["id"]

    response = client.put(f"{GROUPS}/join-requests/{request_id}/reject", headers=auth(owner))

    assert response.status_code == 200
    assert response.json()["status"] == "REJECTED"


def test_private_group_invite_and_join(client, owner, alice):
    group = create_group(client, owner, visibility="PRIVATE")

    invite = client.post(
        f"{GROUPS}/{group['id']}/invite",
        json={"email": alice.email},
        headers=auth(owner),
    )
    assert invite.status_code == 200
    assert invite.json()["invite_code"] == group["invite_code"]

    joined = client.post(
        f"{GROUPS}/join/private",
        json={"invite_code": invite.json()["invite_code"]},
        headers=auth(alice),
    )
    assert joined.status_code == 200
    assert joined.json()["group_id"] == group["id"]

    members = client.get(f"{GROUPS}/{group['id']}/members", headers=auth(owner)).json()
    assert [m["id"] for m in members] == [owner.id, alice.id]


def test_unknown_invite_code(client, alice):
    response = client.post(f"{GROUPS}/join/private", json={"invite_code": "ZZZZZZZZ"}, headers=auth(alice))

    assert response.status_code == 404
    assert response.json() == {"detail": "Invalid invite code", "code": "NOT_FOUND"}


def test_search_public_groups(client, make_actor):
    owners = {}
    for name in ("Chess Club", "Running Crew", "Chess Masters"):
        owners[name] = make_actor()
        create_group(client, owners[name], name=name)

    response = client.get(f"{GROUPS}/search", params={"name": "chess", "limit": 1}, headers=auth(make_actor()))

    body = response.json()
    assert response.status_code == 200
    assert body["total"] == 2
    assert body["total_pages"] == 2
    assert [g["name"] for g in body["items"]] == ["Chess Masters"]
    assert body["items"][0]["owner"]["id"] == owners["Chess Masters"].id
    assert body["items"][0]["owner"]["email"] == owners["Chess Masters"].email


def test_leave_and_remove(client, owner, alice, bob):
    group = create_group(client, owner, visibility="PRIVATE", max_capacity=3)
    for user in (alice, bob):
        client.post(f"{GROUPS}/join/private", json={"invite_code": group["invite_code"]}, headers=auth(user))

    assert client.delete(f"{GROUPS}/me/leave", headers=auth(alice)).status_code == 204
    assert client.delete(f"{GROUPS}/{group['id']}/members/{bob.id}", headers=auth(owner)).status_code == 204

    owner_leave = client.delete(f"{GROUPS}/me/leave", headers=auth(owner))
    assert owner_leave.status_code == 403
    assert owner_leave.json()["code"] == "OWNER_CANNOT_LEAVE"

    self_remove = client.delete(f"{GROUPS}/{group['id']}/members/{owner.id}", headers=auth(owner))
    assert self_remove.status_code == 403
    assert self_remove.json()["code"] == "SELF_REMOVAL"

    not_member = client.delete(f"{GROUPS}/me/leave", headers=auth(alice))
    assert not_member.status_code == 404
    assert not_member.json()["code"] == "NOT_A_MEMBER"


def test_non_owner_is_forbidden(client, owner, alice):
    group = create_group(client, owner)

    response = client.get(f"{GROUPS}/{group['id']}/members", headers=auth(alice))

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_second_group_conflicts(client, owner):
    create_group(client, owner)

    response = client.post(
        GROUPS,
        json={"name": "Another", "max_capacity": 5, "visibility": "PUBLIC"},
        headers=auth(owner),
    )

    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_MEMBER"
