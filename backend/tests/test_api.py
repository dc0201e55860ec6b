from __future__ import annotations

import pytest

from gymclub.services import authorization, permissions
from tests.testkit import ApiError, make_superadmin, permission_ids_by_key, register_user


@pytest.fixture()
def admin(api, session_factory, identity_factory):
    account = register_user(api, identity_factory, "admin")
    with session_factory() as db:
        permissions.seed_catalog(db)
        make_superadmin(db, account["user_id"])
    return account


def _club_body(name: str = "Iron Club") -> dict:
    return {"name": name, "phone": "+15550100", "email": "club@example.com"}


def test_health(api):
    assert api.call("GET", "/health") == {"ok": True}


def test_register_login_and_me(api, identity_factory):
    account = register_user(api, identity_factory)

    login = api.call("POST", "/auth/login", body={"identifier": account["user_name"], "password": account["password"]})
    assert login["success"] is True
    token = login["data"]["access_token"]

    me = api.call("GET", "/auth/me", token=token)
    assert me["data"]["user_name"] == account["user_name"]

    with pytest.raises(ApiError) as exc:
        api.call("POST", "/auth/login", body={"identifier": account["user_name"], "password": "wrong-password"})
    assert exc.value.status_code == 401
    assert exc.value.payload["success"] is False


def test_duplicate_registration_conflicts(api, identity_factory):
    account = register_user(api, identity_factory)
    with pytest.raises(ApiError) as exc:
        api.call(
            "POST",
            "/auth/register",
            body={
                "user_name": account["user_name"],
                "first_name": "Dup",
                "last_name": "Licate",
                "email": "another@example.com",
                "password": "Sup3rSecret!",
            },
        )
    assert exc.value.status_code == 409
    assert exc.value.payload["kind"] == "DuplicateName"


def test_missing_token_and_missing_permission(api, identity_factory):
    with pytest.raises(ApiError) as exc:
        api.call("GET", "/clubs")
    assert exc.value.status_code == 401

    member = register_user(api, identity_factory)
    with pytest.raises(ApiError) as exc:
        api.call("POST", "/clubs", token=member["token"], body=_club_body())
    assert exc.value.status_code == 403
    assert exc.value.payload == {"success": False, "message": "Missing permission: clubs.create"}


def test_direct_grant_opens_the_endpoint(api, session_factory, identity_factory):
    member = register_user(api, identity_factory)
    with session_factory() as db:
        permissions.seed_catalog(db)
        (create_id,) = permission_ids_by_key(db, "clubs.create")
        authorization.grant_permission(db, member["user_id"], create_id)

    out = api.call("POST", "/clubs", token=member["token"], body=_club_body())
    assert out["data"]["name"] == "Iron Club"

    mine = api.call("GET", "/auth/me/permissions", token=member["token"])
    assert mine["data"]["keys"] == ["clubs.create"]


def test_validation_errors_use_the_envelope(api, admin):
    with pytest.raises(ApiError) as exc:
        api.call("POST", "/clubs", token=admin["token"], body={"name": "X"})
    assert exc.value.status_code == 400
    body = exc.value.payload
    assert body["success"] is False
    assert {e["field"] for e in body["errors"]} >= {"name", "phone", "email"}


@pytest.mark.regression
def test_ownership_flow_over_http(api, admin, identity_factory):
    token = admin["token"]
    club_id = api.call("POST", "/clubs", token=token, body=_club_body())["data"]["id"]
    a = register_user(api, identity_factory, "alice")
    b = register_user(api, identity_factory, "bob")

    first = api.call(
        "POST",
        f"/clubs/{club_id}/owners",
        token=token,
        body={"user_id": a["user_id"], "ownership_type": "owner", "ownership_percentage": "60"},
    )
    assert first["data"]["percentage_source"] == "specified"

    with pytest.raises(ApiError) as exc:
        api.call(
            "POST",
            f"/clubs/{club_id}/owners",
            token=token,
            body={"user_id": b["user_id"], "ownership_type": "partner", "ownership_percentage": "50"},
        )
    assert exc.value.status_code == 400
    assert exc.value.payload["kind"] == "PercentageExceeded"

    api.call(
        "POST",
        f"/clubs/{club_id}/owners",
        token=token,
        body={"user_id": b["user_id"], "ownership_type": "partner", "ownership_percentage": "40"},
    )
    summary = api.call("GET", f"/clubs/{club_id}/owners/summary", token=token)["data"]
    assert summary["owner_count"] == 2
    assert summary["available_percentage"] in ("0.00", "0", 0)

    stake_id = first["data"]["id"]
    api.call("DELETE", f"/clubs/{club_id}/owners/{stake_id}", token=token)
    with pytest.raises(ApiError) as exc:
        api.call("DELETE", f"/clubs/{club_id}/owners/{stake_id}", token=token)
    assert exc.value.status_code == 404


@pytest.mark.regression
def test_club_gym_links_over_http(api, admin):
    token = admin["token"]
    club_id = api.call("POST", "/clubs", token=token, body=_club_body())["data"]["id"]
    gym_id = api.call("POST", "/gyms", token=token, body={"name": "North Gym"})["data"]["id"]

    edge = api.call("POST", f"/clubs/{club_id}/gyms", token=token, body={"gym_id": gym_id, "relationship_type": "partnership"})
    with pytest.raises(ApiError) as exc:
        api.call("POST", f"/gyms/{gym_id}/clubs", token=token, body={"club_id": club_id, "relationship_type": "ownership"})
    assert exc.value.status_code == 409

    changed = api.call(
        "PATCH", f"/clubs/{club_id}/gyms/{gym_id}", token=token, body={"relationship_type": "franchise"}
    )
    assert changed["data"]["id"] == edge["data"]["id"]

    gym = api.call("GET", f"/gyms/{gym_id}", token=token)["data"]
    assert [(c["club_id"], c["relationship_type"]) for c in gym["clubs"]] == [(club_id, "franchise")]

    api.call("DELETE", f"/gyms/{gym_id}/clubs/{club_id}", token=token)
    assert api.call("GET", f"/clubs/{club_id}/gyms", token=token)["data"] == []


def test_roles_and_user_assignment_over_http(api, admin, identity_factory):
    token = admin["token"]
    member = register_user(api, identity_factory)
    catalog = api.call("GET", "/permissions/module/gyms", token=token)["data"]
    read_id = next(p["id"] for p in catalog if p["key"] == "gyms.read")

    role = api.call("POST", "/roles", token=token, body={"name": "gym_viewer", "permission_ids": [read_id]})["data"]
    api.call("POST", f"/users/{member['user_id']}/roles", token=token, body={"role_id": role["id"]})
    with pytest.raises(ApiError) as exc:
        api.call("POST", f"/users/{member['user_id']}/roles", token=token, body={"role_id": role["id"]})
    assert exc.value.status_code == 409

    effective = api.call("GET", f"/users/{member['user_id']}/permissions/effective", token=token)["data"]
    assert effective["keys"] == ["gyms.read"]

    api.call("DELETE", f"/users/{member['user_id']}/roles/{role['id']}", token=token)
    with pytest.raises(ApiError) as exc:
        api.call("DELETE", f"/users/{member['user_id']}/roles/{role['id']}", token=token)
    assert exc.value.status_code == 404


def test_unknown_ids_are_not_found(api, admin):
    with pytest.raises(ApiError) as exc:
        api.call("GET", "/clubs/424242", token=admin["token"])
    assert exc.value.status_code == 404
    assert exc.value.payload["kind"] == "NotFound"


@pytest.mark.regression
@pytest.mark.parametrize(
    "path, create_body, patch_body",
    [
        ("/clubs", _club_body(), {"name": None}),
        ("/clubs", _club_body(), {"status": None}),
        ("/gyms", {"name": "North Gym"}, {"is_public": None}),
        ("/gyms", {"name": "North Gym"}, {"name": None}),
    ],
)
def test_null_on_required_column_is_a_validation_error(api, admin, path, create_body, patch_body):
    token = admin["token"]
    entity_id = api.call("POST", path, token=token, body=create_body)["data"]["id"]

    with pytest.raises(ApiError) as exc:
        api.call("PATCH", f"{path}/{entity_id}", token=token, body=patch_body)
    assert exc.value.status_code == 400
    assert [e["field"] for e in exc.value.payload["errors"]] == list(patch_body)


@pytest.mark.parametrize("password", ["x" * 100, "é" * 40])
def test_register_rejects_passwords_bcrypt_cannot_hash(api, identity_factory, password):
    user_name = identity_factory.next_user_name()
    with pytest.raises(ApiError) as exc:
        api.call(
            "POST",
            "/auth/register",
            body={
                "user_name": user_name,
                "first_name": "Long",
                "last_name": "Secret",
                "email": identity_factory.next_email(user_name),
                "password": password,
            },
        )
    assert exc.value.status_code == 400
    assert [e["field"] for e in exc.value.payload["errors"]] == ["password"]


def test_register_accepts_a_72_byte_password(api, identity_factory):
    account = register_user(api, identity_factory, password="p" * 72)
    login = api.call("POST", "/auth/login", body={"identifier": account["user_name"], "password": "p" * 72})
    assert login["data"]["user"]["id"] == account["user_id"]


@pytest.mark.regression
def test_blocked_user_token_is_refused(api, admin, identity_factory):
    member = register_user(api, identity_factory, "member")
    assert api.call("GET", "/auth/me", token=member["token"])["data"]["status"] == "active"

    out = api.call("PATCH", f"/users/{member['user_id']}", token=admin["token"], body={"status": "blocked"})
    assert out["data"]["status"] == "blocked"

    with pytest.raises(ApiError) as exc:
        api.call("GET", "/auth/me", token=member["token"])
    assert exc.value.status_code == 403

    api.call("PATCH", f"/users/{member['user_id']}", token=admin["token"], body={"status": "active"})
    assert api.call("GET", "/auth/me", token=member["token"])["data"]["user_name"] == member["user_name"]


def test_update_user_needs_permission(api, identity_factory):
    member = register_user(api, identity_factory, "member")
    other = register_user(api, identity_factory, "other")
    with pytest.raises(ApiError) as exc:
        api.call("PATCH", f"/users/{other['user_id']}", token=member["token"], body={"first_name": "Hacked"})
    assert exc.value.status_code == 403
    assert exc.value.payload["message"] == "Missing permission: users.update"
