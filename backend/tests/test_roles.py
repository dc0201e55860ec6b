from __future__ import annotations

import pytest

from gymclub.core.errors import DuplicateName, NoFieldsToUpdate, NotFound
from gymclub.services import authorization, permissions, roles
from tests.testkit import create_user, permission_ids_by_key


@pytest.fixture()
def catalog(db):
    permissions.seed_catalog(db)
    return db


def test_create_role_links_permissions(catalog):
    db = catalog
    ids = permission_ids_by_key(db, "users.read", "clubs.read", "clubs.list")
    role = roles.create_role(db, "viewer", "Read only", ids)

    assert role.name == "viewer"
    # ordered by module, then key
    assert [p.key for p in role.permissions] == ["clubs.list", "clubs.read", "users.read"]
    assert roles.get_role(db, role.id).permissions == role.permissions


def test_create_role_rejects_duplicate_name(catalog):
    roles.create_role(catalog, "viewer")
    with pytest.raises(DuplicateName):
        roles.create_role(catalog, "viewer", "again")


def test_unknown_permission_rejects_whole_creation(catalog):
    db = catalog
    ids = permission_ids_by_key(db, "users.read")
    with pytest.raises(NotFound) as exc:
        roles.create_role(db, "broken", None, ids + [424242])
    assert exc.value.errors == [{"permission_id": 424242}]
    assert roles.list_roles(db) == []


def test_update_role_permissions_replaces_the_set(catalog):
    db = catalog
    role = roles.create_role(db, "staff", None, permission_ids_by_key(db, "gyms.read", "gyms.update"))

    out = roles.update_role_permissions(db, role.id, permission_ids_by_key(db, "clubs.read"))
    assert [p.key for p in out.permissions] == ["clubs.read"]

    out = roles.update_role_permissions(db, role.id, [])
    assert out.permissions == []


def test_failed_replace_keeps_previous_permissions(catalog):
    db = catalog
    role = roles.create_role(db, "staff", None, permission_ids_by_key(db, "gyms.read"))
    with pytest.raises(NotFound):
        roles.update_role_permissions(db, role.id, permission_ids_by_key(db, "clubs.read") + [777])
    assert [p.key for p in roles.list_role_permissions(db, role.id)] == ["gyms.read"]


def test_update_role_fields(catalog):
    db = catalog
    role = roles.create_role(db, "staff", "Gym staff")
    roles.create_role(db, "manager")

    with pytest.raises(NoFieldsToUpdate):
        roles.update_role(db, role.id)
    with pytest.raises(DuplicateName):
        roles.update_role(db, role.id, name="manager")

    # renaming to its own name is not a clash
    out = roles.update_role(db, role.id, name="staff", description="Front desk")
    assert (out.name, out.description) == ("staff", "Front desk")

    with pytest.raises(NotFound):
        roles.update_role(db, 5555, name="ghost")


def test_list_roles_newest_first(catalog):
    db = catalog
    first = roles.create_role(db, "first")
    second = roles.create_role(db, "second")
    assert [r.id for r in roles.list_roles(db)] == [second.id, first.id]


def test_delete_role_detaches_users(catalog, identity_factory):
    db = catalog
    user = create_user(db, identity_factory)
    role = roles.create_role(db, "staff", None, permission_ids_by_key(db, "gyms.read"))
    authorization.assign_role(db, user.id, role.id)
    assert authorization.has_permission(db, user.id, "gyms.read")

    roles.delete_role(db, role.id)

    assert authorization.list_user_roles(db, user.id) == []
    assert not authorization.has_permission(db, user.id, "gyms.read")
    with pytest.raises(NotFound):
        roles.get_role(db, role.id)
