from __future__ import annotations

import pytest

from gymclub.core.errors import AlreadyAssigned, NotAssigned, NotFound
from gymclub.services import authorization, permissions, roles
from tests.testkit import create_user, make_superadmin, permission_ids_by_key


@pytest.fixture()
def catalog(db):
    permissions.seed_catalog(db)
    return db


def test_effective_permissions_union_of_roles_and_direct_grants(catalog, identity_factory):
    db = catalog
    p1, p2, p3 = permission_ids_by_key(db, "gyms.read", "gyms.update", "clubs.read")
    user = create_user(db, identity_factory)
    role = roles.create_role(db, "R", None, [p1, p2])

    authorization.assign_role(db, user.id, role.id)
    authorization.grant_permission(db, user.id, p3)

    out = authorization.effective_permissions(db, user.id)
    assert set(out.keys) == {"gyms.read", "gyms.update", "clubs.read"}
    assert [p.id for p in out.permissions] == [p3, p1, p2]


def test_effective_permissions_have_no_duplicates(catalog, identity_factory):
    db = catalog
    p1, p2 = permission_ids_by_key(db, "users.read", "users.list")
    user = create_user(db, identity_factory)
    r1 = roles.create_role(db, "one", None, [p1, p2])
    r2 = roles.create_role(db, "two", None, [p1])
    authorization.grant_permission(db, user.id, p1)
    authorization.assign_role(db, user.id, r2.id)
    authorization.assign_role(db, user.id, r1.id)

    out = authorization.effective_permissions(db, user.id)
    assert out.keys == ["users.list", "users.read"]
    assert len(out.permissions) == 2


def test_user_without_grants_has_empty_set(catalog, identity_factory):
    user = create_user(catalog, identity_factory)
    assert authorization.effective_permissions(catalog, user.id).keys == []
    assert not authorization.has_permission(catalog, user.id, "users.read")


def test_assign_and_remove_role(catalog, identity_factory):
    db = catalog
    user = create_user(db, identity_factory)
    role = roles.create_role(db, "staff")

    authorization.assign_role(db, user.id, role.id)
    with pytest.raises(AlreadyAssigned):
        authorization.assign_role(db, user.id, role.id)

    authorization.remove_role(db, user.id, role.id)
    with pytest.raises(NotAssigned):
        authorization.remove_role(db, user.id, role.id)

    with pytest.raises(NotFound):
        authorization.assign_role(db, 987654, role.id)
    with pytest.raises(NotFound):
        authorization.assign_role(db, user.id, 987654)


def test_replace_roles_is_all_or_nothing(catalog, identity_factory):
    db = catalog
    user = create_user(db, identity_factory)
    a = roles.create_role(db, "a")
    b = roles.create_role(db, "b")
    authorization.assign_role(db, user.id, a.id)

    with pytest.raises(NotFound):
        authorization.replace_roles(db, user.id, [b.id, 31337])
    assert [r.name for r in authorization.list_user_roles(db, user.id)] == ["a"]

    out = authorization.replace_roles(db, user.id, [b.id, b.id])
    assert [r.name for r in out] == ["b"]

    assert authorization.replace_roles(db, user.id, []) == []


def test_direct_grants(catalog, identity_factory):
    db = catalog
    user = create_user(db, identity_factory)
    read_id, list_id = permission_ids_by_key(db, "clubs.read", "clubs.list")

    authorization.grant_permission(db, user.id, read_id)
    with pytest.raises(AlreadyAssigned):
        authorization.grant_permission(db, user.id, read_id)
    assert authorization.has_permission(db, user.id, "clubs.read")

    out = authorization.replace_permissions(db, user.id, [list_id])
    assert [p.key for p in out] == ["clubs.list"]

    with pytest.raises(NotFound):
        authorization.replace_permissions(db, user.id, [424242])
    assert [p.key for p in authorization.list_direct_permissions(db, user.id)] == ["clubs.list"]

    authorization.revoke_permission(db, user.id, list_id)
    with pytest.raises(NotAssigned):
        authorization.revoke_permission(db, user.id, list_id)
    assert authorization.effective_permissions(db, user.id).keys == []


def test_superadmin_role_is_recognised(catalog, identity_factory):
    db = catalog
    admin = create_user(db, identity_factory, "admin")
    member = create_user(db, identity_factory)
    make_superadmin(db, admin.id)

    assert authorization.is_superadmin(db, admin.id)
    assert not authorization.is_superadmin(db, member.id)
