"""Role assignment, direct grants and effective-permission resolution for users.

A user's effective permissions are the union of everything reachable through
the roles assigned to them plus the permissions granted to them directly.
Nothing here touches issued tokens: changes apply on the next resolution.
"""
from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.orm import Session

from gymclub.core.config import settings
from gymclub.core.errors import AlreadyAssigned, NotAssigned, NotFound
from gymclub.db.session import atomic
from gymclub.models.permission import Permission, UserPermission
from gymclub.models.role import Role, UserRole
from gymclub.models.user import User
from gymclub.schemas.permissions import PermissionOut
from gymclub.schemas.roles import RoleOut
from gymclub.schemas.users import EffectivePermissionsOut
from gymclub.services.audit import audit
from gymclub.services.permission_cache import permission_cache
from gymclub.services.permissions import require_permission_ids

logger = logging.getLogger(__name__)

_EFFECTIVE_SQL = sa.text(
    """
    SELECT p.id AS id, p.key AS key, p.module AS module, p.description AS description, p.created_at AS created_at
    FROM permissions p
    JOIN role_permissions_map rpm ON rpm.permission_id = p.id
    JOIN roles_users_map rum ON rum.role_id = rpm.role_id
    WHERE rum.user_id = :u
    UNION
    SELECT p.id AS id, p.key AS key, p.module AS module, p.description AS description, p.created_at AS created_at
    FROM permissions p
    JOIN user_permissions_map upm ON upm.permission_id = p.id
    WHERE upm.user_id = :u
    ORDER BY module, key
    """
)


def _require_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def _require_role(db: Session, role_id: int) -> Role:
    role = db.get(Role, role_id)
    if role is None:
        raise NotFound("Role not found")
    return role


def _require_permission(db: Session, permission_id: int) -> Permission:
    row = db.get(Permission, permission_id)
    if row is None:
        raise NotFound("Permission not found")
    return row


def _require_role_ids(db: Session, role_ids: list[int]) -> list[int]:
    wanted = list(dict.fromkeys(int(r) for r in role_ids))
    if not wanted:
        return wanted
    found = set(db.execute(sa.select(Role.id).where(Role.id.in_(wanted))).scalars().all())
    missing = sorted(set(wanted) - found)
    if missing:
        raise NotFound("Unknown role ids", errors=[{"role_id": r} for r in missing])
    return wanted


# Resolution


def effective_permissions(db: Session, user_id: int) -> EffectivePermissionsOut:
    _require_user(db, user_id)
    rows = db.execute(_EFFECTIVE_SQL, {"u": user_id}).mappings().all()
    # UNION already collapses duplicates; the dict keeps it true even if rows differ in a column.
    by_id = {int(r["id"]): PermissionOut(**r) for r in rows}
    permissions = sorted(by_id.values(), key=lambda p: (p.module, p.key))
    return EffectivePermissionsOut(
        user_id=user_id,
        keys=sorted({p.key for p in permissions}),
        permissions=permissions,
    )


def effective_permission_keys(db: Session, user_id: int) -> frozenset[str]:
    cached = permission_cache.get(user_id)
    if cached is not None:
        return cached
    keys = frozenset(effective_permissions(db, user_id).keys)
    permission_cache.put(user_id, keys)
    return keys


def is_superadmin(db: Session, user_id: int) -> bool:
    row = db.execute(
        sa.select(UserRole.role_id)
        .join(Role, Role.id == UserRole.role_id)
        .where(UserRole.user_id == user_id, Role.name == settings.SUPERADMIN_ROLE_NAME)
    ).first()
    return row is not None


def has_permission(db: Session, user_id: int, key: str) -> bool:
    return key in effective_permission_keys(db, user_id)


# Roles


def list_user_roles(db: Session, user_id: int) -> list[RoleOut]:
    _require_user(db, user_id)
    rows = db.execute(
        sa.select(Role)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id)
        .order_by(Role.name)
    ).scalars().all()
    return [RoleOut.model_validate(r) for r in rows]


def assign_role(db: Session, user_id: int, role_id: int, *, actor_id: int | None = None) -> RoleOut:
    with atomic(db):
        _require_user(db, user_id)
        role = _require_role(db, role_id)
        exists = db.execute(
            sa.select(UserRole.role_id).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        ).first()
        if exists:
            raise AlreadyAssigned("Role is already assigned to this user")
        db.execute(sa.insert(UserRole), [{"user_id": user_id, "role_id": role_id}])
        audit(db, actor_id, "user", user_id, "role_assigned", {"role_id": role_id})
    permission_cache.invalidate(user_id)
    logger.info("role assigned user=%s role=%s", user_id, role_id)
    return RoleOut.model_validate(role)


def remove_role(db: Session, user_id: int, role_id: int, *, actor_id: int | None = None) -> None:
    with atomic(db):
        _require_user(db, user_id)
        _require_role(db, role_id)
        removed = db.execute(
            sa.delete(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        ).rowcount
        if not removed:
            raise NotAssigned("Role is not assigned to this user")
        audit(db, actor_id, "user", user_id, "role_removed", {"role_id": role_id})
    permission_cache.invalidate(user_id)
    logger.info("role removed user=%s role=%s", user_id, role_id)


def replace_roles(db: Session, user_id: int, role_ids: list[int], *, actor_id: int | None = None) -> list[RoleOut]:
    with atomic(db):
        _require_user(db, user_id)
        wanted = _require_role_ids(db, role_ids)
        db.execute(sa.delete(UserRole).where(UserRole.user_id == user_id))
        if wanted:
            db.execute(sa.insert(UserRole), [{"user_id": user_id, "role_id": r} for r in wanted])
        audit(db, actor_id, "user", user_id, "roles_replaced", {"role_ids": wanted})
    permission_cache.invalidate(user_id)
    logger.info("roles replaced user=%s roles=%d", user_id, len(wanted))
    return list_user_roles(db, user_id)


# Direct grants


def list_direct_permissions(db: Session, user_id: int) -> list[PermissionOut]:
    _require_user(db, user_id)
    rows = db.execute(
        sa.select(Permission)
        .join(UserPermission, UserPermission.permission_id == Permission.id)
        .where(UserPermission.user_id == user_id)
        .order_by(Permission.module, Permission.key)
    ).scalars().all()
    return [PermissionOut.model_validate(r) for r in rows]


def grant_permission(db: Session, user_id: int, permission_id: int, *, actor_id: int | None = None) -> PermissionOut:
    with atomic(db):
        _require_user(db, user_id)
        permission = _require_permission(db, permission_id)
        exists = db.execute(
            sa.select(UserPermission.permission_id).where(
                UserPermission.user_id == user_id, UserPermission.permission_id == permission_id
            )
        ).first()
        if exists:
            raise AlreadyAssigned("Permission is already granted to this user")
        db.execute(sa.insert(UserPermission), [{"user_id": user_id, "permission_id": permission_id}])
        audit(db, actor_id, "user", user_id, "permission_granted", {"permission_id": permission_id})
    permission_cache.invalidate(user_id)
    logger.info("permission granted user=%s permission=%s", user_id, permission.key)
    return PermissionOut.model_validate(permission)


def revoke_permission(db: Session, user_id: int, permission_id: int, *, actor_id: int | None = None) -> None:
    with atomic(db):
        _require_user(db, user_id)
        _require_permission(db, permission_id)
        removed = db.execute(
            sa.delete(UserPermission).where(
                UserPermission.user_id == user_id, UserPermission.permission_id == permission_id
            )
        ).rowcount
        if not removed:
            raise NotAssigned("Permission is not granted to this user")
        audit(db, actor_id, "user", user_id, "permission_revoked", {"permission_id": permission_id})
    permission_cache.invalidate(user_id)
    logger.info("permission revoked user=%s permission=%s", user_id, permission_id)


def replace_permissions(
    db: Session, user_id: int, permission_ids: list[int], *, actor_id: int | None = None
) -> list[PermissionOut]:
    with atomic(db):
        _require_user(db, user_id)
        wanted = require_permission_ids(db, permission_ids)
        db.execute(sa.delete(UserPermission).where(UserPermission.user_id == user_id))
        if wanted:
            db.execute(sa.insert(UserPermission), [{"user_id": user_id, "permission_id": p} for p in wanted])
        audit(db, actor_id, "user", user_id, "permissions_replaced", {"permission_ids": wanted})
    permission_cache.invalidate(user_id)
    logger.info("direct permissions replaced user=%s permissions=%d", user_id, len(wanted))
    return list_direct_permissions(db, user_id)
