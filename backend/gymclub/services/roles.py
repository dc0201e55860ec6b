from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.orm import Session

from gymclub.core.errors import DuplicateName, NoFieldsToUpdate, NotFound, ValidationError
from gymclub.db.session import atomic
from gymclub.models.permission import Permission
from gymclub.models.role import Role, RolePermission, UserRole
from gymclub.schemas.permissions import PermissionOut
from gymclub.schemas.roles import RoleDetailOut, RoleOut
from gymclub.services.audit import audit
from gymclub.services.permission_cache import permission_cache
from gymclub.services.permissions import require_permission_ids

logger = logging.getLogger(__name__)


def _get_or_404(db: Session, role_id: int) -> Role:
    row = db.get(Role, role_id)
    if row is None:
        raise NotFound("Role not found")
    return row


def _name_taken(db: Session, name: str, exclude_id: int | None = None) -> bool:
    stmt = sa.select(Role.id).where(Role.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Role.id != exclude_id)
    return db.execute(stmt).first() is not None


def _clean_name(name: str | None) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Role name is required", errors=[{"field": "name", "msg": "required"}])
    return value


def _link_permissions(db: Session, role_id: int, permission_ids: list[int]) -> None:
    if permission_ids:
        db.execute(
            sa.insert(RolePermission),
            [{"role_id": role_id, "permission_id": p} for p in permission_ids],
        )


def list_role_permissions(db: Session, role_id: int) -> list[PermissionOut]:
    _get_or_404(db, role_id)
    rows = db.execute(
        sa.select(Permission)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .where(RolePermission.role_id == role_id)
        .order_by(Permission.module, Permission.key)
    ).scalars().all()
    return [PermissionOut.model_validate(r) for r in rows]


def _detail(db: Session, role: Role) -> RoleDetailOut:
    out = RoleDetailOut.model_validate(role)
    out.permissions = list_role_permissions(db, role.id)
    return out


def create_role(
    db: Session,
    name: str,
    description: str | None = None,
    permission_ids: list[int] | None = None,
    *,
    actor_id: int | None = None,
) -> RoleDetailOut:
    name = _clean_name(name)
    with atomic(db):
        if _name_taken(db, name):
            raise DuplicateName(f"Role name '{name}' is already in use")
        wanted = require_permission_ids(db, permission_ids or [])
        role = Role(name=name, description=description)
        db.add(role)
        db.flush()
        _link_permissions(db, role.id, wanted)
        audit(db, actor_id, "role", role.id, "created", {"name": name, "permission_ids": wanted})
    logger.info("role created id=%s name=%s permissions=%d", role.id, name, len(wanted))
    return _detail(db, role)


def get_role(db: Session, role_id: int) -> RoleDetailOut:
    return _detail(db, _get_or_404(db, role_id))


def list_roles(db: Session) -> list[RoleOut]:
    rows = db.execute(sa.select(Role).order_by(Role.created_at.desc(), Role.id.desc())).scalars().all()
    return [RoleOut.model_validate(r) for r in rows]


def update_role(
    db: Session,
    role_id: int,
    name: str | None = None,
    description: str | None = None,
    *,
    actor_id: int | None = None,
) -> RoleOut:
    if name is None and description is None:
        raise NoFieldsToUpdate()
    with atomic(db):
        role = _get_or_404(db, role_id)
        changes = {}
        if name is not None:
            name = _clean_name(name)
            if _name_taken(db, name, exclude_id=role_id):
                raise DuplicateName(f"Role name '{name}' is already in use")
            role.name = name
            changes["name"] = name
        if description is not None:
            role.description = description
            changes["description"] = description
        audit(db, actor_id, "role", role_id, "updated", changes)
    return RoleOut.model_validate(role)


def update_role_permissions(
    db: Session, role_id: int, permission_ids: list[int], *, actor_id: int | None = None
) -> RoleDetailOut:
    with atomic(db):
        role = _get_or_404(db, role_id)
        wanted = require_permission_ids(db, permission_ids)
        db.execute(sa.delete(RolePermission).where(RolePermission.role_id == role_id))
        _link_permissions(db, role_id, wanted)
        audit(db, actor_id, "role", role_id, "permissions_replaced", {"permission_ids": wanted})
    permission_cache.clear()
    logger.info("role permissions replaced id=%s permissions=%d", role_id, len(wanted))
    return _detail(db, role)


def delete_role(db: Session, role_id: int, *, actor_id: int | None = None) -> RoleOut:
    with atomic(db):
        role = _get_or_404(db, role_id)
        out = RoleOut.model_validate(role)
        detached = db.execute(sa.delete(UserRole).where(UserRole.role_id == role_id)).rowcount
        db.execute(sa.delete(RolePermission).where(RolePermission.role_id == role_id))
        db.delete(role)
        audit(db, actor_id, "role", role_id, "deleted", {"name": out.name, "detached_users": detached})
    permission_cache.clear()
    logger.info("role deleted id=%s detached_users=%s", role_id, detached)
    return out
