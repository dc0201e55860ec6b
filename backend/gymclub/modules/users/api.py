from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gymclub.api.deps import require_permission
from gymclub.db.session import get_db
from gymclub.schemas.clubs import UserStakeOut
from gymclub.schemas.common import ApiResponse, ok
from gymclub.schemas.permissions import PermissionOut
from gymclub.schemas.roles import RoleOut
from gymclub.schemas.users import (
    EffectivePermissionsOut,
    UserListOut,
    UserOut,
    UserPermissionAssignIn,
    UserPermissionsIn,
    UserRoleAssignIn,
    UserRolesIn,
    UserUpdateIn,
)
from gymclub.services import authorization, ownership, users

router = APIRouter()


@router.get("", response_model=ApiResponse[UserListOut])
def list_users(
    q: str | None = Query(default=None, max_length=50),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    current=Depends(require_permission("users.list")),
    db: Session = Depends(get_db),
):
    return ok("Users", users.list_users(db, q=q, limit=limit, offset=offset))


@router.get("/{user_id}", response_model=ApiResponse[UserOut])
def get_user(user_id: int, current=Depends(require_permission("users.read")), db: Session = Depends(get_db)):
    return ok("User", users.get_user(db, user_id))


@router.patch("/{user_id}", response_model=ApiResponse[UserOut])
def update_user(
    user_id: int,
    payload: UserUpdateIn,
    current=Depends(require_permission("users.update")),
    db: Session = Depends(get_db),
):
    return ok("User updated", users.update_user(db, user_id, payload, actor_id=current.id))


@router.delete("/{user_id}", response_model=ApiResponse[UserOut])
def delete_user(user_id: int, current=Depends(require_permission("users.delete")), db: Session = Depends(get_db)):
    return ok("User deleted", users.delete_user(db, user_id, actor_id=current.id))


@router.get("/{user_id}/stakes", response_model=ApiResponse[list[UserStakeOut]])
def user_stakes(user_id: int, current=Depends(require_permission("users.read")), db: Session = Depends(get_db)):
    return ok("Club stakes", ownership.list_user_stakes(db, user_id))


# roles


@router.get("/{user_id}/roles", response_model=ApiResponse[list[RoleOut]])
def user_roles(user_id: int, current=Depends(require_permission("users.read")), db: Session = Depends(get_db)):
    return ok("User roles", authorization.list_user_roles(db, user_id))


@router.post("/{user_id}/roles", response_model=ApiResponse[RoleOut], status_code=201)
def assign_role(
    user_id: int,
    payload: UserRoleAssignIn,
    current=Depends(require_permission("users.update")),
    db: Session = Depends(get_db),
):
    return ok("Role assigned", authorization.assign_role(db, user_id, payload.role_id, actor_id=current.id))


@router.delete("/{user_id}/roles/{role_id}", response_model=ApiResponse[None])
def remove_role(
    user_id: int,
    role_id: int,
    current=Depends(require_permission("users.update")),
    db: Session = Depends(get_db),
):
    authorization.remove_role(db, user_id, role_id, actor_id=current.id)
    return ok("Role removed")


@router.put("/{user_id}/roles", response_model=ApiResponse[list[RoleOut]])
def replace_roles(
    user_id: int,
    payload: UserRolesIn,
    current=Depends(require_permission("users.update")),
    db: Session = Depends(get_db),
):
    return ok("User roles updated", authorization.replace_roles(db, user_id, payload.role_ids, actor_id=current.id))


# direct permissions


@router.get("/{user_id}/permissions", response_model=ApiResponse[list[PermissionOut]])
def user_permissions(user_id: int, current=Depends(require_permission("users.read")), db: Session = Depends(get_db)):
    return ok("User permissions", authorization.list_direct_permissions(db, user_id))


@router.get("/{user_id}/permissions/effective", response_model=ApiResponse[EffectivePermissionsOut])
def user_effective_permissions(
    user_id: int,
    current=Depends(require_permission("users.read")),
    db: Session = Depends(get_db),
):
    return ok("Effective permissions", authorization.effective_permissions(db, user_id))


@router.post("/{user_id}/permissions", response_model=ApiResponse[PermissionOut], status_code=201)
def grant_permission(
    user_id: int,
    payload: UserPermissionAssignIn,
    current=Depends(require_permission("users.update")),
    db: Session = Depends(get_db),
):
    out = authorization.grant_permission(db, user_id, payload.permission_id, actor_id=current.id)
    return ok("Permission granted", out)


@router.delete("/{user_id}/permissions/{permission_id}", response_model=ApiResponse[None])
def revoke_permission(
    user_id: int,
    permission_id: int,
    current=Depends(require_permission("users.update")),
    db: Session = Depends(get_db),
):
    authorization.revoke_permission(db, user_id, permission_id, actor_id=current.id)
    return ok("Permission revoked")


@router.put("/{user_id}/permissions", response_model=ApiResponse[list[PermissionOut]])
def replace_permissions(
    user_id: int,
    payload: UserPermissionsIn,
    current=Depends(require_permission("users.update")),
    db: Session = Depends(get_db),
):
    out = authorization.replace_permissions(db, user_id, payload.permission_ids, actor_id=current.id)
    return ok("User permissions updated", out)
