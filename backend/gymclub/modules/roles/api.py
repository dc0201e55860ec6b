from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymclub.api.deps import get_current_user, require_permission
from gymclub.db.session import get_db
from gymclub.schemas.common import ApiResponse, ok
from gymclub.schemas.permissions import PermissionOut
from gymclub.schemas.roles import RoleCreateIn, RoleDetailOut, RoleOut, RolePermissionsIn, RoleUpdateIn
from gymclub.services import roles

router = APIRouter()


@router.get("", response_model=ApiResponse[list[RoleOut]])
def list_roles(current=Depends(require_permission("roles.list")), db: Session = Depends(get_db)):
    return ok("Roles", roles.list_roles(db))


@router.post("", response_model=ApiResponse[RoleDetailOut], status_code=201)
def create_role(
    payload: RoleCreateIn,
    current=Depends(require_permission("roles.create")),
    db: Session = Depends(get_db),
):
    out = roles.create_role(db, payload.name, payload.description, payload.permission_ids, actor_id=current.id)
    return ok("Role created", out)


@router.get("/{role_id}", response_model=ApiResponse[RoleDetailOut])
def get_role(role_id: int, current=Depends(require_permission("roles.read")), db: Session = Depends(get_db)):
    return ok("Role", roles.get_role(db, role_id))


@router.patch("/{role_id}", response_model=ApiResponse[RoleOut])
def update_role(
    role_id: int,
    payload: RoleUpdateIn,
    current=Depends(require_permission("roles.update")),
    db: Session = Depends(get_db),
):
    out = roles.update_role(db, role_id, payload.name, payload.description, actor_id=current.id)
    return ok("Role updated", out)


@router.delete("/{role_id}", response_model=ApiResponse[RoleOut])
def delete_role(role_id: int, current=Depends(require_permission("roles.delete")), db: Session = Depends(get_db)):
    return ok("Role deleted", roles.delete_role(db, role_id, actor_id=current.id))


@router.get("/{role_id}/permissions", response_model=ApiResponse[list[PermissionOut]])
def role_permissions(role_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Role permissions", roles.list_role_permissions(db, role_id))


@router.put("/{role_id}/permissions", response_model=ApiResponse[RoleDetailOut])
def replace_role_permissions(
    role_id: int,
    payload: RolePermissionsIn,
    current=Depends(require_permission("roles.update")),
    db: Session = Depends(get_db),
):
    out = roles.update_role_permissions(db, role_id, payload.permission_ids, actor_id=current.id)
    return ok("Role permissions updated", out)
