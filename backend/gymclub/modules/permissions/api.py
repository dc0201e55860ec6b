from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from gymclub.api.deps import get_current_user, require_permission
from gymclub.db.session import get_db
from gymclub.schemas.common import ApiResponse, ok
from gymclub.schemas.permissions import PermissionCreateIn, PermissionOut, PermissionUpdateIn
from gymclub.services import permissions as catalog

router = APIRouter()


@router.get("", response_model=ApiResponse[list[PermissionOut]])
def list_permissions(current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Permissions", catalog.list_permissions(db))


@router.get("/modules", response_model=ApiResponse[list[str]])
def list_modules(current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Permission modules", catalog.list_modules(db))


@router.get("/module/{module}", response_model=ApiResponse[list[PermissionOut]])
def list_by_module(
    module: str = Path(..., min_length=2, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$"),
    current=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ok("Module permissions", catalog.list_permissions(db, module=module))


@router.get("/{permission_id}", response_model=ApiResponse[PermissionOut])
def get_permission(permission_id: int, current=Depends(get_current_user), db: Session = Depends(get_db)):
    return ok("Permission", catalog.get_permission(db, permission_id))


@router.post("", response_model=ApiResponse[PermissionOut], status_code=201)
def create_permission(
    payload: PermissionCreateIn,
    current=Depends(require_permission("permissions.create")),
    db: Session = Depends(get_db),
):
    out = catalog.create_permission(db, payload.key, payload.description, payload.module, actor_id=current.id)
    return ok("Permission created", out)


@router.patch("/{permission_id}", response_model=ApiResponse[PermissionOut])
def update_permission(
    permission_id: int,
    payload: PermissionUpdateIn,
    current=Depends(require_permission("permissions.update")),
    db: Session = Depends(get_db),
):
    out = catalog.update_permission_description(db, permission_id, payload.description, actor_id=current.id)
    return ok("Permission updated", out)


@router.delete("/{permission_id}", response_model=ApiResponse[PermissionOut])
def delete_permission(
    permission_id: int,
    current=Depends(require_permission("permissions.delete")),
    db: Session = Depends(get_db),
):
    return ok("Permission deleted", catalog.delete_permission(db, permission_id, actor_id=current.id))
