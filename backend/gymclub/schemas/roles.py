from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from gymclub.schemas.permissions import PermissionOut


class RoleCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    permission_ids: list[int] = Field(default_factory=list)


class RoleUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class RolePermissionsIn(BaseModel):
    permission_ids: list[int] = Field(default_factory=list)


class RoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RoleDetailOut(RoleOut):
    permissions: list[PermissionOut] = Field(default_factory=list)
