from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gymclub.schemas.common import not_null
from gymclub.schemas.permissions import PermissionOut


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_name: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    status: str
    created_at: datetime | None = None


class UserUpdateIn(BaseModel):
    user_name: str | None = Field(default=None, min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9._-]+$")
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, min_length=5, max_length=254)
    phone: str | None = Field(default=None, max_length=32)  # null clears it
    status: Literal["active", "blocked"] | None = None

    @field_validator("user_name", "first_name", "last_name", "email", "status")
    @classmethod
    def _reject_null(cls, value):
        return not_null(value)


class UserListOut(BaseModel):
    rows: list[UserOut] = Field(default_factory=list)
    limit: int
    offset: int
    next_offset: int | None = None


class UserRoleAssignIn(BaseModel):
    role_id: int


class UserRolesIn(BaseModel):
    role_ids: list[int] = Field(default_factory=list)


class UserPermissionAssignIn(BaseModel):
    permission_id: int


class UserPermissionsIn(BaseModel):
    permission_ids: list[int] = Field(default_factory=list)


class EffectivePermissionsOut(BaseModel):
    user_id: int
    keys: list[str] = Field(default_factory=list)
    permissions: list[PermissionOut] = Field(default_factory=list)
