from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

PERMISSION_KEY_PATTERN = r"^[a-zA-Z0-9._-]+$"
PERMISSION_MODULE_PATTERN = r"^[a-zA-Z0-9_-]+$"


class PermissionCreateIn(BaseModel):
    key: str = Field(..., min_length=3, max_length=100, pattern=PERMISSION_KEY_PATTERN)
    description: str = Field(..., min_length=5, max_length=500)
    module: str = Field(..., min_length=2, max_length=50, pattern=PERMISSION_MODULE_PATTERN)


class PermissionUpdateIn(BaseModel):
    description: str = Field(..., min_length=5, max_length=500)


class PermissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    key: str
    module: str
    description: str
    created_at: datetime | None = None


class PermissionSeedOut(BaseModel):
    created: list[str] = Field(default_factory=list)
    existing: int = 0
