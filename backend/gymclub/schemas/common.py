from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None
    errors: list[Any] | None = None


def ok(message: str, data=None) -> dict:
    out = {"success": True, "message": message}
    if data is not None:
        out["data"] = data
    return out


def not_null(value):
    """Field validator body for optional update fields backed by NOT NULL columns."""
    if value is None:
        raise ValueError("may be omitted but cannot be null")
    return value
