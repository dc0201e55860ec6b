"""Typed errors raised by the service layer.

Services never know about HTTP. Each error carries a ``kind`` and renders to
the ``{success, message, errors?}`` result body; ``gymclub.main`` maps the
kind to a status code.
"""
from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    kind = "ServiceError"
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None, errors: list[Any] | None = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def as_result(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": False, "message": self.message, "kind": self.kind}
        if self.errors:
            out["errors"] = self.errors
        return out


class NotFound(ServiceError):
    kind = "NotFound"
    default_message = "Resource not found"


class DuplicateKey(ServiceError):
    kind = "DuplicateKey"
    default_message = "Permission key already exists"


class DuplicateName(ServiceError):
    kind = "DuplicateName"
    default_message = "Name already in use"


class DuplicateEdge(ServiceError):
    kind = "DuplicateEdge"
    default_message = "Club and gym are already linked"


class DuplicateOwnership(ServiceError):
    kind = "DuplicateOwnership"
    default_message = "User already owns this club"


class PercentageExceeded(ServiceError):
    kind = "PercentageExceeded"
    default_message = "Total ownership percentage cannot exceed 100%"


class AlreadyAssigned(ServiceError):
    kind = "AlreadyAssigned"
    default_message = "Already assigned to user"


class NotAssigned(ServiceError):
    kind = "NotAssigned"
    default_message = "Not assigned to user"


class ValidationError(ServiceError):
    kind = "ValidationError"
    default_message = "Invalid input"


class NoFieldsToUpdate(ServiceError):
    kind = "NoFieldsToUpdate"
    default_message = "No fields to update"


class InUse(ServiceError):
    kind = "InUse"
    default_message = "Resource is still referenced"


class InternalError(ServiceError):
    kind = "InternalError"
    default_message = "Unexpected error, try again later"


STATUS_BY_KIND: dict[str, int] = {
    NotFound.kind: 404,
    DuplicateKey.kind: 409,
    DuplicateName.kind: 409,
    DuplicateEdge.kind: 409,
    DuplicateOwnership.kind: 409,
    AlreadyAssigned.kind: 409,
    InUse.kind: 409,
    NotAssigned.kind: 404,
    PercentageExceeded.kind: 400,
    ValidationError.kind: 400,
    NoFieldsToUpdate.kind: 400,
    InternalError.kind: 500,
}


def status_for(exc: ServiceError) -> int:
    return STATUS_BY_KIND.get(exc.kind, 400)
