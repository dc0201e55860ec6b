from __future__ import annotations

from dataclasses import dataclass

import sqlalchemy as sa
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from gymclub.core.config import settings
from gymclub.models.role import Role
from gymclub.models.user import User
from gymclub.schemas.clubs import ClubCreateIn
from gymclub.schemas.gyms import GymCreateIn
from gymclub.services import authorization, clubs, gyms, permissions, roles


class ApiError(RuntimeError):
    def __init__(self, status_code: int, payload):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"HTTP {status_code}: {payload}")


class ApiClient:
    """Thin wrapper over ``TestClient`` returning parsed bodies and raising ``ApiError`` on 4xx/5xx."""

    def __init__(self, client: TestClient):
        self.client = client

    def call(self, method: str, path: str, *, token: str | None = None, body=None):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        resp = self.client.request(method.upper(), path, headers=headers, json=body)
        payload = _parse_payload(resp)
        if resp.status_code >= 400:
            raise ApiError(resp.status_code, payload)
        return payload


def _parse_payload(resp):
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


@dataclass
class IdentityFactory:
    seed: str
    counter: int = 0

    def next_user_name(self, prefix: str = "user") -> str:
        self.counter += 1
        return f"{prefix}_{self.seed}_{self.counter}"

    def next_email(self, user_name: str) -> str:
        return f"{user_name}@example.com"


# Direct-to-store helpers for service tests


def create_user(db: Session, identity: IdentityFactory, prefix: str = "user") -> User:
    user_name = identity.next_user_name(prefix)
    user = User(
        user_name=user_name,
        first_name=prefix.title(),
        last_name="Tester",
        email=identity.next_email(user_name),
        password_hash="unusable",
        status="active",
    )
    db.add(user)
    db.commit()
    return user


def create_club(db: Session, name: str = "Iron Club"):
    return clubs.create_club(db, ClubCreateIn(name=name, phone="+15550100", email="club@example.com"))


def create_gym(db: Session, name: str = "North Gym", club_id: int | None = None, city: str | None = None):
    return gyms.create_gym(db, GymCreateIn(name=name, club_id=club_id, city=city))


def permission_ids_by_key(db: Session, *keys: str) -> list[int]:
    by_key = {p.key: p.id for p in permissions.list_permissions(db)}
    return [by_key[k] for k in keys]


def make_superadmin(db: Session, user_id: int) -> None:
    role_id = db.execute(sa.select(Role.id).where(Role.name == settings.SUPERADMIN_ROLE_NAME)).scalar_one_or_none()
    if role_id is None:
        role_id = roles.create_role(db, settings.SUPERADMIN_ROLE_NAME, "Full access").id
    authorization.assign_role(db, user_id, role_id)


# HTTP helpers


def register_user(api: ApiClient, identity: IdentityFactory, prefix: str = "member", password: str = "Sup3rSecret!") -> dict:
    user_name = identity.next_user_name(prefix)
    out = api.call(
        "POST",
        "/auth/register",
        body={
            "user_name": user_name,
            "first_name": prefix.title(),
            "last_name": "Tester",
            "email": identity.next_email(user_name),
            "password": password,
        },
    )
    data = out["data"]
    return {"token": data["access_token"], "user_id": data["user"]["id"], "user_name": user_name, "password": password}
