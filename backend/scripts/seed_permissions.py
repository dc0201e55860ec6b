"""Seed the permission catalog and the superadmin role.

Usage: python scripts/seed_permissions.py [user_name]

With a user name, that user is also given the superadmin role.
"""
import sys

import sqlalchemy as sa

from gymclub.core.config import settings
from gymclub.core.errors import AlreadyAssigned
from gymclub.db.session import SessionLocal
from gymclub.models.permission import Permission
from gymclub.models.role import Role
from gymclub.models.user import User
from gymclub.services import authorization, permissions, roles


def main(argv: list[str]):
    db = SessionLocal()
    try:
        seeded = permissions.seed_catalog(db)
        all_ids = list(db.execute(sa.select(Permission.id).order_by(Permission.id)).scalars().all())

        role_id = db.execute(sa.select(Role.id).where(Role.name == settings.SUPERADMIN_ROLE_NAME)).scalar_one_or_none()
        if role_id is None:
            role = roles.create_role(db, settings.SUPERADMIN_ROLE_NAME, "Full access to every module", all_ids)
            role_id = role.id
        else:
            roles.update_role_permissions(db, role_id, all_ids)

        granted_to = None
        if argv:
            user_id = db.execute(sa.select(User.id).where(User.user_name == argv[0])).scalar_one_or_none()
            if user_id is None:
                raise SystemExit(f"error: unknown user {argv[0]!r}")
            try:
                authorization.assign_role(db, user_id, role_id)
            except AlreadyAssigned:
                pass
            granted_to = argv[0]

        print(
            "ok: permission catalog seeded "
            f"(created={len(seeded.created)}, existing={seeded.existing}, "
            f"role={settings.SUPERADMIN_ROLE_NAME}, granted_to={granted_to})"
        )
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main(sys.argv[1:])
