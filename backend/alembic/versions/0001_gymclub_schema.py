"""gym & club core schema

Revision ID: 0001_gymclub_schema
Revises: 
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = "0001_gymclub_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()))
    return cols


def upgrade():
    # users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_name", sa.Text, nullable=False, unique=True),
        sa.Column("first_name", sa.Text, nullable=False),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=False, unique=True),
        sa.Column("phone", sa.Text, nullable=True, unique=True),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("status in ('active','blocked')", name="ck_user_status"),
    )

    # permission catalog
    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("key", sa.Text, nullable=False, unique=True),
        sa.Column("module", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_permissions_module_key", "permissions", ["module", "key"])

    # roles
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "role_permissions_map",
        sa.Column("role_id", sa.Integer, sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("permission_id", sa.Integer, sa.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "roles_users_map",
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.Integer, sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_roles_users_map_role", "roles_users_map", ["role_id"])
    op.create_table(
        "user_permissions_map",
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("permission_id", sa.Integer, sa.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
        *_timestamps(updated=False),
    )

    # clubs + ownership ledger
    op.create_table(
        "clubs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("phone", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("logo", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("status in ('active','inactive')", name="ck_club_status"),
    )
    op.create_table(
        "clubs_owners",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("club_id", sa.Integer, sa.ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("ownership_type", sa.Text, nullable=False, server_default="owner"),
        sa.Column("ownership_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("ownership_type in ('owner','co_owner','partner','investor')", name="ck_clubs_owners_type"),
        sa.CheckConstraint(
            "ownership_percentage > 0 AND ownership_percentage <= 100", name="ck_clubs_owners_percentage"
        ),
        sa.CheckConstraint("status in ('active','inactive')", name="ck_clubs_owners_status"),
    )
    op.create_index(
        "uq_clubs_owners_active_club_user",
        "clubs_owners",
        ["club_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )
    op.create_index("ix_clubs_owners_user_status", "clubs_owners", ["user_id", "status"])

    # gyms + club links
    op.create_table(
        "gyms",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("phone", sa.Text, nullable=True),
        sa.Column("email", sa.Text, nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("city", sa.Text, nullable=True),
        sa.Column("address_line_1", sa.Text, nullable=True),
        sa.Column("address_line_2", sa.Text, nullable=True),
        sa.Column("postal_code", sa.Text, nullable=True),
        sa.Column("timezone", sa.Text, nullable=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("logo", sa.Text, nullable=True),
        sa.Column("website", sa.Text, nullable=True),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("area_sqm", sa.Numeric(10, 2), nullable=True),
        sa.Column("latitude", sa.Numeric(9, 6), nullable=True),
        sa.Column("longitude", sa.Numeric(9, 6), nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("status in ('active','inactive','maintenance')", name="ck_gym_status"),
    )
    op.create_table(
        "clubs_gyms_map",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("club_id", sa.Integer, sa.ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("gym_id", sa.Integer, sa.ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("relationship_type", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        *_timestamps(),
        sa.UniqueConstraint("club_id", "gym_id", name="uq_clubs_gyms_pair"),
        sa.CheckConstraint("relationship_type in ('ownership','partnership','franchise')", name="ck_clubs_gyms_type"),
        sa.CheckConstraint("status in ('active','inactive')", name="ck_clubs_gyms_status"),
    )
    op.create_index("ix_clubs_gyms_gym", "clubs_gyms_map", ["gym_id"])

    # audit_log
    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("actor_user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("entity_type", sa.Text, nullable=False),
        sa.Column("entity_id", sa.Text, nullable=False),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("data", sa.JSON, nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_actor_created", "audit_log", ["actor_user_id", "created_at"])


def downgrade():
    op.drop_index("ix_audit_actor_created", table_name="audit_log")
    op.drop_index("ix_audit_entity", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index("ix_clubs_gyms_gym", table_name="clubs_gyms_map")
    op.drop_table("clubs_gyms_map")
    op.drop_table("gyms")
    op.drop_index("ix_clubs_owners_user_status", table_name="clubs_owners")
    op.drop_index("uq_clubs_owners_active_club_user", table_name="clubs_owners")
    op.drop_table("clubs_owners")
    op.drop_table("clubs")
    op.drop_table("user_permissions_map")
    op.drop_index("ix_roles_users_map_role", table_name="roles_users_map")
    op.drop_table("roles_users_map")
    op.drop_table("role_permissions_map")
    op.drop_table("roles")
    op.drop_index("ix_permissions_module_key", table_name="permissions")
    op.drop_table("permissions")
    op.drop_table("users")
