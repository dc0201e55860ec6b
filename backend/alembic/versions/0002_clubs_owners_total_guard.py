"""guard active ownership total per club at the database level

Revision ID: 0002_clubs_owners_total_guard
Revises: 0001_gymclub_schema
Create Date: 2026-10-18
"""

from alembic import op


revision = "0002_clubs_owners_total_guard"
down_revision = "0001_gymclub_schema"
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return

    op.execute(
        """
        CREATE OR REPLACE FUNCTION clubs_owners_total_guard() RETURNS trigger AS $$
        DECLARE
            total numeric(7,2);
        BEGIN
            IF NEW.status <> 'active' THEN
                RETURN NEW;
            END IF;
            PERFORM 1 FROM clubs WHERE id = NEW.club_id FOR UPDATE;
            SELECT COALESCE(SUM(ownership_percentage), 0) INTO total
            FROM clubs_owners
            WHERE club_id = NEW.club_id AND status = 'active' AND id <> NEW.id;
            IF total + NEW.ownership_percentage > 100 THEN
                RAISE EXCEPTION 'club % ownership would reach %', NEW.club_id, total + NEW.ownership_percentage
                    USING ERRCODE = 'check_violation';
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_clubs_owners_total_guard
        BEFORE INSERT OR UPDATE OF ownership_percentage, status ON clubs_owners
        FOR EACH ROW EXECUTE FUNCTION clubs_owners_total_guard()
        """
    )


def downgrade():
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return
    op.execute("DROP TRIGGER IF EXISTS trg_clubs_owners_total_guard ON clubs_owners")
    op.execute("DROP FUNCTION IF EXISTS clubs_owners_total_guard()")
