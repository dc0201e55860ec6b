"""Report clubs whose active ownership stakes add up to more than 100%.

Exits with status 1 when any club is over-allocated so it can gate a deploy.
"""
import sys

from gymclub.db.session import SessionLocal
from gymclub.services.ownership import clubs_over_allocated


def main() -> int:
    db = SessionLocal()
    try:
        rows = clubs_over_allocated(db)
        for row in rows:
            print(f"club_id={row['club_id']} allocated={row['allocated']}")
        print(f"ok: {len(rows)} club(s) over-allocated")
        return 1 if rows else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
