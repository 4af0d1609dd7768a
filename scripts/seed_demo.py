"""
Seed a demo site (supervisor, worker, project geofence, three dependent tasks)
for a work date. Run from the project root with .env loaded.

Usage:
  python scripts/seed_demo.py              # seeds today (WORK_TIMEZONE)
  python scripts/seed_demo.py 2026-10-20   # seeds the given work date
"""
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.utils.datetime_utils import Clock


def main():
    work_date = date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else Clock().today()

    db = SessionLocal()
    try:
        ids = init_db(db, work_date)
        print(f"Demo data for {work_date}: project_id={ids['project_id']} worker_id={ids['worker_id']}")
        print("Logins: SUP-001 / WRK-001 (password Demo@12345)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
