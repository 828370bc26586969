# seed script: admin user and the lookup tables the admin screens read
# run once: python -m practice_admin.seed

import asyncio
import logging
import os

from practice_admin.config import settings
from practice_admin.services.auth_service import hash_password
from practice_admin.services.backend import BackendClient, eq
from practice_admin.services.db import db
from practice_admin.utils.session_types import DEFAULT_SESSION_TYPES

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

# seed password from env
ADMIN_PASSWORD = os.getenv("SEED_PASSWORD")

FINANCE_CATEGORIES = [
    {"name": "טיפולים", "type": "income"},
    {"name": "ייעוץ", "type": "income"},
    {"name": "סדנאות", "type": "income"},
    {"name": "אחר", "type": "income"},
    {"name": "שכירות", "type": "expense"},
    {"name": "ציוד משרדי", "type": "expense"},
    {"name": "שירותים מקצועיים", "type": "expense"},
    {"name": "מסים", "type": "expense"},
    {"name": "חשבונות", "type": "expense"},
    {"name": "אחר", "type": "expense"},
]

PAYMENT_METHODS = ["מזומן", "ביט", "העברה", "העברה בנקאית", "אשראי", "צ'ק"]


async def _seed_rows(backend: BackendClient, table: str, rows: list[dict], key: tuple[str, ...]) -> int:
    """insert rows whose key columns are not present yet, returns the number inserted"""
    created = 0
    for row in rows:
        existing = await backend.fetch(table, [eq(k, row[k]) for k in key], limit=1)
        if existing:
            continue
        await backend.insert(table, dict(row))
        created += 1
    logger.info(f"{table}: {created} created, {len(rows) - created} already existed")
    return created


async def seed():
    """create the admin user and lookup rows, skips existing"""
    if not ADMIN_PASSWORD:
        raise SystemExit("SEED_PASSWORD must be set")

    await db.connect()
    backend = BackendClient(db)

    admin = {
        "email": settings.ADMIN_EMAIL.lower(),
        "hashed_password": hash_password(ADMIN_PASSWORD),
        "name": "Admin",
        "role": "admin",
    }
    await _seed_rows(backend, "users", [admin], ("email",))
    await _seed_rows(backend, "session_types", DEFAULT_SESSION_TYPES, ("code",))
    await _seed_rows(backend, "finance_categories", FINANCE_CATEGORIES, ("name", "type"))
    await _seed_rows(backend, "payment_methods", [{"name": n} for n in PAYMENT_METHODS], ("name",))

    # indexes used by the range and lookup queries
    await db.users.create_index("email", unique=True)
    await db.table("transactions").create_index([("type", 1), ("date", -1)])
    await db.table("future_sessions").create_index("session_date")
    await db.table("calendar_slots").create_index("date")
    logger.info("Created indexes")

    logger.info("Seed complete!")
    await db.close()


if __name__ == "__main__":
    asyncio.run(seed())
