#!/usr/bin/env python3
"""
Seed runner — creates the bootstrap admin and, optionally, one worker per
department so routing has somewhere to send complaints.

Usage:
  # Development (local Docker Compose):
  ENVIRONMENT=development SEED_ADMIN_PASSWORD=... python seed.py

  # Also create demo workers:
  SEED_DEMO_WORKERS=true python seed.py

Seeds are idempotent — safe to re-run (all INSERT … ON CONFLICT DO NOTHING).
"""
import logging
import os
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from complaint_tracker.core.security import hash_password
from complaint_tracker.services.advisor import CATEGORY_DEPARTMENTS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Load .env
# ---------------------------------------------------------------------------
_repo_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(dotenv_path=_repo_root / ".env", override=False)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

ADMIN_NAME = os.environ.get("SEED_ADMIN_NAME", "System Admin")
ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@university.edu")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "")
DEMO_WORKERS = os.environ.get("SEED_DEMO_WORKERS", "false").lower() == "true"
DEMO_WORKER_PASSWORD = os.environ.get("SEED_WORKER_PASSWORD", "worker123")

INSERT_USER = """
    INSERT INTO users (name, email, password_hash, role, department)
    VALUES (%s, %s, %s, %s, %s)
    ON CONFLICT (email) DO NOTHING
"""

VERIFY_QUERIES = {
    "admins":  ("SELECT COUNT(*) FROM users WHERE role = 'admin'", 1),
    "workers": ("SELECT COUNT(*) FROM users WHERE role = 'worker'", 0),
}


def _get_connection() -> psycopg2.extensions.connection:
    if ENVIRONMENT == "development":
        return psycopg2.connect(
            host=os.environ.get("LOCAL_DB_HOST", "localhost"),
            port=int(os.environ.get("LOCAL_DB_PORT", "5432")),
            dbname=os.environ.get("LOCAL_DB_NAME", "complaint_tracker_dev"),
            user=os.environ.get("LOCAL_DB_USER", "postgres"),
            password=os.environ.get("LOCAL_DB_PASSWORD", "localpassword"),
        )

    host = os.environ.get("DB_HOST", "")
    if not host:
        logger.error("DB_HOST is not set. Update your .env or the deployment environment.")
        sys.exit(1)

    return psycopg2.connect(
        host=host,
        port=int(os.environ.get("DB_PORT", "5432")),
        dbname=os.environ.get("DB_NAME", "complaint_tracker"),
        user=os.environ.get("DB_USER", "postgres"),
        password=os.environ.get("DB_PASSWORD", ""),
        sslmode="require",
    )


def _worker_rows() -> list[tuple[str, str, str, str, str]]:
    rows = []
    for department in sorted(set(CATEGORY_DEPARTMENTS.values())):
        slug = department.lower().replace(" ", ".")
        rows.append(
            (
                f"{department} Desk",
                f"{slug}@university.edu",
                hash_password(DEMO_WORKER_PASSWORD),
                "worker",
                department,
            )
        )
    return rows


def run_seeds() -> None:
    if not ADMIN_PASSWORD:
        logger.error("SEED_ADMIN_PASSWORD is not set.")
        sys.exit(1)

    conn = _get_connection()
    conn.autocommit = False
    cur = conn.cursor()

    try:
        logger.info("Seeding admin: %s", ADMIN_EMAIL)
        cur.execute(
            INSERT_USER,
            (ADMIN_NAME, ADMIN_EMAIL.lower(), hash_password(ADMIN_PASSWORD), "admin", None),
        )

        if DEMO_WORKERS:
            rows = _worker_rows()
            logger.info("Seeding %d demo workers", len(rows))
            cur.executemany(INSERT_USER, rows)

        conn.commit()
        logger.info("All seeds committed successfully.")
    except psycopg2.Error:
        conn.rollback()
        logger.exception("Seed failed — transaction rolled back.")
        sys.exit(1)
    finally:
        cur.close()
        conn.close()


def verify() -> None:
    conn = _get_connection()
    cur = conn.cursor()
    all_ok = True

    try:
        for label, (query, expected) in VERIFY_QUERIES.items():
            cur.execute(query)
            count = cur.fetchone()[0]
            status = "OK" if count >= expected else "FAIL"
            if status == "FAIL":
                all_ok = False
            logger.info("  %-10s %s  (got %d, expected >= %d)", label, status, count, expected)
    finally:
        cur.close()
        conn.close()

    if not all_ok:
        logger.error("Verification failed — some tables have fewer rows than expected.")
        sys.exit(1)

    logger.info("Verification passed.")


if __name__ == "__main__":
    logger.info("Environment: %s", ENVIRONMENT)
    logger.info("--- Running seeds ---")
    run_seeds()
    logger.info("--- Verifying row counts ---")
    verify()
