import sqlite3
import logging
from typing import Callable, List, Tuple

from infra.db import transaction

logger = logging.getLogger(__name__)


def _create_jobs_table(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS jobs (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            company TEXT,
            url TEXT,
            source TEXT,
            notes TEXT,
            status TEXT NOT NULL,
            createdAt TEXT NOT NULL,
            appliedAt TEXT
        )
    """)
    conn.execute("CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_jobs_createdAt ON jobs(createdAt)")


def _add_hidden_at(conn: sqlite3.Connection) -> None:
    # files written before versioning may already carry the column
    columns = {row[1] for row in conn.execute("PRAGMA table_info(jobs)")}
    if "hiddenAt" not in columns:
        conn.execute("ALTER TABLE jobs ADD COLUMN hiddenAt TEXT")


# (version, description, step); append only, never reorder
MIGRATIONS: List[Tuple[int, str, Callable[[sqlite3.Connection], None]]] = [
    (1, "create jobs table", _create_jobs_table),
    (2, "add jobs.hiddenAt", _add_hidden_at),
]

LATEST_VERSION = MIGRATIONS[-1][0]


def current_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version").fetchone()[0]


def migrate(conn: sqlite3.Connection) -> int:
    """
    Apply every pending migration, each in its own transaction.

    Returns the schema version after migrating.
    """
    version = current_version(conn)

    for target, description, step in MIGRATIONS:
        if target <= version:
            continue

        with transaction(conn):
            step(conn)
            # PRAGMA does not accept bound parameters
            conn.execute(f"PRAGMA user_version = {int(target)}")

        logger.info(f"Applied migration {target}: {description}")
        version = target

    return version
