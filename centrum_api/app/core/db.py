"""
SQLite integration and simple migration system for the document store.

``SqliteListingStore`` keeps one JSON document per listing.  This
module provides the connection helper and the migration runner it
uses.  Applied migration versions are stored in the ``migrations``
table and new migrations are executed in order, so the schema can
evolve without manual intervention.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Tuple, Union


logger = logging.getLogger(__name__)

MIGRATIONS: List[Tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS listings (
            id TEXT PRIMARY KEY,
            created_at INTEGER NOT NULL,
            document TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_listings_created_at
            ON listings (created_at DESC);
        """,
    ),
]


def get_connection(db_path: Union[str, Path]) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name.  The
    parent directory of ``db_path`` is created if needed; the special
    name ``:memory:`` is passed through untouched.
    """
    db_path = str(db_path)
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor; commit on success, roll back on any error."""
    cursor = conn.cursor()
    try:
        yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()


def init_db(conn: sqlite3.Connection) -> int:
    """Apply pending migrations and return the resulting schema version.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new entries of
    ``MIGRATIONS``.  To change the schema, append a migration with an
    incremented version number.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS migrations (
            version INTEGER PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()
    row = conn.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
    current = row["version"] or 0
    for version, sql in MIGRATIONS:
        if version <= current:
            continue
        logger.info("Applying listings schema migration %s", version)
        conn.executescript(sql)
        conn.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
        conn.commit()
        current = version
    return current
