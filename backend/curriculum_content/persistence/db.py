"""SQLite connection, transactions and schema initialisation."""
from __future__ import annotations
import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

import bcrypt

from curriculum_content.core import config

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), "migrations")


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    conn = sqlite3.connect(
        db_path or config.DATABASE_PATH,
        timeout=config.LOCK_TIMEOUT_SECONDS,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


@contextmanager
def transaction(db_path: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """One write transaction: everything inside commits together or not at all."""
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.execute("COMMIT")
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None, seed: bool = True) -> None:
    """Run all migration SQL files against the database."""
    path = db_path or config.DATABASE_PATH
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    conn = get_connection(path)
    try:
        for name in sorted(os.listdir(_MIGRATIONS_DIR)):
            if not name.endswith(".sql"):
                continue
            with open(os.path.join(_MIGRATIONS_DIR, name), "r", encoding="utf-8") as f:
                conn.executescript(f.read())
    finally:
        conn.close()
    logger.info("Database schema ready at %s", path)
    if seed:
        _seed_default_admin(path)


def _seed_default_admin(db_path: str) -> None:
    """Insert a default admin user holding admin at every key stage and subject."""
    from curriculum_content.domain.content.models import KeyStage, Subject
    from curriculum_content.domain.permission.models import PermissionLevel

    with transaction(db_path) as conn:
        count = conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
        if count:
            return

        now = datetime.now(timezone.utc).isoformat()
        user_id = str(uuid.uuid4())
        hashed = bcrypt.hashpw(config.DEFAULT_ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        conn.execute(
            """
            INSERT INTO users (id, username, password_hash, display_name, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, config.DEFAULT_ADMIN_USERNAME, hashed, "Administrator", now),
        )
        scopes = [("key_stage", ks.value) for ks in KeyStage] + [("subject", s.value) for s in Subject]
        for column, value in scopes:
            conn.execute(
                f"""
                INSERT INTO permission_grants (id, user_id, level, {column}, granted_by, granted_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (str(uuid.uuid4()), user_id, PermissionLevel.ADMIN.label, value, "system", now),
            )
    logger.info("Seeded default admin user '%s'", config.DEFAULT_ADMIN_USERNAME)
