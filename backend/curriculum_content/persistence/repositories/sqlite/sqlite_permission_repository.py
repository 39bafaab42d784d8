"""SQLite implementation of PermissionRepository."""
from __future__ import annotations
import sqlite3
from typing import List, Optional

from curriculum_content.domain.common.errors import ValidationError
from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.permission.models import PermissionGrant, PermissionLevel
from curriculum_content.persistence.db import get_connection, transaction
from curriculum_content.persistence.interfaces.permission_repository import PermissionRepository


def _row_to_grant(row) -> PermissionGrant:
    return PermissionGrant(
        id=row["id"],
        user_id=row["user_id"],
        level=parse_enum(PermissionLevel, row["level"], "permission level"),
        content_id=row["content_id"],
        subject=row["subject"],
        key_stage=row["key_stage"],
        granted_by=row["granted_by"],
        granted_at=row["granted_at"],
    )


class SqlitePermissionRepository(PermissionRepository):

    def __init__(self, db_path: Optional[str] = None):
        self._db_path = db_path

    def add_grant(self, grant: PermissionGrant) -> None:
        with transaction(self._db_path) as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO permission_grants (
                        id, user_id, level, content_id, subject, key_stage, granted_by, granted_at
                    ) VALUES (
                        :id, :user_id, :level, :content_id, :subject, :key_stage, :granted_by, :granted_at
                    )
                    """,
                    {
                        "id": grant.id,
                        "user_id": grant.user_id,
                        "level": grant.level.label,
                        "content_id": grant.content_id,
                        "subject": grant.subject,
                        "key_stage": grant.key_stage,
                        "granted_by": grant.granted_by,
                        "granted_at": grant.granted_at,
                    },
                )
            except sqlite3.IntegrityError as e:
                # The table's CHECK constraint backs up validate_grant.
                raise ValidationError(f"Permission grant rejected by storage: {e}") from e

    def get_grant(self, grant_id: str) -> Optional[PermissionGrant]:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute("SELECT * FROM permission_grants WHERE id = ?", (grant_id,)).fetchone()
        finally:
            conn.close()
        return _row_to_grant(row) if row else None

    def remove_grant(self, grant_id: str) -> bool:
        with transaction(self._db_path) as conn:
            cur = conn.execute("DELETE FROM permission_grants WHERE id = ?", (grant_id,))
        return cur.rowcount > 0

    def list_for_user(self, user_id: str) -> List[PermissionGrant]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT * FROM permission_grants WHERE user_id = ? ORDER BY granted_at ASC, id ASC",
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_grant(r) for r in rows]
