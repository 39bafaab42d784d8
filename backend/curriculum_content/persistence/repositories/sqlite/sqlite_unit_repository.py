"""SQLite implementation of UnitRepository."""
from __future__ import annotations
import json
from typing import Dict, List, Optional

from curriculum_content.domain.common.errors import ConflictError, NotFoundError
from curriculum_content.domain.content.models import ContentStatus, KeyStage, Subject
from curriculum_content.domain.unit.models import CurriculumUnit
from curriculum_content.persistence.db import get_connection, transaction
from curriculum_content.persistence.interfaces.unit_repository import UnitRepository


def _row_to_unit(row) -> CurriculumUnit:
    return CurriculumUnit(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        key_stage=KeyStage(row["key_stage"]),
        subject=Subject(row["subject"]),
        content_ids=json.loads(row["content_ids"] or "[]"),
        learning_objectives=json.loads(row["learning_objectives"] or "[]"),
        prerequisite_unit_ids=json.loads(row["prerequisite_unit_ids"] or "[]"),
        status=ContentStatus(row["status"]),
        version=row["version"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        updated_by=row["updated_by"],
        updated_at=row["updated_at"],
    )


def _unit_params(unit: CurriculumUnit) -> dict:
    return {
        "id": unit.id,
        "title": unit.title,
        "description": unit.description,
        "key_stage": unit.key_stage.value,
        "subject": unit.subject.value,
        "content_ids": json.dumps(unit.content_ids),
        "learning_objectives": json.dumps(unit.learning_objectives),
        "prerequisite_unit_ids": json.dumps(unit.prerequisite_unit_ids),
        "status": unit.status.value,
        "version": unit.version,
        "created_by": unit.created_by,
        "created_at": unit.created_at,
        "updated_by": unit.updated_by,
        "updated_at": unit.updated_at,
    }


class SqliteUnitRepository(UnitRepository):

    def __init__(self, db_path: Optional[str] = None):
        self._db_path = db_path

    def insert(self, unit: CurriculumUnit) -> None:
        with transaction(self._db_path) as conn:
            conn.execute(
                """
                INSERT INTO curriculum_units (
                    id, title, description, key_stage, subject, content_ids,
                    learning_objectives, prerequisite_unit_ids, status, version,
                    created_by, created_at, updated_by, updated_at
                ) VALUES (
                    :id, :title, :description, :key_stage, :subject, :content_ids,
                    :learning_objectives, :prerequisite_unit_ids, :status, :version,
                    :created_by, :created_at, :updated_by, :updated_at
                )
                """,
                _unit_params(unit),
            )

    def get_by_id(self, unit_id: str) -> Optional[CurriculumUnit]:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute("SELECT * FROM curriculum_units WHERE id = ?", (unit_id,)).fetchone()
        finally:
            conn.close()
        return _row_to_unit(row) if row else None

    def list_all(self) -> List[CurriculumUnit]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute("SELECT * FROM curriculum_units ORDER BY created_at DESC").fetchall()
        finally:
            conn.close()
        return [_row_to_unit(r) for r in rows]

    def save(self, unit: CurriculumUnit, expected_version: int) -> None:
        params = _unit_params(unit)
        params["expected_version"] = expected_version
        with transaction(self._db_path) as conn:
            cur = conn.execute(
                """
                UPDATE curriculum_units SET
                    title                 = :title,
                    description           = :description,
                    content_ids           = :content_ids,
                    learning_objectives   = :learning_objectives,
                    prerequisite_unit_ids = :prerequisite_unit_ids,
                    status                = :status,
                    version               = :version,
                    updated_by            = :updated_by,
                    updated_at            = :updated_at
                WHERE id = :id AND version = :expected_version
                """,
                params,
            )
            if not cur.rowcount:
                self._raise_stale(conn, unit.id, expected_version)

    def delete(self, unit_id: str, expected_version: int) -> None:
        with transaction(self._db_path) as conn:
            cur = conn.execute(
                "DELETE FROM curriculum_units WHERE id = ? AND version = ?", (unit_id, expected_version),
            )
            if not cur.rowcount:
                self._raise_stale(conn, unit_id, expected_version)

    def prerequisite_graph(self) -> Dict[str, List[str]]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute("SELECT id, prerequisite_unit_ids FROM curriculum_units").fetchall()
        finally:
            conn.close()
        return {r["id"]: json.loads(r["prerequisite_unit_ids"] or "[]") for r in rows}

    @staticmethod
    def _raise_stale(conn, unit_id: str, expected_version: int) -> None:
        row = conn.execute("SELECT version FROM curriculum_units WHERE id = ?", (unit_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Unit '{unit_id}' not found.")
        raise ConflictError(
            f"Unit '{unit_id}' was modified concurrently (expected version {expected_version}, "
            f"found {row['version']})."
        )
