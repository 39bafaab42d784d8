"""SQLite implementation of ContentRepository."""
from __future__ import annotations
import json
import sqlite3
from typing import Dict, Iterable, List, Optional

from curriculum_content.domain.common.errors import ConflictError, NotFoundError
from curriculum_content.domain.content.models import (
    ChangeType,
    ContentAnalytics,
    ContentChangeRecord,
    ContentFormat,
    ContentMetadata,
    ContentStatus,
    ContentType,
    ContentVariant,
    CurriculumContent,
    Difficulty,
    KeyStage,
    LearningStyle,
    Region,
    Subject,
)
from curriculum_content.persistence.db import get_connection, transaction
from curriculum_content.persistence.interfaces.content_repository import ContentRepository

_COUNTERS = {"view_count", "completion_count"}


def _row_to_metadata(row) -> ContentMetadata:
    return ContentMetadata(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        key_stage=KeyStage(row["key_stage"]),
        subject=Subject(row["subject"]),
        region=Region(row["region"]),
        topics=json.loads(row["topics"] or "[]"),
        learning_objectives=json.loads(row["learning_objectives"] or "[]"),
        difficulty=Difficulty(row["difficulty"]),
        content_type=ContentType(row["content_type"]),
        content_format=ContentFormat(row["content_format"]),
        estimated_duration=row["estimated_duration"],
        prerequisite_ids=json.loads(row["prerequisite_ids"] or "[]"),
        related_content_ids=json.loads(row["related_content_ids"] or "[]"),
        status=ContentStatus(row["status"]),
        version=row["version"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        updated_by=row["updated_by"],
        updated_at=row["updated_at"],
    )


def _row_to_analytics(row) -> ContentAnalytics:
    return ContentAnalytics(
        view_count=row["view_count"],
        completion_count=row["completion_count"],
        rating_count=row["rating_count"],
        rating_sum=row["rating_sum"],
    )


def _row_to_variant(row) -> ContentVariant:
    interactive = row["interactive_element"]
    return ContentVariant(
        id=row["id"],
        content_id=row["content_id"],
        learning_style=LearningStyle(row["learning_style"]),
        body=row["body"],
        media_refs=json.loads(row["media_refs"] or "[]"),
        interactive_element=json.loads(interactive) if interactive else None,
        version=row["version"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        updated_by=row["updated_by"],
        updated_at=row["updated_at"],
    )


def _row_to_change(row) -> ContentChangeRecord:
    return ContentChangeRecord(
        id=row["id"],
        content_id=row["content_id"],
        user_id=row["user_id"],
        timestamp=row["timestamp"],
        previous_version=row["previous_version"],
        new_version=row["new_version"],
        description=row["description"],
        change_type=ChangeType(row["change_type"]),
        variant_id=row["variant_id"],
    )


def _metadata_params(content: CurriculumContent) -> dict:
    m = content.metadata
    return {
        "id": m.id,
        "title": m.title,
        "description": m.description,
        "key_stage": m.key_stage.value,
        "subject": m.subject.value,
        "region": m.region.value,
        "topics": json.dumps(m.topics),
        "learning_objectives": json.dumps(m.learning_objectives),
        "difficulty": m.difficulty.value,
        "content_type": m.content_type.value,
        "content_format": m.content_format.value,
        "estimated_duration": m.estimated_duration,
        "prerequisite_ids": json.dumps(m.prerequisite_ids),
        "related_content_ids": json.dumps(m.related_content_ids),
        "status": m.status.value,
        "version": m.version,
        "created_by": m.created_by,
        "created_at": m.created_at,
        "updated_by": m.updated_by,
        "updated_at": m.updated_at,
        "default_variant_id": content.default_variant_id,
        "assessment_ids": json.dumps(content.assessment_ids),
    }


def _variant_params(v: ContentVariant) -> dict:
    return {
        "id": v.id,
        "content_id": v.content_id,
        "learning_style": v.learning_style.value,
        "body": v.body,
        "media_refs": json.dumps(v.media_refs),
        "interactive_element": json.dumps(v.interactive_element) if v.interactive_element is not None else None,
        "version": v.version,
        "created_by": v.created_by,
        "created_at": v.created_at,
        "updated_by": v.updated_by,
        "updated_at": v.updated_at,
    }


def _append_change(conn: sqlite3.Connection, record: ContentChangeRecord) -> None:
    conn.execute(
        """
        INSERT INTO content_changes (
            id, content_id, variant_id, user_id, timestamp,
            previous_version, new_version, description, change_type
        ) VALUES (
            :id, :content_id, :variant_id, :user_id, :timestamp,
            :previous_version, :new_version, :description, :change_type
        )
        """,
        {
            "id": record.id,
            "content_id": record.content_id,
            "variant_id": record.variant_id,
            "user_id": record.user_id,
            "timestamp": record.timestamp,
            "previous_version": record.previous_version,
            "new_version": record.new_version,
            "description": record.description,
            "change_type": record.change_type.value,
        },
    )


def _insert_variant(conn: sqlite3.Connection, variant: ContentVariant) -> None:
    try:
        conn.execute(
            """
            INSERT INTO content_variants (
                id, content_id, learning_style, body, media_refs, interactive_element,
                version, created_by, created_at, updated_by, updated_at
            ) VALUES (
                :id, :content_id, :learning_style, :body, :media_refs, :interactive_element,
                :version, :created_by, :created_at, :updated_by, :updated_at
            )
            """,
            _variant_params(variant),
        )
    except sqlite3.IntegrityError as e:
        raise ConflictError(
            f"Content '{variant.content_id}' already has a '{variant.learning_style.value}' variant."
        ) from e


def _check_swap(conn: sqlite3.Connection, cur: sqlite3.Cursor, table: str, row_id: str, expected: int) -> None:
    if cur.rowcount:
        return
    row = conn.execute(f"SELECT version FROM {table} WHERE id = ?", (row_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"'{row_id}' not found.")
    raise ConflictError(
        f"'{row_id}' was modified concurrently (expected version {expected}, found {row['version']})."
    )


class SqliteContentRepository(ContentRepository):

    def __init__(self, db_path: Optional[str] = None):
        self._db_path = db_path

    def insert_content(self, content: CurriculumContent, record: ContentChangeRecord) -> None:
        with transaction(self._db_path) as conn:
            conn.execute(
                """
                INSERT INTO content (
                    id, title, description, key_stage, subject, region,
                    topics, learning_objectives, difficulty, content_type, content_format,
                    estimated_duration, prerequisite_ids, related_content_ids,
                    status, version, created_by, created_at, updated_by, updated_at,
                    default_variant_id, assessment_ids
                ) VALUES (
                    :id, :title, :description, :key_stage, :subject, :region,
                    :topics, :learning_objectives, :difficulty, :content_type, :content_format,
                    :estimated_duration, :prerequisite_ids, :related_content_ids,
                    :status, :version, :created_by, :created_at, :updated_by, :updated_at,
                    :default_variant_id, :assessment_ids
                )
                """,
                _metadata_params(content),
            )
            for variant in content.variants:
                _insert_variant(conn, variant)
            _append_change(conn, record)

    def get_by_id(self, content_id: str) -> Optional[CurriculumContent]:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute("SELECT * FROM content WHERE id = ?", (content_id,)).fetchone()
            if not row:
                return None
            variant_rows = conn.execute(
                "SELECT * FROM content_variants WHERE content_id = ? ORDER BY created_at ASC, id ASC",
                (content_id,),
            ).fetchall()
        finally:
            conn.close()
        return CurriculumContent(
            metadata=_row_to_metadata(row),
            variants=[_row_to_variant(r) for r in variant_rows],
            default_variant_id=row["default_variant_id"],
            assessment_ids=json.loads(row["assessment_ids"] or "[]"),
            analytics=_row_to_analytics(row),
        )

    def list_metadata(self) -> List[ContentMetadata]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute("SELECT * FROM content").fetchall()
        finally:
            conn.close()
        return [_row_to_metadata(r) for r in rows]

    def get_statuses(self, content_ids: Iterable[str]) -> Dict[str, ContentStatus]:
        ids = list(content_ids)
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                f"SELECT id, status FROM content WHERE id IN ({placeholders})", ids,
            ).fetchall()
        finally:
            conn.close()
        return {r["id"]: ContentStatus(r["status"]) for r in rows}

    def save_aggregate(
        self, content: CurriculumContent, expected_version: int, record: ContentChangeRecord,
    ) -> None:
        with transaction(self._db_path) as conn:
            self._update_metadata(conn, content, expected_version)
            _append_change(conn, record)

    def save_variant(
        self,
        variant: ContentVariant,
        expected_version: Optional[int],
        record: ContentChangeRecord,
    ) -> None:
        with transaction(self._db_path) as conn:
            if expected_version is None:
                _insert_variant(conn, variant)
            else:
                params = _variant_params(variant)
                params["expected_version"] = expected_version
                cur = conn.execute(
                    """
                    UPDATE content_variants SET
                        body                = :body,
                        media_refs          = :media_refs,
                        interactive_element = :interactive_element,
                        version             = :version,
                        updated_by          = :updated_by,
                        updated_at          = :updated_at
                    WHERE id = :id AND version = :expected_version
                    """,
                    params,
                )
                _check_swap(conn, cur, "content_variants", variant.id, expected_version)
            _append_change(conn, record)

    def remove_variant(
        self,
        content: CurriculumContent,
        variant_id: str,
        expected_version: int,
        record: ContentChangeRecord,
    ) -> None:
        with transaction(self._db_path) as conn:
            self._update_metadata(conn, content, expected_version)
            cur = conn.execute(
                "DELETE FROM content_variants WHERE id = ? AND content_id = ?",
                (variant_id, content.id),
            )
            if not cur.rowcount:
                raise ConflictError(f"Variant '{variant_id}' was removed concurrently.")
            _append_change(conn, record)

    def delete(self, content_id: str, expected_version: int, record: ContentChangeRecord) -> None:
        with transaction(self._db_path) as conn:
            cur = conn.execute(
                "DELETE FROM content WHERE id = ? AND version = ?", (content_id, expected_version),
            )
            _check_swap(conn, cur, "content", content_id, expected_version)
            _append_change(conn, record)

    def increment_counter(self, content_id: str, counter: str) -> ContentAnalytics:
        if counter not in _COUNTERS:
            raise ValueError(f"Unknown analytics counter '{counter}'")
        with transaction(self._db_path) as conn:
            cur = conn.execute(
                f"UPDATE content SET {counter} = {counter} + 1 WHERE id = ?", (content_id,),
            )
            if not cur.rowcount:
                raise NotFoundError(f"Content '{content_id}' not found.")
            row = conn.execute("SELECT * FROM content WHERE id = ?", (content_id,)).fetchone()
        return _row_to_analytics(row)

    def save_analytics(self, content_id: str, analytics: ContentAnalytics) -> None:
        with transaction(self._db_path) as conn:
            cur = conn.execute(
                """
                UPDATE content SET
                    rating_count     = :rating_count,
                    rating_sum       = :rating_sum
                WHERE id = :id
                """,
                {
                    "id": content_id,
                    "rating_count": analytics.rating_count,
                    "rating_sum": analytics.rating_sum,
                },
            )
            if not cur.rowcount:
                raise NotFoundError(f"Content '{content_id}' not found.")

    def get_changes(self, content_id: str) -> List[ContentChangeRecord]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT * FROM content_changes WHERE content_id = ? ORDER BY seq ASC", (content_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_change(r) for r in rows]

    def get_change(self, record_id: str) -> Optional[ContentChangeRecord]:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute("SELECT * FROM content_changes WHERE id = ?", (record_id,)).fetchone()
        finally:
            conn.close()
        return _row_to_change(row) if row else None

    # ------------------------------------------------------------------
    def _update_metadata(self, conn: sqlite3.Connection, content: CurriculumContent, expected_version: int) -> None:
        params = _metadata_params(content)
        params["expected_version"] = expected_version
        cur = conn.execute(
            """
            UPDATE content SET
                title               = :title,
                description         = :description,
                key_stage           = :key_stage,
                subject             = :subject,
                region              = :region,
                topics              = :topics,
                learning_objectives = :learning_objectives,
                difficulty          = :difficulty,
                content_type        = :content_type,
                content_format      = :content_format,
                estimated_duration  = :estimated_duration,
                prerequisite_ids    = :prerequisite_ids,
                related_content_ids = :related_content_ids,
                status              = :status,
                version             = :version,
                updated_by          = :updated_by,
                updated_at          = :updated_at,
                default_variant_id  = :default_variant_id,
                assessment_ids      = :assessment_ids
            WHERE id = :id AND version = :expected_version
            """,
            params,
        )
        _check_swap(conn, cur, "content", content.id, expected_version)
