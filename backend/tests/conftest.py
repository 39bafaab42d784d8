"""Shared fixtures: an isolated SQLite store per test plus seeded users."""
import pytest

from curriculum_content.container import build_services
from curriculum_content.domain.common.audit import new_id, now_iso
from curriculum_content.domain.permission.models import PermissionGrant, PermissionLevel
from curriculum_content.persistence.db import init_db
from curriculum_content.persistence.repositories.sqlite.sqlite_permission_repository import (
    SqlitePermissionRepository,
)

EDITOR = "user-editor"
APPROVER = "user-approver"
ADMIN = "user-admin"
VIEWER = "user-viewer"
STRANGER = "user-stranger"


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "content.db")
    init_db(path, seed=False)
    return path


@pytest.fixture
def grant(db_path):
    """Write a grant straight to storage, bypassing the admin check."""
    repo = SqlitePermissionRepository(db_path)

    def _grant(user_id, level, content_id=None, subject=None, key_stage=None):
        g = PermissionGrant(
            id=new_id(),
            user_id=user_id,
            level=level,
            content_id=content_id,
            subject=subject,
            key_stage=key_stage,
            granted_by="fixture",
            granted_at=now_iso(),
        )
        repo.add_grant(g)
        return g

    return _grant


@pytest.fixture
def services(db_path, grant):
    grant(VIEWER, PermissionLevel.VIEW, key_stage="KS2")
    grant(EDITOR, PermissionLevel.EDIT, key_stage="KS2")
    grant(APPROVER, PermissionLevel.APPROVE, key_stage="KS2")
    grant(ADMIN, PermissionLevel.ADMIN, key_stage="KS2")
    return build_services(db_path)


def metadata(**overrides):
    data = {
        "title": "Introduction to Fractions",
        "description": "Halves, quarters and thirds",
        "key_stage": "KS2",
        "subject": "Mathematics",
        "topics": ["fractions", "number"],
        "learning_objectives": ["Recognise unit fractions"],
        "difficulty": "core",
        "content_type": "explanation",
        "estimated_duration": 30,
    }
    data.update(overrides)
    return data


def reading_variant(body="A fraction is part of a whole. Cut a pizza into four equal slices."):
    return {"learning_style": "reading_writing", "body": body}


@pytest.fixture
def make_content(services):
    def _make(actor=EDITOR, variant=None, **overrides):
        return services.content.create_content(actor, metadata(**overrides), variant or reading_variant())

    return _make
