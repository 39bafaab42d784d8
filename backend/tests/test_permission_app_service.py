"""Grant administration and capability checks through the application service."""
import pytest

from conftest import ADMIN, EDITOR, STRANGER
from curriculum_content.domain.common.errors import NotFoundError, PermissionDenied, ValidationError
from curriculum_content.domain.permission.models import PermissionLevel


def test_admin_grants_within_own_scope(services, make_content):
    content = make_content()
    grant = services.permissions.grant(ADMIN, STRANGER, "comment", content_id=content.id)

    assert grant.level == PermissionLevel.COMMENT
    assert grant.granted_by == ADMIN
    assert services.permissions.has_permission(STRANGER, content.id, "comment")
    assert not services.permissions.has_permission(STRANGER, content.id, "edit")
    assert services.permissions.list_grants(STRANGER) == [grant]


def test_grant_role_maps_to_level(services):
    grant = services.permissions.grant_role(ADMIN, STRANGER, "approver", key_stage="KS2")
    assert grant.level == PermissionLevel.APPROVE


def test_non_admin_cannot_grant(services):
    with pytest.raises(PermissionDenied):
        services.permissions.grant(EDITOR, STRANGER, "view", key_stage="KS2")


def test_admin_cannot_grant_outside_scope(services):
    with pytest.raises(PermissionDenied):
        services.permissions.grant(ADMIN, STRANGER, "view", key_stage="KS4")
    assert services.permissions.list_grants(STRANGER) == []


def test_grant_validation(services):
    with pytest.raises(ValidationError):
        services.permissions.grant(ADMIN, STRANGER, "view")
    with pytest.raises(ValidationError):
        services.permissions.grant(ADMIN, STRANGER, "owner", key_stage="KS2")
    with pytest.raises(ValidationError):
        services.permissions.grant_role(ADMIN, STRANGER, "superuser", key_stage="KS2")
    with pytest.raises(NotFoundError):
        services.permissions.grant(ADMIN, STRANGER, "view", content_id="missing")


def test_revoke(services, make_content):
    content = make_content()
    grant = services.permissions.grant(ADMIN, STRANGER, "edit", content_id=content.id)
    with pytest.raises(PermissionDenied):
        services.permissions.revoke(EDITOR, grant.id)

    services.permissions.revoke(ADMIN, grant.id)
    assert not services.permissions.has_permission(STRANGER, content.id, "view")
    with pytest.raises(NotFoundError):
        services.permissions.revoke(ADMIN, grant.id)


def test_content_grant_widens_access_for_one_item(services, make_content):
    first = make_content()
    second = make_content(title="Equivalent fractions")
    services.permissions.grant(ADMIN, STRANGER, "edit", content_id=first.id)

    services.content.update_content(first.id, STRANGER, {"title": "Edited by a guest"})
    with pytest.raises(PermissionDenied):
        services.content.update_content(second.id, STRANGER, {"title": "Nope"})
