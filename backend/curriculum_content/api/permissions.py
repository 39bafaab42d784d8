"""Permission grant endpoints."""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from curriculum_content.api.auth import get_actor
from curriculum_content.api.serializers import serialize
from curriculum_content.application.permission_app_service import PermissionAppService
from curriculum_content.container import get_permission_app_service

router = APIRouter(prefix="/permissions", tags=["permissions"])


class GrantBody(BaseModel):
    user_id: str
    level: Optional[str] = None
    role: Optional[str] = None
    content_id: Optional[str] = None
    subject: Optional[str] = None
    key_stage: Optional[str] = None


@router.get("/users/{user_id}")
def list_grants(user_id: str, svc: PermissionAppService = Depends(get_permission_app_service)):
    return [serialize(g) for g in svc.list_grants(user_id)]


@router.get("/users/{user_id}/content/{content_id}")
def check_permission(
    user_id: str,
    content_id: str,
    required: str = "view",
    svc: PermissionAppService = Depends(get_permission_app_service),
):
    return {"allowed": svc.has_permission(user_id, content_id, required)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_grant(
    body: GrantBody,
    svc: PermissionAppService = Depends(get_permission_app_service),
    actor: str = Depends(get_actor),
):
    scope = {"content_id": body.content_id, "subject": body.subject, "key_stage": body.key_stage}
    if body.role:
        grant = svc.grant_role(actor, body.user_id, body.role, **scope)
    else:
        grant = svc.grant(actor, body.user_id, body.level, **scope)
    return serialize(grant)


@router.delete("/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_grant(
    grant_id: str,
    svc: PermissionAppService = Depends(get_permission_app_service),
    actor: str = Depends(get_actor),
):
    svc.revoke(actor, grant_id)
