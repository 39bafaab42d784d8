"""Curriculum unit endpoints."""
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from curriculum_content.api.auth import get_actor
from curriculum_content.api.serializers import serialize
from curriculum_content.application.unit_app_service import UnitAppService
from curriculum_content.container import get_unit_app_service

router = APIRouter(prefix="/units", tags=["units"])


class CreateUnitBody(BaseModel):
    title: str
    key_stage: str
    subject: str
    description: Optional[str] = None
    learning_objectives: List[str] = []
    prerequisite_unit_ids: List[str] = []


class UpdateUnitBody(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    learning_objectives: Optional[List[str]] = None
    prerequisite_unit_ids: Optional[List[str]] = None


class ContentRefBody(BaseModel):
    content_id: str


class ReorderBody(BaseModel):
    content_ids: List[str]


class StatusChangeBody(BaseModel):
    new_status: str
    comment: Optional[str] = None


@router.get("/")
def list_units(svc: UnitAppService = Depends(get_unit_app_service)):
    return [serialize(u) for u in svc.list_units()]


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_unit(
    body: CreateUnitBody,
    svc: UnitAppService = Depends(get_unit_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.create_unit(actor, body.model_dump(exclude_none=True)))


@router.get("/{unit_id}")
def get_unit(unit_id: str, svc: UnitAppService = Depends(get_unit_app_service)):
    unit = svc.get_unit(unit_id)
    data = serialize(unit)
    data["integrity_warnings"] = [serialize(w) for w in svc.integrity_warnings(unit_id)]
    return data


@router.patch("/{unit_id}")
def update_unit(
    unit_id: str,
    body: UpdateUnitBody,
    svc: UnitAppService = Depends(get_unit_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.update_unit(unit_id, actor, body.model_dump(exclude_unset=True)))


@router.delete("/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_unit(
    unit_id: str,
    svc: UnitAppService = Depends(get_unit_app_service),
    actor: str = Depends(get_actor),
):
    svc.delete_unit(unit_id, actor)


@router.post("/{unit_id}/content")
def add_content(
    unit_id: str,
    body: ContentRefBody,
    svc: UnitAppService = Depends(get_unit_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.add_content(unit_id, body.content_id, actor))


@router.delete("/{unit_id}/content/{content_id}")
def remove_content(
    unit_id: str,
    content_id: str,
    svc: UnitAppService = Depends(get_unit_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.remove_content(unit_id, content_id, actor))


@router.put("/{unit_id}/order")
def reorder(
    unit_id: str,
    body: ReorderBody,
    svc: UnitAppService = Depends(get_unit_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.reorder(unit_id, body.content_ids, actor))


@router.post("/{unit_id}/status")
def change_status(
    unit_id: str,
    body: StatusChangeBody,
    svc: UnitAppService = Depends(get_unit_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.transition_unit(unit_id, body.new_status, actor, body.comment))
