"""Content CRUD, workflow, ledger, search and analytics endpoints."""
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from curriculum_content.api.auth import get_actor
from curriculum_content.api.serializers import serialize, serialize_content
from curriculum_content.application.content_app_service import ContentAppService
from curriculum_content.application.search_app_service import SearchAppService
from curriculum_content.application.workflow_app_service import WorkflowAppService
from curriculum_content.container import (
    get_content_app_service,
    get_search_app_service,
    get_workflow_app_service,
)

router = APIRouter(tags=["content"])


# ------------------------------------------------------------------
# Pydantic schemas
# ------------------------------------------------------------------
class VariantBody(BaseModel):
    learning_style: str
    body: str
    media_refs: List[str] = []
    interactive_element: Optional[dict] = None


class CreateContentBody(BaseModel):
    title: str
    key_stage: str
    subject: str
    region: Optional[str] = None
    description: Optional[str] = None
    topics: List[str] = []
    learning_objectives: List[str] = []
    difficulty: Optional[str] = None
    content_type: Optional[str] = None
    content_format: Optional[str] = None
    estimated_duration: Optional[int] = None
    prerequisite_ids: List[str] = []
    related_content_ids: List[str] = []
    initial_variant: VariantBody


class UpdateContentBody(BaseModel):
    title: Optional[str] = None
    key_stage: Optional[str] = None
    subject: Optional[str] = None
    region: Optional[str] = None
    description: Optional[str] = None
    topics: Optional[List[str]] = None
    learning_objectives: Optional[List[str]] = None
    difficulty: Optional[str] = None
    content_type: Optional[str] = None
    content_format: Optional[str] = None
    estimated_duration: Optional[int] = None
    prerequisite_ids: Optional[List[str]] = None
    related_content_ids: Optional[List[str]] = None
    change_note: Optional[str] = None


class StatusChangeBody(BaseModel):
    new_status: str
    comment: Optional[str] = None


class SearchBody(BaseModel):
    key_stage: List[str] = []
    subject: List[str] = []
    content_type: List[str] = []
    difficulty: List[str] = []
    status: List[str] = []
    region: List[str] = []
    query: Optional[str] = None
    created_by: Optional[str] = None
    updated_from: Optional[str] = None
    updated_to: Optional[str] = None
    page: int = 1
    page_size: Optional[int] = None
    sort_by: str = "updated_at"
    descending: bool = True


class RatingBody(BaseModel):
    rating: int = Field(..., description="1 to 5")


class AssessmentLinkBody(BaseModel):
    assessment_id: str


# ------------------------------------------------------------------
# Health check
# ------------------------------------------------------------------
@router.get("/health")
def health():
    return {"status": "ok"}


# ------------------------------------------------------------------
# Search
# ------------------------------------------------------------------
@router.post("/content/search")
def search_content(body: SearchBody, svc: SearchAppService = Depends(get_search_app_service)):
    filters = body.model_dump(exclude={"page", "page_size", "sort_by", "descending"}, exclude_none=True)
    result = svc.search(filters, body.page, body.page_size, body.sort_by, body.descending)
    return serialize(result)


# ------------------------------------------------------------------
# Content endpoints
# ------------------------------------------------------------------
@router.post("/content/", status_code=status.HTTP_201_CREATED)
def create_content(
    body: CreateContentBody,
    svc: ContentAppService = Depends(get_content_app_service),
    actor: str = Depends(get_actor),
):
    metadata = body.model_dump(exclude={"initial_variant"}, exclude_none=True)
    content = svc.create_content(actor, metadata, body.initial_variant.model_dump())
    return serialize_content(content)


@router.get("/content/{content_id}")
def get_content(content_id: str, svc: ContentAppService = Depends(get_content_app_service)):
    return serialize_content(svc.get_content(content_id))


@router.patch("/content/{content_id}")
def update_content(
    content_id: str,
    body: UpdateContentBody,
    svc: ContentAppService = Depends(get_content_app_service),
    actor: str = Depends(get_actor),
):
    changes = body.model_dump(exclude={"change_note"}, exclude_unset=True)
    return serialize_content(svc.update_content(content_id, actor, changes, body.change_note))


@router.delete("/content/{content_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_content(
    content_id: str,
    svc: ContentAppService = Depends(get_content_app_service),
    actor: str = Depends(get_actor),
):
    svc.delete_content(content_id, actor)


# ------------------------------------------------------------------
# Workflow
# ------------------------------------------------------------------
@router.post("/content/{content_id}/status")
def change_status(
    content_id: str,
    body: StatusChangeBody,
    svc: WorkflowAppService = Depends(get_workflow_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.transition(content_id, body.new_status, actor, body.comment))


@router.get("/content/{content_id}/transitions")
def allowed_transitions(
    content_id: str,
    svc: WorkflowAppService = Depends(get_workflow_app_service),
    actor: str = Depends(get_actor),
):
    return [serialize(rule) for rule in svc.allowed_transitions(content_id, actor)]


# ------------------------------------------------------------------
# Change ledger
# ------------------------------------------------------------------
@router.get("/content/{content_id}/history")
def get_history(content_id: str, svc: ContentAppService = Depends(get_content_app_service)):
    return [serialize(r) for r in svc.history(content_id)]


@router.get("/changes/{record_id}")
def get_change(record_id: str, svc: ContentAppService = Depends(get_content_app_service)):
    return serialize(svc.get_change(record_id))


# ------------------------------------------------------------------
# Assessment links
# ------------------------------------------------------------------
@router.post("/content/{content_id}/assessments")
def link_assessment(
    content_id: str,
    body: AssessmentLinkBody,
    svc: ContentAppService = Depends(get_content_app_service),
    actor: str = Depends(get_actor),
):
    return serialize_content(svc.link_assessment(content_id, body.assessment_id, actor))


@router.delete("/content/{content_id}/assessments/{assessment_id}")
def unlink_assessment(
    content_id: str,
    assessment_id: str,
    svc: ContentAppService = Depends(get_content_app_service),
    actor: str = Depends(get_actor),
):
    return serialize_content(svc.unlink_assessment(content_id, assessment_id, actor))


# ------------------------------------------------------------------
# Analytics
# ------------------------------------------------------------------
@router.post("/content/{content_id}/views")
def record_view(content_id: str, svc: ContentAppService = Depends(get_content_app_service)):
    return serialize(svc.record_view(content_id))


@router.post("/content/{content_id}/completions")
def record_completion(content_id: str, svc: ContentAppService = Depends(get_content_app_service)):
    return serialize(svc.record_completion(content_id))


@router.post("/content/{content_id}/ratings")
def record_rating(
    content_id: str,
    body: RatingBody,
    svc: ContentAppService = Depends(get_content_app_service),
    actor: str = Depends(get_actor),
):
    return serialize(svc.record_rating(content_id, body.rating))
