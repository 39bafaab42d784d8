"""Variant maintenance and learning-style adaptation endpoints."""
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from curriculum_content.api.auth import get_actor
from curriculum_content.api.serializers import serialize, serialize_content
from curriculum_content.application.variant_app_service import VariantAppService
from curriculum_content.container import get_variant_app_service

router = APIRouter(prefix="/content/{content_id}", tags=["variants"])


class AddVariantBody(BaseModel):
    learning_style: str
    body: str
    media_refs: List[str] = []
    interactive_element: Optional[dict] = None


class UpdateVariantBody(BaseModel):
    body: str
    media_refs: Optional[List[str]] = None
    interactive_element: Optional[dict] = None


class DefaultVariantBody(BaseModel):
    variant_id: str


class AdaptBody(BaseModel):
    learning_styles: List[str]


# Adaptation over HTTP always uses the built-in templates; model-backed
# generators are injected by in-process callers.
@router.post("/adaptations")
def adapt_variants(
    content_id: str,
    body: AdaptBody,
    svc: VariantAppService = Depends(get_variant_app_service),
    actor: str = Depends(get_actor),
):
    outcomes = svc.adapt_many(content_id, body.learning_styles, actor)
    return [
        {
            "learning_style": o.style.value,
            "ok": o.ok,
            "variant": serialize(o.variant) if o.variant else None,
            "error": str(o.error) if o.error else None,
        }
        for o in outcomes
    ]


@router.get("/variant")
def variant_for_learner(
    content_id: str,
    learning_style: Optional[str] = None,
    svc: VariantAppService = Depends(get_variant_app_service),
):
    return serialize(svc.variant_for(content_id, learning_style))


@router.post("/variants", status_code=status.HTTP_201_CREATED)
def add_variant(
    content_id: str,
    body: AddVariantBody,
    svc: VariantAppService = Depends(get_variant_app_service),
    actor: str = Depends(get_actor),
):
    variant = svc.add_variant(
        content_id, body.learning_style, body.body, actor, body.media_refs, body.interactive_element,
    )
    return serialize(variant)


@router.put("/variants/{variant_id}")
def update_variant(
    content_id: str,
    variant_id: str,
    body: UpdateVariantBody,
    svc: VariantAppService = Depends(get_variant_app_service),
    actor: str = Depends(get_actor),
):
    variant = svc.update_variant(
        content_id, variant_id, body.body, actor, body.media_refs, body.interactive_element,
    )
    return serialize(variant)


@router.delete("/variants/{variant_id}")
def remove_variant(
    content_id: str,
    variant_id: str,
    replacement_default_id: Optional[str] = None,
    svc: VariantAppService = Depends(get_variant_app_service),
    actor: str = Depends(get_actor),
):
    return serialize_content(svc.remove_variant(content_id, variant_id, actor, replacement_default_id))


@router.put("/default-variant")
def set_default_variant(
    content_id: str,
    body: DefaultVariantBody,
    svc: VariantAppService = Depends(get_variant_app_service),
    actor: str = Depends(get_actor),
):
    return serialize_content(svc.set_default_variant(content_id, body.variant_id, actor))
