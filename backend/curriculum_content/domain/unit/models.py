"""Curriculum unit domain models — ordered teaching sequences of content items."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from curriculum_content.domain.content.models import ContentStatus, KeyStage, Subject


@dataclass
class CurriculumUnit:
    id: str
    title: str
    key_stage: KeyStage
    subject: Subject
    description: str = ""
    content_ids: List[str] = field(default_factory=list)  # consumption order
    learning_objectives: List[str] = field(default_factory=list)
    prerequisite_unit_ids: List[str] = field(default_factory=list)
    status: ContentStatus = ContentStatus.DRAFT
    version: int = 1
    created_by: str = ""
    created_at: str = ""
    updated_by: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class IntegrityWarning:
    unit_id: str
    content_id: str
    reason: str
