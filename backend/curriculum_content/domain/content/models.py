"""Curriculum content domain models — pure Python, no DB or HTTP dependencies."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class KeyStage(str, Enum):
    EYFS = "EYFS"
    KS1 = "KS1"
    KS2 = "KS2"
    KS3 = "KS3"
    KS4 = "KS4"
    KS5 = "KS5"


class Subject(str, Enum):
    MATHEMATICS = "Mathematics"
    ENGLISH = "English"
    SCIENCE = "Science"
    COMPUTING = "Computing"
    HISTORY = "History"
    GEOGRAPHY = "Geography"
    ART_AND_DESIGN = "Art and Design"
    DESIGN_AND_TECHNOLOGY = "Design and Technology"
    MUSIC = "Music"
    PHYSICAL_EDUCATION = "Physical Education"
    LANGUAGES = "Languages"


class Region(str, Enum):
    ENGLAND = "england"
    WALES = "wales"
    SCOTLAND = "scotland"
    NORTHERN_IRELAND = "northern_ireland"


class ContentType(str, Enum):
    EXPLANATION = "explanation"
    EXAMPLE = "example"
    EXERCISE = "exercise"
    ASSESSMENT = "assessment"
    INTERACTIVE = "interactive"
    VIDEO = "video"
    AUDIO = "audio"
    PRESENTATION = "presentation"
    DISCUSSION = "discussion"
    PROJECT = "project"
    RESOURCE = "resource"


class ContentFormat(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    INTERACTIVE = "interactive"
    DOCUMENT = "document"
    PRESENTATION = "presentation"


class Difficulty(str, Enum):
    FOUNDATION = "foundation"
    CORE = "core"
    EXTENDED = "extended"
    ADVANCED = "advanced"


class LearningStyle(str, Enum):
    VISUAL = "visual"
    AUDITORY = "auditory"
    READING_WRITING = "reading_writing"
    KINESTHETIC = "kinesthetic"
    MULTIMODAL = "multimodal"


class ContentStatus(str, Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    REJECTED = "rejected"


class ChangeType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    STATUS = "status"
    DELETE = "delete"


@dataclass
class ContentMetadata:
    id: str
    title: str
    key_stage: KeyStage
    subject: Subject
    region: Region = Region.ENGLAND
    description: str = ""
    topics: List[str] = field(default_factory=list)
    learning_objectives: List[str] = field(default_factory=list)
    difficulty: Difficulty = Difficulty.CORE
    content_type: ContentType = ContentType.EXPLANATION
    content_format: ContentFormat = ContentFormat.TEXT
    estimated_duration: int = 0  # minutes
    prerequisite_ids: List[str] = field(default_factory=list)
    related_content_ids: List[str] = field(default_factory=list)
    status: ContentStatus = ContentStatus.DRAFT
    version: int = 1
    created_by: str = ""
    created_at: str = ""
    updated_by: str = ""
    updated_at: str = ""


@dataclass
class ContentVariant:
    id: str
    content_id: str
    learning_style: LearningStyle
    body: str
    media_refs: List[str] = field(default_factory=list)
    interactive_element: Optional[dict] = None
    version: int = 1
    created_by: str = ""
    created_at: str = ""
    updated_by: str = ""
    updated_at: str = ""


@dataclass
class ContentAnalytics:
    view_count: int = 0
    completion_count: int = 0
    rating_count: int = 0
    rating_sum: int = 0
    average_rating: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        # Derived from the exact integer sum; never stored.
        self.average_rating = self.rating_sum / self.rating_count if self.rating_count else 0.0


@dataclass
class CurriculumContent:
    metadata: ContentMetadata
    variants: List[ContentVariant] = field(default_factory=list)
    default_variant_id: Optional[str] = None
    assessment_ids: List[str] = field(default_factory=list)
    analytics: ContentAnalytics = field(default_factory=ContentAnalytics)

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def default_variant(self) -> Optional[ContentVariant]:
        return self.find_variant(self.default_variant_id)

    def find_variant(self, variant_id: Optional[str]) -> Optional[ContentVariant]:
        for v in self.variants:
            if v.id == variant_id:
                return v
        return None

    def variant_for_style(self, style: LearningStyle) -> Optional[ContentVariant]:
        for v in self.variants:
            if v.learning_style == style:
                return v
        return None


@dataclass(frozen=True)
class ContentChangeRecord:
    """Immutable ledger entry. ``variant_id`` is set when the change touched a
    single variant, in which case the versions are that variant's counter."""

    id: str
    content_id: str
    user_id: str
    timestamp: str
    previous_version: int
    new_version: int
    description: str
    change_type: ChangeType
    variant_id: Optional[str] = None
