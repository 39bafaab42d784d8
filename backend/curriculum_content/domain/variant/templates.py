"""Template-based variant generators, one per learning style.

These are deterministic fallbacks for when no model-backed generator is
injected. Each one rebuilds its variant from the source body alone, so
calling it again with the same source gives the same result.
"""
from __future__ import annotations
import re
from typing import Callable, Dict, List, Optional

from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.content.models import LearningStyle
from curriculum_content.domain.variant.service import Generator

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def _sentences(text: str) -> List[str]:
    flat = " ".join(line.strip() for line in text.splitlines() if line.strip())
    return [s.strip() for s in _SENTENCE_SPLIT.split(flat) if s.strip()]


def _visual(prior: Optional[str], source: str) -> str:
    points = "\n".join(f"- {s}" for s in _sentences(source))
    return (
        "## Visual summary\n\n"
        f"{points}\n\n"
        "[Diagram: map each point above to a labelled picture or chart]"
    )


def _auditory(prior: Optional[str], source: str) -> str:
    spoken = "\n".join(f"{i}. {s}" for i, s in enumerate(_sentences(source), start=1))
    return (
        "## Listen and discuss\n\n"
        "Read each part aloud, then explain it to a partner in your own words.\n\n"
        f"{spoken}"
    )


def _reading_writing(prior: Optional[str], source: str) -> str:
    return (
        "## Read and write\n\n"
        f"{source.strip()}\n\n"
        "### Write about it\n"
        "Summarise the passage above in three sentences, then list any new key words."
    )


def _kinesthetic(prior: Optional[str], source: str) -> str:
    steps = "\n".join(f"Step {i}: {s}" for i, s in enumerate(_sentences(source), start=1))
    return (
        "## Try it out\n\n"
        "Use objects, movement or a hands-on model for each step.\n\n"
        f"{steps}"
    )


def _multimodal(prior: Optional[str], source: str) -> str:
    return "\n\n".join([
        _visual(prior, source),
        _auditory(prior, source),
        _kinesthetic(prior, source),
    ])


_TEMPLATES: Dict[LearningStyle, Callable[[Optional[str], str], str]] = {
    LearningStyle.VISUAL: _visual,
    LearningStyle.AUDITORY: _auditory,
    LearningStyle.READING_WRITING: _reading_writing,
    LearningStyle.KINESTHETIC: _kinesthetic,
    LearningStyle.MULTIMODAL: _multimodal,
}


def template_generator(style) -> Generator:
    return _TEMPLATES[parse_enum(LearningStyle, style, "learning style")]
