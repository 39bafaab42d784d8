"""Convert domain dataclasses into JSON-ready dicts."""
from __future__ import annotations
from dataclasses import asdict, is_dataclass
from enum import Enum, IntEnum

from curriculum_content.domain.content.models import CurriculumContent
from curriculum_content.domain.permission.models import PermissionLevel


def _plain(value):
    if isinstance(value, PermissionLevel):
        return value.label
    if isinstance(value, IntEnum):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def serialize(obj) -> dict:
    return _plain(asdict(obj) if is_dataclass(obj) else obj)


def serialize_content(content: CurriculumContent) -> dict:
    data = serialize(content)
    data["id"] = content.id
    return data
