"""Helpers for parsing the closed value sets used across the domain."""
from __future__ import annotations
from enum import Enum
from typing import Iterable, List, Optional, Type, TypeVar

from curriculum_content.domain.common.errors import ValidationError

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value, field_name: str) -> E:
    """Coerce a raw value (member, value or member name) into ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value == member.value or (isinstance(value, str) and value.upper() == member.name):
            return member
    allowed = ", ".join(str(m.value) for m in enum_cls)
    raise ValidationError(f"'{value}' is not a valid {field_name}. Must be one of: {allowed}.")


def parse_enum_list(enum_cls: Type[E], values: Optional[Iterable], field_name: str) -> List[E]:
    if not values:
        return []
    return [parse_enum(enum_cls, v, field_name) for v in values]
