"""Abstract repository interface for curriculum units."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from curriculum_content.domain.unit.models import CurriculumUnit


class UnitRepository(ABC):

    @abstractmethod
    def insert(self, unit: CurriculumUnit) -> None:
        ...

    @abstractmethod
    def get_by_id(self, unit_id: str) -> Optional[CurriculumUnit]:
        ...

    @abstractmethod
    def list_all(self) -> List[CurriculumUnit]:
        ...

    @abstractmethod
    def save(self, unit: CurriculumUnit, expected_version: int) -> None:
        """Compare-and-swap on ``version``; raises ConflictError on a stale write."""
        ...

    @abstractmethod
    def delete(self, unit_id: str, expected_version: int) -> None:
        ...

    @abstractmethod
    def prerequisite_graph(self) -> Dict[str, List[str]]:
        """Every unit id mapped to its prerequisite unit ids."""
        ...
