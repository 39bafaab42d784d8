"""Abstract repository interface for permission grants."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional

from curriculum_content.domain.permission.models import PermissionGrant


class PermissionRepository(ABC):

    @abstractmethod
    def add_grant(self, grant: PermissionGrant) -> None:
        ...

    @abstractmethod
    def get_grant(self, grant_id: str) -> Optional[PermissionGrant]:
        ...

    @abstractmethod
    def remove_grant(self, grant_id: str) -> bool:
        """Returns True if a grant was removed."""
        ...

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[PermissionGrant]:
        ...
