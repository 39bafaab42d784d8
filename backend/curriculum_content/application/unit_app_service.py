"""Application service — curriculum unit composition and unit workflow."""
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from curriculum_content.application.locks import KeyedLock
from curriculum_content.application.permission_app_service import PermissionAppService
from curriculum_content.domain.common.errors import ContentError, NotFoundError
from curriculum_content.domain.permission.models import PermissionLevel
from curriculum_content.domain.unit.models import CurriculumUnit, IntegrityWarning
from curriculum_content.domain.unit.rules import validate_no_dependents, validate_unit_deletable
from curriculum_content.domain.unit.service import UnitDomainService
from curriculum_content.persistence.interfaces.content_repository import ContentRepository
from curriculum_content.persistence.interfaces.unit_repository import UnitRepository

logger = logging.getLogger(__name__)

# Held by every operation that reads and then rewrites prerequisite edges.
PREREQUISITE_GRAPH_LOCK = "units:prerequisites"


class UnitAppService:
    def __init__(
        self,
        repo: UnitRepository,
        content_repo: ContentRepository,
        permissions: PermissionAppService,
        locks: KeyedLock,
    ):
        self._repo = repo
        self._content_repo = content_repo
        self._permissions = permissions
        self._locks = locks
        self._domain = UnitDomainService()

    def _load(self, unit_id: str) -> CurriculumUnit:
        unit = self._repo.get_by_id(unit_id)
        if unit is None:
            raise NotFoundError(f"Unit '{unit_id}' not found.")
        return unit

    @contextmanager
    def _mutation(self, unit_id: str, action: str) -> Iterator[CurriculumUnit]:
        try:
            with self._locks.hold(f"unit:{unit_id}"):
                yield self._load(unit_id)
        except ContentError as e:
            logger.warning("Rejected %s on unit %s: %s", action, unit_id, e.message)
            raise

    def _require(self, actor: str, unit: CurriculumUnit, level: PermissionLevel, action: str) -> None:
        self._permissions.require(actor, self._permissions.ref_for_unit(unit), level, action)

    def _save(self, unit: CurriculumUnit, expected: int, actor: str, action: str) -> CurriculumUnit:
        self._repo.save(unit, expected)
        logger.info("Unit %s %s (version %d) by %s", unit.id, action, unit.version, actor)
        return unit

    @contextmanager
    def _prerequisite_graph(self, changing: bool = True) -> Iterator[Optional[dict]]:
        """
        Yield the unit prerequisite graph while holding the graph-wide lock, so
        the read, the cycle check and the save happen as one step across units.
        """
        if not changing:
            yield None
            return
        with self._locks.hold(PREREQUISITE_GRAPH_LOCK):
            yield self._repo.prerequisite_graph()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def create_unit(self, actor: str, data: dict) -> CurriculumUnit:
        with self._prerequisite_graph() as graph:
            unit = self._domain.create_unit(actor, data, graph).unwrap()
            self._require(actor, unit, PermissionLevel.EDIT, "create units")
            self._repo.insert(unit)
        logger.info("Created unit %s (%s) by %s", unit.id, unit.title, actor)
        return unit

    def get_unit(self, unit_id: str) -> CurriculumUnit:
        return self._load(unit_id)

    def list_units(self) -> List[CurriculumUnit]:
        return self._repo.list_all()

    def update_unit(self, unit_id: str, actor: str, changes: dict) -> CurriculumUnit:
        with self._mutation(unit_id, "update") as unit:
            self._require(actor, unit, PermissionLevel.EDIT, "update units")
            expected = unit.version
            with self._prerequisite_graph("prerequisite_unit_ids" in changes) as graph:
                unit = self._domain.update_unit(unit, changes, actor, graph or {}).unwrap()
                return self._save(unit, expected, actor, "updated")

    def delete_unit(self, unit_id: str, actor: str) -> None:
        with self._mutation(unit_id, "delete") as unit:
            self._require(actor, unit, PermissionLevel.ADMIN, "delete units")
            validate_unit_deletable(unit).unwrap()
            with self._prerequisite_graph() as graph:
                validate_no_dependents(unit, graph).unwrap()
                self._repo.delete(unit_id, unit.version)
        logger.info("Deleted unit %s by %s", unit_id, actor)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------
    def add_content(self, unit_id: str, content_id: str, actor: str) -> CurriculumUnit:
        with self._mutation(unit_id, "add content") as unit:
            self._require(actor, unit, PermissionLevel.EDIT, "change unit content")
            if self._content_repo.get_by_id(content_id) is None:
                raise NotFoundError(f"Content '{content_id}' not found.")
            expected = unit.version
            unit = self._domain.add_content(unit, content_id, actor).unwrap()
            return self._save(unit, expected, actor, f"gained content {content_id}")

    def remove_content(self, unit_id: str, content_id: str, actor: str) -> CurriculumUnit:
        with self._mutation(unit_id, "remove content") as unit:
            self._require(actor, unit, PermissionLevel.EDIT, "change unit content")
            expected = unit.version
            unit = self._domain.remove_content(unit, content_id, actor).unwrap()
            return self._save(unit, expected, actor, f"lost content {content_id}")

    def reorder(self, unit_id: str, ordering: List[str], actor: str) -> CurriculumUnit:
        with self._mutation(unit_id, "reorder") as unit:
            self._require(actor, unit, PermissionLevel.EDIT, "reorder units")
            expected = unit.version
            unit = self._domain.reorder(unit, ordering, actor).unwrap()
            return self._save(unit, expected, actor, "reordered")

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------
    def transition_unit(
        self, unit_id: str, to_status, actor: str, comment: Optional[str] = None,
    ) -> CurriculumUnit:
        with self._mutation(unit_id, "transition") as unit:
            level = self._permissions.effective_level(actor, self._permissions.ref_for_unit(unit))
            expected = unit.version
            unit = self._domain.transition(unit, to_status, actor, level, comment).unwrap()
            unit = self._save(unit, expected, actor, f"moved to {unit.status.value}")
        for warning in self.integrity_warnings(unit_id):
            logger.warning("Unit %s references content %s: %s", unit_id, warning.content_id, warning.reason)
        return unit

    def integrity_warnings(self, unit_id: str) -> List[IntegrityWarning]:
        unit = self._load(unit_id)
        statuses = self._content_repo.get_statuses(unit.content_ids)
        return self._domain.integrity_warnings(unit, {cid: statuses.get(cid) for cid in unit.content_ids})
