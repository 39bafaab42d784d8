"""Dependency injection container — wires implementations to interfaces."""
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from curriculum_content.application.content_app_service import ContentAppService
from curriculum_content.application.locks import KeyedLock
from curriculum_content.application.permission_app_service import PermissionAppService
from curriculum_content.application.search_app_service import SearchAppService
from curriculum_content.application.unit_app_service import UnitAppService
from curriculum_content.application.variant_app_service import VariantAppService
from curriculum_content.application.workflow_app_service import WorkflowAppService
from curriculum_content.core import config
from curriculum_content.persistence.repositories.sqlite.sqlite_content_repository import SqliteContentRepository
from curriculum_content.persistence.repositories.sqlite.sqlite_permission_repository import SqlitePermissionRepository
from curriculum_content.persistence.repositories.sqlite.sqlite_unit_repository import SqliteUnitRepository


@dataclass
class Services:
    permissions: PermissionAppService
    content: ContentAppService
    workflow: WorkflowAppService
    variants: VariantAppService
    search: SearchAppService
    units: UnitAppService


def build_services(db_path: Optional[str] = None) -> Services:
    """Wire one set of services sharing a store and a lock registry."""
    content_repo = SqliteContentRepository(db_path)
    permissions = PermissionAppService(SqlitePermissionRepository(db_path), content_repo)
    locks = KeyedLock(timeout=config.LOCK_TIMEOUT_SECONDS)
    return Services(
        permissions=permissions,
        content=ContentAppService(content_repo, permissions, locks),
        workflow=WorkflowAppService(content_repo, permissions, locks),
        variants=VariantAppService(content_repo, permissions, locks),
        search=SearchAppService(content_repo),
        units=UnitAppService(SqliteUnitRepository(db_path), content_repo, permissions, locks),
    )


@lru_cache(maxsize=1)
def get_services() -> Services:
    return build_services()


def get_permission_app_service() -> PermissionAppService:
    return get_services().permissions


def get_content_app_service() -> ContentAppService:
    return get_services().content


def get_workflow_app_service() -> WorkflowAppService:
    return get_services().workflow


def get_variant_app_service() -> VariantAppService:
    return get_services().variants


def get_search_app_service() -> SearchAppService:
    return get_services().search


def get_unit_app_service() -> UnitAppService:
    return get_services().units
