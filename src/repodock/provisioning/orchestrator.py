"""
Clone-and-register workflow orchestration.

A provisioning run validates the destination, clones the repository into it
and registers a project pointing at the clone. Once the clone step starts,
every exit other than a successful registration removes the destination
directory again (unless it existed before the clone step), so the filesystem
never keeps a clone that no project references.
"""
from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any, Dict, Literal, Optional, Protocol, Type

from fastapi.concurrency import run_in_threadpool

from ..logger import get_logger
from ..storage import (
    CreateProject,
    CreateProjectRepo,
    DuplicateRepoPathError,
    Project,
    ProjectRegistry,
)
from .cloner import GhCliCloner, RepositoryCloner, remove_directory
from .destination import validate_destination

log = get_logger(__name__)

DUPLICATE_PATH_MESSAGE = "A project with this repository path already exists"

ProvisionStatus = Literal["created", "conflict"]


class AnalyticsSink(Protocol):
    def track_if_allowed(self, event: str, properties: Dict[str, Any]) -> None:
        ...


@dataclass(frozen=True)
class ProvisionRequest:
    repo_full_name: str
    destination_path: str
    project_name: Optional[str] = None


@dataclass(frozen=True)
class ProvisionOutcome:
    """Result of a provisioning run that did not raise."""

    status: ProvisionStatus
    project: Optional[Project] = None
    message: Optional[str] = None

    @classmethod
    def created(cls, project: Project) -> "ProvisionOutcome":
        return cls(status="created", project=project)

    @classmethod
    def conflict(cls, message: str = DUPLICATE_PATH_MESSAGE) -> "ProvisionOutcome":
        return cls(status="conflict", message=message)

    @property
    def ok(self) -> bool:
        return self.status == "created"


def repo_display_name(repo_full_name: str) -> str:
    """Last ``/``-separated segment of ``owner/name``, or the whole identifier."""
    return repo_full_name.split("/")[-1]


def derive_project_name(repo_full_name: str, project_name: Optional[str] = None) -> str:
    if project_name is not None and project_name.strip():
        return project_name
    return repo_display_name(repo_full_name)


class CloneGuard:
    """
    Remove the clone directory on exit unless the clone was committed.

    A path that already existed when the guard was entered belongs to someone
    else (for example a concurrent provisioning of the same destination) and
    is never removed.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.committed = False
        self.preexisting = False

    def commit(self) -> None:
        self.committed = True

    def __enter__(self) -> "CloneGuard":
        self.preexisting = os.path.lexists(self.path)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self.committed:
            return
        if self.preexisting:
            log.warning("clone_cleanup_skipped", path=str(self.path), reason="preexisting")
            return
        remove_directory(self.path)


class ProvisioningOrchestrator:
    """Sequence destination validation, cloning and project registration."""

    def __init__(
        self,
        registry: Optional[ProjectRegistry] = None,
        cloner: Optional[RepositoryCloner] = None,
        analytics: Optional[AnalyticsSink] = None,
    ) -> None:
        self.registry = registry or ProjectRegistry()
        self.cloner = cloner or GhCliCloner()
        self.analytics = analytics

    async def provision(self, request: ProvisionRequest) -> ProvisionOutcome:
        """
        Clone ``request.repo_full_name`` and register it as a project.

        Raises ``DestinationError`` before any side effect, ``CloneExecutionError``
        when the clone fails, and re-raises any registrar failure other than a
        duplicate repository path after removing the clone.
        """
        start_time = time.time()
        destination = validate_destination(request.destination_path)
        display_name = repo_display_name(request.repo_full_name)
        payload = CreateProject(
            name=derive_project_name(request.repo_full_name, request.project_name),
            repositories=[
                CreateProjectRepo(
                    display_name=display_name,
                    git_repo_path=str(destination.path),
                )
            ],
        )

        with CloneGuard(destination.path) as guard:
            await run_in_threadpool(
                self.cloner.clone, request.repo_full_name, destination.path
            )
            try:
                project = await run_in_threadpool(self.registry.create_project, payload)
            except DuplicateRepoPathError:
                log.warning(
                    "project_path_conflict",
                    repo=request.repo_full_name,
                    destination=str(destination.path),
                )
                return ProvisionOutcome.conflict()
            guard.commit()

        log.info(
            "project_provisioned",
            project=project.name,
            repo=request.repo_full_name,
            destination=str(destination.path),
            duration_ms=(time.time() - start_time) * 1000.0,
        )
        self._track_created(project)
        return ProvisionOutcome.created(project)

    def _track_created(self, project: Project) -> None:
        if self.analytics is None:
            return
        try:
            self.analytics.track_if_allowed(
                "project_created",
                {
                    "project_id": project.id,
                    "repository_count": len(project.repositories),
                    "trigger": "github_clone",
                },
            )
        except Exception as exc:  # analytics must never affect the result
            log.warning("analytics_event_failed", analytics_event="project_created", error=str(exc))
