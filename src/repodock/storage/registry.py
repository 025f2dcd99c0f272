"""
Local registry for managed projects.

Persists a JSON catalogue under the workspace directory. A repository path can
belong to at most one project; attempts to register it twice are rejected with
``DuplicateRepoPathError``.
"""

from __future__ import annotations

import json
import os
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)


class ProjectRegistryError(Exception):
    """Raised when a project cannot be created or persisted."""


class DuplicateRepoPathError(ProjectRegistryError):
    """A project already references the requested repository path."""

    def __init__(self, git_repo_path: str) -> None:
        super().__init__(f"A project already references repository path: {git_repo_path}")
        self.git_repo_path = git_repo_path


@dataclass
class CreateProjectRepo:
    display_name: str
    git_repo_path: str


@dataclass
class CreateProject:
    name: str
    repositories: List[CreateProjectRepo]


@dataclass
class ProjectRepo:
    """Repository attached to a project."""

    display_name: str
    git_repo_path: str


@dataclass
class Project:
    """Entry describing a managed project."""

    id: str
    name: str
    repositories: List[ProjectRepo] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)


class ProjectRegistry:
    """JSON-backed, thread-safe project store."""

    def __init__(self, registry_path: Optional[Path] = None) -> None:
        self.registry_path = registry_path or settings.resolved_registry_path()
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        self._records: Dict[str, Project] = {}
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        if not self.registry_path.exists():
            return
        try:
            data = json.loads(self.registry_path.read_text())
        except (OSError, ValueError) as exc:
            raise ProjectRegistryError(
                f"Project registry is unreadable: {self.registry_path}"
            ) from exc
        for project_id, payload in data.items():
            repositories = [ProjectRepo(**repo) for repo in payload.pop("repositories", [])]
            self._records[project_id] = Project(repositories=repositories, **payload)
        log.info("registry_loaded", count=len(self._records))

    def _persist(self) -> None:
        data = {project_id: asdict(record) for project_id, record in self._records.items()}
        # the catalogue on disk is replaced whole, never truncated in place
        staging = self.registry_path.with_name(self.registry_path.name + ".tmp")
        staging.write_text(json.dumps(data, indent=2))
        os.replace(staging, self.registry_path)
        log.debug("registry_persisted", count=len(self._records))

    def create_project(self, payload: CreateProject) -> Project:
        if not payload.repositories:
            raise ProjectRegistryError("A project needs at least one repository.")

        with self._lock:
            taken = {
                repo.git_repo_path
                for record in self._records.values()
                for repo in record.repositories
            }
            requested = [repo.git_repo_path for repo in payload.repositories]
            for path in requested:
                if path in taken or requested.count(path) > 1:
                    raise DuplicateRepoPathError(path)

            project = Project(
                id=str(uuid.uuid4()),
                name=payload.name,
                repositories=[
                    ProjectRepo(display_name=repo.display_name, git_repo_path=repo.git_repo_path)
                    for repo in payload.repositories
                ],
            )
            self._records[project.id] = project
            try:
                self._persist()
            except OSError as exc:
                self._records.pop(project.id)
                raise ProjectRegistryError(f"Failed to persist project: {exc}") from exc

        log.info("project_registered", id=project.id, name=project.name)
        return project

    def remove(self, project_id: str) -> bool:
        with self._lock:
            record = self._records.pop(project_id, None)
            if record is None:
                return False
            try:
                self._persist()
            except OSError as exc:
                self._records[project_id] = record
                raise ProjectRegistryError(f"Failed to persist project removal: {exc}") from exc
        log.info("project_removed", id=project_id)
        return True

    def get(self, project_id: str) -> Optional[Project]:
        with self._lock:
            return self._records.get(project_id)

    def list(self) -> Iterable[Project]:
        with self._lock:
            return sorted(self._records.values(), key=lambda record: record.created_at)
