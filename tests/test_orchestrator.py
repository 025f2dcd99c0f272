import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from repodock.provisioning import orchestrator as orchestrator_module
from repodock.provisioning import (
    DUPLICATE_PATH_MESSAGE,
    CloneError,
    ClonerUnavailableError,
    Destination,
    DestinationError,
    DestinationErrorKind,
    ProvisioningOrchestrator,
    ProvisionRequest,
    derive_project_name,
)
from repodock.storage import (
    CreateProject,
    CreateProjectRepo,
    ProjectRegistry,
    ProjectRegistryError,
)


class StubCloner:
    """Creates a fake checkout, or fails the way ``gh`` would."""

    def __init__(self, failure: Optional[Exception] = None, partial: bool = False) -> None:
        self.failure = failure
        self.partial = partial
        self.calls: List[Tuple[str, Path]] = []

    def clone(self, repo_full_name: str, destination: Path) -> None:
        self.calls.append((repo_full_name, destination))
        if self.partial or self.failure is None:
            (destination / ".git").mkdir(parents=True)
            (destination / "README.md").write_text(repo_full_name)
        if self.failure is not None:
            raise self.failure


class RecordingAnalytics:
    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def track_if_allowed(self, event: str, properties: Dict[str, Any]) -> None:
        self.events.append((event, properties))


class BrokenAnalytics:
    def track_if_allowed(self, event: str, properties: Dict[str, Any]) -> None:
        raise RuntimeError("collector offline")


class BrokenRegistry(ProjectRegistry):
    def create_project(self, payload: CreateProject):
        raise ProjectRegistryError("database is locked")


@pytest.fixture()
def registry(tmp_path: Path) -> ProjectRegistry:
    return ProjectRegistry(registry_path=tmp_path / "state" / "projects.json")


@pytest.fixture()
def workdir(tmp_path: Path) -> Path:
    path = tmp_path / "code"
    path.mkdir()
    return path


def _provision(orchestrator: ProvisioningOrchestrator, **kwargs: Any):
    return asyncio.run(orchestrator.provision(ProvisionRequest(**kwargs)))


def test_derive_project_name() -> None:
    assert derive_project_name("acme/widgets") == "widgets"
    assert derive_project_name("widgets") == "widgets"
    assert derive_project_name("acme/widgets", "Widget Shop") == "Widget Shop"
    assert derive_project_name("acme/widgets", "  ") == "widgets"


def test_successful_provision_registers_clone(registry: ProjectRegistry, workdir: Path) -> None:
    cloner = StubCloner()
    analytics = RecordingAnalytics()
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=cloner, analytics=analytics)
    destination = workdir / "widgets"

    outcome = _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(destination))

    assert outcome.ok
    project = outcome.project
    assert project is not None
    assert project.name == "widgets"
    assert len(project.repositories) == 1
    assert project.repositories[0].display_name == "widgets"
    assert project.repositories[0].git_repo_path == str(destination)
    assert Path(project.repositories[0].git_repo_path).is_dir()
    assert cloner.calls == [("acme/widgets", destination)]
    assert analytics.events == [
        (
            "project_created",
            {"project_id": project.id, "repository_count": 1, "trigger": "github_clone"},
        )
    ]
    assert [p.id for p in registry.list()] == [project.id]


def test_custom_project_name_keeps_repo_display_name(registry: ProjectRegistry, workdir: Path) -> None:
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=StubCloner())
    outcome = _provision(
        orchestrator,
        repo_full_name="acme/widgets",
        destination_path=str(workdir / "w"),
        project_name="Widget Shop",
    )
    assert outcome.project.name == "Widget Shop"
    assert outcome.project.repositories[0].display_name == "widgets"


def test_missing_parent_never_launches_clone(registry: ProjectRegistry, tmp_path: Path) -> None:
    cloner = StubCloner()
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=cloner)
    with pytest.raises(DestinationError) as excinfo:
        _provision(
            orchestrator,
            repo_full_name="acme/widgets",
            destination_path=str(tmp_path / "nope" / "widgets"),
        )
    assert excinfo.value.kind is DestinationErrorKind.PARENT_MISSING
    assert cloner.calls == []


def test_existing_destination_is_left_alone(registry: ProjectRegistry, workdir: Path) -> None:
    existing = workdir / "widgets"
    existing.mkdir()
    (existing / "keep.txt").write_text("precious")
    cloner = StubCloner()
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=cloner)

    with pytest.raises(DestinationError) as excinfo:
        _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(existing))

    assert excinfo.value.kind is DestinationErrorKind.DESTINATION_EXISTS
    assert cloner.calls == []
    assert (existing / "keep.txt").read_text() == "precious"


def test_failed_clone_removes_partial_directory(registry: ProjectRegistry, workdir: Path) -> None:
    cloner = StubCloner(failure=CloneError("fatal: repository not found"), partial=True)
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=cloner)
    destination = workdir / "widgets"

    with pytest.raises(CloneError) as excinfo:
        _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(destination))

    assert excinfo.value.diagnostic == "fatal: repository not found"
    assert not destination.exists()
    assert list(registry.list()) == []


def test_unavailable_cloner_is_reported(registry: ProjectRegistry, workdir: Path) -> None:
    cloner = StubCloner(failure=ClonerUnavailableError("Failed to execute gh command"))
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=cloner)
    destination = workdir / "widgets"

    with pytest.raises(ClonerUnavailableError):
        _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(destination))

    assert not destination.exists()


def test_duplicate_path_is_a_conflict_outcome(registry: ProjectRegistry, workdir: Path) -> None:
    destination = workdir / "widgets"
    registry.create_project(
        CreateProject(
            name="older",
            repositories=[CreateProjectRepo(display_name="widgets", git_repo_path=str(destination))],
        )
    )
    analytics = RecordingAnalytics()
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=StubCloner(), analytics=analytics)

    outcome = _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(destination))

    assert not outcome.ok
    assert outcome.status == "conflict"
    assert outcome.message == DUPLICATE_PATH_MESSAGE
    assert outcome.project is None
    assert not destination.exists()
    assert analytics.events == []
    assert [p.name for p in registry.list()] == ["older"]


def test_registry_failure_propagates_and_removes_clone(tmp_path: Path, workdir: Path) -> None:
    registry = BrokenRegistry(registry_path=tmp_path / "projects.json")
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=StubCloner())
    destination = workdir / "widgets"

    with pytest.raises(ProjectRegistryError, match="database is locked"):
        _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(destination))

    assert not destination.exists()


def test_analytics_failure_does_not_fail_provisioning(registry: ProjectRegistry, workdir: Path) -> None:
    orchestrator = ProvisioningOrchestrator(
        registry=registry, cloner=StubCloner(), analytics=BrokenAnalytics()
    )
    destination = workdir / "widgets"

    outcome = _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(destination))

    assert outcome.ok
    assert destination.is_dir()


def test_failed_clone_leaves_directory_it_did_not_create(
    registry: ProjectRegistry, workdir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    destination = workdir / "widgets"
    # another request validated the same path and cloned into it first
    monkeypatch.setattr(
        orchestrator_module, "validate_destination", lambda raw: Destination(path=Path(raw))
    )
    destination.mkdir()
    (destination / "README.md").write_text("winner")
    cloner = StubCloner(failure=CloneError("destination path 'widgets' already exists"))
    orchestrator = ProvisioningOrchestrator(registry=registry, cloner=cloner)

    with pytest.raises(CloneError):
        _provision(orchestrator, repo_full_name="acme/widgets", destination_path=str(destination))

    assert (destination / "README.md").read_text() == "winner"
