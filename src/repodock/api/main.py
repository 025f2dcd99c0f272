"""
FastAPI entrypoint exposing project provisioning and GitHub org listings.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, status

from .dependencies import require_api_key, telemetry_enabled
from .schemas import (
    CloneAndCreateProjectRequest,
    GitHubOrgRepo,
    OrgReposEnvelope,
    ProjectEnvelope,
    ProjectResponse,
    TelemetryResponse,
    org_repos_error_payload,
)
from .telemetry import Telemetry
from ..github import OrgRepoLister, OrgReposError
from ..logger import configure_logging, get_logger
from ..provisioning import (
    CloneExecutionError,
    DestinationError,
    ProvisioningOrchestrator,
    ProvisionRequest,
)
from ..settings import settings
from ..storage import ProjectRegistry, ProjectRegistryError
from ..version import __version__

log = get_logger(__name__)

app = FastAPI(title="repodock", version=__version__)
telemetry = Telemetry()
orchestrator = ProvisioningOrchestrator(registry=ProjectRegistry(), analytics=telemetry)
lister = OrgRepoLister()

github_router = APIRouter(prefix="/github", dependencies=[Depends(require_api_key)])


@app.get("/healthz")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@github_router.post("/clone-and-create-project", response_model=ProjectEnvelope)
async def clone_and_create_project(request: CloneAndCreateProjectRequest) -> ProjectEnvelope:
    """
    Clone a GitHub repository and register it as a project.

    Invalid destinations and clone failures are client errors. A repository
    path that is already registered yields a successful response whose
    payload carries the error message.
    """
    start_time = time.time()
    metadata: Dict[str, Any] = {
        "repo": request.repo_full_name,
        "destination": request.destination_path,
    }
    try:
        outcome = await orchestrator.provision(
            ProvisionRequest(
                repo_full_name=request.repo_full_name,
                destination_path=request.destination_path,
                project_name=request.project_name,
            )
        )
    except (DestinationError, CloneExecutionError) as exc:
        _record_provision_telemetry(start_time, ok=False, metadata={**metadata, "error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except Exception as exc:
        log.error("project_registration_failed", error=str(exc), **metadata)
        _record_provision_telemetry(start_time, ok=False, metadata={**metadata, "error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc

    if not outcome.ok or outcome.project is None:
        _record_provision_telemetry(start_time, ok=False, conflict=True, metadata=metadata)
        return ProjectEnvelope.error(outcome.message or "Project was not created")

    _record_provision_telemetry(
        start_time, ok=True, metadata={**metadata, "project_id": outcome.project.id}
    )
    return ProjectEnvelope.ok(ProjectResponse.from_project(outcome.project))


@github_router.get("/repos", response_model=OrgReposEnvelope)
async def list_org_repos(org: str, search: Optional[str] = None) -> OrgReposEnvelope:
    start_time = time.time()
    result = await lister.list_repos(org, search)
    if isinstance(result, OrgReposError):
        _record_list_telemetry(start_time, ok=False, metadata={"org": org, "error": result.type})
        return OrgReposEnvelope.error_with_data(org_repos_error_payload(result))

    _record_list_telemetry(start_time, ok=True, metadata={"org": org, "count": len(result)})
    return OrgReposEnvelope.ok([GitHubOrgRepo.from_info(info) for info in result])


app.include_router(github_router)


@app.get(
    "/projects",
    response_model=List[ProjectResponse],
    dependencies=[Depends(require_api_key)],
)
def list_projects() -> List[ProjectResponse]:
    return [ProjectResponse.from_project(project) for project in orchestrator.registry.list()]


@app.get(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    dependencies=[Depends(require_api_key)],
)
def get_project(project_id: str) -> ProjectResponse:
    project = orchestrator.registry.get(project_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Project not found"
        )
    return ProjectResponse.from_project(project)


@app.delete(
    "/projects/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_api_key)],
)
def remove_project(project_id: str) -> None:
    """Forget a project. The clone on disk is left untouched."""
    try:
        removed = orchestrator.registry.remove(project_id)
    except ProjectRegistryError as exc:
        log.error("project_removal_failed", id=project_id, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Project not found"
        )


@app.get(
    "/telemetry",
    response_model=TelemetryResponse,
    dependencies=[Depends(require_api_key)],
)
def telemetry_snapshot(enabled: bool = Depends(telemetry_enabled)) -> TelemetryResponse:
    if not enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Telemetry disabled"
        )
    return TelemetryResponse(**telemetry.snapshot())


def _record_provision_telemetry(
    start_time: float,
    ok: bool,
    conflict: bool = False,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    telemetry.record_provision(
        duration_ms=(time.time() - start_time) * 1000.0,
        ok=ok,
        conflict=conflict,
        metadata=metadata,
    )


def _record_list_telemetry(
    start_time: float, ok: bool, metadata: Optional[Dict[str, Any]] = None
) -> None:
    telemetry.record_list_repos(
        duration_ms=(time.time() - start_time) * 1000.0, ok=ok, metadata=metadata
    )


def run(log_level: Optional[int] = None) -> None:
    """CLI entrypoint to run the FastAPI server."""
    configure_logging(level=log_level)
    log.info("api_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(
        "repodock.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )
