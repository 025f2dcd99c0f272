"""
Request and response models for the HTTP API.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field

from ..github import GitHubOrgRepoInfo, OrgReposError
from ..storage import Project

T = TypeVar("T")
E = TypeVar("E")


class ApiResponse(BaseModel, Generic[T, E]):
    """Envelope shared by every facade endpoint."""

    success: bool
    data: Optional[T] = None
    error_data: Optional[E] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "ApiResponse[T, E]":
        return cls(success=True, data=data)

    @classmethod
    def error(cls, message: str) -> "ApiResponse[T, E]":
        return cls(success=False, message=message)

    @classmethod
    def error_with_data(cls, error_data: E) -> "ApiResponse[T, E]":
        return cls(success=False, error_data=error_data)


class CloneAndCreateProjectRequest(BaseModel):
    repo_full_name: str
    destination_path: str
    project_name: Optional[str] = None


class ProjectRepoResponse(BaseModel):
    display_name: str
    git_repo_path: str


class ProjectResponse(BaseModel):
    id: str
    name: str
    repositories: List[ProjectRepoResponse]
    created_at: datetime

    @classmethod
    def from_project(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,
            name=project.name,
            repositories=[
                ProjectRepoResponse(
                    display_name=repo.display_name, git_repo_path=repo.git_repo_path
                )
                for repo in project.repositories
            ],
            created_at=datetime.fromtimestamp(project.created_at),
        )


class GitHubOrgRepo(BaseModel):
    name: str
    description: Optional[str] = None
    clone_url: str

    @classmethod
    def from_info(cls, info: GitHubOrgRepoInfo) -> "GitHubOrgRepo":
        return cls(name=info.name, description=info.description, clone_url=info.clone_url)


class CliNotInstalled(BaseModel):
    type: Literal["cli_not_installed"] = "cli_not_installed"


class AuthFailed(BaseModel):
    type: Literal["auth_failed"] = "auth_failed"
    message: str


class CommandFailed(BaseModel):
    type: Literal["command_failed"] = "command_failed"
    message: str


GitHubOrgReposError = Annotated[
    Union[CliNotInstalled, AuthFailed, CommandFailed], Field(discriminator="type")
]


def org_repos_error_payload(error: OrgReposError) -> Union[CliNotInstalled, AuthFailed, CommandFailed]:
    if error.type == "cli_not_installed":
        return CliNotInstalled()
    if error.type == "auth_failed":
        return AuthFailed(message=error.message or "")
    return CommandFailed(message=error.message or "")


class TelemetryResponse(BaseModel):
    provision: Dict[str, Any]
    list_repos: Dict[str, Any]
    recent_events: List[Dict[str, Any]]


ProjectEnvelope = ApiResponse[ProjectResponse, None]
OrgReposEnvelope = ApiResponse[List[GitHubOrgRepo], GitHubOrgReposError]
