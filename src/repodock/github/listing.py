"""
Organization repository listing with normalized error reporting.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional, Union

from fastapi.concurrency import run_in_threadpool

from ..logger import get_logger
from .cli import (
    GhCli,
    GhCliAuthFailed,
    GhCliCommandFailed,
    GhCliNotAvailable,
    GhCliUnexpectedOutput,
    GitHubOrgRepoInfo,
)

log = get_logger(__name__)

OrgReposErrorType = Literal["cli_not_installed", "auth_failed", "command_failed"]


@dataclass(frozen=True)
class OrgReposError:
    type: OrgReposErrorType
    message: Optional[str] = None


OrgReposResult = Union[List[GitHubOrgRepoInfo], OrgReposError]


def filter_repos(
    repos: List[GitHubOrgRepoInfo], search: Optional[str] = None
) -> List[GitHubOrgRepoInfo]:
    """Keep repositories whose name contains ``search``, ignoring case."""
    if search is None:
        return list(repos)
    needle = search.lower()
    return [repo for repo in repos if needle in repo.name.lower()]


class OrgRepoLister:
    def __init__(self, cli: Optional[GhCli] = None) -> None:
        self.cli = cli or GhCli()

    async def list_repos(self, org: str, search: Optional[str] = None) -> OrgReposResult:
        try:
            repos = await run_in_threadpool(self.cli.list_org_repos, org)
        except GhCliNotAvailable:
            log.warning("gh_not_installed", org=org)
            return OrgReposError(type="cli_not_installed")
        except GhCliAuthFailed as exc:
            log.warning("gh_auth_failed", org=org, error=str(exc))
            return OrgReposError(type="auth_failed", message=str(exc))
        except (GhCliCommandFailed, GhCliUnexpectedOutput) as exc:
            log.warning("gh_command_failed", org=org, error=str(exc))
            return OrgReposError(type="command_failed", message=str(exc))
        except Exception as exc:  # worker never produced a gh result
            log.error("org_repos_task_failed", org=org, error=str(exc))
            return OrgReposError(
                type="command_failed", message=f"Task execution failed: {exc}"
            )

        filtered = filter_repos(repos, search)
        log.info("org_repos_listed", org=org, total=len(repos), returned=len(filtered))
        return filtered
