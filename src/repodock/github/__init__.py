"""
GitHub integration built on the ``gh`` command line tool.
"""
from .cli import (
    GhCli,
    GhCliAuthFailed,
    GhCliCommandFailed,
    GhCliError,
    GhCliNotAvailable,
    GhCliUnexpectedOutput,
    GitHubOrgRepoInfo,
)
from .listing import OrgRepoLister, OrgReposError, filter_repos

__all__ = [
    "GhCli",
    "GhCliAuthFailed",
    "GhCliCommandFailed",
    "GhCliError",
    "GhCliNotAvailable",
    "GhCliUnexpectedOutput",
    "GitHubOrgRepoInfo",
    "OrgRepoLister",
    "OrgReposError",
    "filter_repos",
]
