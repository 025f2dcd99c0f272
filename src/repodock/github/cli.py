"""
Thin wrapper around the GitHub CLI (``gh``).
"""
from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)

_AUTH_MARKERS = (
    "gh auth login",
    "not logged in",
    "authentication",
    "http 401",
    "bad credentials",
)


class GhCliError(Exception):
    """Base class for ``gh`` invocation failures."""


class GhCliNotAvailable(GhCliError):
    def __init__(self) -> None:
        super().__init__("GitHub CLI (gh) is not installed or not on PATH")


class GhCliAuthFailed(GhCliError):
    pass


class GhCliCommandFailed(GhCliError):
    pass


class GhCliUnexpectedOutput(GhCliError):
    pass


@dataclass
class GitHubOrgRepoInfo:
    name: str
    description: Optional[str]
    clone_url: str


class GhCli:
    def __init__(
        self,
        binary: Optional[str] = None,
        timeout: Optional[float] = None,
        list_limit: Optional[int] = None,
    ) -> None:
        self.binary = binary or settings.gh_binary
        self.timeout = timeout if timeout is not None else settings.gh_timeout
        self.list_limit = list_limit or settings.gh_list_limit

    def _run(self, args: List[str]) -> str:
        try:
            result = subprocess.run(
                [self.binary, *args],
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise GhCliNotAvailable() from exc
        except subprocess.TimeoutExpired as exc:
            raise GhCliCommandFailed(f"gh timed out after {exc.timeout} seconds") from exc
        except OSError as exc:
            raise GhCliCommandFailed(str(exc)) from exc

        if result.returncode != 0:
            message = (result.stderr or "").strip() or (result.stdout or "").strip()
            lowered = message.lower()
            if any(marker in lowered for marker in _AUTH_MARKERS):
                raise GhCliAuthFailed(message)
            raise GhCliCommandFailed(message or f"gh exited with status {result.returncode}")
        return result.stdout

    def list_org_repos(self, org: str) -> List[GitHubOrgRepoInfo]:
        """Non-archived repositories of ``org``, as reported by ``gh repo list``."""
        stdout = self._run(
            [
                "repo",
                "list",
                org,
                "--json",
                "name,description,url",
                "--limit",
                str(self.list_limit),
                "--no-archived",
            ]
        )
        try:
            entries = json.loads(stdout)
            repos = [
                GitHubOrgRepoInfo(
                    name=entry["name"],
                    description=entry.get("description") or None,
                    clone_url=entry["url"],
                )
                for entry in entries
            ]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise GhCliUnexpectedOutput(f"Unable to parse gh output: {exc}") from exc
        log.info("org_repos_fetched", org=org, count=len(repos))
        return repos
