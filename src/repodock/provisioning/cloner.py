"""
Repository cloning backends.

The orchestrator only depends on the ``RepositoryCloner`` protocol; the
default backend shells out to the GitHub CLI.
"""
from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)


class CloneExecutionError(Exception):
    """Base class for failures while materializing a clone."""


class ClonerUnavailableError(CloneExecutionError):
    """The clone tool could not be launched at all."""


class CloneError(CloneExecutionError):
    """The clone tool ran but did not succeed."""

    def __init__(self, diagnostic: str) -> None:
        super().__init__(f"Failed to clone repository: {diagnostic}")
        self.diagnostic = diagnostic


class RepositoryCloner(Protocol):
    def clone(self, repo_full_name: str, destination: Path) -> None:
        """Materialize ``repo_full_name`` at ``destination`` (blocking)."""


class GhCliCloner:
    """Clone repositories with ``gh repo clone``."""

    def __init__(self, binary: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.binary = binary or settings.gh_binary
        self.timeout = timeout if timeout is not None else settings.gh_timeout

    def clone(self, repo_full_name: str, destination: Path) -> None:
        command = [self.binary, "repo", "clone", repo_full_name, str(destination)]
        log.info("clone_started", repo=repo_full_name, destination=str(destination))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise CloneError(f"gh repo clone timed out after {exc.timeout} seconds") from exc
        except OSError as exc:
            raise ClonerUnavailableError(
                f"Failed to execute gh command: {exc}. Is GitHub CLI installed?"
            ) from exc

        if result.returncode != 0:
            diagnostic = (result.stderr or "").strip()
            log.warning(
                "clone_failed",
                repo=repo_full_name,
                returncode=result.returncode,
                stderr=diagnostic,
            )
            raise CloneError(diagnostic)
        log.info("clone_completed", repo=repo_full_name, destination=str(destination))


def remove_directory(path: Path) -> None:
    """Recursively delete ``path`` if present; failures are logged and swallowed."""
    if not path.exists() and not path.is_symlink():
        return
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as exc:
        log.warning("clone_cleanup_failed", path=str(path), error=str(exc))
        return
    log.warning("clone_directory_removed", path=str(path))
