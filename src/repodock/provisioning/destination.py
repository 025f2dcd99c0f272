"""
Validation of clone destinations.

A destination is acceptable when its parent is an existing directory and the
destination itself does not exist yet. The existence check is not a
reservation: another process may still create the path before the clone runs.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


class DestinationErrorKind(str, Enum):
    INVALID_PATH = "invalid_path"
    PARENT_MISSING = "parent_missing"
    PARENT_NOT_DIRECTORY = "parent_not_directory"
    DESTINATION_EXISTS = "destination_exists"


class DestinationError(ValueError):
    """Raised when a clone destination fails validation."""

    def __init__(self, kind: DestinationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class Destination:
    """A validated clone target."""

    path: Path

    @property
    def parent(self) -> Path:
        return self.path.parent


def validate_destination(candidate: Union[str, Path]) -> Destination:
    """
    Check ``candidate`` and return it as an absolute, normalized destination.

    Relative paths are resolved against the current working directory.
    Rules are applied in order and the first failure wins.
    """
    raw = str(candidate)
    if not raw.strip():
        raise DestinationError(
            DestinationErrorKind.INVALID_PATH,
            "Invalid destination path: no parent directory",
        )

    if "\x00" in raw:
        raise DestinationError(
            DestinationErrorKind.INVALID_PATH,
            "Invalid destination path: contains a NUL byte",
        )

    path = Path(os.path.abspath(raw))
    parent = path.parent
    if parent == path:
        raise DestinationError(
            DestinationErrorKind.INVALID_PATH,
            "Invalid destination path: no parent directory",
        )

    if not parent.exists():
        raise DestinationError(
            DestinationErrorKind.PARENT_MISSING,
            f"Parent directory does not exist: {parent}",
        )

    if not parent.is_dir():
        raise DestinationError(
            DestinationErrorKind.PARENT_NOT_DIRECTORY,
            f"Parent path is not a directory: {parent}",
        )

    # lexists so a dangling symlink still counts as occupied
    if os.path.lexists(path):
        raise DestinationError(
            DestinationErrorKind.DESTINATION_EXISTS,
            f"Destination already exists: {path}",
        )

    return Destination(path=path)
