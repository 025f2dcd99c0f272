"""
Persistence for managed projects.
"""

from .registry import (
    CreateProject,
    CreateProjectRepo,
    DuplicateRepoPathError,
    Project,
    ProjectRegistry,
    ProjectRegistryError,
    ProjectRepo,
)

__all__ = [
    "CreateProject",
    "CreateProjectRepo",
    "DuplicateRepoPathError",
    "Project",
    "ProjectRegistry",
    "ProjectRegistryError",
    "ProjectRepo",
]
