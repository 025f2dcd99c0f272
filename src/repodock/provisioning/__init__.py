"""
Provisioning of local repository clones as managed projects.
"""
from .cloner import (
    CloneError,
    CloneExecutionError,
    ClonerUnavailableError,
    GhCliCloner,
    RepositoryCloner,
    remove_directory,
)
from .destination import (
    Destination,
    DestinationError,
    DestinationErrorKind,
    validate_destination,
)
from .orchestrator import (
    DUPLICATE_PATH_MESSAGE,
    ProvisioningOrchestrator,
    ProvisionOutcome,
    ProvisionRequest,
    derive_project_name,
    repo_display_name,
)

__all__ = [
    "CloneError",
    "CloneExecutionError",
    "ClonerUnavailableError",
    "DUPLICATE_PATH_MESSAGE",
    "Destination",
    "DestinationError",
    "DestinationErrorKind",
    "GhCliCloner",
    "ProvisionOutcome",
    "ProvisionRequest",
    "ProvisioningOrchestrator",
    "RepositoryCloner",
    "derive_project_name",
    "remove_directory",
    "validate_destination",
]
