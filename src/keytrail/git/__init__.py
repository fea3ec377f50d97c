"""Git interface layer — clone, revision listing, checkout, history walk."""

from keytrail.git.adapter import (
    AcquisitionError,
    EnumerationError,
    GitError,
    MaterializationError,
    checkout_revision,
    clone_repository,
    list_revisions,
)
from keytrail.git.models import ScanSnapshot, StaleSnapshotError
from keytrail.git.walker import RevisionWalker

__all__ = [
    "AcquisitionError",
    "EnumerationError",
    "GitError",
    "MaterializationError",
    "RevisionWalker",
    "ScanSnapshot",
    "StaleSnapshotError",
    "checkout_revision",
    "clone_repository",
    "list_revisions",
]
