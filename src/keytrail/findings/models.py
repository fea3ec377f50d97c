"""Finding, outcome and report data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CandidateCredential:
    """An (access key id, secret key) pair matched in some file.

    Deduplication keys on ``identifier`` alone; the pair as a whole is only
    distinct inside one file's extraction result.
    """

    identifier: str
    secret: str


@dataclass(frozen=True)
class ScanFinding:
    """One sighting of a candidate credential at a revision and path."""

    revision: str
    file_path: str
    credential: CandidateCredential


class Verdict(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class ValidationOutcome:
    verdict: Verdict
    reason: Optional[str] = None

    @classmethod
    def valid(cls, reason: Optional[str] = None) -> "ValidationOutcome":
        return cls(Verdict.VALID, reason)

    @classmethod
    def invalid(cls, reason: Optional[str] = None) -> "ValidationOutcome":
        return cls(Verdict.INVALID, reason)

    @classmethod
    def indeterminate(cls, reason: str) -> "ValidationOutcome":
        return cls(Verdict.INDETERMINATE, reason)

    @property
    def is_valid(self) -> bool:
        return self.verdict is Verdict.VALID

    @property
    def is_indeterminate(self) -> bool:
        return self.verdict is Verdict.INDETERMINATE


@dataclass(frozen=True)
class RevisionFailure:
    revision: str
    cause: str


@dataclass(frozen=True)
class FileWarning:
    revision: str
    file_path: str
    reason: str


@dataclass(frozen=True)
class CredentialReport:
    """Everything known about one access key id at the end of a run."""

    identifier: str
    secret: str  # first-seen secret
    outcome: ValidationOutcome
    occurrences: Tuple[Tuple[str, str], ...]  # (revision, file_path)

    @property
    def first_seen(self) -> Tuple[str, str]:
        return self.occurrences[0]


@dataclass(frozen=True)
class ScanReport:
    """Terminal artifact of a run. ``complete`` is False for partial snapshots."""

    credentials: Dict[str, CredentialReport] = field(default_factory=dict)
    revision_failures: Tuple[RevisionFailure, ...] = ()
    warnings: Tuple[FileWarning, ...] = ()
    skipped_files: Tuple[str, ...] = ()
    revisions_total: int = 0
    revisions_scanned: int = 0
    complete: bool = True
    cancelled: bool = False
    duration_ms: float = 0.0

    def _with(self, verdict: Verdict) -> List[CredentialReport]:
        return [c for c in self.credentials.values() if c.outcome.verdict is verdict]

    @property
    def valid(self) -> List[CredentialReport]:
        return self._with(Verdict.VALID)

    @property
    def invalid(self) -> List[CredentialReport]:
        return self._with(Verdict.INVALID)

    @property
    def indeterminate(self) -> List[CredentialReport]:
        return self._with(Verdict.INDETERMINATE)

    @property
    def total_findings(self) -> int:
        return sum(len(c.occurrences) for c in self.credentials.values())
