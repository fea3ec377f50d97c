"""Identifier admission and thread-safe result collection."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Set, Tuple

from keytrail.findings.models import (
    CandidateCredential,
    CredentialReport,
    FileWarning,
    RevisionFailure,
    ScanFinding,
    ScanReport,
    ValidationOutcome,
)

PENDING_REASON = "validation pending"


class CandidateDeduplicator:
    """Remembers every access key id seen in the run.

    ``admit`` returns True exactly once per identifier, so each identifier
    reaches the validation dispatcher at most once.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    def admit(self, candidate: CandidateCredential) -> bool:
        with self._lock:
            if candidate.identifier in self._seen:
                return False
            self._seen.add(candidate.identifier)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


class ResultAggregator:
    """Collects findings, outcomes and failures from the walker and workers."""

    def __init__(self, revisions_total: int = 0) -> None:
        self._lock = threading.Lock()
        # identifier -> first-seen secret; dict order = discovery order
        self._secrets: Dict[str, str] = {}
        self._occurrences: Dict[str, Dict[Tuple[str, str], None]] = {}  # ordered set
        self._outcomes: Dict[str, ValidationOutcome] = {}
        self._failures: List[RevisionFailure] = []
        self._warnings: List[FileWarning] = []
        self._skipped: List[str] = []
        self._revisions_total = revisions_total
        self._revisions_scanned = 0
        self._finished = False
        self._cancelled = False
        self._duration_ms = 0.0
        self._default_reason: Optional[str] = None

    # ---- recording ----

    def record_finding(self, finding: ScanFinding) -> None:
        ident = finding.credential.identifier
        occurrence = (finding.revision, finding.file_path)
        with self._lock:
            self._secrets.setdefault(ident, finding.credential.secret)
            self._occurrences.setdefault(ident, {})[occurrence] = None

    def record_outcome(self, identifier: str, outcome: ValidationOutcome) -> bool:
        """Store *outcome* unless one is already settled. Returns True if stored."""
        with self._lock:
            if identifier in self._outcomes:
                return False
            self._outcomes[identifier] = outcome
            return True

    def record_revision_failure(self, revision: str, cause: str) -> None:
        with self._lock:
            self._failures.append(RevisionFailure(revision, cause))

    def record_warning(self, revision: str, file_path: str, reason: str) -> None:
        with self._lock:
            self._warnings.append(FileWarning(revision, file_path, reason))

    def record_skipped(self, revision: str, file_path: str, reason: str) -> None:
        with self._lock:
            self._skipped.append(f"{revision[:12]}:{file_path} ({reason})")

    def record_revision_scanned(self) -> None:
        with self._lock:
            self._revisions_scanned += 1

    # ---- lifecycle ----

    def has_outcome(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._outcomes

    def finish(
        self,
        *,
        cancelled: bool = False,
        duration_ms: float = 0.0,
        unsettled_reason: Optional[str] = None,
    ) -> None:
        """Mark the run over. Identifiers still without an outcome get
        Indeterminate(*unsettled_reason*) in every later snapshot."""
        with self._lock:
            self._finished = True
            self._cancelled = cancelled
            self._duration_ms = duration_ms
            self._default_reason = unsettled_reason

    def snapshot(self) -> ScanReport:
        """Build a ScanReport. Before ``finish`` it is labelled incomplete."""
        with self._lock:
            reason = self._default_reason if self._finished and self._default_reason else PENDING_REASON
            credentials = {
                ident: CredentialReport(
                    identifier=ident,
                    secret=secret,
                    outcome=self._outcomes.get(ident) or ValidationOutcome.indeterminate(reason),
                    occurrences=tuple(self._occurrences[ident]),
                )
                for ident, secret in self._secrets.items()
            }
            return ScanReport(
                credentials=credentials,
                revision_failures=tuple(self._failures),
                warnings=tuple(self._warnings),
                skipped_files=tuple(self._skipped),
                revisions_total=self._revisions_total,
                revisions_scanned=self._revisions_scanned,
                complete=self._finished and not self._cancelled,
                cancelled=self._cancelled,
                duration_ms=self._duration_ms,
            )
