"""History scan driver — wires walker, scanner, dedup, dispatcher, aggregator.

One thread walks history and scans files; validation runs on the
dispatcher's pool. The report is read only after the walk has ended and
the dispatcher has drained (or been abandoned on cancel).
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Sequence

from keytrail.config.schema import KeyTrailConfig
from keytrail.findings.aggregator import CandidateDeduplicator, ResultAggregator
from keytrail.findings.models import ScanReport
from keytrail.git.adapter import checkout_revision, clone_repository, list_revisions
from keytrail.git.walker import Materializer, RevisionWalker
from keytrail.rules.registry import RuleRegistry, build_registry
from keytrail.scanner.extractor import PatternExtractor
from keytrail.scanner.files import RepositoryScanner
from keytrail.validation.authority import ValidationAuthority
from keytrail.validation.dispatcher import CANCELLED_REASON, ValidationDispatcher

logger = logging.getLogger(__name__)

DISABLED_REASON = "validation disabled"


class HistoryScan:
    """One run over one repository. ``cancel`` may be called from any thread."""

    def __init__(
        self,
        config: KeyTrailConfig,
        authority: Optional[ValidationAuthority] = None,
        *,
        registry: Optional[RuleRegistry] = None,
        materialize: Materializer = checkout_revision,
    ) -> None:
        self.config = config
        self.authority = authority if config.validation.enabled else None
        self.registry = registry or build_registry(config)
        self._materialize = materialize
        self._cancel = threading.Event()

    def cancel(self) -> None:
        logger.info("Cancellation requested")
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _build_scanner(self, aggregator: ResultAggregator) -> RepositoryScanner:
        scan_cfg = self.config.scan
        return RepositoryScanner(
            PatternExtractor.from_registry(self.registry),
            skip_dirs=scan_cfg.skip_dirs,
            ignore_globs=self.config.ignore.paths,
            max_file_size_kb=scan_cfg.max_file_size_kb,
            on_warning=aggregator.record_warning,
            on_skip=aggregator.record_skipped,
        )

    def run(self, root: Path, revisions: Sequence[str]) -> ScanReport:
        """Scan *revisions* of the working tree at *root* and return the report."""
        start = time.perf_counter()
        aggregator = ResultAggregator(revisions_total=len(revisions))
        dedup = CandidateDeduplicator()
        scanner = self._build_scanner(aggregator)

        dispatcher: Optional[ValidationDispatcher] = None
        if self.authority is not None:
            dispatcher = ValidationDispatcher(
                self.authority,
                aggregator,
                max_workers=self.config.validation.max_workers,
                cancel_event=self._cancel,
            )

        timeout = self.config.scan.run_timeout_s
        walker = RevisionWalker(
            root,
            revisions,
            materialize=self._materialize,
            on_failure=aggregator.record_revision_failure,
            cancel_event=self._cancel,
            deadline=time.monotonic() + timeout if timeout else None,
        )

        try:
            for snapshot in walker:
                findings = scanner.scan(snapshot)
                for finding in findings:
                    aggregator.record_finding(finding)
                    if dedup.admit(finding.credential) and dispatcher is not None:
                        dispatcher.submit(finding.credential)
                aggregator.record_revision_scanned()
                logger.debug("%s: %d finding(s)", snapshot.revision[:12], len(findings))
        except KeyboardInterrupt:
            self._cancel.set()
        except BaseException:
            if dispatcher is not None:
                dispatcher.abandon("run aborted")
            raise

        if dispatcher is not None and not self._cancel.is_set():
            dispatcher.drain()
        if dispatcher is not None and self._cancel.is_set():
            dispatcher.abandon(CANCELLED_REASON)

        cancelled = self._cancel.is_set()
        if dispatcher is None:
            unsettled = DISABLED_REASON
        else:
            unsettled = CANCELLED_REASON if cancelled else None
        aggregator.finish(
            cancelled=cancelled,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            unsettled_reason=unsettled,
        )
        report = aggregator.snapshot()
        logger.info(
            "Scanned %d/%d revisions, %d unique key id(s), %d live",
            report.revisions_scanned, report.revisions_total,
            len(report.credentials), len(report.valid),
        )
        return report

    def scan_location(self, location: str, *, keep_clone: bool = False) -> ScanReport:
        """Clone *location*, list its revisions, and run the scan on the clone.

        Raises ``AcquisitionError`` or ``EnumerationError`` before any
        revision is touched; those abort the run without a report.
        """
        checkout = clone_repository(location, keep=keep_clone)
        try:
            revisions = list_revisions(
                checkout.path,
                all_refs=self.config.scan.all_refs,
                limit=self.config.scan.max_revisions,
            )
            logger.info("%d revision(s) to scan in %s", len(revisions), location)
            return self.run(checkout.path, revisions)
        finally:
            checkout.cleanup()
