"""Revision walker — the only code that mutates the working tree.

Each revision is checked out, handed to the consumer as a ``ScanSnapshot``,
and the walker does not touch the tree again until the consumer asks for
the next item. Since the walk is a generator, "asks for the next item" is
the scan-completion signal: materialize(i) happens-before scan(i)
happens-before materialize(i + 1).
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

from keytrail.git.adapter import MaterializationError, checkout_revision
from keytrail.git.models import ScanSnapshot

logger = logging.getLogger(__name__)

Materializer = Callable[[Path, str], None]
FailureSink = Callable[[str, str], None]


class RevisionWalker:
    """Walk *revisions* in list order over the single working tree at *root*.

    Single pass: iterating twice raises ``RuntimeError``, because the first
    pass already moved the tree and a second pass would need a fresh clone or
    a reset to the first revision.
    """

    def __init__(
        self,
        root: Path,
        revisions: Sequence[str],
        *,
        materialize: Materializer = checkout_revision,
        on_failure: Optional[FailureSink] = None,
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
    ) -> None:
        self.root = root
        self.revisions = list(revisions)
        self._materialize = materialize
        self._on_failure = on_failure
        self._cancel = cancel_event or threading.Event()
        self._deadline = deadline  # time.monotonic() value
        self._started = False
        self.materialized = 0
        self.failed = 0

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _should_stop(self) -> bool:
        if self._cancel.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            logger.warning("Run deadline reached; stopping before the next revision")
            self._cancel.set()
            return True
        return False

    def walk(self) -> Iterator[ScanSnapshot]:
        if self._started:
            raise RuntimeError("RevisionWalker.walk() is single-pass")
        self._started = True

        previous: Optional[ScanSnapshot] = None
        try:
            for index, revision in enumerate(self.revisions, 1):
                if previous is not None:
                    previous.expire()
                    previous = None
                # Cancellation is only honoured here, never mid-checkout.
                if self._should_stop():
                    logger.info("Walk cancelled after %d of %d revisions", index - 1, len(self.revisions))
                    return
                try:
                    self._materialize(self.root, revision)
                except MaterializationError as exc:
                    self.failed += 1
                    logger.warning("Skipping %s: %s", revision, exc.cause)
                    if self._on_failure is not None:
                        self._on_failure(revision, exc.cause)
                    continue

                self.materialized += 1
                logger.debug("[%d/%d] materialized %s", index, len(self.revisions), revision)
                previous = ScanSnapshot(revision=revision, root=self.root)
                yield previous
        finally:
            if previous is not None:
                previous.expire()

    __iter__ = walk
