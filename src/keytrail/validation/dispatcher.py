"""Validation dispatcher — bounded pool of concurrent validation calls."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, Optional

from keytrail.findings.aggregator import ResultAggregator
from keytrail.findings.models import CandidateCredential, ValidationOutcome
from keytrail.validation.authority import ValidationAuthority, classify_error

logger = logging.getLogger(__name__)

CANCELLED_REASON = "run cancelled"


class ValidationDispatcher:
    """Run ``authority.validate`` for each submitted candidate.

    At most *max_workers* calls are in flight at once; the rest wait in the
    executor queue. Every submitted candidate ends with exactly one outcome
    in *sink*: the authority's answer, an Indeterminate built from the
    exception it raised, or Indeterminate("run cancelled") after ``abandon``.
    """

    def __init__(
        self,
        authority: ValidationAuthority,
        sink: ResultAggregator,
        *,
        max_workers: int = 4,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._authority = authority
        self._sink = sink
        self._cancel = cancel_event or threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="keytrail-validate")
        self._futures: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def submitted(self) -> int:
        with self._lock:
            return len(self._futures)

    def _validate(self, candidate: CandidateCredential) -> ValidationOutcome:
        try:
            outcome = self._authority.validate(candidate)
        except Exception as exc:
            outcome = classify_error(exc)
        logger.debug("%s -> %s", candidate.identifier, outcome.verdict.value)
        self._sink.record_outcome(candidate.identifier, outcome)
        return outcome

    def submit(self, candidate: CandidateCredential) -> Future:
        with self._lock:
            if self._closed:
                raise RuntimeError("dispatcher is closed")
            if candidate.identifier in self._futures:
                return self._futures[candidate.identifier]
            future = self._executor.submit(self._validate, candidate)
            self._futures[candidate.identifier] = future
            return future

    def drain(self, poll_interval: float = 0.2) -> bool:
        """Block until every submitted candidate has an outcome.

        Returns False if the cancel event fired first; the caller should
        then ``abandon``.
        """
        with self._lock:
            self._closed = True
            pending = set(self._futures.values())
        while pending:
            if self._cancel.is_set():
                return False
            _, pending = wait(pending, timeout=poll_interval, return_when=FIRST_COMPLETED)
        self._executor.shutdown(wait=True)
        return True

    def abandon(self, reason: str = CANCELLED_REASON) -> int:
        """Drop queued work and settle every unsettled candidate as Indeterminate.

        Calls already running are left to finish in the background; their
        late answers are ignored. Returns the number of candidates settled here.
        """
        with self._lock:
            self._closed = True
            identifiers = list(self._futures)
        self._executor.shutdown(wait=False, cancel_futures=True)
        settled = 0
        for ident in identifiers:
            if self._sink.record_outcome(ident, ValidationOutcome.indeterminate(reason)):
                settled += 1
        if settled:
            logger.info("%d validation(s) abandoned: %s", settled, reason)
        return settled

