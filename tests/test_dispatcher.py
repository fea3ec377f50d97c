"""Tests for the bounded validation dispatcher."""

import threading

from conftest import KEY_ID

from keytrail.findings.aggregator import ResultAggregator
from keytrail.findings.models import CandidateCredential, ScanFinding, ValidationOutcome
from keytrail.validation.dispatcher import CANCELLED_REASON, ValidationDispatcher


def _candidates(n):
    return [CandidateCredential(f"AKIA{i:016d}", "secret") for i in range(n)]


class TestDispatch:
    def test_every_candidate_gets_an_outcome(self, fake_authority):
        authority = fake_authority(outcomes={KEY_ID: ValidationOutcome.valid()})
        sink = ResultAggregator()
        dispatcher = ValidationDispatcher(authority, sink, max_workers=2)
        dispatcher.submit(CandidateCredential(KEY_ID, "s"))
        for c in _candidates(5):
            dispatcher.submit(c)
        assert dispatcher.drain() is True
        assert len(authority.calls) == 6
        for ident in [KEY_ID] + [c.identifier for c in _candidates(5)]:
            assert sink.has_outcome(ident)

    def test_concurrency_is_bounded(self, fake_authority):
        authority = fake_authority(delay=0.05)
        dispatcher = ValidationDispatcher(authority, ResultAggregator(), max_workers=3)
        for c in _candidates(12):
            dispatcher.submit(c)
        dispatcher.drain()
        assert len(authority.calls) == 12
        assert authority.max_in_flight <= 3

    def test_resubmit_same_identifier_is_one_call(self, fake_authority):
        authority = fake_authority()
        dispatcher = ValidationDispatcher(authority, ResultAggregator(), max_workers=2)
        first = dispatcher.submit(CandidateCredential(KEY_ID, "a"))
        second = dispatcher.submit(CandidateCredential(KEY_ID, "b"))
        dispatcher.drain()
        assert first is second
        assert authority.calls_for(KEY_ID) == 1

    def test_authority_exception_is_indeterminate(self):
        class Exploding:
            def validate(self, candidate):
                raise RuntimeError("boom")

        sink = ResultAggregator()
        candidate = CandidateCredential(KEY_ID, "s")
        sink.record_finding(ScanFinding("abc123", ".env", candidate))
        dispatcher = ValidationDispatcher(Exploding(), sink, max_workers=1)
        dispatcher.submit(candidate)
        dispatcher.drain()
        outcome = sink.snapshot().credentials[KEY_ID].outcome
        assert outcome == ValidationOutcome.indeterminate("RuntimeError: boom")


class TestAbandon:
    def test_queued_and_running_settle_as_cancelled(self):
        release = threading.Event()
        started = threading.Event()

        class Blocking:
            def validate(self, candidate):
                started.set()
                release.wait(5)
                return ValidationOutcome.valid()

        sink = ResultAggregator()
        dispatcher = ValidationDispatcher(Blocking(), sink, max_workers=1)
        futures = [dispatcher.submit(c) for c in _candidates(3)]
        assert started.wait(5)

        assert dispatcher.abandon() == 3
        release.set()
        futures[0].result(timeout=5)

        for c in _candidates(3):
            assert not sink.record_outcome(c.identifier, ValidationOutcome.valid())
        assert futures[1].cancelled() and futures[2].cancelled()

    def test_drain_returns_false_on_cancel(self):
        cancel = threading.Event()
        release = threading.Event()

        class Blocking:
            def validate(self, candidate):
                release.wait(5)
                return ValidationOutcome.invalid()

        dispatcher = ValidationDispatcher(Blocking(), ResultAggregator(), max_workers=1, cancel_event=cancel)
        dispatcher.submit(CandidateCredential(KEY_ID, "s"))
        cancel.set()
        assert dispatcher.drain(poll_interval=0.01) is False
        dispatcher.abandon(CANCELLED_REASON)
        release.set()

