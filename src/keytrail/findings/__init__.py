"""Finding models, deduplication, aggregation, and masking."""

from keytrail.findings.aggregator import CandidateDeduplicator, ResultAggregator
from keytrail.findings.models import (
    CandidateCredential,
    CredentialReport,
    ScanFinding,
    ScanReport,
    ValidationOutcome,
    Verdict,
)
from keytrail.findings.redactor import mask_secret

__all__ = [
    "CandidateCredential",
    "CandidateDeduplicator",
    "CredentialReport",
    "ResultAggregator",
    "ScanFinding",
    "ScanReport",
    "ValidationOutcome",
    "Verdict",
    "mask_secret",
]
