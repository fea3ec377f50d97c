"""JSON reporter for pipelines and archiving."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from keytrail import __version__
from keytrail.findings.models import ScanReport
from keytrail.findings.redactor import mask_secret


def to_dict(report: ScanReport, *, show_secrets: bool = False) -> Dict[str, Any]:
    """Convert a ScanReport to a JSON-serialisable dict."""
    credentials: List[Dict[str, Any]] = []
    for c in report.credentials.values():
        credentials.append({
            "identifier": c.identifier,
            "secret": mask_secret(c.secret, reveal=show_secrets),
            "outcome": c.outcome.verdict.value,
            **({"reason": c.outcome.reason} if c.outcome.reason else {}),
            "occurrences": [
                {"revision": rev, "file": path} for rev, path in c.occurrences
            ],
        })

    return {
        "version": "1.0",
        "tool": {"name": "keytrail", "version": __version__},
        "complete": report.complete,
        "cancelled": report.cancelled,
        "revisions_total": report.revisions_total,
        "revisions_scanned": report.revisions_scanned,
        "summary": {
            "identifiers": len(report.credentials),
            "valid": len(report.valid),
            "invalid": len(report.invalid),
            "indeterminate": len(report.indeterminate),
            "occurrences": report.total_findings,
        },
        "credentials": credentials,
        "revision_failures": [
            {"revision": f.revision, "cause": f.cause} for f in report.revision_failures
        ],
        "warnings": [
            {"revision": w.revision, "file": w.file_path, "reason": w.reason}
            for w in report.warnings
        ],
        "skipped_files": list(report.skipped_files),
        "scan_duration_ms": report.duration_ms,
    }


def render(report: ScanReport, *, show_secrets: bool = False) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(report, show_secrets=show_secrets), indent=2)
