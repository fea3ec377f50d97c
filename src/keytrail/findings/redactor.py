"""Secret masking for reports."""

from __future__ import annotations


def mask_secret(value: str, *, reveal: bool = False) -> str:
    """Show the first 4 and last 2 characters of *value*.

    Example: ``wJalrXUtnFEMI/K7MDENG`` → ``wJal...NG``. Values too short to
    partially reveal are fully redacted.
    """
    if reveal:
        return value
    if len(value) <= 8:
        return "[REDACTED]"
    return f"{value[:4]}...{value[-2:]}"
