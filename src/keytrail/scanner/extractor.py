"""Pattern extractor — raw file bytes in, candidate key pairs out.

No I/O and no state. Every identifier match is paired with every secret
match in the same content; a file with N ids and M secrets yields up to
N×M pairs. Wrong pairings are left for validation to reject.
"""

from __future__ import annotations

from itertools import product
from typing import Iterable, List, Optional, Set

from keytrail.findings.models import CandidateCredential
from keytrail.rules.models import Rule

# A NUL byte within the first block marks the file as binary, as git does.
_BINARY_SNIFF_BYTES = 8000


def is_binary(data: bytes) -> bool:
    return b"\x00" in data[:_BINARY_SNIFF_BYTES]


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


class PatternExtractor:
    def __init__(self, identifier_rules: List[Rule], secret_rules: List[Rule]) -> None:
        self._identifier_rules = identifier_rules
        self._secret_rules = secret_rules

    @classmethod
    def from_registry(cls, registry) -> "PatternExtractor":
        return cls(registry.identifier_rules(), registry.secret_rules())

    def extract(self, data: bytes) -> Set[CandidateCredential]:
        if not data or is_binary(data):
            return set()
        text = data.decode("utf-8", errors="replace")

        identifiers = _unique(v for rule in self._identifier_rules for v in rule.find_all(text))
        if not identifiers:
            return set()
        secrets = _unique(v for rule in self._secret_rules for v in rule.find_all(text))

        return {
            CandidateCredential(identifier=ident, secret=secret)
            for ident, secret in product(identifiers, secrets)
        }


_default: Optional[PatternExtractor] = None


def extract(data: bytes) -> Set[CandidateCredential]:
    """Extract candidate pairs from *data* using the built-in rules."""
    global _default
    if _default is None:
        from keytrail.rules.builtin import ALL_BUILTIN_RULES

        _default = PatternExtractor(
            [r for r in ALL_BUILTIN_RULES if r.kind == "identifier"],
            [r for r in ALL_BUILTIN_RULES if r.kind == "secret"],
        )
    return _default.extract(data)
