"""Rule data model — pattern stored as string, compiled at load time."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal, Optional

RuleKind = Literal["identifier", "secret"]
RULE_KINDS = ("identifier", "secret")


class RuleError(Exception):
    """Raised when a rule definition is unusable."""


@dataclass
class Rule:
    """A single extraction pattern for one half of an AWS key pair.

    ``pattern`` is stored as a raw string so the rule remains serialisable.
    It must define a named group ``value`` holding the extracted text.
    """

    id: str
    name: str
    kind: RuleKind
    pattern: str
    description: str = ""
    enabled: bool = True

    _compiled_pattern: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def compiled_pattern(self) -> re.Pattern[str]:
        if self._compiled_pattern is None:
            try:
                compiled = re.compile(self.pattern)
            except re.error as exc:
                raise RuleError(f"{self.id}: invalid pattern: {exc}") from exc
            if "value" not in compiled.groupindex:
                raise RuleError(f"{self.id}: pattern has no (?P<value>...) group")
            self._compiled_pattern = compiled
        return self._compiled_pattern

    def find_all(self, text: str) -> list[str]:
        return [m.group("value") for m in self.compiled_pattern.finditer(text) if m.group("value")]
