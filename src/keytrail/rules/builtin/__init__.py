"""Built-in rules."""

from keytrail.rules.builtin.aws import ALL_AWS_RULES
from keytrail.rules.models import Rule

ALL_BUILTIN_RULES: list[Rule] = [*ALL_AWS_RULES]

__all__ = ["ALL_BUILTIN_RULES"]
