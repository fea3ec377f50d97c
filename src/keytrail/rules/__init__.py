"""Extraction rules — models, registry, built-in AWS patterns."""

from keytrail.rules.models import Rule, RuleError
from keytrail.rules.registry import RuleRegistry, build_registry

__all__ = ["Rule", "RuleError", "RuleRegistry", "build_registry"]
