"""Rule registry — loads built-in and custom rules, applies config filters."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from keytrail.config.schema import KeyTrailConfig
from keytrail.rules.models import RULE_KINDS, Rule, RuleError

logger = logging.getLogger(__name__)

DEFAULT_RULES_DIR = ".keytrail-rules"


class RuleRegistry:
    """Central store for extraction rules."""

    def __init__(self) -> None:
        self._rules: Dict[str, Rule] = {}

    # ---- registration ----

    def register(self, rule: Rule) -> None:
        if rule.kind not in RULE_KINDS:
            raise RuleError(f"{rule.id}: kind must be one of {', '.join(RULE_KINDS)}")
        self._rules[rule.id] = rule

    def register_many(self, rules: list[Rule]) -> None:
        for r in rules:
            self.register(r)

    # ---- queries ----

    @property
    def all_rules(self) -> List[Rule]:
        return list(self._rules.values())

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def enabled_rules(self) -> List[Rule]:
        return [r for r in self._rules.values() if r.enabled]

    def identifier_rules(self) -> List[Rule]:
        return [r for r in self.enabled_rules() if r.kind == "identifier"]

    def secret_rules(self) -> List[Rule]:
        return [r for r in self.enabled_rules() if r.kind == "secret"]

    # ---- config filtering ----

    def apply_config(self, config: KeyTrailConfig) -> None:
        for rule in self._rules.values():
            if rule.id in config.rules.disable:
                rule.enabled = False

    # ---- custom rule loading ----

    def load_custom_rules(self, directory: Path) -> int:
        """Load YAML rule files from *directory*. Returns count loaded."""
        count = 0
        if not directory.is_dir():
            return 0
        for path in sorted(directory.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                count += self._load_yaml_rules(path)
        logger.debug("Loaded %d custom rule(s) from %s", count, directory)
        return count

    def _load_yaml_rules(self, path: Path) -> int:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise RuleError(f"Failed to read {path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            if not isinstance(entry, dict) or "id" not in entry or "pattern" not in entry:
                raise RuleError(f"{path}: every rule needs an 'id' and a 'pattern'")
            rule = Rule(
                id=entry["id"],
                name=entry.get("name", entry["id"]),
                kind=entry.get("kind", "identifier"),
                pattern=entry["pattern"],
                description=entry.get("description", ""),
            )
            self.register(rule)
            count += 1
        return count


def build_registry(config: KeyTrailConfig, cwd: Optional[Path] = None) -> RuleRegistry:
    """Create a fully populated, config-filtered rule registry."""
    from keytrail.rules.builtin import ALL_BUILTIN_RULES

    registry = RuleRegistry()
    # Copies, so disabling a rule for one run never leaks into the next.
    registry.register_many([copy.copy(r) for r in ALL_BUILTIN_RULES])

    if config.rules.directory:
        custom_dir = Path(config.rules.directory)
        if not custom_dir.is_dir():
            raise RuleError(f"Rules directory not found: {custom_dir}")
        registry.load_custom_rules(custom_dir)
    else:
        registry.load_custom_rules((cwd or Path.cwd()) / DEFAULT_RULES_DIR)

    registry.apply_config(config)

    # Force-compile patterns now (not inside the hot loop)
    for rule in registry.enabled_rules():
        _ = rule.compiled_pattern

    return registry
