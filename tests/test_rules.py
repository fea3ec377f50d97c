"""Tests for rule models and the registry."""

from pathlib import Path

import pytest

from keytrail.config.schema import KeyTrailConfig
from keytrail.rules.builtin import ALL_BUILTIN_RULES
from keytrail.rules.models import Rule, RuleError
from keytrail.rules.registry import RuleRegistry, build_registry


class TestBuiltinRules:
    def test_all_compile(self):
        for rule in ALL_BUILTIN_RULES:
            assert rule.compiled_pattern is not None

    def test_both_kinds_present(self):
        kinds = {r.kind for r in ALL_BUILTIN_RULES}
        assert kinds == {"identifier", "secret"}


class TestRuleModel:
    def test_missing_value_group(self):
        rule = Rule(id="X", name="X", kind="secret", pattern=r"secret=\S+")
        with pytest.raises(RuleError):
            _ = rule.compiled_pattern

    def test_bad_regex(self):
        rule = Rule(id="X", name="X", kind="secret", pattern=r"(?P<value>[")
        with pytest.raises(RuleError):
            _ = rule.compiled_pattern

    def test_bad_kind_rejected(self):
        registry = RuleRegistry()
        with pytest.raises(RuleError):
            registry.register(Rule(id="X", name="X", kind="token", pattern="(?P<value>x)"))  # type: ignore[arg-type]


class TestRegistry:
    def test_default_registry(self, tmp_path: Path):
        registry = build_registry(KeyTrailConfig(), tmp_path)
        assert len(registry.identifier_rules()) == 2
        assert len(registry.secret_rules()) == 1

    def test_disable(self, tmp_path: Path):
        cfg = KeyTrailConfig()
        cfg.rules.disable = ["AWS_KEY_ID_BARE"]
        registry = build_registry(cfg, tmp_path)
        assert [r.id for r in registry.identifier_rules()] == ["AWS_KEY_ID_ASSIGNMENT"]

    def test_disable_does_not_leak_between_registries(self, tmp_path: Path):
        cfg = KeyTrailConfig()
        cfg.rules.disable = ["AWS_KEY_ID_BARE"]
        build_registry(cfg, tmp_path)
        fresh = build_registry(KeyTrailConfig(), tmp_path)
        assert fresh.get("AWS_KEY_ID_BARE").enabled is True

    def test_custom_yaml_rules_from_default_dir(self, tmp_path: Path):
        rules_dir = tmp_path / ".keytrail-rules"
        rules_dir.mkdir()
        (rules_dir / "team.yaml").write_text(
            "- id: TEAM_SECRET\n"
            "  kind: secret\n"
            "  pattern: 'DEPLOY_SECRET=(?P<value>\\S+)'\n"
        )
        registry = build_registry(KeyTrailConfig(), tmp_path)
        assert registry.get("TEAM_SECRET") is not None
        assert len(registry.secret_rules()) == 2

    def test_explicit_missing_dir(self, tmp_path: Path):
        cfg = KeyTrailConfig()
        cfg.rules.directory = str(tmp_path / "nope")
        with pytest.raises(RuleError):
            build_registry(cfg, tmp_path)

    def test_malformed_yaml_entry(self, tmp_path: Path):
        rules_dir = tmp_path / "rules"
        rules_dir.mkdir()
        (rules_dir / "bad.yml").write_text("- name: missing id\n")
        cfg = KeyTrailConfig()
        cfg.rules.directory = str(rules_dir)
        with pytest.raises(RuleError):
            build_registry(cfg, tmp_path)
