"""CLI tests via Typer's CliRunner."""

import json

import pytest
from typer.testing import CliRunner

from conftest import ENV_FILE, KEY_ID, FakeAuthority

from keytrail import __version__
from keytrail.cli import app
from keytrail.config.loader import CONFIG_FILENAME
from keytrail.findings.models import ValidationOutcome

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    for name in ("KEYTRAIL_FORMAT", "KEYTRAIL_NO_VALIDATE", "KEYTRAIL_VALIDATION_MODE"):
        monkeypatch.delenv(name, raising=False)
    return work


def _json(result) -> dict:
    return json.loads(result.stdout)


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"keytrail {__version__}" in result.stdout


def test_init_creates_config(isolated_cwd):
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert (isolated_cwd / CONFIG_FILENAME).is_file()


def test_init_refuses_to_overwrite(isolated_cwd):
    (isolated_cwd / CONFIG_FILENAME).write_text("# mine\n")
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 1
    assert (isolated_cwd / CONFIG_FILENAME).read_text() == "# mine\n"


def test_scan_without_validation(make_repo):
    repo, revs = make_repo([{".env": ENV_FILE}])
    result = runner.invoke(app, ["scan", str(repo), "--no-validate", "--format", "json"])
    assert result.exit_code == 0
    data = _json(result)
    assert data["complete"] is True
    cred = data["credentials"][0]
    assert cred["identifier"] == KEY_ID
    assert cred["outcome"] == "indeterminate"
    assert cred["reason"] == "validation disabled"
    assert cred["occurrences"] == [{"revision": revs[0], "file": ".env"}]


def test_live_key_exits_one(make_repo, monkeypatch):
    repo, _ = make_repo([{".env": ENV_FILE}])
    monkeypatch.setattr(
        "keytrail.validation.authority.build_authority",
        lambda cfg: FakeAuthority(default=ValidationOutcome.valid()),
    )
    result = runner.invoke(app, ["scan", str(repo), "--format", "json"])
    assert result.exit_code == 1
    assert _json(result)["summary"]["valid"] == 1


def test_dead_key_exits_zero(make_repo, monkeypatch):
    repo, _ = make_repo([{".env": ENV_FILE}])
    monkeypatch.setattr(
        "keytrail.validation.authority.build_authority",
        lambda cfg: FakeAuthority(),
    )
    result = runner.invoke(app, ["scan", str(repo), "--format", "json"])
    assert result.exit_code == 0
    assert _json(result)["summary"]["invalid"] == 1


def test_output_file_written(make_repo, tmp_path):
    repo, _ = make_repo([{".env": ENV_FILE}])
    out = tmp_path / "report.json"
    result = runner.invoke(app, ["scan", str(repo), "--no-validate", "--output", str(out)])
    assert result.exit_code == 0
    assert json.loads(out.read_text())["summary"]["identifiers"] == 1


def test_invalid_format_exits_two(make_repo):
    repo, _ = make_repo([{".env": ENV_FILE}])
    result = runner.invoke(app, ["scan", str(repo), "--format", "xml"])
    assert result.exit_code == 2


def test_invalid_workers_exits_two(make_repo):
    repo, _ = make_repo([{".env": ENV_FILE}])
    result = runner.invoke(app, ["scan", str(repo), "--workers", "0", "--no-validate"])
    assert result.exit_code == 2


def test_unreachable_repository_exits_two(tmp_path):
    result = runner.invoke(app, ["scan", str(tmp_path / "missing"), "--no-validate"])
    assert result.exit_code == 2


def test_missing_rules_dir_exits_two(make_repo, tmp_path):
    repo, _ = make_repo([{".env": ENV_FILE}])
    result = runner.invoke(
        app, ["scan", str(repo), "--no-validate", "--rules-dir", str(tmp_path / "none")],
    )
    assert result.exit_code == 2


def test_cancelled_run_exits_130(make_repo, monkeypatch):
    from keytrail.scanner.engine import HistoryScan

    repo, _ = make_repo([{".env": ENV_FILE}])
    original_run = HistoryScan.run

    def interrupted_run(self, root, revisions):
        self.cancel()
        return original_run(self, root, revisions)

    monkeypatch.setattr(HistoryScan, "run", interrupted_run)
    result = runner.invoke(app, ["scan", str(repo), "--no-validate", "--format", "json"])
    assert result.exit_code == 130
    data = _json(result)
    assert data["cancelled"] is True
    assert data["complete"] is False


def test_interrupt_during_clone_exits_130(monkeypatch, tmp_path):
    from keytrail.git.adapter import AcquisitionError
    from keytrail.scanner.engine import HistoryScan

    def killed_clone(self, location, *, keep_clone=False):
        self.cancel()
        raise AcquisitionError("failed to clone: git clone failed: killed by signal")

    monkeypatch.setattr(HistoryScan, "scan_location", killed_clone)
    result = runner.invoke(app, ["scan", str(tmp_path), "--no-validate"])
    assert result.exit_code == 130


def test_fail_on_indeterminate(make_repo, isolated_cwd):
    repo, _ = make_repo([{".env": ENV_FILE}])
    (isolated_cwd / CONFIG_FILENAME).write_text("[output]\nfail_on_indeterminate = true\n")
    result = runner.invoke(app, ["scan", str(repo), "--no-validate", "--format", "json"])
    assert result.exit_code == 1
    assert _json(result)["summary"]["indeterminate"] == 1
