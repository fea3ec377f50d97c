"""Shared test fixtures — temp git repos, fake validation authority."""

from __future__ import annotations

import subprocess
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from keytrail.findings.models import CandidateCredential, ValidationOutcome

KEY_ID = "AKIA1234567890ABCD12"
SECRET = "abcDEF1234567890+/=="
OTHER_KEY_ID = "AKIAZZZZYYYYXXXX0000"
OTHER_SECRET = "zyxWVU9876543210/+=="

ENV_FILE = f"AWS_ACCESS_KEY_ID={KEY_ID}\nAWS_SECRET_ACCESS_KEY={SECRET}\n"
OTHER_ENV_FILE = f"AWS_ACCESS_KEY_ID={OTHER_KEY_ID}\nAWS_SECRET_ACCESS_KEY={OTHER_SECRET}\n"


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True,
    )
    return result.stdout.strip()


RepoFactory = Callable[[List[Dict[str, Optional[str]]]], Tuple[Path, List[str]]]


@pytest.fixture
def make_repo(tmp_path: Path) -> RepoFactory:
    """Build a git repo from a list of commits; return (path, hashes oldest first).

    Each commit is a mapping of relative path to new content; ``None``
    deletes the file.
    """
    def _make(commits: List[Dict[str, Optional[str]]]) -> Tuple[Path, List[str]]:
        repo = tmp_path / "origin"
        repo.mkdir()
        git(repo, "init", "--quiet")
        git(repo, "config", "user.email", "test@test.com")
        git(repo, "config", "user.name", "Test")
        git(repo, "config", "commit.gpgsign", "false")
        hashes: List[str] = []
        for i, files in enumerate(commits):
            for rel, content in files.items():
                path = repo / rel
                if content is None:
                    path.unlink()
                else:
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_text(content)
            git(repo, "add", "-A")
            git(repo, "commit", "--quiet", "--allow-empty", "-m", f"commit {i}")
            hashes.append(git(repo, "rev-parse", "HEAD"))
        return repo, hashes

    return _make


@pytest.fixture
def empty_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "empty"
    repo.mkdir()
    git(repo, "init", "--quiet")
    return repo


class FakeAuthority:
    """Validation authority answering from a dict and counting calls."""

    def __init__(
        self,
        outcomes: Optional[Dict[str, ValidationOutcome]] = None,
        default: Optional[ValidationOutcome] = None,
        delay: float = 0.0,
    ) -> None:
        self.outcomes = outcomes or {}
        self.default = default or ValidationOutcome.invalid("NoSuchEntity")
        self.delay = delay
        self.calls: List[CandidateCredential] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def validate(self, candidate: CandidateCredential) -> ValidationOutcome:
        with self._lock:
            self.calls.append(candidate)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            return self.outcomes.get(candidate.identifier, self.default)
        finally:
            with self._lock:
                self.in_flight -= 1

    def calls_for(self, identifier: str) -> int:
        return sum(1 for c in self.calls if c.identifier == identifier)


@pytest.fixture
def fake_authority() -> Callable[..., FakeAuthority]:
    return FakeAuthority
