"""Git subprocess wrapper — clone, revision listing, checkout."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


class AcquisitionError(GitError):
    """The repository could not be cloned."""


class EnumerationError(GitError):
    """The revision list could not be read."""


class MaterializationError(GitError):
    """A single revision could not be checked out into the working tree."""

    def __init__(self, revision: str, cause: str) -> None:
        super().__init__(f"cannot check out {revision}: {cause}")
        self.revision = revision
        self.cause = cause


def _run_git(
    args: list[str],
    cwd: Optional[Path] = None,
    timeout: int = 60,
    *,
    detach: bool = False,
) -> str:
    """Run a git command and return stdout. Raises GitError on failure.

    With *detach* the child runs in its own session, so a Ctrl-C sent to the
    terminal's process group does not interrupt it half-way.
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
            start_new_session=detach,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.strip() or f"exit status {result.returncode}"
        raise GitError(f"git {args[0]} failed: {stderr}")
    return result.stdout


@dataclass
class Checkout:
    """A local clone owned by this run."""

    path: Path
    keep: bool = False

    def cleanup(self) -> None:
        if self.keep:
            logger.info("Keeping clone at %s", self.path)
            return
        shutil.rmtree(self.path, ignore_errors=True)


def clone_repository(location: str, *, keep: bool = False, timeout: int = 600) -> Checkout:
    """Clone *location* (URL or local path) into a fresh temporary directory.

    Cloning even local repositories keeps the caller's own working tree
    out of reach of the checkouts done while walking history.
    """
    target = Path(tempfile.mkdtemp(prefix="keytrail-"))
    logger.debug("Cloning %s into %s", location, target)
    try:
        _run_git(["clone", "--quiet", "--no-checkout", location, str(target)], timeout=timeout)
    except GitError as exc:
        shutil.rmtree(target, ignore_errors=True)
        raise AcquisitionError(f"failed to clone {location}: {exc}") from exc
    return Checkout(path=target, keep=keep)


def has_commits(repo_root: Path) -> bool:
    """Return False for a repository whose HEAD is unborn."""
    try:
        _run_git(["rev-parse", "--verify", "--quiet", "HEAD"], cwd=repo_root)
    except GitError:
        return False
    return True


def list_revisions(
    repo_root: Path,
    *,
    all_refs: bool = False,
    limit: Optional[int] = None,
) -> List[str]:
    """Return commit hashes, newest first, as ``git log`` prints them."""
    if not all_refs and not has_commits(repo_root):
        return []
    args = ["log", "--pretty=format:%H"]
    if all_refs:
        args.append("--all")
    if limit is not None:
        args.append(f"--max-count={limit}")
    try:
        output = _run_git(args, cwd=repo_root)
    except GitError as exc:
        raise EnumerationError(f"failed to list revisions: {exc}") from exc
    return [line.strip() for line in output.splitlines() if line.strip()]


def checkout_revision(repo_root: Path, revision: str) -> None:
    """Make the working tree match *revision* exactly.

    Idempotent: checking out the same revision twice leaves the same tree.
    """
    try:
        _run_git(["checkout", "--force", "--quiet", "--detach", revision], cwd=repo_root, detach=True)
        _run_git(["clean", "-ffdxq"], cwd=repo_root, detach=True)
    except GitError as exc:
        raise MaterializationError(revision, str(exc)) from exc
