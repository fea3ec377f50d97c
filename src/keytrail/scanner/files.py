"""Repository scanner — read every regular file of one snapshot."""

from __future__ import annotations

import logging
import os
import stat
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from keytrail.findings.models import ScanFinding
from keytrail.git.models import ScanSnapshot
from keytrail.scanner.extractor import PatternExtractor, is_binary

logger = logging.getLogger(__name__)

# (revision, relative path, reason)
FileNotice = Callable[[str, str, str], None]


class RepositoryScanner:
    """Turn a snapshot into the list of findings it contains.

    Unreadable files are reported through *on_warning* and never stop the
    scan of the remaining files. Files skipped on purpose (binary, too big,
    ignored) go to *on_skip*.
    """

    def __init__(
        self,
        extractor: PatternExtractor,
        *,
        skip_dirs: Sequence[str] = (".git",),
        ignore_globs: Sequence[str] = (),
        max_file_size_kb: Optional[int] = None,
        on_warning: Optional[FileNotice] = None,
        on_skip: Optional[FileNotice] = None,
    ) -> None:
        self._extractor = extractor
        self._skip_dirs = set(skip_dirs)
        self._ignore_globs = list(ignore_globs)
        self._max_bytes = max_file_size_kb * 1024 if max_file_size_kb else None
        self._on_warning = on_warning
        self._on_skip = on_skip
        self.files_read = 0

    def _warn(self, revision: str, rel: str, reason: str) -> None:
        logger.warning("%s: cannot read %s: %s", revision[:12], rel, reason)
        if self._on_warning is not None:
            self._on_warning(revision, rel, reason)

    def _skip(self, revision: str, rel: str, reason: str) -> None:
        logger.debug("%s: skipping %s (%s)", revision[:12], rel, reason)
        if self._on_skip is not None:
            self._on_skip(revision, rel, reason)

    def _is_ignored(self, rel: str) -> bool:
        return any(fnmatch(rel, g) or fnmatch(Path(rel).name, g) for g in self._ignore_globs)

    def iter_files(self, root: Path, revision: str = ""):
        """Yield (absolute path, posix relative path) for every file entry.

        Unlistable directories are warned about and skipped.
        """
        def _unlistable(exc: OSError) -> None:
            rel = Path(exc.filename).relative_to(root).as_posix() if exc.filename else "."
            self._warn(revision, rel, exc.strerror or str(exc))

        for dirpath, dirnames, filenames in os.walk(root, onerror=_unlistable):
            dirnames[:] = sorted(d for d in dirnames if d not in self._skip_dirs)
            for name in sorted(filenames):
                full = Path(dirpath) / name
                yield full, full.relative_to(root).as_posix()

    def _escapes_root(self, full: Path, root: Path) -> bool:
        """True for a symlink whose target lies outside *root*."""
        if not full.is_symlink():
            return False
        try:
            target = full.resolve(strict=True)
        except (OSError, RuntimeError):
            # Dangling or looping links are left to stat() and reported as warnings.
            return False
        return not target.is_relative_to(root)

    def scan(self, snapshot: ScanSnapshot) -> List[ScanFinding]:
        """Visit every file of *snapshot*; return once all have been read."""
        snapshot.ensure_current()
        revision = snapshot.revision
        root = snapshot.root.resolve()
        findings: List[ScanFinding] = []

        for full, rel in self.iter_files(snapshot.root, revision):
            if self._is_ignored(rel):
                self._skip(revision, rel, "ignored")
                continue
            if self._escapes_root(full, root):
                self._skip(revision, rel, "symlink outside tree")
                continue
            try:
                st = full.stat()
                if not stat.S_ISREG(st.st_mode):
                    continue
                if self._max_bytes is not None and st.st_size > self._max_bytes:
                    self._skip(revision, rel, "oversized")
                    continue
                data = full.read_bytes()
            except OSError as exc:
                self._warn(revision, rel, exc.strerror or str(exc))
                continue

            self.files_read += 1
            if is_binary(data):
                self._skip(revision, rel, "binary")
                continue
            for credential in sorted(
                self._extractor.extract(data), key=lambda c: (c.identifier, c.secret)
            ):
                findings.append(ScanFinding(revision=revision, file_path=rel, credential=credential))

        # A reader that outlived its snapshot must not report what it saw.
        snapshot.ensure_current()
        return findings
