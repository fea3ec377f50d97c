"""Scanner — pattern extraction, per-revision file scan, run driver."""

from keytrail.scanner.engine import HistoryScan
from keytrail.scanner.extractor import PatternExtractor, extract
from keytrail.scanner.files import RepositoryScanner

__all__ = [
    "HistoryScan",
    "PatternExtractor",
    "RepositoryScanner",
    "extract",
]
