"""keytrail — find AWS keys buried in git history and check which still work."""

__version__ = "0.1.0"
