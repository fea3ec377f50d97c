"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

ValidationMode = Literal["iam", "sts"]
OutputFormat = Literal["terminal", "json"]

VALIDATION_MODES = ("iam", "sts")
OUTPUT_FORMATS = ("terminal", "json")


@dataclass
class ScanConfig:
    all_refs: bool = False  # walk `git log --all` instead of HEAD history
    max_revisions: Optional[int] = None
    max_file_size_kb: int = 1024
    skip_dirs: List[str] = field(default_factory=lambda: [".git"])
    run_timeout_s: Optional[float] = None  # checked between revisions only


@dataclass
class ValidationConfig:
    enabled: bool = True
    mode: ValidationMode = "iam"
    max_workers: int = 4  # in-flight calls against AWS
    region: str = "us-west-2"
    profile: Optional[str] = None
    connect_timeout_s: float = 5.0
    read_timeout_s: float = 10.0
    max_attempts: int = 1  # botocore retry attempts; 1 = never retry


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True
    show_secrets: bool = False
    fail_on_indeterminate: bool = False


@dataclass
class IgnoreConfig:
    paths: List[str] = field(default_factory=list)


@dataclass
class RulesConfig:
    directory: Optional[str] = None
    disable: List[str] = field(default_factory=list)


@dataclass
class KeyTrailConfig:
    version: str = "1.0"
    scan: ScanConfig = field(default_factory=ScanConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
