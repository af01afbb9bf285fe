"""
Run Options

The validated configuration record consumed by the orchestrator, built by the
CLI from the YAML config and command-line flags.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .decision_engine import NO_OVERRIDE, FullOverride, OverrideDirective, PartialOverride
from .exceptions import ConfigurationError
from .history_log import HISTORY_FILENAME
from .version_codec import (
    DEFAULT_MARKER_PREFIX,
    DEFAULT_MAX_COMPONENT,
    MAX_COMPONENT_LIMIT,
    IncrementComponent,
    VersionTuple,
    is_valid_version_string,
    parse_version,
)
from .version_store import HASHES_FILENAME


REPORT_FILENAME = "version_raport.txt"
DEFAULT_EXTENSIONS = [".cs"]

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Everything a run needs, in validated form."""
    root: Path
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    ignored_file: Optional[str] = None
    report_path: Optional[str] = None
    increment: IncrementComponent = IncrementComponent.REVISION
    max_major: int = DEFAULT_MAX_COMPONENT
    max_minor: int = DEFAULT_MAX_COMPONENT
    max_build: int = DEFAULT_MAX_COMPONENT
    max_revision: int = DEFAULT_MAX_COMPONENT
    set_all_version: Optional[str] = None
    set_files: List[str] = field(default_factory=list)
    set_version: Optional[str] = None
    set_components: Dict[IncrementComponent, int] = field(default_factory=dict)
    marker_prefixes: Dict[str, str] = field(default_factory=dict)
    default_marker_prefix: str = DEFAULT_MARKER_PREFIX
    hashes_filename: str = HASHES_FILENAME
    history_filename: str = HISTORY_FILENAME
    dry_run: bool = False

    @property
    def maxima(self) -> VersionTuple:
        return VersionTuple(self.max_major, self.max_minor, self.max_build, self.max_revision)

    @property
    def report_file(self) -> Path:
        return Path(self.report_path) if self.report_path else self.root / REPORT_FILENAME

    @property
    def hashes_file(self) -> Path:
        return self.root / self.hashes_filename

    @property
    def history_file(self) -> Path:
        return self.root / self.history_filename

    @property
    def has_partial_sets(self) -> bool:
        return bool(self.set_components)

    def target_paths(self) -> List[str]:
        """Normalized absolute paths of the --set-files targets."""
        return [os.path.normcase(os.path.abspath(self.root / f.strip())) for f in self.set_files]

    def marker_prefix_for(self, path: Path) -> str:
        return self.marker_prefixes.get(Path(path).suffix.lower(), self.default_marker_prefix)


def normalize_extensions(raw: str) -> List[str]:
    """Split a comma-separated extension list, prepending the dot where missing."""
    extensions = [x.strip() for x in raw.split(',') if x.strip()]
    return [x if x.startswith('.') else '.' + x for x in extensions]


def split_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [x.strip() for x in raw.split(',') if x.strip()]


def validate_options(options: RunOptions) -> RunOptions:
    """
    Validate a RunOptions record before any file is touched.

    Raises:
        ConfigurationError: On the first invalid or conflicting setting
    """
    if not options.root.is_dir():
        raise ConfigurationError(f"Path does not exist: {options.root}")

    if not options.extensions:
        raise ConfigurationError("No valid extensions provided.")
    for ext in options.extensions:
        if not ext or not ext.strip():
            raise ConfigurationError("Extension cannot be empty.")
        if not ext.startswith('.'):
            raise ConfigurationError(f"Extension '{ext}' must start with a dot (.).")

    for name, value in (('--max-major', options.max_major), ('--max-minor', options.max_minor),
                        ('--max-build', options.max_build), ('--max-revision', options.max_revision)):
        if value < 0 or value > MAX_COMPONENT_LIMIT:
            raise ConfigurationError(f"{name} must be between 0 and {MAX_COMPONENT_LIMIT}")

    if options.set_all_version and not is_valid_version_string(options.set_all_version):
        raise ConfigurationError(
            f"Invalid version format for --set-all-version: '{options.set_all_version}'. "
            f"Expected: MAJOR.MINOR.BUILD.REVISION (e.g., 1.0.0.0)")
    if options.set_version and not is_valid_version_string(options.set_version):
        raise ConfigurationError(
            f"Invalid version format for --version: '{options.set_version}'. "
            f"Expected: MAJOR.MINOR.BUILD.REVISION (e.g., 1.0.0.0)")

    for component, value in options.set_components.items():
        if value < 0:
            raise ConfigurationError(f"--set-{component.value} must not be negative")

    if options.set_all_version and options.set_files:
        raise ConfigurationError("--set-all-version cannot be used with --set-files")
    if options.set_all_version and options.has_partial_sets:
        raise ConfigurationError(
            "--set-all-version cannot be combined with --set-major/--set-minor/--set-build/--set-revision")
    if options.set_version and not options.set_files:
        raise ConfigurationError("--version requires --set-files")
    if options.set_version and options.has_partial_sets:
        raise ConfigurationError(
            "--version cannot be combined with --set-major/--set-minor/--set-build/--set-revision")

    if options.set_files:
        if not options.set_version and not options.has_partial_sets:
            raise ConfigurationError(
                "--set-files requires either --version or at least one of "
                "--set-major, --set-minor, --set-build, --set-revision")
        for set_file in options.set_files:
            if not set_file.strip():
                raise ConfigurationError("Set file path cannot be empty.")
            full_path = options.root / set_file.strip()
            if not full_path.is_file():
                raise ConfigurationError(f"Set file does not exist: {full_path.resolve()}")

    if options.ignored_file and not Path(options.ignored_file).is_file():
        raise ConfigurationError(f"Ignored file does not exist: {options.ignored_file}")

    report_dir = options.report_file.resolve().parent
    if not report_dir.is_dir():
        raise ConfigurationError(f"Report directory does not exist: {report_dir}")

    _warn_clamped(options)
    return options


def _warn_clamped(options: RunOptions) -> None:
    maxima = options.maxima
    for flag, version_text in (('--set-all-version', options.set_all_version), ('--version', options.set_version)):
        if not version_text:
            continue
        version = parse_version(version_text)
        for component in IncrementComponent:
            if version[component.index] > maxima[component.index]:
                logger.warning(
                    f"{component.value.upper()} in {flag} ({version[component.index]}) exceeds "
                    f"max {component.value} ({maxima[component.index]}); it will be clamped")
    for component, value in options.set_components.items():
        if value > maxima[component.index]:
            logger.warning(
                f"--set-{component.value} {value} exceeds max {component.value} "
                f"({maxima[component.index]}); it will be clamped")


def resolve_override(options: RunOptions, path: Path) -> OverrideDirective:
    """
    Work out the manual override that applies to one file.

    Without --set-files every scanned file is a target; with it only the
    listed files are.
    """
    if options.set_files:
        key = os.path.normcase(os.path.abspath(path))
        if key not in options.target_paths():
            return NO_OVERRIDE
        if options.set_version:
            return FullOverride(parse_version(options.set_version))
        return PartialOverride(dict(options.set_components))

    if options.set_all_version:
        return FullOverride(parse_version(options.set_all_version))
    if options.has_partial_sets:
        return PartialOverride(dict(options.set_components))
    return NO_OVERRIDE
