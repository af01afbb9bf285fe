"""
Run Orchestrator

Drives one vsu run: finds candidate files, filters ignored ones, asks the
decision engine about each file, writes updated files, and persists the hash
store, the history log and the report once at the end.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .decision_engine import ChangeDecisionEngine, Decision, Origin
from .history_log import HistoryLog
from .ignore_matcher import IgnoreMatcher, resolve_ignore_file
from .options import RunOptions, resolve_override
from .progress_tracker import ProgressTracker
from .report import RunReport
from .source_file import read_source, write_source
from .state_io import CORRUPT_SUFFIX
from .version_codec import VersionTuple, format_version, parse_version
from .version_store import VersionStore


logger = logging.getLogger(__name__)


def average_version(versions: Iterable) -> VersionTuple:
    """
    Per-component integer mean of versions, fraction dropped.

    Not clamped to any maxima; no versions averages to 0.0.0.0.
    """
    parsed = [parse_version(v) if isinstance(v, str) else VersionTuple(*v) for v in versions]
    if not parsed:
        return VersionTuple()
    count = len(parsed)
    return VersionTuple(*(sum(v[i] for v in parsed) // count for i in range(4)))


@dataclass
class RunStats:
    """Statistics for one run."""
    candidates: int = 0
    ignored: int = 0
    unchanged: int = 0
    updated: int = 0
    failed: int = 0
    versions: List[VersionTuple] = field(default_factory=list)
    start_time: float = None

    def __post_init__(self):
        if self.start_time is None:
            self.start_time = time.time()

    @property
    def processed(self) -> int:
        """Files that contribute a final version to the aggregate."""
        return len(self.versions)

    @property
    def average(self) -> VersionTuple:
        return average_version(self.versions)


def discover_files(root: Path, extensions: Iterable[str], exclude: Optional[Set[str]] = None) -> List[Path]:
    """
    Recursively list files under root whose extension is in extensions.

    Extensions compare case-insensitively; paths in exclude (normalized
    absolute) are skipped. The result is sorted.
    """
    allowed = {ext.lower() for ext in extensions}
    exclude = exclude or set()
    found = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            if os.path.splitext(name)[1].lower() not in allowed:
                continue
            full_path = os.path.abspath(os.path.join(dirpath, name))
            if os.path.normcase(full_path) in exclude:
                continue
            found.append(Path(full_path))
    return sorted(found)


class RunOrchestrator:
    """
    Sequences a run over all candidate files.

    The hash store and history log are created here for the duration of the
    run unless the caller hands in its own instances.
    """

    def __init__(self, options: RunOptions,
                 store: Optional[VersionStore] = None,
                 history: Optional[HistoryLog] = None,
                 ignore_matcher: Optional[IgnoreMatcher] = None,
                 progress: Optional[ProgressTracker] = None):
        self.options = options
        self.root = Path(os.path.abspath(options.root))
        self.store = store if store is not None else VersionStore.load(options.hashes_file)
        self.history = history if history is not None else HistoryLog.load(options.history_file)
        self.ignore_file = resolve_ignore_file(self.root, options.ignored_file)
        self.ignore_matcher = ignore_matcher if ignore_matcher is not None else IgnoreMatcher.from_file(self.ignore_file)
        self.progress = progress
        self.engine = ChangeDecisionEngine(self.store, options.increment, options.maxima)
        self.report = RunReport()
        self.stats = RunStats()

    def _own_files(self) -> Set[str]:
        """State, report and ignore files are never versioned."""
        own = [self.options.hashes_file, self.options.history_file, self.options.report_file]
        own += [Path(str(p) + CORRUPT_SUFFIX) for p in own[:2]]
        if self.ignore_file:
            own.append(self.ignore_file)
        return {os.path.normcase(os.path.abspath(p)) for p in own}

    def _log_settings(self, candidates: List[Path]) -> None:
        options = self.options
        logger.info(f"[INFO] Starting in: {self.root}")
        logger.info(f"[INFO] Ignored patterns: {len(self.ignore_matcher)}")
        logger.info(f"[INFO] Extensions: {', '.join(options.extensions)}")
        logger.info(f"[INFO] Increment mode: {options.increment.value}")
        logger.info(f"[INFO] Candidate files: {len(candidates)}")
        if options.set_all_version:
            logger.info(f"[INFO] Manual all version: {options.set_all_version}")
        if options.set_files:
            logger.info(f"[INFO] Manual files: {', '.join(options.set_files)} to {options.set_version or 'none'}")
        if options.has_partial_sets:
            partial = ", ".join(f"{c.value}={v}" for c, v in options.set_components.items())
            logger.info(f"[INFO] Manual partial: {partial}")
        if options.dry_run:
            logger.info("[INFO] Dry run: no files will be written")

    def run(self) -> RunStats:
        """
        Process every candidate file and persist the results.

        Returns:
            RunStats: Counters and the versions contributing to the aggregate
        """
        candidates = discover_files(self.root, self.options.extensions, self._own_files())
        self.stats = RunStats(candidates=len(candidates))
        self._log_settings(candidates)

        if self.progress:
            self.progress.start(len(candidates))

        for path in candidates:
            self._process_candidate(path)
            if self.progress:
                self.progress.advance(str(path))

        if not self.options.dry_run:
            self.store.save()
            self.history.save()
            self.report.write(self.options.report_file, self.stats.processed,
                              self.stats.updated, self.stats.average)

        logger.info(f"[INFO] Average project version: {format_version(self.stats.average)}")
        return self.stats

    def _process_candidate(self, path: Path) -> None:
        if self.ignore_matcher.is_ignored(path):
            logger.debug(f"[-] Ignoring: {path}")
            self.stats.ignored += 1
            return

        try:
            decision = self.process_file(path)
        except Exception as e:
            logger.error(f"[ERROR] {path}: {e}")
            self.stats.failed += 1
            return

        if decision.updated:
            self.stats.updated += 1
            self.report.add_update(str(path), decision.new_version)
        else:
            self.stats.unchanged += 1

        if decision.final_version is not None:
            self.stats.versions.append(decision.final_version)

    def process_file(self, path: Path) -> Decision:
        """
        Decide one file and, unless dry-running, apply the update.

        The file is written before its hash is recorded, so a failed write
        leaves the store untouched for that path.
        """
        key = str(path)
        source = read_source(path)
        override = resolve_override(self.options, path)
        decision = self.engine.decide(key, source.lines, override,
                                      self.options.marker_prefix_for(path))

        if not decision.updated:
            logger.debug(f"[=] {path} – no changes")
            return decision

        new_version = format_version(decision.new_version)
        if decision.origin is Origin.MANUAL:
            logger.info(f"[M] {path} – manual version {new_version}")
        else:
            logger.info(f"[↑] {path} – new version {new_version}")

        if self.options.dry_run:
            return decision

        write_source(source, decision.lines)
        self.engine.commit(key, decision)
        old_version = format_version(decision.old_version) if decision.old_version else None
        self.history.append(key, old_version, new_version, decision.origin.value)
        return decision
