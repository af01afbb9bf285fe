"""
Ignore Pattern Matching

Loads ignore patterns from ignored.txt (one pattern per line, '#' comments)
or ignored.json (flat list of strings). Each pattern is resolved once at load
time into a GlobPattern or a RegexPattern and matched case-insensitively
against both the file name and the full path.
"""

import fnmatch
import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import ConfigurationError


REGEX_PREFIX = "/regex:"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobPattern:
    """Wildcard pattern: *, ?, [abc] and [!abc]."""
    source: str
    regex: "re.Pattern"

    def matches(self, file_name: str, full_path: str) -> bool:
        return bool(self.regex.match(file_name) or self.regex.match(full_path))


@dataclass(frozen=True)
class RegexPattern:
    """Regular expression searched anywhere in the name or path."""
    source: str
    regex: "re.Pattern"

    def matches(self, file_name: str, full_path: str) -> bool:
        return bool(self.regex.search(full_path) or self.regex.search(file_name))


IgnorePattern = Union[GlobPattern, RegexPattern]


def compile_pattern(pattern: str) -> IgnorePattern:
    """
    Resolve a raw pattern string into a glob or regex variant.

    A pattern is a regex when it starts with '/regex:', starts with '^' or
    ends with '$'; anything else is a glob.

    Raises:
        ConfigurationError: If a regex pattern does not compile
    """
    if pattern.startswith(REGEX_PREFIX) or pattern.startswith("^") or pattern.endswith("$"):
        body = pattern[len(REGEX_PREFIX):] if pattern.startswith(REGEX_PREFIX) else pattern
        try:
            return RegexPattern(pattern, re.compile(body, re.IGNORECASE))
        except re.error as e:
            raise ConfigurationError(f"Invalid ignore regex '{pattern}': {e}")
    return GlobPattern(pattern, re.compile(fnmatch.translate(pattern), re.IGNORECASE))


def read_pattern_strings(path: Path) -> List[str]:
    """Read raw pattern strings from a .txt or .json ignore file."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Ignore file {path} is not valid JSON: {e}")
        if not isinstance(data, list):
            raise ConfigurationError(f"Ignore file {path} must contain a JSON list of patterns")
        return [str(item).strip() for item in data if item is not None and str(item).strip()]

    with open(path, 'r', encoding='utf-8') as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line and not line.startswith('#')]


class IgnoreMatcher:
    """Answers whether a candidate file is excluded from processing."""

    def __init__(self, patterns: Optional[List[str]] = None):
        self.patterns: List[IgnorePattern] = [compile_pattern(p) for p in (patterns or [])]

    @classmethod
    def from_file(cls, path: Optional[Path]) -> "IgnoreMatcher":
        """Build a matcher from an ignore file; a missing file means no patterns."""
        if path is None or not Path(path).exists():
            return cls()
        patterns = read_pattern_strings(Path(path))
        logger.debug(f"Loaded {len(patterns)} ignore patterns from {path}")
        return cls(patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def is_ignored(self, path: Union[str, Path]) -> bool:
        full_path = os.path.abspath(str(path))
        file_name = os.path.basename(full_path)
        return any(p.matches(file_name, full_path) for p in self.patterns)


def resolve_ignore_file(root: Path, ignored_file: Optional[str]) -> Optional[Path]:
    """
    Pick the ignore file for a run.

    An explicit path wins; otherwise ignored.txt in the root, then ignored.json.
    """
    if ignored_file:
        return Path(ignored_file)
    for name in ("ignored.txt", "ignored.json"):
        candidate = Path(root) / name
        if candidate.exists():
            return candidate
    return None
