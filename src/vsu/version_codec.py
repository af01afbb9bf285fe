"""
Version Codec

Parsing, formatting and clamping of 4-component MAJOR.MINOR.BUILD.REVISION
versions, plus extraction of the version from a marker line.
"""

import re
from enum import Enum
from typing import List, NamedTuple, Optional


DEFAULT_MARKER_PREFIX = "//"
DEFAULT_MAX_COMPONENT = 99
MAX_COMPONENT_LIMIT = 999

VERSION_IN_LINE_RE = re.compile(r"\d+(?:\.\d+){1,3}")
STRICT_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


class IncrementComponent(Enum):
    MAJOR = "major"
    MINOR = "minor"
    BUILD = "build"
    REVISION = "revision"

    @property
    def index(self) -> int:
        return _COMPONENT_ORDER.index(self)

    @classmethod
    def from_name(cls, name: str) -> "IncrementComponent":
        """Look up a component by name, case-insensitively."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            raise ValueError(f"Invalid increment mode: '{name}'. Valid: {valid}")


_COMPONENT_ORDER = [
    IncrementComponent.MAJOR,
    IncrementComponent.MINOR,
    IncrementComponent.BUILD,
    IncrementComponent.REVISION,
]


class VersionTuple(NamedTuple):
    major: int = 0
    minor: int = 0
    build: int = 0
    revision: int = 0

    def __str__(self) -> str:
        return format_version(self)

    def replace_component(self, component: IncrementComponent, value: int) -> "VersionTuple":
        parts = list(self)
        parts[component.index] = value
        return VersionTuple(*parts)


INITIAL_VERSION = VersionTuple(1, 0, 0, 0)
DEFAULT_MAXIMA = VersionTuple(*([DEFAULT_MAX_COMPONENT] * 4))


def _to_component(text: str) -> int:
    text = text.strip()
    if not (text.isascii() and text.isdigit()):
        return 0
    try:
        return int(text)
    except ValueError:
        # over the interpreter's int conversion digit limit
        return 0


def parse_version(text: Optional[str]) -> VersionTuple:
    """
    Parse a dotted version string.

    Takes up to four components; non-numeric or missing components become 0.
    Never raises, malformed input degrades to zeros.
    """
    if not text:
        return VersionTuple()
    parts = [_to_component(p) for p in text.split('.')[:4]]
    while len(parts) < 4:
        parts.append(0)
    return VersionTuple(*parts)


def format_version(version) -> str:
    return ".".join(str(part) for part in version)


def clamp_version(version: VersionTuple, maxima: VersionTuple) -> VersionTuple:
    """Clamp each component to its configured maximum."""
    return VersionTuple(*(min(value, limit) for value, limit in zip(version, maxima)))


def is_valid_version_string(text: str) -> bool:
    return bool(text) and STRICT_VERSION_RE.match(text.strip()) is not None


def marker_pattern(prefix: str = DEFAULT_MARKER_PREFIX) -> "re.Pattern":
    return re.compile(rf"^\s*{re.escape(prefix)} Version", re.IGNORECASE)


def find_marker_index(lines: List[str], prefix: str = DEFAULT_MARKER_PREFIX) -> Optional[int]:
    """Return the index of the first marker line, or None if the file has none."""
    pattern = marker_pattern(prefix)
    for index, line in enumerate(lines):
        if pattern.match(line):
            return index
    return None


def extract_version(line: str) -> Optional[VersionTuple]:
    """Extract the first dotted version (2-4 groups) from a marker line."""
    match = VERSION_IN_LINE_RE.search(line)
    if not match:
        return None
    return parse_version(match.group(0))


def format_marker_line(version: VersionTuple, prefix: str = DEFAULT_MARKER_PREFIX) -> str:
    return f"{prefix} Version: {format_version(version)}"
