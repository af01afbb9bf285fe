"""
Change Decision Engine

Decides, for one file, whether its embedded version must change and computes
the new version. Automatic updates happen only when the content hash (marker
line excluded) differs from the stored one; manual overrides always apply.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from .content_hasher import hash_content, hashes_match
from .version_codec import (
    DEFAULT_MARKER_PREFIX,
    DEFAULT_MAXIMA,
    INITIAL_VERSION,
    IncrementComponent,
    VersionTuple,
    clamp_version,
    extract_version,
    find_marker_index,
    format_marker_line,
)
from .version_store import VersionStore


logger = logging.getLogger(__name__)


class Outcome(Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"


class Origin(Enum):
    AUTO = "auto"
    MANUAL = "manual"


@dataclass(frozen=True)
class NoOverride:
    pass


@dataclass(frozen=True)
class FullOverride:
    version: VersionTuple


@dataclass(frozen=True)
class PartialOverride:
    components: Dict[IncrementComponent, int] = field(default_factory=dict)


OverrideDirective = Union[NoOverride, FullOverride, PartialOverride]

NO_OVERRIDE = NoOverride()


@dataclass
class Decision:
    """Result of deciding one file."""
    outcome: Outcome
    old_version: Optional[VersionTuple]
    new_version: Optional[VersionTuple]
    content_hash: str
    origin: Origin = Origin.AUTO
    lines: List[str] = field(default_factory=list)

    @property
    def updated(self) -> bool:
        return self.outcome is Outcome.UPDATED

    @property
    def final_version(self) -> Optional[VersionTuple]:
        """Version the file carries after this run."""
        return self.new_version if self.updated else self.old_version


def increment_version(version: VersionTuple,
                      component: IncrementComponent = IncrementComponent.REVISION,
                      maxima: VersionTuple = DEFAULT_MAXIMA) -> VersionTuple:
    """
    Bump one component, zeroing every less significant one.

    A component pushed above its maximum resets to 0 and carries into the
    next more significant component. If major still overflows it saturates at
    its maximum with all lower components zeroed.
    """
    parts = list(version)
    idx = component.index

    parts[idx] += 1
    for j in range(idx + 1, 4):
        parts[j] = 0

    # major never wraps; it is handled by the saturation below
    for i in range(idx, 0, -1):
        if parts[i] > maxima[i]:
            parts[i] = 0
            parts[i - 1] += 1

    if parts[0] > maxima[0]:
        parts = [maxima[0], 0, 0, 0]

    return VersionTuple(*parts)


def apply_partial(version: VersionTuple, components: Dict[IncrementComponent, int],
                  maxima: VersionTuple = DEFAULT_MAXIMA) -> VersionTuple:
    """Overwrite only the given components, each clamped to its maximum."""
    result = version
    for component, value in components.items():
        result = result.replace_component(component, min(value, maxima[component.index]))
    return result


def rewrite_marker(lines: List[str], marker_index: Optional[int], version: VersionTuple,
                   prefix: str = DEFAULT_MARKER_PREFIX) -> List[str]:
    """Return new lines with the marker replaced in place, or inserted at the top."""
    marker_line = format_marker_line(version, prefix)
    new_lines = list(lines)
    if marker_index is None:
        new_lines.insert(0, marker_line)
    else:
        new_lines[marker_index] = marker_line
    return new_lines


class ChangeDecisionEngine:
    """
    Per-file version decision logic.

    The engine owns no state of its own; it reads and records content hashes
    through the VersionStore it is handed for the run.
    """

    def __init__(self, store: VersionStore,
                 increment: IncrementComponent = IncrementComponent.REVISION,
                 maxima: VersionTuple = DEFAULT_MAXIMA):
        self.store = store
        self.increment = increment
        self.maxima = maxima

    def decide(self, key: str, lines: List[str],
               override: OverrideDirective = NO_OVERRIDE,
               marker_prefix: str = DEFAULT_MARKER_PREFIX) -> Decision:
        """
        Decide whether a file's version must change.

        Args:
            key: Canonical absolute path of the file
            lines: File content split into lines
            override: Manual override directive for this file
            marker_prefix: Comment token that introduces the marker line

        Returns:
            Decision: UNCHANGED with the current version, or UPDATED with the
            new version and the rewritten lines
        """
        marker_index = find_marker_index(lines, marker_prefix)
        current = extract_version(lines[marker_index]) if marker_index is not None else None
        new_hash = hash_content(lines, marker_index)
        manual = not isinstance(override, NoOverride)

        if not manual and current is not None and hashes_match(self.store.get(key), new_hash):
            return Decision(Outcome.UNCHANGED, current, None, new_hash)

        target = self.target_version(current, override)
        return Decision(
            outcome=Outcome.UPDATED,
            old_version=current,
            new_version=target,
            content_hash=new_hash,
            origin=Origin.MANUAL if manual else Origin.AUTO,
            lines=rewrite_marker(lines, marker_index, target, marker_prefix),
        )

    def target_version(self, current: Optional[VersionTuple],
                       override: OverrideDirective = NO_OVERRIDE) -> VersionTuple:
        if isinstance(override, FullOverride):
            return clamp_version(override.version, self.maxima)
        if isinstance(override, PartialOverride):
            return apply_partial(current or VersionTuple(), override.components, self.maxima)
        if current is None:
            return clamp_version(INITIAL_VERSION, self.maxima)
        return increment_version(current, self.increment, self.maxima)

    def commit(self, key: str, decision: Decision) -> None:
        """Record the hash of an applied update; call after the file is written."""
        if decision.updated:
            self.store.put(key, decision.content_hash)
