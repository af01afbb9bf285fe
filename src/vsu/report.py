"""
Run report: one line per updated file followed by a statistics block.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .version_codec import VersionTuple, format_version


STATISTICS_HEADER = "=== Version Statistics ==="


@dataclass
class RunReport:
    lines: List[str] = field(default_factory=list)

    def add_update(self, path: str, new_version: VersionTuple) -> None:
        self.lines.append(f"{path} -> {format_version(new_version)}")

    def render(self, processed: int, updated: int, average: VersionTuple) -> List[str]:
        return self.lines + [
            "",
            STATISTICS_HEADER,
            f"Total files processed: {processed}",
            f"Files updated: {updated}",
            f"Average project version: {format_version(average)}",
        ]

    def write(self, filepath: Path, processed: int, updated: int, average: VersionTuple) -> None:
        with open(filepath, 'w', encoding='utf-8') as f:
            for line in self.render(processed, updated, average):
                f.write(line + "\n")
