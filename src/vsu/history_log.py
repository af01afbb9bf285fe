"""
History Log

Append-only record of version transitions, stored in version_history.json.
Prior entries are kept across runs; each run appends in processing order.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .exceptions import StateFileError
from .state_io import backup_corrupt_file, load_json, save_json


HISTORY_FILENAME = "version_history.json"
NO_VERSION = "none"

FRACTION_RE = re.compile(r"(\.\d+)")

logger = logging.getLogger(__name__)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def parse_timestamp(text: str) -> datetime:
    # fromisoformat wants exactly 6 fractional digits on older interpreters
    text = FRACTION_RE.sub(lambda m: m.group(1)[:7].ljust(7, '0'), text.strip())
    moment = datetime.fromisoformat(text.replace('Z', '+00:00'))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class HistoryEntry:
    file: str
    old_version: str
    new_version: str
    date: datetime
    type: str = "auto"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file': self.file,
            'oldVersion': self.old_version,
            'newVersion': self.new_version,
            'date': format_timestamp(self.date),
            'type': self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        """Build an entry from camelCase keys, or the PascalCase keys of older files."""
        def pick(name: str) -> Any:
            if name in data:
                return data[name]
            return data.get(name[0].upper() + name[1:])

        date_text = pick('date')
        return cls(
            file=str(pick('file') or ""),
            old_version=str(pick('oldVersion') or NO_VERSION),
            new_version=str(pick('newVersion') or ""),
            date=parse_timestamp(date_text) if date_text else datetime.fromtimestamp(0, timezone.utc),
            type=str(pick('type') or "auto"),
        )


class HistoryLog:
    """Ordered, append-only list of HistoryEntry objects."""

    def __init__(self, filepath: Path, entries: Optional[List[HistoryEntry]] = None):
        self.filepath = Path(filepath)
        self.entries: List[HistoryEntry] = list(entries or [])

    @classmethod
    def load(cls, filepath: Path, backup_corrupt: bool = True) -> "HistoryLog":
        """
        Load the full history; a corrupt file starts the log empty.

        The corrupt file is copied aside unless backup_corrupt is False, which
        read-only callers use.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            return cls(filepath)
        try:
            data = load_json(filepath)
            if not isinstance(data, list):
                raise StateFileError(filepath, "expected a JSON list of history entries")
            entries = [HistoryEntry.from_dict(item) for item in data]
        except (StateFileError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"History log is corrupt, starting empty: {e}")
            if backup_corrupt:
                backup_corrupt_file(filepath)
            return cls(filepath)

        logger.debug(f"Loaded {len(entries)} history entries from {filepath}")
        return cls(filepath, entries)

    def append(self, file: str, old_version: Optional[str], new_version: str,
               origin: str = "auto", date: Optional[datetime] = None) -> HistoryEntry:
        entry = HistoryEntry(
            file=file,
            old_version=old_version or NO_VERSION,
            new_version=new_version,
            date=date or datetime.now(timezone.utc),
            type=origin,
        )
        self.entries.append(entry)
        return entry

    def for_file(self, fragment: str) -> List[HistoryEntry]:
        fragment = fragment.lower()
        return [e for e in self.entries if fragment in e.file.lower()]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries)

    def save(self) -> None:
        save_json(self.filepath, [entry.to_dict() for entry in self.entries])
        logger.debug(f"Saved {len(self.entries)} history entries to {self.filepath}")
