"""
Version Store

Durable mapping of canonical file path -> content hash. Loaded once at the
start of a run, mutated in memory and saved once at the end.
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, Optional

from .exceptions import StateFileError
from .state_io import backup_corrupt_file, load_json, save_json


HASHES_FILENAME = "hashes.json"

logger = logging.getLogger(__name__)


class VersionStore:
    """Path -> hex digest map backed by hashes.json."""

    def __init__(self, filepath: Path, hashes: Optional[Dict[str, str]] = None):
        self.filepath = Path(filepath)
        self.hashes: Dict[str, str] = dict(hashes or {})

    @classmethod
    def load(cls, filepath: Path) -> "VersionStore":
        """
        Load the store, starting empty if the file is absent.

        A malformed file is backed up and reported as a warning, then the
        store starts empty.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            return cls(filepath)
        try:
            data = load_json(filepath)
            if not isinstance(data, dict):
                raise StateFileError(filepath, "expected a JSON object of path -> hash")
            hashes = {str(k): str(v) for k, v in data.items() if v is not None}
        except StateFileError as e:
            logger.warning(f"Hash store is corrupt, starting empty: {e}")
            backup_corrupt_file(filepath)
            return cls(filepath)

        logger.debug(f"Loaded {len(hashes)} hashes from {filepath}")
        return cls(filepath, hashes)

    def get(self, key: str) -> Optional[str]:
        return self.hashes.get(key)

    def put(self, key: str, content_hash: str) -> None:
        self.hashes[key] = content_hash

    def __contains__(self, key: str) -> bool:
        return key in self.hashes

    def __len__(self) -> int:
        return len(self.hashes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.hashes)

    def save(self) -> None:
        save_json(self.filepath, self.hashes)
        logger.debug(f"Saved {len(self.hashes)} hashes to {self.filepath}")
