"""
JSON state file helpers shared by the hash store and the history log.
"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

from .exceptions import StateFileError


logger = logging.getLogger(__name__)

CORRUPT_SUFFIX = ".corrupt"


def save_json(filepath: Path, data: Any) -> None:
    """Write data as indented JSON, replacing the target atomically."""
    filepath = Path(filepath)
    json_data = json.dumps(data, indent=2, ensure_ascii=False, default=str)

    fd, tmp_path = tempfile.mkstemp(prefix=f".{filepath.name}.", suffix=".tmp", dir=str(filepath.parent))
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(json_data)
            f.write("\n")
        os.replace(tmp_path, filepath)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def load_json(filepath: Path) -> Any:
    """
    Load JSON data from a state file.

    Raises:
        FileNotFoundError: If the file does not exist
        StateFileError: If the file cannot be read or decoded
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"State file not found: {filepath}")
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise StateFileError(filepath, f"malformed JSON ({e})")
    except OSError as e:
        raise StateFileError(filepath, f"unreadable ({e})")


def backup_corrupt_file(filepath: Path) -> Path:
    """Copy a corrupt state file aside so the next save does not destroy it."""
    filepath = Path(filepath)
    backup_path = filepath.with_name(filepath.name + CORRUPT_SUFFIX)
    shutil.copy2(filepath, backup_path)
    logger.warning(f"Backed up corrupt state file to {backup_path}")
    return backup_path
