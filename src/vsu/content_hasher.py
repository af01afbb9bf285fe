"""
Content hashing with the version marker line excluded.
"""

import hashlib
from typing import List, Optional


LINE_SEPARATOR = "\n"


def hash_content(lines: List[str], marker_index: Optional[int] = None) -> str:
    """
    Compute the SHA-256 digest of a file's lines, skipping the marker line.

    Lines are always joined with a single "\\n" so the digest does not depend
    on the file's newline convention.

    Args:
        lines: File content split into lines, without line terminators
        marker_index: Index of the marker line, or None if the file has none

    Returns:
        str: Lowercase hex digest
    """
    content = LINE_SEPARATOR.join(
        line for index, line in enumerate(lines) if index != marker_index
    )
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


def hashes_match(stored_hash: Optional[str], new_hash: str) -> bool:
    """Compare digests case-insensitively; a missing stored hash never matches."""
    if not stored_hash:
        return False
    return stored_hash.lower() == new_hash.lower()
