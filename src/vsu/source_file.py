"""
Reading and writing tracked source files.

A file is held as a list of lines without terminators. The newline style,
UTF-8 BOM and trailing newline are remembered so that rewriting the marker
line leaves the rest of the file byte-for-byte intact.
"""

import codecs
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class SourceFile:
    path: Path
    lines: List[str] = field(default_factory=list)
    newline: str = "\n"
    has_bom: bool = False
    trailing_newline: bool = True


def _detect_newline(text: str) -> str:
    if "\r\n" in text:
        return "\r\n"
    if "\r" in text:
        return "\r"
    return "\n"


def read_source(path: Path) -> SourceFile:
    """
    Read a file as UTF-8 text split into lines.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    raw = Path(path).read_bytes()
    has_bom = raw.startswith(codecs.BOM_UTF8)
    if has_bom:
        raw = raw[len(codecs.BOM_UTF8):]
    text = raw.decode('utf-8')

    newline = _detect_newline(text)
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    trailing_newline = normalized.endswith("\n") or not normalized

    lines = normalized.split("\n") if normalized else []
    if normalized.endswith("\n"):
        lines.pop()

    return SourceFile(
        path=Path(path),
        lines=lines,
        newline=newline,
        has_bom=has_bom,
        trailing_newline=trailing_newline,
    )


def write_source(source: SourceFile, lines: List[str]) -> None:
    """Write lines back to the file using its original newline style."""
    text = source.newline.join(lines)
    if source.trailing_newline and lines:
        text += source.newline
    data = text.encode('utf-8')
    if source.has_bom:
        data = codecs.BOM_UTF8 + data
    source.path.write_bytes(data)
