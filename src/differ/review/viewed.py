"""Track which diff files the reviewer has marked as viewed.

A mark is tied to a fingerprint of the file's hunk lines, so it lapses on
its own once the file's diff changes.
"""

from __future__ import annotations

import string
from typing import Dict, Iterable, Iterator, Tuple

from differ.git.models import DiffFile

_DIGITS = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    sign = "-" if value < 0 else ""
    value = abs(value)
    out = ""
    while True:
        value, rem = divmod(value, 36)
        out = _DIGITS[rem] + out
        if not value:
            return sign + out


def _utf16_units(text: str) -> Iterator[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def fingerprint(file: DiffFile) -> str:
    """DJB2-style hash over every line's type and content, in UTF-16 code units."""
    h = 5381
    for line in file.iter_lines():
        for unit in _utf16_units(line.line_type.value + line.content):
            h = ((h << 5) + h + unit) & 0xFFFFFFFF
    # signed 32-bit, matching the front end's stored values
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(h)


class ViewedTracker:
    def __init__(self) -> None:
        self._viewed: Dict[str, str] = {}

    def toggle(self, file: DiffFile) -> bool:
        """Flip the viewed mark for *file*. Returns the new state."""
        h = fingerprint(file)
        if self._viewed.get(file.path) == h:
            del self._viewed[file.path]
            return False
        self._viewed[file.path] = h
        return True

    def is_viewed(self, file: DiffFile) -> bool:
        return self._viewed.get(file.path) == fingerprint(file)

    def reconcile(self, files: Iterable[DiffFile]) -> None:
        """Drop marks for files that disappeared or whose diff changed."""
        current = {f.path: f for f in files}
        for path in list(self._viewed):
            f = current.get(path)
            if f is None or self._viewed[path] != fingerprint(f):
                del self._viewed[path]

    def counts(self, files: Iterable[DiffFile]) -> Tuple[int, int]:
        """Return (viewed, total) for *files*."""
        files = list(files)
        return sum(1 for f in files if self.is_viewed(f)), len(files)
