"""Unified diff parser for `git diff` tree-to-tree output.

Works on raw bytes so that a single undecodable line degrades to an empty
string instead of failing the whole diff. Every ``diff --git`` section yields
exactly one DiffFile, including binary, mode-only and pure-rename sections
which carry no hunks.
"""

from __future__ import annotations

import re
from typing import Generator, List, Optional, Tuple, Union

from differ.git.models import DiffFile, DiffHunk, DiffLine, FileStatus, LineType

# --- Regex patterns for diff parsing ---

_DIFF_HEADER = b"diff --git "
_HUNK_HEADER_RE = re.compile(
    rb"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@"
)
_RENAME_FROM_RE = re.compile(rb"^rename from (.+)$")
_RENAME_TO_RE = re.compile(rb"^rename to (.+)$")
_COPY_FROM_RE = re.compile(rb"^copy from (.+)$")
_COPY_TO_RE = re.compile(rb"^copy to (.+)$")
_NEW_FILE_RE = re.compile(rb"^new file mode \d+$")
_DELETED_FILE_RE = re.compile(rb"^deleted file mode \d+$")
_FILE_HEADER_OLD_RE = re.compile(rb"^--- (.+)$")
_FILE_HEADER_NEW_RE = re.compile(rb"^\+\+\+ (.+)$")
_DEV_NULL = b"/dev/null"

# C-style escapes git uses when quoting unusual paths
_ESCAPES = {
    ord("a"): 7, ord("b"): 8, ord("t"): 9, ord("n"): 10,
    ord("v"): 11, ord("f"): 12, ord("r"): 13, ord('"'): 34, ord("\\"): 92,
}


def _unquote(token: bytes) -> bytes:
    """Undo git's C-style path quoting. Unquoted tokens pass through."""
    if len(token) < 2 or not (token.startswith(b'"') and token.endswith(b'"')):
        return token
    body = token[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        c = body[i]
        if c != 0x5C:  # backslash
            out.append(c)
            i += 1
            continue
        octal = body[i + 1:i + 4]
        if len(octal) == 3 and all(0x30 <= d <= 0x37 for d in octal):
            out.append(int(octal, 8))
            i += 4
        elif i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
        else:
            i += 1
    return bytes(out)


def _take_quoted(data: bytes) -> Tuple[bytes, bytes]:
    """Split a leading quoted token off *data*."""
    i = 1
    while i < len(data):
        if data[i] == 0x5C:
            i += 2
            continue
        if data[i] == 0x22:
            return data[:i + 1], data[i + 1:]
        i += 1
    return data, b""


def _decode_path(raw: bytes, prefix: bytes) -> Optional[str]:
    """Decode a path token, dropping git's a/ or b/ prefix. /dev/null → None."""
    raw = _unquote(raw.rstrip(b"\t"))
    if raw == _DEV_NULL:
        return None
    if raw.startswith(prefix):
        raw = raw[len(prefix):]
    return raw.decode("utf-8", errors="replace")


def _split_header(rest: bytes) -> Tuple[Optional[str], Optional[str]]:
    """Return (old, new) paths from the text after ``diff --git``."""
    if rest.startswith(b'"'):
        old, remainder = _take_quoted(rest)
        return _decode_path(old, b"a/"), _decode_path(remainder.lstrip(b" "), b"b/")
    if rest.endswith(b'"'):
        pos = rest.rfind(b' "')
        if pos != -1:
            return _decode_path(rest[:pos], b"a/"), _decode_path(rest[pos + 1:], b"b/")
    # Unquoted: both halves name the same path unless this is a rename, whose
    # real paths come from the rename sub-headers anyway.
    half = (len(rest) - 1) // 2
    old, new = rest[:half], rest[half + 1:]
    if old[2:] != new[2:]:
        pos = rest.find(b" b/")
        if pos != -1:
            old, new = rest[:pos], rest[pos + 1:]
    return _decode_path(old, b"a/"), _decode_path(new, b"b/")


def _decode_content(raw: bytes) -> str:
    """Decode a content line; invalid UTF-8 degrades to an empty string."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return ""


class DiffParser:
    """Parse ``git diff`` output and yield one DiffFile per changed path.

    Usage::

        parser = DiffParser(diff_bytes)
        for diff_file in parser.parse():
            ...
    """

    def __init__(self, diff_text: Union[bytes, str]) -> None:
        if isinstance(diff_text, str):
            diff_text = diff_text.encode("utf-8")
        # Split on LF only: CR and other separators are part of the content.
        lines = diff_text.split(b"\n")
        if lines and lines[-1] == b"":
            lines.pop()
        self._lines = lines

    def parse(self) -> Generator[DiffFile, None, None]:
        """Yield DiffFile items in the order git enumerated them."""
        idx = 0
        total = len(self._lines)

        while idx < total:
            raw_line = self._lines[idx]
            if not raw_line.startswith(_DIFF_HEADER):
                idx += 1
                continue

            old_path, new_path = _split_header(raw_line[len(_DIFF_HEADER):])
            is_new = False
            is_deleted = False
            is_rename = False
            idx += 1

            # Extended headers: modes, index, similarity, rename/copy, binary
            while idx < total:
                sub = self._lines[idx]
                if sub.startswith((_DIFF_HEADER, b"--- ", b"@@ ")):
                    break
                if _NEW_FILE_RE.match(sub):
                    is_new = True
                elif _DELETED_FILE_RE.match(sub):
                    is_deleted = True
                elif (rm := _RENAME_FROM_RE.match(sub)):
                    old_path = _decode_path(rm.group(1), b"")
                    is_rename = True
                elif (rt := _RENAME_TO_RE.match(sub)):
                    new_path = _decode_path(rt.group(1), b"")
                elif (cf := _COPY_FROM_RE.match(sub)):
                    old_path = _decode_path(cf.group(1), b"")
                elif (ct := _COPY_TO_RE.match(sub)):
                    new_path = _decode_path(ct.group(1), b"")
                idx += 1

            # --- a/ and +++ b/ file headers are authoritative when present
            if idx < total and (m_old := _FILE_HEADER_OLD_RE.match(self._lines[idx])):
                if idx + 1 < total and (m_new := _FILE_HEADER_NEW_RE.match(self._lines[idx + 1])):
                    old_path = _decode_path(m_old.group(1), b"a/")
                    new_path = _decode_path(m_new.group(1), b"b/")
                    idx += 2

            hunks: List[DiffHunk] = []
            while idx < total:
                hm = _HUNK_HEADER_RE.match(self._lines[idx])
                if not hm:
                    break
                hunk, idx = self._parse_hunk(hm, idx + 1, total)
                hunks.append(hunk)

            if is_new:
                status = FileStatus.ADDED
            elif is_deleted:
                status = FileStatus.DELETED
                new_path = None
            elif is_rename:
                status = FileStatus.RENAMED
            else:
                # copies, type and mode changes all land here
                status = FileStatus.MODIFIED

            yield DiffFile(
                path=new_path if new_path is not None else (old_path or ""),
                status=status,
                old_path=old_path if status == FileStatus.RENAMED else None,
                hunks=tuple(hunks),
            )

    def _parse_hunk(self, hm: re.Match, idx: int, total: int) -> Tuple[DiffHunk, int]:
        """Consume one hunk body starting at *idx*. Returns (hunk, next idx)."""
        old_start = int(hm.group(1))
        old_lines = int(hm.group(2)) if hm.group(2) is not None else 1
        new_start = int(hm.group(3))
        new_lines = int(hm.group(4)) if hm.group(4) is not None else 1

        old_remaining, new_remaining = old_lines, new_lines
        old_num, new_num = old_start, new_start
        lines: List[DiffLine] = []

        # Body length is bounded by the header counts, so a removed line that
        # reads "-- x" is still content and not a file header.
        while idx < total and (old_remaining > 0 or new_remaining > 0):
            raw = self._lines[idx]
            origin, body = raw[:1], raw[1:]
            if origin == b"\\":
                # "\ No newline at end of file"
                idx += 1
                continue
            if origin == b"+":
                lines.append(DiffLine(LineType.ADD, _decode_content(body), None, new_num))
                new_num += 1
                new_remaining -= 1
            elif origin == b"-":
                lines.append(DiffLine(LineType.DELETE, _decode_content(body), old_num, None))
                old_num += 1
                old_remaining -= 1
            elif origin in (b" ", b""):
                lines.append(DiffLine(LineType.CONTEXT, _decode_content(body), old_num, new_num))
                old_num += 1
                new_num += 1
                old_remaining -= 1
                new_remaining -= 1
            else:
                break  # malformed; stop this hunk
            idx += 1

        if idx < total and self._lines[idx].startswith(b"\\"):
            idx += 1

        hunk = DiffHunk(
            old_start=old_start,
            old_lines=old_lines,
            new_start=new_start,
            new_lines=new_lines,
            lines=tuple(lines),
        )
        return hunk, idx
