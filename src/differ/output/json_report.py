"""JSON serialisation for every structure that crosses a process boundary.

Keys are lowerCamelCase and match the model attribute names.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from differ.git.models import DiffFile, DiffHunk, DiffLine, DiffResult, Reference
from differ.review.models import ReviewComment


def line_to_dict(line: DiffLine) -> Dict[str, Any]:
    return {
        "lineType": line.line_type.value,
        "content": line.content,
        "oldNum": line.old_num,
        "newNum": line.new_num,
    }


def hunk_to_dict(hunk: DiffHunk) -> Dict[str, Any]:
    return {
        "oldStart": hunk.old_start,
        "oldLines": hunk.old_lines,
        "newStart": hunk.new_start,
        "newLines": hunk.new_lines,
        "lines": [line_to_dict(line) for line in hunk.lines],
    }


def file_to_dict(diff_file: DiffFile) -> Dict[str, Any]:
    return {
        "path": diff_file.path,
        "status": diff_file.status.value,
        "oldPath": diff_file.old_path,
        "hunks": [hunk_to_dict(h) for h in diff_file.hunks],
    }


def to_dict(result: DiffResult) -> Dict[str, Any]:
    """Convert a DiffResult to a JSON-serialisable dict."""
    return {
        "baseRef": result.base_ref,
        "compareRef": result.compare_ref,
        "files": [file_to_dict(f) for f in result.files],
    }


def references_to_list(refs: Iterable[Reference]) -> List[Dict[str, Any]]:
    # "refType" is the key front ends and agents already read for Reference.kind
    return [{"name": r.name, "refType": r.kind.value} for r in refs]


def comment_to_dict(comment: ReviewComment) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "file": comment.file,
        "startLine": comment.start_line,
        "endLine": comment.end_line,
        "codeContext": comment.code_context,
        "comment": comment.comment,
    }


def render(result: DiffResult) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result), indent=2)


def render_references(refs: Iterable[Reference]) -> str:
    return json.dumps(references_to_list(refs), indent=2)


def render_comment(comment: ReviewComment) -> str:
    return json.dumps(comment_to_dict(comment), indent=2)
