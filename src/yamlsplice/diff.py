from typing import List

import structlog
from diff_match_patch import diff_match_patch

from yamlsplice.lines import Document
from yamlsplice.models import ChangeType, LineChange

logger = structlog.get_logger(__name__)


def diff_lines(original_text: str, modified_text: str) -> List[LineChange]:
    """
    Line-level changes between two versions of a document, in document order.
    Newline conventions are ignored so a CRLF file compares equal to its
    LF twin.
    """
    dmp = diff_match_patch()

    original = "".join(line + "\n" for line in Document.from_text(original_text).lines)
    modified = "".join(line + "\n" for line in Document.from_text(modified_text).lines)

    # Line mode: every distinct line is mapped to one character, diffed, then expanded back.
    chars_a, chars_b, line_array = dmp.diff_linesToChars(original, modified)
    diffs = dmp.diff_main(chars_a, chars_b, False)
    dmp.diff_charsToLines(diffs, line_array)

    changes: List[LineChange] = []
    old_line = 1
    new_line = 1
    for op, text in diffs:
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        if op == dmp.DIFF_EQUAL:
            old_line += len(lines)
            new_line += len(lines)
        elif op == dmp.DIFF_DELETE:
            for line in lines:
                changes.append(LineChange(type=ChangeType.REMOVED, line_number=old_line, text=line))
                old_line += 1
        elif op == dmp.DIFF_INSERT:
            for line in lines:
                changes.append(LineChange(type=ChangeType.ADDED, line_number=new_line, text=line))
                new_line += 1

    logger.debug(f"Computed {len(changes)} line changes")
    return changes


def render_changes(changes: List[LineChange]) -> str:
    out = []
    for change in changes:
        marker = "[+]" if change.type == ChangeType.ADDED else "[-]"
        out.append(f"{marker} {change.line_number}: {change.text}")
    return "\n".join(out)
