import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

COMMENT_MARKER = "#"

_LINE_BREAK_RE = re.compile(r"\r?\n")

# Characters after which a quote opens a quoted region.
_QUOTE_OPENERS = " \t[{,:"


class LineKind(str, Enum):
    BLANK = "blank"
    COMMENT = "comment"
    CONTENT = "content"


def count_indent(line: Optional[str]) -> int:
    if not line:
        return 0
    return len(line) - len(line.lstrip(" "))


def is_blank(line: str) -> bool:
    return not line.strip()


def is_comment(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_MARKER)


def is_significant(line: str) -> bool:
    return not is_blank(line) and not is_comment(line)


def classify(line: str) -> LineKind:
    if is_blank(line):
        return LineKind.BLANK
    if is_comment(line):
        return LineKind.COMMENT
    return LineKind.CONTENT


def is_sequence_item(line: str) -> bool:
    stripped = line.lstrip(" ")
    return stripped == "-" or stripped.startswith("- ")


def split_inline_comment(text: str) -> Tuple[str, str, str]:
    """
    Splits the value part of a line from its trailing comment.

    Returns (value, gap, comment) where `gap` is the whitespace between the
    value and the comment marker, so `value + gap + comment` reproduces the
    input minus trailing whitespace. A '#' only starts a comment outside
    quoted regions and when it begins the text or follows whitespace.
    Backslash escapes are honoured inside double quotes only.
    """
    in_single = False
    in_double = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_double:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_double = False
        elif in_single:
            if ch == "'":
                # '' is an escaped quote inside a single-quoted scalar
                if i + 1 < len(text) and text[i + 1] == "'":
                    i += 2
                    continue
                in_single = False
        elif ch in "\"'" and (i == 0 or text[i - 1] in _QUOTE_OPENERS):
            if ch == '"':
                in_double = True
            else:
                in_single = True
        elif ch == COMMENT_MARKER and (i == 0 or text[i - 1] in " \t"):
            value = text[:i].rstrip()
            return value, text[len(value):i], text[i:].rstrip()
        i += 1
    return text.rstrip(), "", ""


def strip_comment_markers(line: str) -> str:
    """Removes every leading '# ' marker sitting at column zero."""
    return re.sub(r"^(?:# ?)+", "", line)


@dataclass
class Document:
    """
    Mutable line list for one edit call. Remembers the newline convention
    and whether the input ended with a line break so that serialization
    reproduces both.
    """
    lines: List[str] = field(default_factory=list)
    newline: str = "\n"
    trailing_newline: bool = True

    @classmethod
    def from_text(cls, text: Optional[str]) -> "Document":
        text = text or ""
        newline = "\r\n" if "\r\n" in text else "\n"
        if not text:
            return cls(lines=[], newline=newline, trailing_newline=True)

        trailing_newline = text.endswith("\n")
        lines = _LINE_BREAK_RE.split(text)
        if trailing_newline:
            lines.pop()
        return cls(lines=lines, newline=newline, trailing_newline=trailing_newline)

    def to_text(self) -> str:
        if not self.lines:
            return ""
        out = self.newline.join(self.lines)
        if self.trailing_newline:
            out += self.newline
        return out

    def __len__(self) -> int:
        return len(self.lines)

    def indent(self, index: int) -> int:
        return count_indent(self.lines[index])

    def is_significant(self, index: int) -> bool:
        return is_significant(self.lines[index])

    def next_significant(self, start: int, end: Optional[int] = None) -> Optional[int]:
        end = len(self.lines) if end is None else min(end, len(self.lines))
        for i in range(start, end):
            if is_significant(self.lines[i]):
                return i
        return None

    def replace(self, start: int, end: int, new_lines: List[str]) -> None:
        """Replaces lines[start:end] (end exclusive)."""
        self.lines[start:end] = new_lines

    def insert(self, index: int, new_lines: List[str]) -> None:
        self.lines[index:index] = new_lines
