import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern

import structlog

from yamlsplice.lines import Document, count_indent, is_blank, is_comment, is_sequence_item, split_inline_comment

logger = structlog.get_logger(__name__)

# Inline values that stand for an empty mapping and may be opened into a block.
EMPTY_PLACEHOLDERS = ("{}", "~", "null", "Null", "NULL")


@dataclass
class Scope:
    """
    Line range [start, end) holding the children of one mapping. `parent_indent`
    is None for the document root.
    """
    start: int
    end: int
    parent_indent: Optional[int] = None


@dataclass
class KeyMatch:
    """
    A key declaration line decomposed as
    `prefix + " " + value + gap + comment`, where `prefix` runs up to and
    including the colon.
    """
    index: int
    indent: int
    key: str
    prefix: str
    value: str
    gap: str
    comment: str

    @property
    def suffix(self) -> str:
        """Trailing comment with its original spacing, or ''."""
        if not self.comment:
            return ""
        return (self.gap or " ") + self.comment


def block_end(doc: Document, index: int) -> int:
    """
    Exclusive end of the block declared on line `index`.

    A key whose first significant follower is not indented deeper is a leaf;
    its block is the single line. Otherwise the block runs until the first
    significant line at or above the key's indent. Trailing blank lines and
    comments not indented deeper than the children stay outside the block.
    """
    key_indent = doc.indent(index)
    first = doc.next_significant(index + 1)
    if first is None or doc.indent(first) <= key_indent:
        return index + 1

    child_indent = doc.indent(first)
    end = len(doc)
    for i in range(first + 1, len(doc)):
        if doc.is_significant(i) and doc.indent(i) <= key_indent:
            end = i
            break

    while end - 1 > first:
        line = doc.lines[end - 1]
        if is_blank(line) or (is_comment(line) and count_indent(line) <= child_indent):
            end -= 1
            continue
        break
    return end


class PathNavigator:
    """
    Walks dotted key paths through nested blocks using indentation only.
    Every lookup rescans the current document state, so interleaved reads
    and writes always see fresh boundaries.
    """
    def __init__(self, doc: Document, indent_step: int = 2):
        self.doc = doc
        self.indent_step = indent_step
        self._patterns: Dict[str, Pattern] = {}

    def _key_pattern(self, key: str) -> Pattern:
        pattern = self._patterns.get(key)
        if pattern is None:
            escaped = re.escape(key)
            quoted_double = re.escape('"' + key.replace("\\", "\\\\").replace('"', '\\"') + '"')
            quoted_single = re.escape("'" + key.replace("'", "''") + "'")
            # The token must be followed by optional spaces and a colon, so
            # `foo` never matches a sibling called `foobar`.
            pattern = re.compile(rf"(?:{escaped}|{quoted_double}|{quoted_single})[ \t]*:")
            self._patterns[key] = pattern
        return pattern

    def root_scope(self) -> Scope:
        return Scope(start=0, end=len(self.doc), parent_indent=None)

    def child_scope(self, match: KeyMatch) -> Scope:
        return Scope(start=match.index + 1, end=block_end(self.doc, match.index), parent_indent=match.indent)

    def child_indent(self, scope: Scope) -> int:
        """Indent of existing children, or one step below the parent when there are none."""
        first = self.doc.next_significant(scope.start, scope.end)
        if first is not None:
            indent = self.doc.indent(first)
            if scope.parent_indent is None or indent > scope.parent_indent:
                return indent
        if scope.parent_indent is None:
            return 0
        return scope.parent_indent + self.indent_step

    def find_child(self, scope: Scope, key: str) -> Optional[KeyMatch]:
        first = self.doc.next_significant(scope.start, scope.end)
        if first is None:
            return None
        indent = self.doc.indent(first)
        if scope.parent_indent is not None and indent <= scope.parent_indent:
            return None

        pattern = self._key_pattern(key)
        for i in range(first, min(scope.end, len(self.doc))):
            line = self.doc.lines[i]
            if not self.doc.is_significant(i) or count_indent(line) != indent or is_sequence_item(line):
                continue
            m = pattern.match(line, indent)
            if not m:
                continue
            value, gap, comment = split_inline_comment(line[m.end():].lstrip())
            return KeyMatch(
                index=i,
                indent=indent,
                key=key,
                prefix=line[:m.end()],
                value=value,
                gap=gap,
                comment=comment,
            )
        return None

    def has_children(self, match: KeyMatch) -> bool:
        return block_end(self.doc, match.index) > match.index + 1

    def can_descend(self, match: KeyMatch) -> bool:
        """A key can hold children when it already has a nested block or no inline value."""
        return self.has_children(match) or not match.value

    def resolve(self, path: List[str]) -> Optional[KeyMatch]:
        """Read-only walk. Returns the match for the last segment, or None on any mismatch."""
        if not path:
            return None
        scope = self.root_scope()
        match = None
        for depth, key in enumerate(path):
            match = self.find_child(scope, key)
            if match is None:
                logger.debug("Path segment not found", path=path, segment=key, depth=depth)
                return None
            if depth < len(path) - 1:
                if not self.can_descend(match):
                    logger.debug("Path segment holds a scalar", path=path, segment=key, depth=depth)
                    return None
                scope = self.child_scope(match)
        return match

    def resolve_scope(self, path: List[str]) -> Optional[Scope]:
        """Children range of `path`; the empty path addresses the document root."""
        if not path:
            return self.root_scope()
        match = self.resolve(path)
        if match is None or not self.can_descend(match):
            return None
        return self.child_scope(match)

    def insertion_index(self, scope: Scope, key: str, order_hint: List[str]) -> int:
        """
        Where a missing `key` goes inside `scope`: right after the block of
        the nearest preceding sibling named in `order_hint` that exists,
        otherwise before the first significant line of the scope. An empty
        scope receives the key at its end, ahead of trailing blank lines.
        """
        if key in order_hint:
            for sibling in reversed(order_hint[:order_hint.index(key)]):
                match = self.find_child(scope, sibling)
                if match is not None:
                    logger.debug(f"Inserting '{key}' after hinted sibling '{sibling}'")
                    return block_end(self.doc, match.index)

        first = self.doc.next_significant(scope.start, scope.end)
        if first is not None:
            return first

        end = min(scope.end, len(self.doc))
        while end > scope.start and is_blank(self.doc.lines[end - 1]):
            end -= 1
        return end
