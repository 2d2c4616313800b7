"""
Disable or re-enable one entry of a top-level sequence by commenting its
lines out, so the entry stays in the file but is ignored by YAML parsers.

Entries are matched on their `name` field, case-insensitively. Disabling
adds a single '# ' in front of every non-blank, not yet commented line of
the entry; enabling strips all leading '#' markers at once, so an entry
that was commented several times comes back in one step.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog

from yamlsplice.lines import (
    COMMENT_MARKER,
    Document,
    count_indent,
    is_blank,
    is_sequence_item,
    split_inline_comment,
    strip_comment_markers,
)
from yamlsplice.models import ToggleDirection, ToggleRequest
from yamlsplice.query import unquote_key

logger = structlog.get_logger(__name__)

_NAME_FIELD_RE = re.compile(r"^name[ \t]*:")


@dataclass
class Entry:
    start: int
    end: int
    name: Optional[str]
    commented: bool


def _is_commented(line: str) -> bool:
    return line.startswith(COMMENT_MARKER)


def _effective(line: str) -> str:
    return strip_comment_markers(line) if _is_commented(line) else line


def _find_section(doc: Document, section_key: str) -> Optional[Tuple[int, int, int]]:
    """
    (start, end, key_indent) of the items below the first uncommented
    top-level `section_key:` declaration.
    """
    key_re = re.compile(rf"^{re.escape(section_key)}[ \t]*:")
    for i, line in enumerate(doc.lines):
        if not doc.is_significant(i) or count_indent(line) != 0 or not key_re.match(line):
            continue
        key_indent = 0
        end = len(doc)
        for j in range(i + 1, len(doc)):
            if doc.is_significant(j) and doc.indent(j) <= key_indent:
                end = j
                break
        return i + 1, end, key_indent
    return None


def _is_marker(line: str, item_indent: int) -> bool:
    return count_indent(line) == item_indent and is_sequence_item(line)


def _read_name(lines: List[str], item_indent: int) -> Optional[str]:
    """`name` from the marker line itself or from a sibling field below it."""
    candidates = [lines[0][item_indent + 1:].lstrip(" ")]
    rest = [line for line in lines[1:] if line.strip()]
    if rest:
        field_indent = min(count_indent(line) for line in rest)
        candidates.extend(line[field_indent:] for line in rest if count_indent(line) == field_indent)

    for candidate in candidates:
        m = _NAME_FIELD_RE.match(candidate)
        if not m:
            continue
        value, _, _ = split_inline_comment(candidate[m.end():].strip())
        # Names are text as written: quotes are removed, nothing is typed.
        name = unquote_key(value).strip()
        return name or None
    return None


def _collect_entries(doc: Document, start: int, end: int, item_indent: int) -> List[Entry]:
    entries: List[Entry] = []
    i = start
    while i < end:
        raw = doc.lines[i]
        effective = _effective(raw)
        if not _is_marker(effective, item_indent):
            i += 1
            continue

        commented = _is_commented(raw)
        last = i
        j = i + 1
        while j < end:
            line = doc.lines[j]
            if is_blank(line):
                j += 1
                continue
            # A commented entry only spans comment lines, an active one only
            # lines that are not commented at column zero.
            if commented and not line.lstrip().startswith(COMMENT_MARKER):
                break
            if not commented and _is_commented(line):
                break
            eff = _effective(line)
            if is_blank(eff) or count_indent(eff) <= item_indent:
                break
            last = j
            j += 1

        body = [_effective(line) for line in doc.lines[i:last + 1]]
        entries.append(Entry(start=i, end=last + 1, name=_read_name(body, item_indent), commented=commented))
        i = last + 1
    return entries


def _entries(doc: Document, section_key: str, indent_step: int) -> List[Entry]:
    section = _find_section(doc, section_key)
    if section is None:
        logger.debug(f"Section '{section_key}' not found")
        return []
    start, end, key_indent = section
    return _collect_entries(doc, start, end, key_indent + indent_step)


def _find_entry(entries: List[Entry], name: str, commented: bool) -> Optional[Entry]:
    wanted = name.strip().lower()
    for entry in entries:
        if entry.commented == commented and entry.name is not None and entry.name.lower() == wanted:
            return entry
    return None


def disable_entry(text: str, section_key: str, name: str, indent_step: int = 2) -> Optional[str]:
    """Comments out the active entry called `name`. None when there is none."""
    doc = Document.from_text(text)
    entry = _find_entry(_entries(doc, section_key, indent_step), name, commented=False)
    if entry is None:
        logger.warning("Active entry not found", section=section_key, name=name)
        return None

    for i in range(entry.start, entry.end):
        line = doc.lines[i]
        if line.strip() and not line.lstrip().startswith(COMMENT_MARKER):
            doc.lines[i] = f"{COMMENT_MARKER} {line}"
    logger.info(f"Disabled entry '{name}' in '{section_key}'", lines=entry.end - entry.start)
    return doc.to_text()


def enable_entry(text: str, section_key: str, name: str, indent_step: int = 2) -> Optional[str]:
    """Uncomments the commented entry called `name`. None when there is none."""
    doc = Document.from_text(text)
    entry = _find_entry(_entries(doc, section_key, indent_step), name, commented=True)
    if entry is None:
        logger.warning("Commented entry not found", section=section_key, name=name)
        return None

    for i in range(entry.start, entry.end):
        doc.lines[i] = strip_comment_markers(doc.lines[i])
    logger.info(f"Enabled entry '{name}' in '{section_key}'", lines=entry.end - entry.start)
    return doc.to_text()


def toggle_entry(text: str, request: ToggleRequest, indent_step: int = 2) -> Optional[str]:
    if request.direction == ToggleDirection.DISABLE:
        return disable_entry(text, request.section_key, request.entry_name, indent_step)
    return enable_entry(text, request.section_key, request.entry_name, indent_step)


def is_entry_commented(text: str, section_key: str, name: str, indent_step: int = 2) -> bool:
    entries = _entries(Document.from_text(text), section_key, indent_step)
    return (_find_entry(entries, name, commented=True) is not None
            and _find_entry(entries, name, commented=False) is None)


def list_commented_entry_names(text: str, section_key: str, indent_step: int = 2) -> List[str]:
    """Names of commented entries that have no active entry of the same name."""
    entries = _entries(Document.from_text(text), section_key, indent_step)
    active = {e.name.lower() for e in entries if not e.commented and e.name}
    seen = set()
    names: List[str] = []
    for entry in entries:
        if not entry.commented or not entry.name:
            continue
        lowered = entry.name.lower()
        if lowered in active or lowered in seen:
            continue
        seen.add(lowered)
        names.append(entry.name)
    return names
