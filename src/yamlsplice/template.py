import re
from typing import List, Optional, Tuple

import structlog

from yamlsplice.formatters import format_key
from yamlsplice.lines import Document, count_indent, is_blank, is_comment
from yamlsplice.models import EngineOptions, TemplatePatch
from yamlsplice.patch.navigator import PathNavigator, block_end

logger = structlog.get_logger(__name__)

_COMMENT_PREFIX_RE = re.compile(r"^(\s*)# ?")


def _trim_blank_edges(lines: List[str]) -> List[str]:
    start = 0
    end = len(lines)
    while start < end and is_blank(lines[start]):
        start += 1
    while end > start and is_blank(lines[end - 1]):
        end -= 1
    return lines[start:end]


def _dedent(lines: List[str]) -> List[str]:
    indents = [count_indent(line) for line in lines if not is_blank(line)]
    shift = min(indents, default=0)
    if shift <= 0:
        return lines
    return [line if is_blank(line) else line[shift:] for line in lines]


def _uncomment(lines: List[str]) -> List[str]:
    return [_COMMENT_PREFIX_RE.sub(r"\1", line, count=1) for line in lines]


def normalize_snippet_to_root(snippet: str, root_key: str, indent_step: int = 2) -> List[str]:
    """
    Turns a free-form snippet into the lines of a `root_key:` block.

    A snippet commented out as a whole is uncommented first. Blank edges
    and the common indentation are removed; if the snippet does not already
    start with `root_key:` it is nested one step under a new declaration.
    """
    lines = re.split(r"\r?\n", snippet or "")
    content = [line for line in lines if not is_blank(line)]
    if content and all(is_comment(line) for line in content):
        lines = _uncomment(lines)

    lines = _dedent(_trim_blank_edges(lines))
    if not lines:
        return []

    root_re = re.compile(rf"^\s*(?:{re.escape(root_key)}|\"{re.escape(root_key)}\")\s*:\s*(?:#.*)?$")
    if root_re.match(lines[0]):
        return [line.rstrip() for line in lines]

    pad = " " * indent_step
    body = [line.rstrip() if is_blank(line) else pad + line.rstrip() for line in lines]
    return [f"{format_key(root_key)}:"] + body


def has_line(text: str, line: str) -> bool:
    wanted = line.strip()
    return any(candidate.strip() == wanted for candidate in Document.from_text(text).lines)


def _find_marker_region(lines: List[str], start_marker: str,
                        end_marker: Optional[str] = None) -> Optional[Tuple[int, int, bool]]:
    """
    Returns (start, end, closed) for the lines from the start marker up to
    (excluding) the end marker. Without a usable end marker the region ends
    at the end of the document; `closed` tells which case applied.
    """
    wanted = start_marker.strip()
    start = next((i for i, line in enumerate(lines) if line.strip() == wanted), None)
    if start is None:
        return None
    if end_marker:
        closing = end_marker.strip()
        for i in range(start + 1, len(lines)):
            if lines[i].strip() == closing:
                return start, i, True
    return start, len(lines), False


def extract_comment_section(text: str, start_marker: str, end_marker: Optional[str] = None,
                            include_markers: bool = False) -> str:
    """
    Body between the marker lines with one comment level removed, blank
    edges trimmed, joined with the document's newline. '' when the start
    marker is absent.
    """
    doc = Document.from_text(text)
    region = _find_marker_region(doc.lines, start_marker, end_marker)
    if region is None:
        return ""
    start, end, _ = region
    section = doc.lines[start if include_markers else start + 1:end]
    return doc.newline.join(_trim_blank_edges(_uncomment(section))).rstrip()


def remove_comment_section(text: str, start_marker: str, end_marker: Optional[str] = None) -> str:
    """Deletes the start marker and everything up to the end marker (which is kept)."""
    doc = Document.from_text(text)
    region = _find_marker_region(doc.lines, start_marker, end_marker)
    if region is None:
        return text
    start, end, _ = region
    doc.replace(start, end, [])
    return doc.to_text()


def extract_top_level_block(text: str, key: str) -> str:
    doc = Document.from_text(text)
    match = PathNavigator(doc).resolve([key])
    if match is None:
        return ""
    return doc.newline.join(doc.lines[match.index:block_end(doc, match.index)])


def _commented_region_end(lines: List[str], start: int) -> int:
    # Without an end marker the region is the unbroken run of comment lines.
    end = start + 1
    while end < len(lines) and is_comment(lines[end]):
        end += 1
    return end


def merge_template_block(text: str, root_key: str, snippet: str,
                         start_marker: Optional[str] = None, end_marker: Optional[str] = None,
                         indent_step: int = 2) -> str:
    """
    Replaces or creates the top-level `root_key` block from `snippet`:

    1. an existing top-level block is replaced in place;
    2. otherwise a commented region opened by `start_marker` is replaced by
       the marker followed by the block;
    3. otherwise the block is appended, after the start marker when one is
       given, with exactly one blank line before and after it.
    """
    block = normalize_snippet_to_root(snippet, root_key, indent_step)
    if not block:
        logger.warning("Empty template snippet ignored", root_key=root_key)
        return text

    doc = Document.from_text(text)
    match = PathNavigator(doc, indent_step).resolve([root_key])
    if match is not None:
        end = block_end(doc, match.index)
        logger.debug(f"Replacing existing '{root_key}' block at [{match.index}:{end}]")
        doc.replace(match.index, end, block)
        return doc.to_text()

    region = _find_marker_region(doc.lines, start_marker, end_marker) if start_marker else None
    if region is not None:
        start, end, closed = region
        if not closed:
            end = _commented_region_end(doc.lines, start)
        # Trailing blank lines of the region separate it from what follows.
        while end - 1 > start and is_blank(doc.lines[end - 1]):
            end -= 1
        new_lines = [doc.lines[start]] + block
        if end < len(doc.lines) and not is_blank(doc.lines[end]):
            new_lines.append("")
        logger.debug(f"Replacing marker region [{start}:{end}] with '{root_key}' block")
        doc.replace(start, end, new_lines)
        return doc.to_text()

    while doc.lines and is_blank(doc.lines[-1]):
        doc.lines.pop()
    appended: List[str] = []
    if doc.lines:
        appended.append("")
    if start_marker:
        appended.append(start_marker.strip())
    appended.extend(block)
    appended.append("")
    logger.debug(f"Appending '{root_key}' block at end of document")
    doc.lines.extend(appended)
    return doc.to_text()


def apply_template_patches(text: str, templates: List[TemplatePatch],
                           options: Optional[EngineOptions] = None) -> str:
    options = options or EngineOptions()
    for template in templates:
        text = merge_template_block(
            text,
            template.root_key,
            template.snippet,
            start_marker=template.start_marker,
            end_marker=template.end_marker,
            indent_step=options.indent_step,
        )
    logger.info(f"Applied {len(templates)} template patches.")
    return text
