"""
Read-only accessors over configuration text.

Paths are walked exactly like the patch engine walks them, so a value the
engine would overwrite is the value returned here. Any mismatch along the
way yields a not-found result instead of an error.
"""
import json
import re
from typing import Any, Dict, List, Optional

import structlog

from yamlsplice.formatters import format_bool, format_number
from yamlsplice.lines import Document, is_sequence_item, split_inline_comment
from yamlsplice.patch.navigator import KeyMatch, PathNavigator, block_end

logger = structlog.get_logger(__name__)

_INT_RE = re.compile(r"^[-+]?\d+$")
_FLOAT_RE = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?$")
_NULLS = ("", "~", "null", "Null", "NULL")
_TRUE = ("true", "True", "TRUE")
_FALSE = ("false", "False", "FALSE")

# Generic `key:` token used when keys are discovered rather than looked up.
_ANY_KEY_RE = re.compile(
    r"""(?P<key>"(?:[^"\\]|\\.)*"|'(?:[^']|'')*'|[^\s'"#][^#]*?)[ \t]*:(?=[ \t]|$)"""
)


def unquote_key(token: str) -> str:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return decode_scalar(token)
    return token


def decode_scalar(text: str) -> Any:
    """
    Decodes an inline value: booleans, null, integers and floats, double-quoted
    strings (JSON escapes), single-quoted strings ('' escapes a quote) and
    flow sequences. Anything else is returned as trimmed raw text.
    """
    text = text.strip()
    if text in _NULLS:
        return None
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        try:
            return json.loads(text)
        except ValueError:
            return text[1:-1]
    if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
        return text[1:-1].replace("''", "'")
    if text.startswith("[") and text.endswith("]"):
        return [decode_scalar(part) for part in _split_flow_items(text[1:-1])]
    return text


def _split_flow_items(body: str) -> List[str]:
    items: List[str] = []
    current = ""
    quote = None
    i = 0
    while i < len(body):
        ch = body[i]
        if quote:
            current += ch
            if ch == "\\" and quote == '"' and i + 1 < len(body):
                current += body[i + 1]
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "\"'" and not current.strip():
            quote = ch
            current += ch
        elif ch == ",":
            items.append(current)
            current = ""
        else:
            current += ch
        i += 1
    if current.strip() or items:
        items.append(current)
    return [item.strip() for item in items if item.strip()]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return format_bool(value)
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


# --- Block decoding ---

def _next_sibling(doc: Document, start: int, end: int, indent: int) -> int:
    for i in range(start, end):
        if doc.is_significant(i) and doc.indent(i) <= indent:
            return i
    return end


def _decode_block_scalar(doc: Document, start: int, end: int, indicator: str) -> str:
    body = doc.lines[start:end]
    content = [line for line in body if line.strip()]
    indent = min((len(line) - len(line.lstrip(" ")) for line in content), default=0)
    lines = [line[indent:] if line.strip() else "" for line in body]
    while lines and not lines[-1]:
        lines.pop()
    if indicator.startswith(">"):
        text = " ".join(line for line in lines if line)
    else:
        text = "\n".join(lines)
    if indicator.endswith("-"):
        return text
    return text + "\n" if text else text


def decode_node(doc: Document, start: int, end: int) -> Any:
    """Decodes the nested value held in lines [start, end)."""
    first = doc.next_significant(start, end)
    if first is None:
        return None
    indent = doc.indent(first)
    if is_sequence_item(doc.lines[first]):
        return _decode_sequence(doc, first, end, indent)
    return _decode_mapping(doc, first, end, indent)


def _decode_value(doc: Document, line: str, offset: int, index: int, end: int) -> Any:
    value, _, _ = split_inline_comment(line[offset:].strip())
    if value in ("|", "|-", "|+", ">", ">-", ">+"):
        return _decode_block_scalar(doc, index + 1, end, value)
    if value:
        return decode_scalar(value)
    return decode_node(doc, index + 1, end)


def _decode_mapping(doc: Document, start: int, end: int, indent: int) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    i = start
    while i < end:
        if not doc.is_significant(i) or doc.indent(i) != indent:
            if doc.is_significant(i) and doc.indent(i) < indent:
                break
            i += 1
            continue
        line = doc.lines[i]
        child_end = _next_sibling(doc, i + 1, end, indent)
        m = _ANY_KEY_RE.match(line, indent)
        if m and not is_sequence_item(line):
            result[unquote_key(m.group("key"))] = _decode_value(doc, line, m.end(), i, child_end)
        i = child_end
    return result


def _decode_sequence(doc: Document, start: int, end: int, indent: int) -> List[Any]:
    items: List[Any] = []
    i = start
    while i < end:
        if not doc.is_significant(i) or doc.indent(i) != indent:
            if doc.is_significant(i) and doc.indent(i) < indent:
                break
            i += 1
            continue
        line = doc.lines[i]
        item_end = _next_sibling(doc, i + 1, end, indent)
        if not is_sequence_item(line):
            i = item_end
            continue

        inline = line[indent + 1:]
        field_col = indent + 1 + (len(inline) - len(inline.lstrip(" ")))
        inline = inline.strip()
        m = _ANY_KEY_RE.match(inline)
        if not inline or inline.startswith("#"):
            items.append(decode_node(doc, i + 1, item_end))
        elif m:
            # Object item: the inline field plus its siblings under it.
            item_doc = Document(lines=[" " * field_col + inline] + doc.lines[i + 1:item_end])
            items.append(_decode_mapping(item_doc, 0, len(item_doc), field_col))
        else:
            items.append(_decode_value(doc, line, indent + 1, i, item_end))
        i = item_end
    return items


# --- Public accessors ---

def _resolve(text: str, path: List[str]):
    doc = Document.from_text(text)
    navigator = PathNavigator(doc)
    return doc, navigator, navigator.resolve(path)


def _decode_match(doc: Document, match: KeyMatch) -> Any:
    line = doc.lines[match.index]
    return _decode_value(doc, line, len(match.prefix), match.index, block_end(doc, match.index))


def get_scalar(text: str, path: List[str], default: Any = None) -> Any:
    """
    Scalar at `path`, or `default` when the path is missing or holds a
    nested block. A key with no value decodes as None.
    """
    doc, navigator, match = _resolve(text, path)
    if match is None:
        return default
    if not match.value and navigator.has_children(match):
        return default
    value = _decode_match(doc, match)
    if isinstance(value, (list, dict)):
        return default
    return value


def get_string_list(text: str, path: List[str]) -> Optional[List[str]]:
    doc, _, match = _resolve(text, path)
    if match is None:
        return None
    value = _decode_match(doc, match)
    if not isinstance(value, list):
        return None
    return [_as_text(v) for v in value]


def get_object_list(text: str, path: List[str]) -> Optional[List[Dict[str, Any]]]:
    doc, _, match = _resolve(text, path)
    if match is None:
        return None
    value = _decode_match(doc, match)
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, dict)]


def list_child_keys(text: str, path: List[str]) -> List[str]:
    """
    Immediate child keys under `path` (the root when `path` is empty), in
    document order, de-duplicated case-insensitively. Sequence items are
    skipped.
    """
    doc = Document.from_text(text)
    navigator = PathNavigator(doc)
    scope = navigator.resolve_scope(path)
    if scope is None:
        return []
    first = doc.next_significant(scope.start, scope.end)
    if first is None:
        return []
    indent = doc.indent(first)
    if scope.parent_indent is not None and indent <= scope.parent_indent:
        return []

    seen = set()
    keys: List[str] = []
    for i in range(first, scope.end):
        line = doc.lines[i]
        if not doc.is_significant(i) or doc.indent(i) != indent or is_sequence_item(line):
            continue
        m = _ANY_KEY_RE.match(line, indent)
        if not m:
            continue
        key = str(unquote_key(m.group("key"))).strip()
        if not key or key.lower() in seen:
            continue
        seen.add(key.lower())
        keys.append(key)
    return keys


def has_top_level_key(text: str, key: str) -> bool:
    return PathNavigator(Document.from_text(text)).resolve([key]) is not None
