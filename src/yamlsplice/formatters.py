import json
import math
import re
from typing import Any, Dict, Iterable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

_PLAIN_KEY_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-/ ]*$")


def format_key(key: str) -> str:
    """Keys that are not safe plain scalars are written double-quoted."""
    if _PLAIN_KEY_RE.match(key) and key == key.strip():
        return key
    return json.dumps(key, ensure_ascii=False)


def format_string(value: Any) -> str:
    return json.dumps("" if value is None else str(value), ensure_ascii=False)


def format_bool(value: Any) -> str:
    if isinstance(value, str):
        return "true" if value.strip().lower() in ("true", "1", "yes", "on") else "false"
    return "true" if value else "false"


def format_number(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric value {value!r} written as 0")
        return "0"
    if not math.isfinite(number):
        return "0"
    if number.is_integer():
        return str(int(number))
    return repr(number)


def format_scalar(value: Any, scalar_type: str) -> str:
    """
    Renders a value according to its declared patch type: booleans as
    true/false, numbers as finite decimals ("0" otherwise), strings and
    enums as double-quoted escaped literals.
    """
    if scalar_type == "boolean":
        return format_bool(value)
    if scalar_type == "number":
        return format_number(value)
    return format_string(value)


def format_value(value: Any) -> str:
    """Scalar rendering driven by the Python type of `value`."""
    if isinstance(value, bool):
        return format_bool(value)
    if isinstance(value, (int, float)):
        return format_number(value)
    return format_string(value)


def ordered_fields(item: Dict[str, Any], key_order: Optional[Iterable[str]] = None) -> List[str]:
    """
    Populated field names of `item`: the explicit order first, then the
    remaining keys as they were first seen. Fields holding None are dropped.
    """
    ordered: List[str] = []
    for key in key_order or []:
        if key in item and key not in ordered and item[key] is not None:
            ordered.append(key)
    for key, value in item.items():
        if key not in ordered and value is not None:
            ordered.append(key)
    return ordered


def _format_field(key: str, value: Any, indent: int, step: int) -> List[str]:
    pad = " " * indent
    name = format_key(str(key))

    if isinstance(value, dict):
        populated = ordered_fields(value)
        if not populated:
            return [f"{pad}{name}: {{}}"]
        lines = [f"{pad}{name}:"]
        for child in populated:
            lines.extend(_format_field(child, value[child], indent + step, step))
        return lines

    if isinstance(value, (list, tuple)):
        if not value:
            return [f"{pad}{name}: []"]
        return [f"{pad}{name}:"] + _format_sequence(value, indent + step, step)

    return [f"{pad}{name}: {format_value(value)}"]


def _format_object_item(item: Dict[str, Any], item_indent: int, step: int,
                        key_order: Optional[Iterable[str]] = None) -> List[str]:
    populated = ordered_fields(item, key_order)
    if not populated:
        return [f"{' ' * item_indent}- {{}}"]

    # Fields sit under the first character after "- ".
    field_indent = item_indent + 2
    lines: List[str] = []
    for key in populated:
        lines.extend(_format_field(key, item[key], field_indent, step))
    lines[0] = f"{' ' * item_indent}- {lines[0][field_indent:]}"
    return lines


def _format_sequence(values: Iterable[Any], item_indent: int, step: int,
                     key_order: Optional[Iterable[str]] = None) -> List[str]:
    pad = " " * item_indent
    lines: List[str] = []
    for value in values:
        if isinstance(value, dict):
            lines.extend(_format_object_item(value, item_indent, step, key_order))
        elif isinstance(value, (list, tuple)):
            if not value:
                lines.append(f"{pad}- []")
                continue
            nested = _format_sequence(value, item_indent + 2, step)
            nested[0] = f"{pad}- {nested[0][item_indent + 2:]}"
            lines.extend(nested)
        else:
            lines.append(f"{pad}- {format_value(value)}")
    return lines


def format_string_list(declaration: str, values: List[str], item_indent: int,
                       suffix: str = "") -> List[str]:
    """
    `declaration` is the key line up to and including its colon. An empty
    list stays inline as `key: []`; otherwise one quoted item per line.
    """
    if not values:
        return [f"{declaration} []{suffix}"]
    pad = " " * item_indent
    return [f"{declaration}{suffix}"] + [f"{pad}- {format_string(v)}" for v in values]


def format_object_list(declaration: str, items: List[Dict[str, Any]], item_indent: int,
                       step: int = 2, key_order: Optional[List[str]] = None,
                       suffix: str = "") -> List[str]:
    if not items:
        return [f"{declaration} []{suffix}"]
    return [f"{declaration}{suffix}"] + _format_sequence(items, item_indent, step, key_order)
