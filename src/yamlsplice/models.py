from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class ScalarType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class ScalarPatch(BaseModel):
    """
    Sets a single scalar value. Only the key's own line is rewritten;
    an inline trailing comment on that line survives.
    """
    path: List[str]
    type: Literal["string", "number", "boolean", "enum"]
    value: Union[bool, int, float, str]


class StringListPatch(BaseModel):
    path: List[str]
    type: Literal["string_list"] = "string_list"
    value: List[str] = Field(default_factory=list)


class ObjectListPatch(BaseModel):
    path: List[str]
    type: Literal["object_list"] = "object_list"
    value: List[Dict[str, Any]] = Field(default_factory=list)

    item_key_order: Optional[List[str]] = Field(
        None,
        description="Field order for each emitted item. Fields not listed follow in first-seen order."
    )


class DeletePatch(BaseModel):
    path: List[str]
    type: Literal["delete"] = "delete"


Patch = Annotated[
    Union[ScalarPatch, StringListPatch, ObjectListPatch, DeletePatch],
    Field(discriminator="type"),
]

_patch_list_adapter = TypeAdapter(List[Patch])


def parse_patches(data: Any) -> List[Patch]:
    """
    Validates a JSON-like list of patch dicts. Raises pydantic.ValidationError
    on an unknown type or a value of the wrong shape.
    """
    return _patch_list_adapter.validate_python(data)


class EngineOptions(BaseModel):
    indent_step: int = Field(2, ge=1, description="Spaces per nesting level for newly written lines.")

    key_order: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Canonical sibling order per parent path (segments joined with '.', '' for the root). "
                    "Only consulted when a key has to be inserted."
    )

    def order_for(self, parent_path: List[str]) -> List[str]:
        return self.key_order.get(".".join(parent_path), [])


class TemplatePatch(BaseModel):
    """
    Replaces (or creates) a whole top-level block from a free-form snippet.
    """
    root_key: str
    snippet: str
    start_marker: Optional[str] = None
    end_marker: Optional[str] = None


class ToggleDirection(str, Enum):
    DISABLE = "disable"
    ENABLE = "enable"


class ToggleRequest(BaseModel):
    section_key: str
    entry_name: str
    direction: ToggleDirection


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"


class LineChange(BaseModel):
    type: ChangeType
    line_number: int = Field(..., description="1-based line number in the original (removed) or modified (added) text.")
    text: str
