from yamlsplice.models import (
    DeletePatch,
    EngineOptions,
    ObjectListPatch,
    ScalarPatch,
    StringListPatch,
    TemplatePatch,
    ToggleDirection,
    ToggleRequest,
    parse_patches,
)
from yamlsplice.patch import PatchEngine, apply_patches
from yamlsplice.query import get_object_list, get_scalar, get_string_list, has_top_level_key, list_child_keys
from yamlsplice.template import apply_template_patches, merge_template_block
from yamlsplice.toggle import (
    disable_entry,
    enable_entry,
    is_entry_commented,
    list_commented_entry_names,
    toggle_entry,
)

__version__ = "0.1.0"
