from typing import List, Optional, Tuple

import structlog

from yamlsplice.formatters import format_key, format_object_list, format_scalar, format_string_list
from yamlsplice.lines import Document
from yamlsplice.models import DeletePatch, EngineOptions, ObjectListPatch, Patch, ScalarPatch, StringListPatch
from yamlsplice.patch.navigator import EMPTY_PLACEHOLDERS, KeyMatch, PathNavigator, Scope, block_end

logger = structlog.get_logger(__name__)


class PatchEngine:
    """
    Applies typed patches to configuration text without re-rendering it.
    Only lines on a matched path are touched; everything else, comments
    included, is carried through byte for byte.

    Never raises on malformed text: a missing chain of keys is created,
    and deleting a missing key does nothing.
    """
    def __init__(self, text: str, options: Optional[EngineOptions] = None):
        self.options = options or EngineOptions()
        self.doc = Document.from_text(text)
        self.navigator = PathNavigator(self.doc, indent_step=self.options.indent_step)

    @property
    def step(self) -> int:
        return self.options.indent_step

    def apply_patches(self, patches: List[Patch]) -> Tuple[int, int]:
        """
        Applies patches in order. Returns (applied, skipped) where skipped
        counts empty paths and deletes of keys that do not exist.
        """
        for p in patches:
            logger.debug(f"Patch: {p.type} {'.'.join(p.path)!r}")

        applied = 0
        skipped = 0
        for patch in patches:
            if self._apply_single_patch(patch):
                applied += 1
            else:
                skipped += 1

        logger.info(f"Applied {applied} patches.", skipped=skipped)
        return applied, skipped

    def _apply_single_patch(self, patch: Patch) -> bool:
        path = list(patch.path)
        if not path:
            logger.warning("Skipping patch with empty path", type=patch.type)
            return False

        scope = self.navigator.root_scope()
        for depth, key in enumerate(path):
            is_last = depth == len(path) - 1
            match = self.navigator.find_child(scope, key)

            if is_last:
                if match is not None:
                    self._apply_at(match, patch)
                    return True
                if isinstance(patch, DeletePatch):
                    logger.debug(f"Delete target {'.'.join(path)!r} not present.")
                    return False
                self._insert_value(scope, path[:depth], key, patch)
                return True

            if match is not None and not self.navigator.can_descend(match):
                if isinstance(patch, DeletePatch):
                    return False
                if match.value in EMPTY_PLACEHOLDERS:
                    self.doc.lines[match.index] = match.prefix + match.suffix
                    match.value = ""
                else:
                    # A scalar where a mapping was expected is left untouched;
                    # the chain is created as a new sibling instead.
                    logger.warning(
                        f"Key '{key}' holds a scalar; creating a new sibling chain.",
                        path=path, depth=depth,
                    )
                    match = None

            if match is None:
                if isinstance(patch, DeletePatch):
                    return False
                scope = self._insert_declaration(scope, path[:depth], key)
                continue

            scope = self.navigator.child_scope(match)

        return False

    # --- Writers ---

    def _apply_at(self, match: KeyMatch, patch: Patch) -> None:
        end = block_end(self.doc, match.index)

        if isinstance(patch, DeletePatch):
            logger.debug(f"Deleting lines [{match.index}:{end}]")
            self.doc.replace(match.index, end, [])
            return

        if isinstance(patch, ScalarPatch):
            new_line = f"{match.prefix} {format_scalar(patch.value, patch.type)}{match.suffix}"
            # A key that held a nested block collapses to the single line.
            self.doc.replace(match.index, end, [new_line])
            return

        if end > match.index + 1:
            item_indent = self.navigator.child_indent(self.navigator.child_scope(match))
        else:
            item_indent = match.indent + self.step
        new_lines = self._format_list(patch, match.prefix, item_indent, match.suffix)
        self.doc.replace(match.index, end, new_lines)

    def _format_list(self, patch: Patch, declaration: str, item_indent: int, suffix: str = "") -> List[str]:
        if isinstance(patch, StringListPatch):
            return format_string_list(declaration, patch.value, item_indent, suffix=suffix)
        if isinstance(patch, ObjectListPatch):
            return format_object_list(
                declaration, patch.value, item_indent,
                step=self.step, key_order=patch.item_key_order, suffix=suffix,
            )
        raise TypeError(f"Unsupported patch type: {patch.type}")

    def _insert_value(self, scope: Scope, parent_path: List[str], key: str, patch: Patch) -> None:
        indent = self.navigator.child_indent(scope)
        index = self.navigator.insertion_index(scope, key, self.options.order_for(parent_path))
        declaration = f"{' ' * indent}{format_key(key)}:"

        if isinstance(patch, ScalarPatch):
            new_lines = [f"{declaration} {format_scalar(patch.value, patch.type)}"]
        else:
            new_lines = self._format_list(patch, declaration, indent + self.step)

        logger.debug(f"Inserting {len(new_lines)} line(s) for '{key}' at {index}")
        self.doc.insert(index, new_lines)

    def _insert_declaration(self, scope: Scope, parent_path: List[str], key: str) -> Scope:
        indent = self.navigator.child_indent(scope)
        index = self.navigator.insertion_index(scope, key, self.options.order_for(parent_path))
        logger.debug(f"Creating intermediate key '{key}' at {index}")
        self.doc.insert(index, [f"{' ' * indent}{format_key(key)}:"])
        return Scope(start=index + 1, end=index + 1, parent_indent=indent)

    def to_text(self) -> str:
        return self.doc.to_text()


def apply_patches(text: str, patches: List[Patch], options: Optional[EngineOptions] = None) -> str:
    """
    Convenience wrapper: returns `text` with every patch applied, keeping its
    newline convention and trailing-newline presence.
    """
    engine = PatchEngine(text, options)
    engine.apply_patches(patches)
    return engine.to_text()
