import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from yamlsplice.diff import diff_lines, render_changes
from yamlsplice.lines import Document
from yamlsplice.log import configure_logging
from yamlsplice.models import EngineOptions, TemplatePatch, ToggleDirection, ToggleRequest, parse_patches
from yamlsplice.patch.engine import PatchEngine
from yamlsplice.patch.navigator import PathNavigator
from yamlsplice.query import get_object_list, get_scalar, get_string_list, list_child_keys
from yamlsplice.template import apply_template_patches
from yamlsplice.toggle import list_commented_entry_names, toggle_entry

_NOT_FOUND = object()

# --- Helper Utilities ---

def _read_text(path: Path) -> str:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    # newline="" keeps CRLF intact so the engine can reproduce it.
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def _write_text(text: str, output: Optional[Path]) -> None:
    if output:
        with open(output, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        print(f"Saved to {output}", file=sys.stderr)
    else:
        sys.stdout.write(text)


def _load_options(args) -> EngineOptions:
    options = EngineOptions()
    if getattr(args, "options", None):
        try:
            options = EngineOptions.model_validate_json(_read_text(args.options))
        except ValidationError as e:
            print(f"Error parsing options: {e}", file=sys.stderr)
            sys.exit(1)
    if getattr(args, "indent_step", None):
        options = options.model_copy(update={"indent_step": args.indent_step})
    return options


def _load_patches(path: Path):
    try:
        return parse_patches(json.loads(_read_text(path)))
    except (ValueError, ValidationError) as e:
        print(f"Error parsing JSON patches: {e}", file=sys.stderr)
        sys.exit(1)


def _has_mapping(text: str, path: List[str]) -> bool:
    return PathNavigator(Document.from_text(text)).resolve_scope(path) is not None


def _print_changes(original: str, modified: str) -> None:
    changes = diff_lines(original, modified)
    print(f"Found {len(changes)} changed lines:", file=sys.stderr)
    if changes:
        print(render_changes(changes), file=sys.stderr)

# --- Command Handlers ---

def handle_get(args):
    text = _read_text(args.input)
    path: List[str] = args.path

    if args.keys:
        result = list_child_keys(text, path)
        if not result and not _has_mapping(text, path):
            result = _NOT_FOUND
    elif args.list:
        result = get_string_list(text, path)
    elif args.objects:
        result = get_object_list(text, path)
    else:
        result = get_scalar(text, path, default=_NOT_FOUND)

    if result is _NOT_FOUND or (result is None and (args.list or args.objects)):
        print(f"Not found: {'.'.join(path)}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(result, indent=2, ensure_ascii=False))


def handle_patch(args):
    text = _read_text(args.input)
    patches = _load_patches(args.patches)
    options = _load_options(args)

    print(f"Applying {len(patches)} patches...", file=sys.stderr)
    engine = PatchEngine(text, options)
    applied, skipped = engine.apply_patches(patches)
    result = engine.to_text()

    if args.diff:
        _print_changes(text, result)
    _write_text(result, args.output)
    print(f"Stats: {applied} applied, {skipped} skipped.", file=sys.stderr)
    if skipped > 0:
        sys.exit(1)


def handle_merge(args):
    text = _read_text(args.input)
    snippet = _read_text(args.snippet)
    options = _load_options(args)

    template = TemplatePatch(
        root_key=args.root_key,
        snippet=snippet,
        start_marker=args.start_marker,
        end_marker=args.end_marker,
    )
    result = apply_template_patches(text, [template], options)
    if args.diff:
        _print_changes(text, result)
    _write_text(result, args.output)


def handle_toggle(args):
    text = _read_text(args.input)
    request = ToggleRequest(
        section_key=args.section,
        entry_name=args.name,
        direction=ToggleDirection(args.direction),
    )
    result = toggle_entry(text, request, indent_step=args.indent_step or 2)
    if result is None:
        print(f"Error: no matching entry '{args.name}' to {args.direction} in '{args.section}'", file=sys.stderr)
        sys.exit(1)
    _write_text(result, args.output)


def handle_commented(args):
    text = _read_text(args.input)
    for name in list_commented_entry_names(text, args.section, indent_step=args.indent_step or 2):
        print(name)


def handle_diff(args):
    original = _read_text(args.original)
    modified = _read_text(args.modified)
    changes = diff_lines(original, modified)

    if args.json:
        print(json.dumps([c.model_dump(mode="json") for c in changes], indent=2))
    else:
        print(f"Found {len(changes)} changed lines:", file=sys.stderr)
        if changes:
            print(render_changes(changes))

# --- Main Entrypoint ---

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yamlsplice",
        description="Format-preserving edits for hand-maintained YAML configuration files"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    # Command: get
    p_get = subparsers.add_parser("get", help="Read a value by key path")
    p_get.add_argument("input", type=Path, help="Configuration file")
    p_get.add_argument("path", nargs="+", help="Key path segments")
    mode = p_get.add_mutually_exclusive_group()
    mode.add_argument("--list", action="store_true", help="Read a list of strings")
    mode.add_argument("--objects", action="store_true", help="Read a list of objects")
    mode.add_argument("--keys", action="store_true", help="List child keys")
    p_get.set_defaults(func=handle_get)

    # Command: patch
    p_patch = subparsers.add_parser("patch", help="Apply JSON patches")
    p_patch.add_argument("input", type=Path, help="Configuration file")
    p_patch.add_argument("patches", type=Path, help="JSON list of patches")
    p_patch.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_patch.add_argument("--options", type=Path, help="JSON engine options (indent_step, key_order)")
    p_patch.add_argument("--indent-step", type=int, help="Spaces per nesting level")
    p_patch.add_argument("--diff", action="store_true", help="Print changed lines to stderr")
    p_patch.set_defaults(func=handle_patch)

    # Command: merge
    p_merge = subparsers.add_parser("merge", help="Replace or create a top-level block from a snippet")
    p_merge.add_argument("input", type=Path, help="Configuration file")
    p_merge.add_argument("root_key", help="Top-level key of the block")
    p_merge.add_argument("snippet", type=Path, help="File holding the snippet")
    p_merge.add_argument("--start-marker", help="Comment line opening a template region")
    p_merge.add_argument("--end-marker", help="Comment line closing a template region")
    p_merge.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_merge.add_argument("--options", type=Path, help="JSON engine options")
    p_merge.add_argument("--indent-step", type=int, help="Spaces per nesting level")
    p_merge.add_argument("--diff", action="store_true", help="Print changed lines to stderr")
    p_merge.set_defaults(func=handle_merge)

    # Command: toggle
    p_toggle = subparsers.add_parser("toggle", help="Comment out or restore a sequence entry by name")
    p_toggle.add_argument("input", type=Path, help="Configuration file")
    p_toggle.add_argument("section", help="Top-level sequence key")
    p_toggle.add_argument("name", help="Value of the entry's name field")
    p_toggle.add_argument("direction", choices=[d.value for d in ToggleDirection])
    p_toggle.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")
    p_toggle.add_argument("--indent-step", type=int, help="Item indentation below the section key")
    p_toggle.set_defaults(func=handle_toggle)

    # Command: commented
    p_commented = subparsers.add_parser("commented", help="List disabled entry names of a section")
    p_commented.add_argument("input", type=Path, help="Configuration file")
    p_commented.add_argument("section", help="Top-level sequence key")
    p_commented.add_argument("--indent-step", type=int, help="Item indentation below the section key")
    p_commented.set_defaults(func=handle_commented)

    # Command: diff
    p_diff = subparsers.add_parser("diff", help="Compare two versions of a file line by line")
    p_diff.add_argument("original", type=Path, help="Original file")
    p_diff.add_argument("modified", type=Path, help="Modified file")
    p_diff.add_argument("--json", action="store_true", help="Output raw JSON changes")
    p_diff.set_defaults(func=handle_diff)

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
