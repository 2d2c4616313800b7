from yamlsplice import (
    apply_patches,
    get_object_list,
    get_scalar,
    merge_template_block,
    parse_patches,
    toggle_entry,
)
from yamlsplice.diff import diff_lines
from yamlsplice.models import ChangeType, ToggleRequest


def test_full_roundtrip_workflow(proxy_config_text, key_order_options):
    """
    Tests the full lifecycle:
    1. Read current values
    2. Apply patches coming from an editing form (JSON)
    3. Read them back and check nothing else moved
    """
    # 1. Read
    assert get_scalar(proxy_config_text, ["routing", "strategy"]) == "round-robin"

    # 2. Patch, as a form submission would send them
    patches = parse_patches([
        {"path": ["routing", "strategy"], "type": "enum", "value": "fill-first"},
        {"path": ["request-retry"], "type": "number", "value": 3},
        {"path": ["openai-compatibility"], "type": "object_list",
         "value": [{"name": "local", "base-url": "http://localhost:8080/v1"}],
         "item_key_order": ["name", "base-url"]},
    ])
    result = apply_patches(proxy_config_text, patches, key_order_options)

    # 3. Verification
    assert get_scalar(result, ["routing", "strategy"]) == "fill-first"
    assert get_scalar(result, ["request-retry"]) == 3
    assert get_object_list(result, ["openai-compatibility"]) == [
        {"name": "local", "base-url": "http://localhost:8080/v1"},
    ]

    # Comments and untouched keys survive.
    assert "port: 8317 # listen port" in result
    assert "# Global OAuth model name mappings (per channel)" in result
    assert 'proxy-url: ""\nrequest-retry: 3\n' in result


def test_diff_reports_only_patched_lines(proxy_config_text):
    """
    A scalar rewrite shows up as exactly one removed and one added line,
    both at the same position.
    """
    patches = parse_patches([{"path": ["debug"], "type": "boolean", "value": True}])
    result = apply_patches(proxy_config_text, patches)

    changes = diff_lines(proxy_config_text, result)

    assert [(c.type, c.text) for c in changes] == [
        (ChangeType.REMOVED, "debug: false"),
        (ChangeType.ADDED, "debug: true"),
    ]
    assert changes[0].line_number == changes[1].line_number


def test_merge_then_toggle_then_restore(proxy_config_text):
    """
    Template merges and toggles compose: merging a block, disabling an entry
    and enabling it again leaves only the merged block as a difference.
    """
    merged = merge_template_block(
        proxy_config_text, "ampcode", 'upstream-url: "https://ampcode.com"', start_marker="# Amp Integration"
    )
    disabled = toggle_entry(merged, ToggleRequest(section_key="openai-compatibility", entry_name="local",
                                                  direction="disable"))
    assert disabled is not None
    assert get_object_list(disabled, ["openai-compatibility"])[-1]["name"] == "openrouter"

    restored = toggle_entry(disabled, ToggleRequest(section_key="openai-compatibility", entry_name="local",
                                                    direction="enable"))
    assert restored == merged

    added = [c.text for c in diff_lines(proxy_config_text, restored) if c.type == ChangeType.ADDED]
    assert added == ["", "# Amp Integration", "ampcode:", '  upstream-url: "https://ampcode.com"', ""]
    assert get_scalar(restored, ["ampcode", "upstream-url"]) == "https://ampcode.com"
