from yamlsplice.diff import diff_lines, render_changes
from yamlsplice.models import ChangeType, LineChange


def test_changed_and_appended_lines():
    changes = diff_lines("a\nb\nc\n", "a\nB\nc\nd\n")

    removed = [(c.line_number, c.text) for c in changes if c.type == ChangeType.REMOVED]
    added = [(c.line_number, c.text) for c in changes if c.type == ChangeType.ADDED]

    assert removed == [(2, "b")]
    assert added == [(2, "B"), (4, "d")]


def test_newline_convention_is_ignored():
    assert diff_lines("a: 1\r\nb: 2\r\n", "a: 1\nb: 2\n") == []


def test_blank_line_insertion_is_reported():
    changes = diff_lines("a\nb\n", "a\n\nb\n")
    assert changes == [LineChange(type=ChangeType.ADDED, line_number=2, text="")]


def test_render_changes():
    changes = [
        LineChange(type=ChangeType.REMOVED, line_number=3, text="port: 1"),
        LineChange(type=ChangeType.ADDED, line_number=3, text="port: 2"),
    ]
    assert render_changes(changes) == "[-] 3: port: 1\n[+] 3: port: 2"
    assert render_changes([]) == ""
