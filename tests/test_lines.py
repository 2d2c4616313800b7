from yamlsplice.lines import (
    Document,
    LineKind,
    classify,
    count_indent,
    split_inline_comment,
    strip_comment_markers,
)


def test_crlf_document_round_trips():
    text = "a: 1\r\nb:\r\n  c: 2\r\n"
    doc = Document.from_text(text)

    assert doc.newline == "\r\n"
    assert doc.trailing_newline is True
    assert doc.lines == ["a: 1", "b:", "  c: 2"]
    assert doc.to_text() == text


def test_missing_trailing_newline_is_preserved():
    doc = Document.from_text("a: 1\nb: 2")
    assert doc.trailing_newline is False
    assert doc.to_text() == "a: 1\nb: 2"


def test_empty_document():
    doc = Document.from_text("")
    assert doc.lines == []
    assert doc.to_text() == ""


def test_classification():
    assert classify("   ") == LineKind.BLANK
    assert classify("  # note") == LineKind.COMMENT
    assert classify("key: value # note") == LineKind.CONTENT
    assert count_indent("    - item") == 4


def test_hash_inside_quotes_is_not_a_comment():
    assert split_inline_comment('"a # b" # c') == ('"a # b"', " ", "# c")
    assert split_inline_comment("'it''s # x'   # real") == ("'it''s # x'", "   ", "# real")
    assert split_inline_comment('"esc \\" # still"  # c') == ('"esc \\" # still"', "  ", "# c")


def test_hash_needs_leading_whitespace():
    assert split_inline_comment("http://host/path#frag") == ("http://host/path#frag", "", "")
    assert split_inline_comment("# only comment") == ("", "", "# only comment")


def test_apostrophe_inside_plain_value_does_not_open_quote():
    assert split_inline_comment("it's fine # note") == ("it's fine", " ", "# note")


def test_strip_repeated_comment_markers():
    assert strip_comment_markers("# #   - name: a") == "  - name: a"
    assert strip_comment_markers("#   key: v") == "  key: v"
    assert strip_comment_markers("  # indented stays") == "  # indented stays"
