from yamlsplice.lines import Document
from yamlsplice.patch.navigator import PathNavigator, block_end

NESTED = """\
a:
  b: 1
  c:
    d: 2

  # trailing child comment
# parent comment
e: 3
"""


def test_block_end_leaves_trailing_comments_outside():
    doc = Document.from_text(NESTED)

    # Neither the child-level comment nor the column-zero one belongs to `a`.
    assert block_end(doc, 0) == 4
    assert block_end(doc, 2) == 4


def test_leaf_block_is_its_own_line():
    doc = Document.from_text(NESTED)
    assert block_end(doc, 1) == 2
    assert block_end(doc, 7) == 8


def test_resolve_nested_path():
    doc = Document.from_text(NESTED)
    match = PathNavigator(doc).resolve(["a", "c", "d"])

    assert match is not None
    assert match.index == 3
    assert match.value == "2"


def test_key_prefix_does_not_match_longer_sibling():
    """
    `foo` must not match the line `foobar:` that precedes it.
    """
    doc = Document.from_text("foobar: 1\nfoo: 2\nfoo_bar: 3\n")
    navigator = PathNavigator(doc)

    assert navigator.resolve(["foo"]).index == 1
    assert navigator.resolve(["fo"]) is None


def test_scalar_on_path_is_not_descended():
    doc = Document.from_text("a: 1\n")
    assert PathNavigator(doc).resolve(["a", "b"]) is None


def test_sequence_items_are_not_keys():
    doc = Document.from_text("list:\n  - name: a\n  - b\n")
    navigator = PathNavigator(doc)

    assert navigator.resolve(["list", "name"]) is None


def test_quoted_keys_match_plain_segments():
    doc = Document.from_text('"weird: key": 1\n\'single\': 2\n')
    navigator = PathNavigator(doc)

    assert navigator.resolve(["weird: key"]).index == 0
    assert navigator.resolve(["single"]).index == 1


def test_insertion_index_follows_order_hint():
    doc = Document.from_text("host: h\ndebug: false\nport: 1\n")
    navigator = PathNavigator(doc)
    scope = navigator.root_scope()

    assert navigator.insertion_index(scope, "tls", ["host", "port", "tls"]) == 3
    assert navigator.insertion_index(scope, "tls", ["host", "tls"]) == 1
    # No existing hinted predecessor: in front of the first significant line.
    assert navigator.insertion_index(scope, "tls", ["tls", "host"]) == 0


def test_insertion_index_skips_header_comments():
    doc = Document.from_text("# header\n\nport: 1\n")
    navigator = PathNavigator(doc)

    assert navigator.insertion_index(navigator.root_scope(), "debug", []) == 2


def test_block_end_keeps_comments_nested_deeper_than_children():
    doc = Document.from_text("a:\n  b:\n    c: 1\n    # deep note\nd: 1\n")

    assert block_end(doc, 0) == 4
    assert block_end(doc, 1) == 3
