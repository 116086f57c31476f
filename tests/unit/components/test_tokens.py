"""
Unit tests for inline token extraction.
"""

from chatdoc.dom import Action, Reference
from chatdoc.tokens import extract, extract_actions, extract_references, extract_timestamp


class TestActions:
    def test_action_on_its_own_line(self):
        actions = extract_actions("> [search]: [budget report]")
        assert actions == [Action(kind="search", params={"value": "budget report"})]
        assert actions[0].value == "budget report"

    def test_actions_in_appearance_order(self):
        text = "> [think]: [plan first]\nsome prose\n> [get]: [weather]"
        kinds = [a.kind for a in extract_actions(text)]
        assert kinds == ["think", "get"]

    def test_kind_is_case_insensitive_and_canonical(self):
        actions = extract_actions("> [FILEREAD]: [notes.md]")
        assert actions[0].kind == "fileRead"

    def test_value_is_trimmed(self):
        actions = extract_actions(">   [search] :  [  spaced out  ]  ")
        assert actions[0].value == "spaced out"

    def test_indented_action(self):
        assert len(extract_actions("   > [get]: [x]")) == 1

    def test_unknown_kind_is_not_extracted(self):
        assert extract_actions("> [dance]: [tango]") == []

    def test_action_inside_a_sentence_is_not_extracted(self):
        assert extract_actions("see > [search]: [x] above") == []

    def test_value_may_hold_a_reference(self):
        text = "> [fileRead]: [[[note.md]]]"
        assert extract_actions(text)[0].value == "[[note.md]]"
        assert extract_references(text) == [Reference(path="note.md", kind="file")]

    def test_missing_value_brackets(self):
        assert extract_actions("> [search]: budget") == []


class TestReferences:
    def test_single_reference(self):
        assert extract_references("Hello [[note.md]]") == [Reference(path="note.md")]

    def test_duplicates_are_kept(self):
        refs = extract_references("[[a.md]] then [[b.md]] then [[a.md]]")
        assert [r.path for r in refs] == ["a.md", "b.md", "a.md"]

    def test_unterminated_reference(self):
        assert extract_references("[[unterminated") == []

    def test_single_brackets_are_not_references(self):
        assert extract_references("[note.md]") == []

    def test_blank_reference_is_skipped(self):
        assert extract_references("[[   ]]") == []

    def test_url_reference_is_a_link(self):
        refs = extract_references("[[https://example.com/a]]")
        assert refs[0].kind == "link"

    def test_reference_does_not_span_lines(self):
        assert extract_references("[[first\nsecond]]") == []


class TestTimestamp:
    def test_timestamp(self):
        assert extract_timestamp("done {timestamp: 1700000000000}") == 1700000000000

    def test_first_timestamp_wins(self):
        assert extract_timestamp("{timestamp: 1} {timestamp: 2}") == 1

    def test_non_integer_timestamp(self):
        assert extract_timestamp("{timestamp: soon}") is None

    def test_no_timestamp(self):
        assert extract_timestamp("plain text") is None


class TestExtract:
    def test_extract_collects_all_kinds(self):
        text = "Hello [[note.md]]\n> [search]: [budget report]\n{timestamp: 42}"
        tokens = extract(text)
        assert [a.kind for a in tokens.actions] == ["search"]
        assert [r.path for r in tokens.references] == ["note.md"]
        assert tokens.timestamp == 42

    def test_extract_empty(self):
        tokens = extract("")
        assert tokens.actions == []
        assert tokens.references == []
        assert tokens.timestamp is None

    def test_extract_does_not_modify_text(self):
        text = "> [search]: [budget report]"
        extract(text)
        assert text == "> [search]: [budget report]"
