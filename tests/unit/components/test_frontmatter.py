"""
Unit tests for the frontmatter codec.
"""

import logging

from chatdoc.dom import Metadata
from chatdoc.frontmatter import parse_frontmatter, parse_tags, render_frontmatter


def fixed_clock():
    return 1234


class TestParse:
    def test_all_keys(self):
        block = "title: Demo\ntype: chat\ntimestamp: 1700000000000\ntags: a, b\nid: doc-1"
        result = parse_frontmatter(block)
        assert result.metadata == Metadata(
            title="Demo", type="chat", timestamp=1700000000000, tags=["a", "b"]
        )
        assert result.document_id == "doc-1"

    def test_missing_keys_take_defaults(self):
        result = parse_frontmatter("", now=fixed_clock)
        assert result.metadata.title == "New Chat"
        assert result.metadata.type == "chat"
        assert result.metadata.timestamp == 1234
        assert result.metadata.tags == []
        assert result.document_id is None

    def test_quoted_title(self):
        result = parse_frontmatter('title: "Legacy: notes"')
        assert result.metadata.title == "Legacy: notes"

    def test_value_may_contain_colons(self):
        result = parse_frontmatter("title: a: b: c")
        assert result.metadata.title == "a: b: c"

    def test_unknown_keys_are_ignored(self):
        result = parse_frontmatter("owner: someone\ntitle: Demo")
        assert result.metadata.title == "Demo"

    def test_unknown_type_keeps_default(self, caplog):
        with caplog.at_level(logging.WARNING, logger="chatdoc"):
            result = parse_frontmatter("type: meeting")
        assert result.metadata.type == "chat"
        assert "unknown document type" in caplog.text

    def test_flow_type(self):
        assert parse_frontmatter("type: flow").metadata.type == "flow"

    def test_bad_timestamp_uses_clock(self, caplog):
        with caplog.at_level(logging.WARNING, logger="chatdoc"):
            result = parse_frontmatter("timestamp: yesterday", now=fixed_clock)
        assert result.metadata.timestamp == 1234
        assert "unparsable timestamp" in caplog.text

    def test_blank_id_is_absent(self):
        assert parse_frontmatter("id:").document_id is None

    def test_configured_default_title(self, monkeypatch):
        from chatdoc.config import reset_config

        monkeypatch.setenv("CHATDOC_DEFAULT_TITLE", "Scratch")
        reset_config()
        assert parse_frontmatter("").metadata.title == "Scratch"


class TestTags:
    def test_tags_are_trimmed(self):
        assert parse_tags(" a ,b,  c ") == ["a", "b", "c"]

    def test_empty_items_are_dropped(self):
        assert parse_tags("a,,b, ") == ["a", "b"]

    def test_duplicates_are_kept(self):
        assert parse_tags("a, b, a") == ["a", "b", "a"]

    def test_empty_value(self):
        assert parse_tags("") == []


class TestRender:
    def test_fixed_key_order(self):
        metadata = Metadata(title="Demo", type="chat", timestamp=5, tags=["a", "b"])
        assert render_frontmatter(metadata, "doc-1") == (
            "---\ntitle: Demo\ntype: chat\ntimestamp: 5\ntags: a, b\nid: doc-1\n---"
        )

    def test_empty_tags_are_omitted(self):
        metadata = Metadata(title="Demo", type="chat", timestamp=5)
        assert "tags" not in render_frontmatter(metadata, "doc-1")

    def test_padded_title_is_quoted(self):
        metadata = Metadata(title=" padded ", timestamp=5)
        text = render_frontmatter(metadata, "doc-1")
        assert 'title: " padded "' in text
        block = text.split("\n")[1:-1]
        assert parse_frontmatter("\n".join(block)).metadata.title == " padded "

    def test_quoted_looking_title_survives(self):
        metadata = Metadata(title='"quoted"', timestamp=5)
        block = "\n".join(render_frontmatter(metadata, "doc-1").split("\n")[1:-1])
        assert parse_frontmatter(block).metadata.title == '"quoted"'

    def test_empty_title(self):
        metadata = Metadata(title="", timestamp=5)
        assert "title:\n" in render_frontmatter(metadata, "doc-1")
