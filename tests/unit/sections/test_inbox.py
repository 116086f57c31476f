"""
Unit tests for Inbox section strategy.
"""

import pytest

from chatdoc.dom import Card, CardMetadata, IdAllocator, UrlPreview
from chatdoc.sections.base import ParseContext
from chatdoc.sections.inbox import InboxStrategy


@pytest.fixture
def strategy():
    return InboxStrategy()


@pytest.fixture
def ctx():
    return ParseContext(ids=IdAllocator(), default_timestamp=99)


class TestInboxParsing:
    """Test parsing card blocks."""

    def test_parse_empty(self, strategy, ctx):
        """Empty block gives an empty inbox."""
        assert strategy.parse("", ctx).cards == []

    def test_parse_cards_with_headers(self, strategy, ctx):
        block = "### Card [id: card-1]\n\nfirst idea\n\n### Card [id: card-2]\n\nsecond idea\n"
        cards = strategy.parse(block, ctx).cards
        assert [c.id for c in cards] == ["card-1", "card-2"]
        assert [c.content for c in cards] == ["first idea", "second idea"]
        assert all(c.kind == "text" for c in cards)

    def test_url_kind_is_inferred(self, strategy, ctx):
        cards = strategy.parse("### Card [id: c]\n\nhttps://example.com/post", ctx).cards
        assert cards[0].kind == "url"

    def test_www_prefix_is_a_url(self, strategy, ctx):
        cards = strategy.parse("### Card [id: c]\n\nwww.example.com", ctx).cards
        assert cards[0].kind == "url"

    def test_kind_tag(self, strategy, ctx):
        cards = strategy.parse("### Card [id: c] {kind: image}\n\nphoto of the whiteboard", ctx).cards
        assert cards[0].kind == "image"

    def test_unknown_kind_tag_falls_back_to_inference(self, strategy, ctx):
        cards = strategy.parse("### Card [id: c] {kind: video}\n\nclip", ctx).cards
        assert cards[0].kind == "text"

    def test_missing_id_is_generated(self, strategy, ctx):
        cards = strategy.parse("### Card\n\nidea", ctx).cards
        assert cards[0].id.startswith("card-")

    def test_metadata_fields(self, strategy, ctx):
        block = (
            "### Card [id: c]\n\n"
            "https://example.com/post\n"
            "created:: 1700000000000\n"
            "source:: clipboard\n"
            "title:: Example post\n"
            "description:: A short summary\n"
        )
        card = strategy.parse(block, ctx).cards[0]
        assert card.content == "https://example.com/post"
        assert card.metadata == CardMetadata(
            created=1700000000000,
            source="clipboard",
            preview=UrlPreview(title="Example post", description="A short summary"),
        )

    def test_invalid_created_alone_gives_no_metadata(self, strategy, ctx):
        card = strategy.parse("### Card [id: c]\n\nidea\ncreated:: soon", ctx).cards[0]
        assert card.content == "idea"
        assert card.metadata is None

    def test_field_followed_by_text_is_content(self, strategy, ctx):
        card = strategy.parse("### Card [id: c]\n\nsource:: memory\nand more", ctx).cards[0]
        assert card.content == "source:: memory\nand more"
        assert card.metadata is None

    def test_text_before_first_card_is_dropped(self, strategy, ctx):
        cards = strategy.parse("stray line\n### Card [id: c]\n\nidea", ctx).cards
        assert len(cards) == 1
        assert cards[0].content == "idea"

    def test_card_header_in_code_fence_is_content(self, strategy, ctx):
        block = "### Card [id: c]\n\n```\n### Card [id: d]\n```"
        cards = strategy.parse(block, ctx).cards
        assert len(cards) == 1
        assert "### Card [id: d]" in cards[0].content


class TestDegradedInbox:
    """Inboxes written by hand without card headers."""

    def test_one_card_per_paragraph(self, strategy, ctx):
        block = "first idea\n\nsecond idea\nspans two lines\n\nhttps://example.com\nsource:: web\n"
        cards = strategy.parse(block, ctx).cards
        assert [c.content for c in cards] == [
            "first idea",
            "second idea\nspans two lines",
            "https://example.com",
        ]
        assert cards[2].kind == "url"
        assert cards[2].metadata == CardMetadata(source="web")

    def test_ids_are_generated_and_unique(self, strategy, ctx):
        cards = strategy.parse("a\n\nb\n\nc", ctx).cards
        ids = [c.id for c in cards]
        assert len(set(ids)) == 3
        assert all(i.startswith("card-") for i in ids)


class TestInboxRendering:
    def test_render_inferred_kind_has_no_tag(self, strategy):
        card = Card(id="card-1", content="https://example.com", kind="url")
        assert strategy.render_card(card) == "### Card [id: card-1]\n\nhttps://example.com"

    def test_render_kind_tag_when_not_inferable(self, strategy):
        card = Card(id="card-1", content="whiteboard", kind="image")
        assert strategy.render_card(card).startswith("### Card [id: card-1] {kind: image}")

    def test_render_metadata_lines(self, strategy):
        card = Card(
            id="card-1",
            content="https://example.com",
            kind="url",
            metadata=CardMetadata(
                created=5,
                preview=UrlPreview(title="T", description="", thumbnail="thumb.png"),
            ),
        )
        assert strategy.render_card(card).split("\n")[2:] == [
            "https://example.com",
            "created:: 5",
            "title:: T",
            "description::",
            "thumbnail:: thumb.png",
        ]

    def test_render_separates_cards_with_blank_line(self, strategy):
        section = strategy.empty()
        section.cards = [Card(id="a", content="one"), Card(id="b", content="two")]
        assert strategy.render(section) == "### Card [id: a]\n\none\n\n### Card [id: b]\n\ntwo"

    def test_rendered_card_parses_back(self, strategy, ctx):
        card = Card(
            id="card-1",
            content="photo",
            kind="image",
            metadata=CardMetadata(created=7, source="camera"),
        )
        assert strategy.parse(strategy.render_card(card), ctx).cards == [card]
