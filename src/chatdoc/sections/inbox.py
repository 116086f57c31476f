"""
Inbox section strategy.

Cards waiting for triage, one entry per card:

    ### Card [id: card-3f9c0a1b2d4e]

    https://example.com/post
    created:: 1700000000000
    source:: clipboard
    title:: Example post
    description:: A short summary

The kind is inferred from the content (URL-like content is a 'url' card);
a '{kind: image}' header tag records a kind that cannot be inferred.
Hand-written inboxes without card headers are read one card per paragraph.
"""

from __future__ import annotations

import logging
import re

from ..dom import CARD_KINDS, Card, CardMetadata, InboxSection, UrlPreview, infer_card_kind
from .base import (
    LineEscaper,
    ParseContext,
    SectionStrategy,
    id_tag,
    join_body,
    kind_tag,
    parse_int,
    peel_fields,
    registry,
    split_entries,
    split_paragraphs,
)

logger = logging.getLogger(__name__)

CARD_HEADER_PATTERN = re.compile(r"^###[ \t]+Card\b(.*)$")

CARD_FIELDS = ("created", "source", "title", "description", "thumbnail")

# content lines that would read back as a card header, fence or metadata field
CONTENT_ESCAPER = LineEscaper(r"(?:created|source|title|description|thumbnail)::")


def _card_metadata(fields: dict[str, str]) -> CardMetadata | None:
    preview = None
    if any(key in fields for key in ("title", "description", "thumbnail")):
        preview = UrlPreview(
            title=fields.get("title", ""),
            description=fields.get("description", ""),
            thumbnail=fields.get("thumbnail"),
        )
    created = parse_int(fields.get("created"))
    source = fields.get("source")
    if created is None and source is None and preview is None:
        return None
    return CardMetadata(created=created, source=source, preview=preview)


def _metadata_lines(metadata: CardMetadata | None) -> list[str]:
    if metadata is None:
        return []
    lines = []
    if metadata.created is not None:
        lines.append(f"created:: {metadata.created}")
    if metadata.source is not None:
        lines.append(f"source:: {metadata.source}".rstrip())
    if metadata.preview is not None:
        lines.append(f"title:: {metadata.preview.title}".rstrip())
        lines.append(f"description:: {metadata.preview.description}".rstrip())
        if metadata.preview.thumbnail is not None:
            lines.append(f"thumbnail:: {metadata.preview.thumbnail}".rstrip())
    return lines


class InboxStrategy(SectionStrategy):
    """Inbox cards, header-delimited."""

    @property
    def name(self) -> str:
        return "Inbox"

    @property
    def attribute(self) -> str:
        return "inbox"

    @property
    def section_type(self) -> type:
        return InboxSection

    def parse(self, block: str, ctx: ParseContext) -> InboxSection:
        preamble, entries = split_entries(block, CARD_HEADER_PATTERN)

        if not entries:
            # No card headers: degraded, one card per paragraph
            cards = [
                self._build_card(None, lines, ctx)
                for lines in split_paragraphs(block)
            ]
            return InboxSection(cards=cards)

        if join_body(preamble):
            logger.debug("dropping inbox text before the first card header")

        cards = [
            self._build_card(match.group(1), lines, ctx)
            for match, lines in entries
        ]
        return InboxSection(cards=cards)

    def _build_card(self, tail: str | None, lines: list[str], ctx: ParseContext) -> Card:
        body, fields = peel_fields(lines, CARD_FIELDS)
        content = CONTENT_ESCAPER.unescape(join_body(body))

        kind = kind_tag(tail) if tail else None
        if kind not in CARD_KINDS:
            kind = infer_card_kind(content)

        return Card(
            id=ctx.ids.claim(id_tag(tail) if tail else None, "card"),
            content=content,
            kind=kind,
            metadata=_card_metadata(fields),
        )

    def render(self, section: InboxSection) -> str:
        return "\n\n".join(self.render_card(card) for card in section.cards)

    def render_card(self, card: Card) -> str:
        header = f"### Card [id: {card.id}]"
        if card.kind != infer_card_kind(card.content):
            header += f" {{kind: {card.kind}}}"

        lines = [header, ""]
        if card.content:
            lines.append(CONTENT_ESCAPER.escape(card.content))
        lines.extend(_metadata_lines(card.metadata))
        return "\n".join(lines)


# Register the strategy
registry.register(InboxStrategy())
