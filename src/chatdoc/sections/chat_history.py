"""
ChatHistory section strategy.

Messages in chronological order, which is also the order on disk:

    ### User [id: msg-3f9c0a1b2d4e] {timestamp: 1700000000000}

    Compare this with [[notes/budget.md]]
    > [search]: [budget report]

    ref:: [[reports/q3.pdf]] :: revenue table on page 4

The content is kept raw; actions and references are read out of it with
the inline token extractor. 'ref::' lines carry references that are not
cited in the content. Hand-written histories may use 'User: text' lines
instead of headers.
"""

from __future__ import annotations

import logging
import re

from ..dom import ChatHistorySection, Message, Reference, infer_reference_kind, normalize_role
from ..tokens import extract, extract_references, extract_timestamp
from .base import (
    LineEscaper,
    ParseContext,
    SectionStrategy,
    id_tag,
    join_body,
    peel_trailing,
    registry,
    split_entries,
)

logger = logging.getLogger(__name__)

_ROLE_WORDS = r"(user|system|agent|assistant|ai)"

# '### User [id: ...] {timestamp: ...}'
ROLE_HEADER_PATTERN = re.compile(rf"^###[ \t]+{_ROLE_WORDS}\b(.*)$", re.IGNORECASE)

# 'User: text' or 'User [id: ...]: text'
INLINE_ROLE_PATTERN = re.compile(
    rf"^{_ROLE_WORDS}(?:[ \t]*\[id:[ \t]*([^\]\n]*)\])?[ \t]*:[ \t]?(.*)$",
    re.IGNORECASE,
)

# 'ref:: [[path]]' or 'ref:: [[path]] :: excerpt'
REF_LINE_PATTERN = re.compile(r"^ref::[ \t]*\[\[([^\[\]\n]+)\]\](?: :: (.*))?[ \t]*$")

# content lines that would read back as a role header, fence or ref:: line
CONTENT_ESCAPER = LineEscaper(r"ref::")


def uncited_references(message: Message) -> list[Reference]:
    """
    References that the content does not already produce.

    The parser yields content citations first, then 'ref::' lines, so the
    longest prefix of message.references matching the citations is skipped.
    """
    citations = extract_references(message.content)
    k = 0
    while (
        k < len(citations)
        and k < len(message.references)
        and message.references[k] == citations[k]
    ):
        k += 1
    return message.references[k:]


def format_ref_line(reference: Reference) -> str:
    if reference.excerpt is None:
        return f"ref:: [[{reference.path}]]"
    return f"ref:: [[{reference.path}]] :: {reference.excerpt}"


def parse_ref_line(line: str) -> Reference:
    match = REF_LINE_PATTERN.match(line)
    path = match.group(1).strip()
    return Reference(path=path, kind=infer_reference_kind(path), excerpt=match.group(2))


class ChatHistoryStrategy(SectionStrategy):
    """Chat messages, in authoritative order."""

    @property
    def name(self) -> str:
        return "ChatHistory"

    @property
    def attribute(self) -> str:
        return "chat_history"

    @property
    def section_type(self) -> type:
        return ChatHistorySection

    def parse(self, block: str, ctx: ParseContext) -> ChatHistorySection:
        preamble, entries = split_entries(block, ROLE_HEADER_PATTERN)
        messages: list[Message] = []

        if entries:
            for match, lines in entries:
                tail = match.group(2)
                messages.append(self._build_message(
                    role_word=match.group(1),
                    id_candidate=id_tag(tail),
                    header_timestamp=extract_timestamp(tail),
                    lines=lines,
                    ctx=ctx,
                ))
        else:
            preamble, entries = split_entries(block, INLINE_ROLE_PATTERN)
            for match, lines in entries:
                messages.append(self._build_message(
                    role_word=match.group(1),
                    id_candidate=(match.group(2) or "").strip() or None,
                    header_timestamp=None,
                    lines=[match.group(3)] + lines,
                    ctx=ctx,
                ))

        if join_body(preamble):
            logger.debug("dropping chat history text before the first role marker")

        return ChatHistorySection(messages=messages)

    def _build_message(
        self,
        role_word: str,
        id_candidate: str | None,
        header_timestamp: int | None,
        lines: list[str],
        ctx: ParseContext,
    ) -> Message:
        body, ref_lines = peel_trailing(lines, lambda line: REF_LINE_PATTERN.match(line) is not None)
        content = CONTENT_ESCAPER.unescape(join_body(body))
        found = extract(content)

        if header_timestamp is not None:
            timestamp = header_timestamp
        elif found.timestamp is not None:
            timestamp = found.timestamp
        else:
            timestamp = ctx.default_timestamp

        return Message(
            id=ctx.ids.claim(id_candidate, "msg"),
            role=normalize_role(role_word),
            content=content,
            timestamp=timestamp,
            actions=found.actions,
            references=found.references + [parse_ref_line(line) for line in ref_lines],
        )

    def render(self, section: ChatHistorySection) -> str:
        return "\n\n".join(self.render_message(message) for message in section.messages)

    def render_message(self, message: Message) -> str:
        header = f"### {message.role.capitalize()} [id: {message.id}] {{timestamp: {message.timestamp}}}"
        lines = [header, ""]
        if message.content:
            lines.append(CONTENT_ESCAPER.escape(message.content))

        extra = uncited_references(message)
        if extra:
            lines.append("")
            lines.extend(format_ref_line(reference) for reference in extra)
        return "\n".join(lines)


# Register the strategy
registry.register(ChatHistoryStrategy())
