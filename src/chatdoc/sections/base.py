"""
Base section interface and registry.

Each section strategy owns one named region of the document body and
handles it in both directions: parse() turns the raw block into the typed
section, render() writes it back in exactly the syntax parse() reads.
The registry keeps strategies in document order.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..dom import IdAllocator, clean_text

# 'key:: value' item field (Obsidian inline field syntax)
FIELD_PATTERN = re.compile(r"^([A-Za-z][\w-]*)::[ \t]*(.*?)[ \t]*$")

# '[id: msg-3f9c0a1b2d4e]' in an item header
ID_TAG_PATTERN = re.compile(r"\[id:[ \t]*([^\]\n]*)\]")

# '{kind: image}' in an item header
KIND_TAG_PATTERN = re.compile(r"\{kind:[ \t]*([A-Za-z]+)[ \t]*\}")

# Fenced code block start/end
CODE_FENCE_PATTERN = re.compile(r"^```")


@dataclass
class ParseContext:
    """State shared by the section parsers of one document parse."""
    ids: IdAllocator
    default_timestamp: int


def id_tag(tail: str) -> str | None:
    match = ID_TAG_PATTERN.search(tail)
    if match:
        return match.group(1).strip() or None
    return None


def kind_tag(tail: str) -> str | None:
    match = KIND_TAG_PATTERN.search(tail)
    if match:
        return match.group(1).lower()
    return None


def peel_trailing(lines: list[str], predicate: Callable[[str], bool]) -> tuple[list[str], list[str]]:
    """
    Split the contiguous run of lines matching predicate off the end of a body.

    Trailing blank lines are skipped first. Returns (body, peeled) with the
    peeled lines in their original order.
    """
    body = list(lines)
    while body and not body[-1].strip():
        body.pop()

    peeled: list[str] = []
    while body and predicate(body[-1]):
        peeled.append(body.pop())
    peeled.reverse()
    return body, peeled


def peel_fields(lines: list[str], keys: tuple[str, ...]) -> tuple[list[str], dict[str, str]]:
    """
    Split trailing 'key:: value' lines off a body.

    A field line followed by ordinary text is content. When a key repeats,
    the last line wins.
    """
    def is_field(line: str) -> bool:
        match = FIELD_PATTERN.match(line)
        return bool(match) and match.group(1) in keys

    body, peeled = peel_trailing(lines, is_field)
    fields: dict[str, str] = {}
    for line in peeled:
        match = FIELD_PATTERN.match(line)
        fields[match.group(1)] = match.group(2)
    return body, fields


def split_entries(block: str, header: re.Pattern[str]) -> tuple[list[str], list[tuple[re.Match[str], list[str]]]]:
    """
    Cut a block at header lines (outside code fences).

    Returns (lines before the first header, [(header match, body lines)]).
    """
    preamble: list[str] = []
    entries: list[tuple[re.Match[str], list[str]]] = []
    in_code_block = False

    for line in block.split("\n"):
        if CODE_FENCE_PATTERN.match(line):
            in_code_block = not in_code_block
        elif not in_code_block:
            match = header.match(line)
            if match:
                entries.append((match, []))
                continue
        if entries:
            entries[-1][1].append(line)
        else:
            preamble.append(line)

    return preamble, entries


def split_paragraphs(block: str) -> list[list[str]]:
    """Blank-line separated groups of lines."""
    paragraphs: list[list[str]] = []
    current: list[str] = []
    for line in block.split("\n"):
        if line.strip():
            current.append(line)
        elif current:
            paragraphs.append(current)
            current = []
    if current:
        paragraphs.append(current)
    return paragraphs


def join_body(lines: list[str]) -> str:
    return clean_text("\n".join(lines))


class LineEscaper:
    """
    Backslash-escapes content lines that the parsers would read as structure.

    Headings and code fences are always structural; a section adds its own
    patterns (trailing field lines, 'ref::' lines). A line matching
    '\\*<structure>' gains one backslash on write and loses one on read, so
    lines that already start with backslashes come back unchanged.

    When fence_aware, balanced code fences are written raw and their
    contents are left alone; an unbalanced fence line is escaped. Otherwise
    every matching line is escaped, fences included.
    """

    def __init__(self, *extra: str, fence_aware: bool = True):
        alternatives = "|".join((r"#{1,6}\s", "```") + extra)
        self._structural = re.compile(rf"^\\*(?:{alternatives})")
        self._escaped = re.compile(rf"^\\+(?:{alternatives})")
        self.fence_aware = fence_aware

    def escape(self, text: str) -> str:
        lines = text.split("\n")
        fences = [i for i, line in enumerate(lines) if CODE_FENCE_PATTERN.match(line)]
        unpaired = fences[-1] if len(fences) % 2 else None

        in_code_block = False
        for i, line in enumerate(lines):
            if self.fence_aware and i != unpaired and CODE_FENCE_PATTERN.match(line):
                in_code_block = not in_code_block
            elif not in_code_block and self._structural.match(line):
                lines[i] = "\\" + line
        return "\n".join(lines)

    def unescape(self, text: str) -> str:
        lines = text.split("\n")
        in_code_block = False
        for i, line in enumerate(lines):
            if self.fence_aware and CODE_FENCE_PATTERN.match(line):
                in_code_block = not in_code_block
            elif not in_code_block and self._escaped.match(line):
                lines[i] = line[1:]
        return "\n".join(lines)


def parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class SectionStrategy(ABC):
    """Base class for section handlers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Header name of the section (e.g. 'ChatHistory')."""
        ...

    @property
    @abstractmethod
    def attribute(self) -> str:
        """Document attribute holding the section (e.g. 'chat_history')."""
        ...

    @property
    @abstractmethod
    def section_type(self) -> type:
        """Model class of the section."""
        ...

    def empty(self) -> Any:
        """Section value for a document where the section is absent."""
        return self.section_type()

    @abstractmethod
    def parse(self, block: str, ctx: ParseContext) -> Any:
        """Parse the raw block (header line excluded) into the section."""
        ...

    @abstractmethod
    def render(self, section: Any) -> str:
        """Render section entries, without the section header."""
        ...


class SectionRegistry:
    """Registry of section strategies, kept in document order."""

    def __init__(self):
        self._strategies: list[SectionStrategy] = []
        self._by_name: dict[str, SectionStrategy] = {}

    def register(self, strategy: SectionStrategy) -> None:
        """Register a section strategy. Registration order is document order."""
        if strategy.name in self._by_name:
            raise ValueError(f"Section {strategy.name!r} is already registered")
        self._strategies.append(strategy)
        self._by_name[strategy.name] = strategy

    def get_by_name(self, name: str) -> SectionStrategy | None:
        return self._by_name.get(name)

    @property
    def strategies(self) -> list[SectionStrategy]:
        """List all registered strategies, in document order."""
        return list(self._strategies)


# Global registry instance
registry = SectionRegistry()
