"""
Section splitter.

Cuts document text into a frontmatter block and one raw block per named
section with a single pass over the lines:

    ---
    title: Demo          <- frontmatter
    ---
    ## Inbox             <- section header (level 2)
    ...                  <- block, up to the next header of level <= 2
    ## ChatHistory
    ...

Headers inside fenced code blocks are content, not structure. Only the
recognized section names produce blocks; other headers end the current
section and their content is dropped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# ATX heading pattern: # to ###### followed by text
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")

# Fenced code block start/end
CODE_FENCE_PATTERN = re.compile(r"^```")

FRONTMATTER_DELIMITER = "---"

SECTION_LEVEL = 2

SECTION_NAMES = ("Inbox", "ChatHistory", "Workspace")

# Spellings used by older documents
LEGACY_ALIASES = {"Chat History": "ChatHistory"}


@dataclass
class Split:
    """Result of splitting a document."""
    frontmatter: str = ""
    sections: dict[str, str] = field(default_factory=dict)
    has_frontmatter: bool = False


def normalize_newlines(text: str) -> str:
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """
    Return (frontmatter, body). Frontmatter is None when the text does not
    open with a '---' line closed by a later '---' line.
    """
    lines = text.split("\n")
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return None, text

    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_DELIMITER:
            return "\n".join(lines[1:i]), "\n".join(lines[i + 1:])

    return None, text


def resolve_section_name(title: str, legacy_headers: bool = True) -> str | None:
    """Canonical section name for a header title, or None if unrecognized."""
    if title in SECTION_NAMES:
        return title
    if legacy_headers:
        return LEGACY_ALIASES.get(title)
    return None


def iter_sections(body: str, legacy_headers: bool = True) -> Iterator[tuple[str, str]]:
    """Yield (section_name, raw_block) pairs in document order."""
    current: str | None = None
    block: list[str] = []
    in_code_block = False

    for line in body.split("\n"):
        if CODE_FENCE_PATTERN.match(line):
            in_code_block = not in_code_block
        elif not in_code_block:
            heading_match = HEADING_PATTERN.match(line)
            if heading_match and len(heading_match.group(1)) <= SECTION_LEVEL:
                if current is not None:
                    yield current, "\n".join(block)
                title = heading_match.group(2).strip()
                current = resolve_section_name(title, legacy_headers)
                if current is None:
                    logger.debug("dropping unrecognized section %r", title)
                block = []
                continue

        if current is not None:
            block.append(line)

    if current is not None:
        yield current, "\n".join(block)


def split(text: str, legacy_headers: bool = True) -> Split:
    """Split whole-document text into frontmatter and section blocks."""
    text = normalize_newlines(text)
    frontmatter, body = split_frontmatter(text)

    sections: dict[str, str] = {}
    for name, block in iter_sections(body, legacy_headers):
        if name in sections:
            # repeated header: same section continues
            sections[name] = sections[name] + "\n\n" + block
        else:
            sections[name] = block

    return Split(
        frontmatter=frontmatter or "",
        sections=sections,
        has_frontmatter=frontmatter is not None,
    )
