"""
Frontmatter codec.

Reads and writes the '---' delimited metadata block:

    ---
    title: Demo
    type: chat
    timestamp: 1700000000000
    tags: research, budget
    id: doc-3f9c0a1b2d4e
    ---

Keys are written in that fixed order; tags is left out when empty.
Unknown keys are ignored on read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .config import get_config
from .dom import DOCUMENT_TYPES, Metadata, current_millis
from .splitter import FRONTMATTER_DELIMITER

logger = logging.getLogger(__name__)

_QUOTES = ("'", '"')


@dataclass
class FrontmatterResult:
    metadata: Metadata
    document_id: str | None = None


def _unquote(value: str) -> str:
    """Strip one pair of matching surrounding quotes, YAML style."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def _quote(value: str) -> str:
    """Quote a title that would otherwise not read back verbatim."""
    needs_quotes = value != value.strip() or (
        len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES
    )
    if needs_quotes:
        return f'"{value}"'
    return value


def parse_tags(value: str) -> list[str]:
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def parse_frontmatter(
    block: str,
    *,
    now: Callable[[], int] = current_millis,
) -> FrontmatterResult:
    """Parse 'key: value' lines into Metadata. Missing keys take defaults."""
    cfg = get_config().document
    title = cfg.default_title
    doc_type = cfg.default_type if cfg.default_type in DOCUMENT_TYPES else "chat"
    timestamp: int | None = None
    tags: list[str] = []
    document_id: str | None = None

    for line in block.split("\n"):
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        value = value.strip()

        if key == "title":
            title = _unquote(value)
        elif key == "type":
            value = _unquote(value)
            if value in DOCUMENT_TYPES:
                doc_type = value
            else:
                logger.warning("unknown document type %r, using %r", value, doc_type)
        elif key == "timestamp":
            try:
                timestamp = int(_unquote(value))
            except ValueError:
                logger.warning("unparsable timestamp %r in frontmatter", value)
        elif key == "tags":
            tags = parse_tags(value)
        elif key == "id":
            document_id = _unquote(value) or None

    if timestamp is None:
        timestamp = now()

    metadata = Metadata(title=title, type=doc_type, timestamp=timestamp, tags=tags)
    return FrontmatterResult(metadata=metadata, document_id=document_id)


def render_frontmatter(metadata: Metadata, document_id: str) -> str:
    """Render the delimited block, keys in fixed order."""
    lines = [
        FRONTMATTER_DELIMITER,
        f"title: {_quote(metadata.title)}".rstrip(),
        f"type: {metadata.type}",
        f"timestamp: {metadata.timestamp}",
    ]
    if metadata.tags:
        lines.append(f"tags: {', '.join(metadata.tags)}")
    lines.append(f"id: {document_id}")
    lines.append(FRONTMATTER_DELIMITER)
    return "\n".join(lines)
