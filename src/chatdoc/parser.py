"""
Document parser.

Runs the splitter, the frontmatter codec and every section strategy to
build a Document. Never raises on input text: a stage that fails is logged
and replaced by its default value, and the other stages still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .config import get_config
from .dom import Document, IdAllocator, Metadata, current_millis, new_id
from .frontmatter import FrontmatterResult, parse_frontmatter
from .sections import ParseContext, registry
from .splitter import split

logger = logging.getLogger(__name__)


def parse(text: str, *, now: Callable[[], int] | None = None) -> Document:
    """
    Parse document text into a Document.

    Args:
        text: Whole document text
        now: Clock (epoch millis) used when the frontmatter has no timestamp

    Returns:
        The parsed Document; absent sections are empty, absent metadata is default
    """
    clock = now or current_millis
    cfg = get_config()

    try:
        parts = split(text, legacy_headers=cfg.parse.legacy_headers)
    except Exception:
        logger.warning("could not split document, falling back to an empty one", exc_info=True)
        return Document(id=new_id("doc"), metadata=Metadata(timestamp=clock()))

    try:
        front = parse_frontmatter(parts.frontmatter, now=clock)
    except Exception:
        logger.warning("could not parse frontmatter, using defaults", exc_info=True)
        front = FrontmatterResult(metadata=Metadata(timestamp=clock()))

    ids = IdAllocator()
    document_id = ids.claim(front.document_id, "doc")
    ctx = ParseContext(ids=ids, default_timestamp=front.metadata.timestamp)

    sections = {}
    for strategy in registry.strategies:
        block = parts.sections.get(strategy.name)
        if block is None:
            sections[strategy.attribute] = strategy.empty()
            continue
        try:
            sections[strategy.attribute] = strategy.parse(block, ctx)
        except Exception:
            logger.warning("could not parse section %s, leaving it empty", strategy.name, exc_info=True)
            sections[strategy.attribute] = strategy.empty()

    return Document(id=document_id, metadata=front.metadata, **sections)
