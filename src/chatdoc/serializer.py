"""
Document serializer.

Inverse of the parser: frontmatter, then every section in registry order,
each written by its own strategy. Output depends only on the Document,
never on the clock, so the same value always serializes to the same text.

A Document that breaks the model contract is a programming error and is
rejected with DocumentContractError before anything is written.
"""

from __future__ import annotations

from .dom import (
    CARD_KINDS,
    DOCUMENT_TYPES,
    REFERENCE_KINDS,
    ROLES,
    WORKSPACE_KINDS,
    Document,
    Metadata,
)
from .errors import DocumentContractError
from .frontmatter import render_frontmatter
from .sections import registry


def _check_line(value: object, field: str, *, allow_empty: bool = True) -> None:
    """Single-line text field."""
    if not isinstance(value, str):
        raise DocumentContractError(f"{field} must be a string, got {type(value).__name__}", field)
    if "\n" in value or "\r" in value:
        raise DocumentContractError(f"{field} must be a single line: {value!r}", field)
    if not allow_empty and not value.strip():
        raise DocumentContractError(f"{field} must not be empty", field)


def _check_text(value: object, field: str) -> None:
    if not isinstance(value, str):
        raise DocumentContractError(f"{field} must be a string, got {type(value).__name__}", field)
    if "\r" in value:
        raise DocumentContractError(f"{field} must use \\n line endings", field)


def _check_int(value: object, field: str, *, optional: bool = False) -> None:
    if value is None and optional:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise DocumentContractError(f"{field} must be an integer, got {value!r}", field)


def _check_id(value: object, field: str, seen: set[str]) -> None:
    _check_line(value, field, allow_empty=False)
    if "]" in value or value != value.strip():
        raise DocumentContractError(f"{field} cannot be written as an id tag: {value!r}", field)
    if value in seen:
        raise DocumentContractError(f"{field} {value!r} is not unique in the document", field)
    seen.add(value)


def _check_path(value: object, field: str) -> None:
    _check_line(value, field, allow_empty=False)
    if "[" in value or "]" in value:
        raise DocumentContractError(f"{field} must not contain brackets: {value!r}", field)


def _check_metadata(metadata: object) -> None:
    if not isinstance(metadata, Metadata):
        raise DocumentContractError("Document.metadata is missing", "metadata")
    _check_line(metadata.title, "metadata.title")
    if metadata.type not in DOCUMENT_TYPES:
        raise DocumentContractError(f"metadata.type must be one of {DOCUMENT_TYPES}", "metadata.type")
    _check_int(metadata.timestamp, "metadata.timestamp")
    if not isinstance(metadata.tags, list):
        raise DocumentContractError("metadata.tags must be a list", "metadata.tags")
    for tag in metadata.tags:
        _check_line(tag, "metadata.tags", allow_empty=False)
        if "," in tag:
            raise DocumentContractError(f"tag must not contain commas: {tag!r}", "metadata.tags")


def validate(document: Document) -> None:
    """Raise DocumentContractError if the document cannot be written faithfully."""
    if not isinstance(document, Document):
        raise DocumentContractError(f"Expected a Document, got {type(document).__name__}")

    seen: set[str] = set()
    _check_id(document.id, "id", seen)
    _check_metadata(document.metadata)

    for strategy in registry.strategies:
        section = getattr(document, strategy.attribute, None)
        if not isinstance(section, strategy.section_type):
            raise DocumentContractError(
                f"Document.{strategy.attribute} must be a {strategy.section_type.__name__}",
                strategy.attribute,
            )

    for card in document.inbox.cards:
        _check_id(card.id, "card.id", seen)
        _check_text(card.content, "card.content")
        if card.kind not in CARD_KINDS:
            raise DocumentContractError(f"card.kind must be one of {CARD_KINDS}", "card.kind")
        if card.metadata is not None:
            _check_int(card.metadata.created, "card.metadata.created", optional=True)
            if card.metadata.source is not None:
                _check_line(card.metadata.source, "card.metadata.source")
            preview = card.metadata.preview
            if preview is not None:
                _check_line(preview.title, "card.metadata.preview.title")
                _check_line(preview.description, "card.metadata.preview.description")
                if preview.thumbnail is not None:
                    _check_line(preview.thumbnail, "card.metadata.preview.thumbnail")

    for message in document.chat_history.messages:
        _check_id(message.id, "message.id", seen)
        if message.role not in ROLES:
            raise DocumentContractError(f"message.role must be one of {ROLES}", "message.role")
        _check_text(message.content, "message.content")
        _check_int(message.timestamp, "message.timestamp")
        for reference in message.references:
            _check_path(reference.path, "message.references.path")
            if reference.kind not in REFERENCE_KINDS:
                raise DocumentContractError(
                    f"reference kind must be one of {REFERENCE_KINDS}", "message.references.kind"
                )
            if reference.excerpt is not None:
                _check_line(reference.excerpt, "message.references.excerpt")

    for reference in document.workspace.references:
        _check_id(reference.id, "workspace.id", seen)
        _check_line(reference.path, "workspace.path", allow_empty=False)
        if reference.kind not in WORKSPACE_KINDS:
            raise DocumentContractError(f"workspace kind must be one of {WORKSPACE_KINDS}", "workspace.kind")
        if reference.metadata is not None:
            _check_int(reference.metadata.last_accessed, "workspace.metadata.last_accessed", optional=True)
            for excerpt in reference.metadata.excerpts:
                _check_line(excerpt, "workspace.metadata.excerpts", allow_empty=False)


def serialize(document: Document) -> str:
    """Render a Document to text that parse() reads back to an equal Document."""
    validate(document)

    parts = [render_frontmatter(document.metadata, document.id), ""]
    for strategy in registry.strategies:
        parts.append(f"## {strategy.name}")
        parts.append("")
        body = strategy.render(getattr(document, strategy.attribute))
        if body:
            parts.append(body)
            parts.append("")

    return "\n".join(parts).rstrip("\n") + "\n"
