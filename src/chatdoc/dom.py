"""
DOM - Document Object Model for chatdoc

In-memory form of a conversation document: metadata, an inbox of cards
waiting for triage, the ordered chat history, and the workspace of file
references. The parser builds these; consumers edit them in place and
hand them back to the serializer.

Key invariant: every Card, Message and WorkspaceReference carries a
non-empty id that is unique within its Document. Ids are generated once
and then travel with the text verbatim.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .config import get_config

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = ("chat", "flow")
ROLES = ("user", "system", "agent")
CARD_KINDS = ("text", "url", "image")
ACTION_KINDS = ("get", "search", "fileRead", "think")
REFERENCE_KINDS = ("file", "link")
WORKSPACE_KINDS = ("file", "image", "pdf")

ROLE_ALIASES = {
    "user": "user",
    "system": "system",
    "agent": "agent",
    "assistant": "agent",
    "ai": "agent",
}

URL_PREFIXES = ("http://", "https://", "www.", "url:")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".svg", ".webp")


def current_millis() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


def new_id(prefix: str) -> str:
    """Random id like 'msg-3f9c0a1b2d4e'. Never derived from the clock."""
    length = get_config().parse.id_length
    return f"{prefix}-{uuid.uuid4().hex[:length]}"


def normalize_role(role: str) -> str | None:
    """Map a role marker (any case, with aliases) to user/system/agent."""
    return ROLE_ALIASES.get(role.strip().lower())


def infer_card_kind(content: str) -> str:
    if content.lstrip().lower().startswith(URL_PREFIXES):
        return "url"
    return "text"


def infer_reference_kind(path: str) -> str:
    return "link" if "://" in path else "file"


def infer_workspace_kind(path: str) -> str:
    lowered = path.strip().lower()
    if lowered.endswith(IMAGE_EXTENSIONS):
        return "image"
    if lowered.endswith(".pdf"):
        return "pdf"
    return "file"


def clean_text(text: str) -> str:
    """Drop blank lines at both ends, keep everything in between verbatim."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)


class IdAllocator:
    """Hands out ids during a parse, keeping them unique within one document."""

    def __init__(self):
        self._taken: set[str] = set()

    def claim(self, candidate: str | None, prefix: str) -> str:
        """Keep an id found in the text, or mint one if absent or already used."""
        if candidate and "]" in candidate:
            logger.warning("unusable id %r in document text, assigning a fresh one", candidate)
            candidate = None
        if candidate:
            if candidate not in self._taken:
                self._taken.add(candidate)
                return candidate
            logger.warning("duplicate id %r in document text, assigning a fresh one", candidate)
        fresh = new_id(prefix)
        while fresh in self._taken:
            fresh = new_id(prefix)
        self._taken.add(fresh)
        return fresh


@dataclass
class Metadata:
    title: str = field(default_factory=lambda: get_config().document.default_title)
    type: str = "chat"
    timestamp: int = field(default_factory=current_millis)
    tags: list[str] = field(default_factory=list)


@dataclass
class UrlPreview:
    title: str = ""
    description: str = ""
    thumbnail: str | None = None


@dataclass
class CardMetadata:
    created: int | None = None
    source: str | None = None
    preview: UrlPreview | None = None


@dataclass
class Card:
    """An inbox item awaiting triage."""
    id: str
    content: str
    kind: str = "text"
    metadata: CardMetadata | None = None


@dataclass
class Action:
    """An instruction captured from a '> [kind]: [value]' line."""
    kind: str
    params: dict[str, Any] = field(default_factory=dict)
    result: Any = field(default=None, compare=False)  # runtime only, never written

    @property
    def value(self) -> str | None:
        return self.params.get("value")


@dataclass
class Reference:
    """A [[path]] citation, or an explicit reference attached to a message."""
    path: str
    kind: str = "file"
    excerpt: str | None = None


@dataclass
class Message:
    id: str
    role: str
    content: str
    timestamp: int
    actions: list[Action] = field(default_factory=list)
    references: list[Reference] = field(default_factory=list)


@dataclass
class WorkspaceMetadata:
    last_accessed: int | None = None
    excerpts: list[str] = field(default_factory=list)


@dataclass
class WorkspaceReference:
    id: str
    path: str
    kind: str = "file"
    metadata: WorkspaceMetadata | None = None


@dataclass
class InboxSection:
    cards: list[Card] = field(default_factory=list)


@dataclass
class ChatHistorySection:
    messages: list[Message] = field(default_factory=list)


@dataclass
class WorkspaceSection:
    references: list[WorkspaceReference] = field(default_factory=list)


@dataclass
class Document:
    """
    A whole conversation document.

    Owns its sections exclusively. Order inside chat_history.messages is the
    on-disk order; reorder_messages() is the only place that order changes.
    """
    id: str
    metadata: Metadata = field(default_factory=Metadata)
    inbox: InboxSection = field(default_factory=InboxSection)
    chat_history: ChatHistorySection = field(default_factory=ChatHistorySection)
    workspace: WorkspaceSection = field(default_factory=WorkspaceSection)

    @classmethod
    def new(
        cls,
        title: str | None = None,
        type: str | None = None,
        timestamp: int | None = None,
        tags: list[str] | None = None,
    ) -> Document:
        """Fresh document with empty sections, used when no backing text exists."""
        cfg = get_config().document
        doc_type = type or cfg.default_type
        if doc_type not in DOCUMENT_TYPES:
            raise ValueError(f"Document type must be one of {DOCUMENT_TYPES}, got {doc_type!r}")
        metadata = Metadata(
            title=cfg.default_title if title is None else title,
            type=doc_type,
            timestamp=current_millis() if timestamp is None else timestamp,
            tags=list(tags or []),
        )
        return cls(id=new_id("doc"), metadata=metadata)

    def iter_items(self) -> Iterator[Card | Message | WorkspaceReference]:
        """All identified items in document order."""
        yield from self.inbox.cards
        yield from self.chat_history.messages
        yield from self.workspace.references

    def all_ids(self) -> set[str]:
        ids = {item.id for item in self.iter_items()}
        ids.add(self.id)
        return ids

    def _fresh_id(self, prefix: str) -> str:
        taken = self.all_ids()
        candidate = new_id(prefix)
        while candidate in taken:
            candidate = new_id(prefix)
        return candidate

    # -- lookups -----------------------------------------------------------

    def find_card(self, card_id: str) -> Card | None:
        return next((c for c in self.inbox.cards if c.id == card_id), None)

    def find_message(self, message_id: str) -> Message | None:
        return next((m for m in self.chat_history.messages if m.id == message_id), None)

    def find_reference(self, reference_id: str) -> WorkspaceReference | None:
        return next((r for r in self.workspace.references if r.id == reference_id), None)

    # -- chat history ------------------------------------------------------

    def append_message(self, role: str, content: str, *, timestamp: int | None = None) -> Message:
        """
        Append a message, extracting actions, references and an inline
        timestamp from the content the same way the parser does.
        """
        from .tokens import extract

        normalized = normalize_role(role)
        if normalized is None:
            raise ValueError(f"Role must be one of {ROLES}, got {role!r}")
        content = clean_text(content)
        found = extract(content)
        if timestamp is None:
            timestamp = found.timestamp if found.timestamp is not None else current_millis()
        message = Message(
            id=self._fresh_id("msg"),
            role=normalized,
            content=content,
            timestamp=timestamp,
            actions=found.actions,
            references=found.references,
        )
        self.chat_history.messages.append(message)
        return message

    def cite(self, message_id: str, path: str, *, excerpt: str | None = None) -> Reference:
        """Attach an extra reference to an existing message."""
        message = self.find_message(message_id)
        if message is None:
            raise KeyError(message_id)
        path = path.strip()
        if not path:
            raise ValueError("Reference path must not be empty")
        reference = Reference(path=path, kind=infer_reference_kind(path), excerpt=excerpt)
        message.references.append(reference)
        return reference

    def reorder_messages(self, ordered_ids: list[str]) -> None:
        """Replace the message order with the given permutation of ids."""
        by_id = {m.id: m for m in self.chat_history.messages}
        if len(ordered_ids) != len(by_id) or set(ordered_ids) != set(by_id):
            raise ValueError("New order must be a permutation of the current message ids")
        self.chat_history.messages = [by_id[i] for i in ordered_ids]

    def move_message(self, message_id: str, index: int) -> None:
        """Move one message to a new position (drag-and-drop)."""
        ids = [m.id for m in self.chat_history.messages]
        if message_id not in ids:
            raise KeyError(message_id)
        if not 0 <= index < len(ids):
            raise ValueError(f"Index {index} out of range for {len(ids)} messages")
        ids.remove(message_id)
        ids.insert(index, message_id)
        self.reorder_messages(ids)

    def remove_message(self, message_id: str) -> Message:
        message = self.find_message(message_id)
        if message is None:
            raise KeyError(message_id)
        self.chat_history.messages.remove(message)
        return message

    # -- inbox -------------------------------------------------------------

    def add_card(
        self,
        content: str,
        *,
        kind: str | None = None,
        metadata: CardMetadata | None = None,
    ) -> Card:
        content = clean_text(content)
        kind = kind or infer_card_kind(content)
        if kind not in CARD_KINDS:
            raise ValueError(f"Card kind must be one of {CARD_KINDS}, got {kind!r}")
        card = Card(id=self._fresh_id("card"), content=content, kind=kind, metadata=metadata)
        self.inbox.cards.append(card)
        return card

    def remove_card(self, card_id: str) -> Card:
        card = self.find_card(card_id)
        if card is None:
            raise KeyError(card_id)
        self.inbox.cards.remove(card)
        return card

    def promote_card(self, card_id: str, *, role: str = "user") -> Message:
        """Triage: move a card out of the inbox and into the chat history."""
        card = self.find_card(card_id)
        if card is None:
            raise KeyError(card_id)
        message = self.append_message(role, card.content)
        self.inbox.cards.remove(card)
        return message

    # -- workspace ---------------------------------------------------------

    def add_reference(
        self,
        path: str,
        *,
        kind: str | None = None,
        excerpts: list[str] | None = None,
        last_accessed: int | None = None,
    ) -> WorkspaceReference:
        path = path.strip()
        if not path:
            raise ValueError("Workspace path must not be empty")
        kind = kind or infer_workspace_kind(path)
        if kind not in WORKSPACE_KINDS:
            raise ValueError(f"Workspace kind must be one of {WORKSPACE_KINDS}, got {kind!r}")
        metadata = None
        if excerpts or last_accessed is not None:
            metadata = WorkspaceMetadata(last_accessed=last_accessed, excerpts=list(excerpts or []))
        reference = WorkspaceReference(
            id=self._fresh_id("ws"), path=path, kind=kind, metadata=metadata
        )
        self.workspace.references.append(reference)
        return reference

    def remove_reference(self, reference_id: str) -> WorkspaceReference:
        reference = self.find_reference(reference_id)
        if reference is None:
            raise KeyError(reference_id)
        self.workspace.references.remove(reference)
        return reference
