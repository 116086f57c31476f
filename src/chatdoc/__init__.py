"""
chatdoc - conversation documents as editable Markdown.

    doc = parse(text)
    doc.append_message("user", "Summarize [[notes/budget.md]]")
    text = serialize(doc)
"""

from .dom import (
    Action,
    Card,
    CardMetadata,
    ChatHistorySection,
    Document,
    InboxSection,
    Message,
    Metadata,
    Reference,
    UrlPreview,
    WorkspaceMetadata,
    WorkspaceReference,
    WorkspaceSection,
)
from .errors import ChatDocError, DocumentContractError
from .parser import parse
from .serializer import serialize, validate
from .session import DocumentSession

__all__ = [
    "Action",
    "Card",
    "CardMetadata",
    "ChatDocError",
    "ChatHistorySection",
    "Document",
    "DocumentContractError",
    "DocumentSession",
    "InboxSection",
    "Message",
    "Metadata",
    "Reference",
    "UrlPreview",
    "WorkspaceMetadata",
    "WorkspaceReference",
    "WorkspaceSection",
    "parse",
    "serialize",
    "validate",
]
