"""
Single-writer holder for the Document behind one backing file.

Every reload is a full replacement of the in-memory Document. Reloads are
numbered with tickets; a result whose ticket is older than the last one
applied is discarded, so the most recent change always wins and nothing
is merged. Edits take a ticket too, which retires any reload still in
flight from before the edit.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from .dom import Document
from .parser import parse
from .serializer import serialize

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DocumentSession:
    """Owns the current Document and serializes writers to it."""

    def __init__(self, document: Document | None = None):
        self._lock = threading.Lock()
        self._document = document if document is not None else Document.new()
        self._issued = 0
        self._applied = 0

    @classmethod
    def from_text(cls, text: str) -> DocumentSession:
        return cls(parse(text))

    @property
    def document(self) -> Document:
        """Current document. Read-only by convention; change it through edit()."""
        return self._document

    def begin_reload(self) -> int:
        """Issue a ticket for a reload that is about to parse new text."""
        with self._lock:
            self._issued += 1
            return self._issued

    def apply(self, ticket: int, document: Document) -> bool:
        """
        Install a parsed document unless a newer result got there first.

        Returns False when the result was superseded and discarded.
        """
        with self._lock:
            if ticket <= self._applied:
                logger.debug("discarding superseded reload %d (applied %d)", ticket, self._applied)
                return False
            self._document = document
            self._applied = ticket
            return True

    def reload(self, text: str) -> bool:
        """Parse text and replace the current document with the result."""
        ticket = self.begin_reload()
        return self.apply(ticket, parse(text))

    def edit(self, fn: Callable[[Document], T]) -> tuple[T, str]:
        """
        Run fn on a copy of the current document under the lock.

        The copy replaces the current document only when fn returns and the
        result serializes; otherwise the exception propagates and nothing
        changes. Returns (fn's result, the document's new text) so the
        caller can hand the text to storage.
        """
        with self._lock:
            draft = copy.deepcopy(self._document)
            result = fn(draft)
            text = serialize(draft)
            self._document = draft
            self._issued += 1
            self._applied = self._issued
            return result, text

    def snapshot(self) -> str:
        with self._lock:
            return serialize(self._document)
