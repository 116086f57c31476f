"""
Errors raised by chatdoc.

Parsing never raises for malformed text; it degrades to defaults and logs.
Only handing the serializer a Document that breaks the model contract is
an error, and it is raised loudly.
"""


class ChatDocError(Exception):
    """Base exception for chatdoc errors."""


class DocumentContractError(ChatDocError, ValueError):
    """Raised when a Document handed to the serializer violates the model contract."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
