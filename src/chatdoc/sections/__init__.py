"""Section strategies. Import order is document order."""

from . import inbox as _inbox  # noqa: F401 - ensure inbox section is registered
from . import chat_history as _chat_history  # noqa: F401 - ensure chat history section is registered
from . import workspace as _workspace  # noqa: F401 - ensure workspace section is registered
from .base import ParseContext, SectionStrategy, registry

__all__ = ["ParseContext", "SectionStrategy", "registry"]
