"""Conversation domain exports"""

from .collectors import ChoiceCollector, InputCollector
from .exceptions import ConversationTimeoutError, ListenerBusyError, ValidationError
from .hub import ConversationHub, ConversationSession
from .models import Option, Selection, Turn
from .transport import ConversationTransport

__all__ = [
    "ChoiceCollector",
    "InputCollector",
    "ConversationTimeoutError",
    "ListenerBusyError",
    "ValidationError",
    "ConversationHub",
    "ConversationSession",
    "Option",
    "Selection",
    "Turn",
    "ConversationTransport",
]
