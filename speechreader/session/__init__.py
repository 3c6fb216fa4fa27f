"""Speech session state machine and its owner-context plumbing."""

from .dispatcher import Dispatcher, ImmediateDispatcher, QueueDispatcher
from .highlight import expand_to_word_boundary, is_word_separator
from .speech_session import SpeechSession, StateListener, initial_language

__all__ = [
    "Dispatcher",
    "ImmediateDispatcher",
    "QueueDispatcher",
    "SpeechSession",
    "StateListener",
    "expand_to_word_boundary",
    "initial_language",
    "is_word_separator",
]
