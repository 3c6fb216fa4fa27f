"""Text-to-speech backend abstractions.

This package contains the backend protocol consumed by sessions and the
`pyttsx3` platform adapter.
"""

from .backend import BackendListener, SpeechBackend
from .pyttsx3_backend import Pyttsx3SpeechBackend

__all__ = ["BackendListener", "SpeechBackend", "Pyttsx3SpeechBackend"]
