"""Top-level package for speechreader.

This package provides the speech-session core of a desktop text reader:
voice catalog indexing, a playback state machine with word-level highlight
synchronization, and a `pyttsx3` platform backend. The main entry point is
`SpeechSession`.
"""

from .session.speech_session import SpeechSession
from .voices.catalog import VoiceCatalog

__all__ = ["SpeechSession", "VoiceCatalog", "__version__"]

__version__ = "0.1.0"
