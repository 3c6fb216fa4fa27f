"""Shared typed data models for speechreader.

This package contains dataclasses used across session, catalog, and backend
modules to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    DEFAULT_VOICE_OPTION,
    BackendEvent,
    HighlightSpan,
    SessionPhase,
    SessionState,
    UtteranceFinished,
    UtteranceRequest,
    VoiceDescriptor,
    WillSpeakRange,
)

__all__ = [
    "DEFAULT_VOICE_OPTION",
    "BackendEvent",
    "HighlightSpan",
    "SessionPhase",
    "SessionState",
    "UtteranceFinished",
    "UtteranceRequest",
    "VoiceDescriptor",
    "WillSpeakRange",
]
