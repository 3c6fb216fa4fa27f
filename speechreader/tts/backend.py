"""Speech backend contract consumed by the reader core.

Responsibilities:
- Define the protocol a platform speech engine adapter must satisfy.
- Fix the event listener signature used for asynchronous callbacks.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from ..models.datatypes import BackendEvent, UtteranceRequest, VoiceDescriptor

BackendListener = Callable[[BackendEvent], None]


class SpeechBackend(Protocol):
    """Protocol for platform text-to-speech adapters.

    Implementations emit exactly one `UtteranceFinished` per utterance that
    completes or is stopped, and zero or more `WillSpeakRange` events in
    non-decreasing offset order while speaking. Events may be delivered from
    any thread.
    """

    def enumerate_voices(self) -> list[VoiceDescriptor]:
        """Return the full voice inventory."""

    def has_voice(self, voice_id: str) -> bool:
        """Return `True` when a voice can be materialized for `voice_id`."""

    def speak(self, request: UtteranceRequest) -> None:
        """Begin asynchronous playback; raise `SpeechBackendError` if rejected."""

    def pause(self) -> None:
        """Pause the active utterance; no-op when idle."""

    def resume(self) -> None:
        """Resume a paused utterance; no-op when idle."""

    def stop(self) -> None:
        """Stop the active utterance; no-op when idle."""

    def set_listener(self, listener: BackendListener | None) -> None:
        """Register the single receiver of backend events."""
