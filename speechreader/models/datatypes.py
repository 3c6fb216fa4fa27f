"""Core datatypes shared across speechreader modules.

Responsibilities:
- Represent immutable voice, span, and session records.
- Provide explicit typing for the events exchanged with speech backends.

Key types:
- `VoiceDescriptor`, `HighlightSpan`, `SessionPhase`, `SessionState`,
  `UtteranceRequest`, `WillSpeakRange`, and `UtteranceFinished`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class VoiceDescriptor:
    """Selectable synthetic voice.

    Attributes:
        id: Backend-native voice identifier, or `None` for the platform default.
        display_name: Human-readable voice name.
        language: Normalized BCP-47 language tag (for example `en-US`).
    """

    id: str | None
    display_name: str
    language: str


DEFAULT_VOICE_OPTION = VoiceDescriptor(id=None, display_name="System Default", language="")


@dataclass(frozen=True, slots=True)
class HighlightSpan:
    """Half-open character range `[start, end)` within the utterance text."""

    start: int
    end: int

    @property
    def length(self) -> int:
        """Return the number of characters covered by the span."""

        return max(0, self.end - self.start)


class SessionPhase(str, Enum):
    """Playback phase of a speech session."""

    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"


@dataclass(frozen=True, slots=True)
class UtteranceRequest:
    """One playback request sent to a speech backend.

    Attributes:
        utterance_id: Session-assigned identifier echoed back in backend events.
        text: Exact utterance text; reported ranges are offsets into it.
        rate: Normalized speaking rate.
        voice_id: Concrete voice identifier, or `None` to let the backend pick.
        language: Language used when `voice_id` is `None`.
    """

    utterance_id: int
    text: str
    rate: float
    voice_id: str | None
    language: str


@dataclass(frozen=True, slots=True)
class WillSpeakRange:
    """Backend event: the given raw range is about to be spoken."""

    utterance_id: int
    start: int
    length: int


@dataclass(frozen=True, slots=True)
class UtteranceFinished:
    """Backend event: the utterance completed, was stopped, or failed.

    `error` carries the engine failure detail when playback broke off.
    """

    utterance_id: int
    completed: bool = True
    error: str | None = None


BackendEvent = WillSpeakRange | UtteranceFinished


@dataclass(frozen=True, slots=True)
class SessionState:
    """Immutable snapshot of speech session state published to subscribers.

    Attributes:
        phase: Current playback phase.
        selected_language: Normalized selected language tag.
        selected_voice_index: Index into `voice_options`; 0 is System Default.
        selected_voice_id: Voice id derived from `selected_voice_index`.
        voice_options: Ordered voice options for the selected language.
        available_languages: Sorted languages known to the catalog.
        rate: Normalized speaking rate applied to the next utterance.
        highlight_span: Word-aligned span currently spoken, if any.
        text: Text of the current or most recent utterance.
        last_error: Message of the last recoverable backend failure, if any.
    """

    phase: SessionPhase
    selected_language: str
    selected_voice_index: int
    selected_voice_id: str | None
    voice_options: tuple[VoiceDescriptor, ...]
    available_languages: tuple[str, ...]
    rate: float
    highlight_span: HighlightSpan | None = None
    text: str = ""
    last_error: str | None = None
