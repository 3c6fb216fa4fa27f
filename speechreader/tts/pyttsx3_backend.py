"""Platform speech backend built on `pyttsx3`.

Responsibilities:
- Enumerate SAPI5, NSSpeechSynthesizer, or eSpeak voices as descriptors.
- Run utterances on a worker thread and translate engine callbacks into
  `WillSpeakRange` and `UtteranceFinished` events.
- Emulate pause/resume by stopping and re-speaking the unspoken remainder,
  keeping reported offsets relative to the original utterance text.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable

from ..errors import SpeechBackendError
from ..models.datatypes import (
    UtteranceFinished,
    UtteranceRequest,
    VoiceDescriptor,
    WillSpeakRange,
)
from ..parsing import normalize_language
from .backend import BackendListener

_WORDS_PER_MINUTE_AT_UNIT_RATE = 400
_UNDETERMINED_LANGUAGE = "und"


@dataclass(slots=True)
class _ActiveUtterance:
    """Bookkeeping for the utterance currently owned by the engine."""

    request: UtteranceRequest
    voice_id: str | None
    segment_name: str
    segment_offset: int
    resume_offset: int
    segment_count: int = 1
    paused: bool = False


def words_per_minute(rate: float) -> int:
    """Map a normalized rate (0.5 is the platform default) to engine words per minute."""

    return max(1, round(rate * _WORDS_PER_MINUTE_AT_UNIT_RATE))


def decode_voice_language(raw: object) -> str:
    """Decode one pyttsx3 voice language entry into a normalized tag.

    eSpeak reports entries such as `b"\\x05en-gb"` where the first byte is a
    priority; NSSpeechSynthesizer reports `en_US`.
    """

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="ignore")
    text = "".join(character for character in str(raw) if character.isprintable())
    return normalize_language(text)


class Pyttsx3SpeechBackend:
    """`SpeechBackend` implementation over one `pyttsx3` engine."""

    def __init__(
        self,
        driver_name: str | None = None,
        engine: Any | None = None,
        thread_factory: Callable[..., threading.Thread] = threading.Thread,
    ) -> None:
        """Initialize the engine and subscribe to word and completion callbacks."""

        if engine is None:
            import pyttsx3

            engine = pyttsx3.init(driver_name)
        self._engine = engine
        self._thread_factory = thread_factory
        self._listener: BackendListener | None = None
        self._state_lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._active: _ActiveUtterance | None = None
        self._engine.connect("started-word", self._on_started_word)
        self._engine.connect("finished-utterance", self._on_finished_utterance)

    def set_listener(self, listener: BackendListener | None) -> None:
        self._listener = listener

    def enumerate_voices(self) -> list[VoiceDescriptor]:
        """Return engine voices as descriptors, one per voice."""

        descriptors: list[VoiceDescriptor] = []
        for voice in self._engine.getProperty("voices") or []:
            languages = [
                language
                for language in (decode_voice_language(raw) for raw in voice.languages or [])
                if language
            ]
            descriptors.append(
                VoiceDescriptor(
                    id=voice.id,
                    display_name=voice.name or voice.id,
                    language=languages[0] if languages else _UNDETERMINED_LANGUAGE,
                )
            )
        return descriptors

    def has_voice(self, voice_id: str) -> bool:
        return any(voice.id == voice_id for voice in self._engine.getProperty("voices") or [])

    def speak(self, request: UtteranceRequest) -> None:
        """Start a new utterance, stopping any active one first."""

        voice_id = request.voice_id
        if voice_id is None:
            voice_id = self._best_voice_for_language(request.language)
        elif not self.has_voice(voice_id):
            raise SpeechBackendError(
                f"Voice `{voice_id}` is not available on this engine.",
                hint="Refresh the voice list or choose System Default.",
            )

        self.stop()
        with self._state_lock:
            self._active = _ActiveUtterance(
                request=request,
                voice_id=voice_id,
                segment_name=f"{request.utterance_id}:1",
                segment_offset=0,
                resume_offset=0,
            )
            active = self._active
        self._start_segment(active, request.text)

    def pause(self) -> None:
        with self._state_lock:
            active = self._active
            if active is None or active.paused:
                return
            active.paused = True
            active.segment_name = ""
        self._engine.stop()

    def resume(self) -> None:
        with self._state_lock:
            active = self._active
            if active is None or not active.paused:
                return
            active.paused = False
            active.segment_count += 1
            active.segment_name = f"{active.request.utterance_id}:{active.segment_count}"
            active.segment_offset = active.resume_offset
            remainder = active.request.text[active.resume_offset:]
        if remainder.strip():
            self._start_segment(active, remainder)
            return
        self._finish(active, completed=True)

    def stop(self) -> None:
        with self._state_lock:
            active = self._active
            if active is None:
                return
            was_paused = active.paused
        if not was_paused:
            self._engine.stop()
        self._finish(active, completed=False)

    def _best_voice_for_language(self, language: str) -> str | None:
        """Return the first voice matching `language`, then its base language."""

        code = normalize_language(language)
        base = code.split("-")[0]
        voices = self.enumerate_voices()
        for candidate in (code, base):
            for voice in voices:
                if voice.language == candidate:
                    return voice.id
        for voice in voices:
            if voice.language.split("-")[0] == base:
                return voice.id
        return None

    def _start_segment(self, active: _ActiveUtterance, text: str) -> None:
        """Speak one segment on a worker thread, serialized with earlier segments."""

        worker = self._thread_factory(
            target=self._run_segment,
            args=(active, active.segment_name, text),
            daemon=True,
        )
        worker.start()

    def _run_segment(self, active: _ActiveUtterance, segment_name: str, text: str) -> None:
        with self._run_lock:
            with self._state_lock:
                if self._active is not active or active.segment_name != segment_name:
                    return
            try:
                self._engine.setProperty("rate", words_per_minute(active.request.rate))
                if active.voice_id is not None:
                    self._engine.setProperty("voice", active.voice_id)
                self._engine.say(text, segment_name)
                self._engine.runAndWait()
            except Exception as exc:
                self._finish(active, completed=False, error=f"Speech engine failed: {exc}")

    def _on_started_word(self, name: str, location: int, length: int) -> None:
        with self._state_lock:
            active = self._active
            if active is None or name != active.segment_name:
                return
            start = active.segment_offset + location
            active.resume_offset = start
            utterance_id = active.request.utterance_id
        self._emit(WillSpeakRange(utterance_id=utterance_id, start=start, length=length))

    def _on_finished_utterance(self, name: str, completed: bool) -> None:
        with self._state_lock:
            active = self._active
            if active is None or name != active.segment_name:
                return
        self._finish(active, completed=completed)

    def _finish(
        self, active: _ActiveUtterance, completed: bool, error: str | None = None
    ) -> None:
        """Emit the single completion event for `active` and release it."""

        with self._state_lock:
            if self._active is not active:
                return
            self._active = None
            active.segment_name = ""
        self._emit(
            UtteranceFinished(
                utterance_id=active.request.utterance_id,
                completed=completed,
                error=error,
            )
        )

    def _emit(self, event: WillSpeakRange | UtteranceFinished) -> None:
        listener = self._listener
        if listener is not None:
            listener(event)
