"""Speech session state machine and highlight synchronization.

Responsibilities:
- Own playback phase, language/voice/rate selection, and the highlight span.
- Validate selection against the voice catalog and repair invalid state.
- Marshal backend callbacks and option-list rebuilds onto the owner context.
- Publish immutable `SessionState` snapshots to subscribers.
"""

from __future__ import annotations

import locale
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor

from ..config import ReaderConfig
from ..errors import SpeechBackendError
from ..models.datatypes import (
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
from ..parsing import normalize_language
from ..telemetry.logger import SessionLogger
from ..tts.backend import SpeechBackend
from ..voices.catalog import VoiceCatalog
from .dispatcher import Dispatcher, QueueDispatcher
from .highlight import expand_to_word_boundary

StateListener = Callable[[SessionState], None]

_FALLBACK_LANGUAGE = "en-US"


def system_language() -> str | None:
    """Return the normalized language of the current process locale, if any."""

    try:
        code, _ = locale.getlocale()
    except ValueError:
        return None
    if not code or code in {"C", "POSIX"}:
        return None
    return normalize_language(code.split(".")[0])


def initial_language(
    catalog: VoiceCatalog,
    preferred: str | None = None,
    system: str | None = None,
) -> str:
    """Choose the startup language: preferred, then system, then English, then first."""

    languages = catalog.languages
    for candidate in (preferred, system):
        if candidate is None:
            continue
        normalized = normalize_language(candidate)
        if normalized in languages:
            return normalized
    for language in languages:
        if language.startswith("en"):
            return language
    if languages:
        return languages[0]
    return _FALLBACK_LANGUAGE


class SpeechSession:
    """Playback state machine for one reader surface.

    All public methods must be called from the owner context. Backend events
    and rebuild results are posted through `dispatcher` and take effect when
    the owner drains it.
    """

    def __init__(
        self,
        backend: SpeechBackend,
        catalog: VoiceCatalog,
        config: ReaderConfig | None = None,
        *,
        dispatcher: Dispatcher | None = None,
        executor: Executor | None = None,
        logger: SessionLogger | None = None,
        system_locale: str | None = None,
    ) -> None:
        """Initialize selection for the startup language and attach to the backend."""

        self._backend = backend
        self._catalog = catalog
        self._config = config if config is not None else ReaderConfig()
        self._config.validate()
        self._dispatcher = dispatcher if dispatcher is not None else QueueDispatcher()
        self._owns_executor = executor is None
        self._executor = (
            executor
            if executor is not None
            else ThreadPoolExecutor(max_workers=1, thread_name_prefix="voice-rebuild")
        )
        self._logger = logger
        self._listeners: list[StateListener] = []
        self._closed = False

        self._phase = SessionPhase.IDLE
        self._rate = self._config.clamp_rate(self._config.rate)
        self._highlight_span: HighlightSpan | None = None
        self._text = ""
        self._last_error: str | None = None
        self._utterance_id = 0
        self._rebuild_generation = 0

        self._selected_language = initial_language(
            catalog,
            preferred=self._config.language,
            system=system_locale if system_locale is not None else system_language(),
        )
        self._voice_options: tuple[VoiceDescriptor, ...] = ()
        self._language_voice_ids: frozenset[str] = frozenset()
        self._apply_options(catalog.options_for_language(self._selected_language))
        self._selected_voice_index = self._config.voice_index
        self._selected_voice_id: str | None = None
        self.validate_selection()

        self._backend.set_listener(self._on_backend_event)
        self._log("info", "session", "ready", language=self._selected_language)

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def selected_language(self) -> str:
        return self._selected_language

    @property
    def selected_voice_index(self) -> int:
        return self._selected_voice_index

    @property
    def selected_voice_id(self) -> str | None:
        return self._selected_voice_id

    @property
    def voice_options(self) -> tuple[VoiceDescriptor, ...]:
        return self._voice_options

    @property
    def available_languages(self) -> tuple[str, ...]:
        return self._catalog.languages

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def highlight_span(self) -> HighlightSpan | None:
        return self._highlight_span

    @property
    def text(self) -> str:
        return self._text

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def get_state(self) -> SessionState:
        """Return an immutable snapshot of the published session state."""

        return SessionState(
            phase=self._phase,
            selected_language=self._selected_language,
            selected_voice_index=self._selected_voice_index,
            selected_voice_id=self._selected_voice_id,
            voice_options=self._voice_options,
            available_languages=self._catalog.languages,
            rate=self._rate,
            highlight_span=self._highlight_span,
            text=self._text,
            last_error=self._last_error,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register `listener` for state snapshots and return an unsubscribe callable."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def is_language_available(self, code: str) -> bool:
        return self._catalog.is_language_available(code)

    def process_events(self, timeout: float | None = None) -> int:
        """Apply pending backend events and rebuild results on the calling thread.

        Only meaningful with a `QueueDispatcher`; other dispatchers apply work
        as it is posted, so this returns 0 for them.
        """

        if isinstance(self._dispatcher, QueueDispatcher):
            return self._dispatcher.drain(timeout=timeout)
        return 0

    def speak(self, text: str) -> None:
        """Start speaking `text`, replacing any active utterance.

        Blank text is ignored without touching the backend. The exact text is
        sent so backend offsets line up with what the reader displays.
        """

        if not text.strip():
            self._log("debug", "session", "speak_ignored", reason="blank")
            return

        if self._phase is not SessionPhase.IDLE:
            self.stop()

        self._utterance_id += 1
        request = UtteranceRequest(
            utterance_id=self._utterance_id,
            text=text,
            rate=self._rate,
            voice_id=self.resolve_voice_for_utterance(),
            language=self._selected_language,
        )
        self._text = text
        self._highlight_span = None
        self._phase = SessionPhase.SPEAKING
        self._last_error = None
        self._notify()
        try:
            self._backend.speak(request)
        except SpeechBackendError as exc:
            self._handle_backend_failure("speak", exc)
            return

        self._log(
            "info",
            "session",
            "speak",
            utterance=request.utterance_id,
            voice=request.voice_id or "default",
            language=request.language,
            rate=f"{request.rate:.2f}",
        )

    def pause(self) -> None:
        if self._phase is not SessionPhase.SPEAKING:
            return
        try:
            self._backend.pause()
        except SpeechBackendError as exc:
            self._handle_backend_failure("pause", exc)
            return
        self._phase = SessionPhase.PAUSED
        self._log("info", "session", "pause", utterance=self._utterance_id)
        self._notify()

    def resume(self) -> None:
        if self._phase is not SessionPhase.PAUSED:
            return
        try:
            self._backend.resume()
        except SpeechBackendError as exc:
            self._handle_backend_failure("resume", exc)
            return
        self._phase = SessionPhase.SPEAKING
        self._log("info", "session", "resume", utterance=self._utterance_id)
        self._notify()

    def stop(self) -> None:
        """Stop any utterance and clear the highlight; valid in every phase."""

        try:
            self._backend.stop()
        except SpeechBackendError as exc:
            self._handle_backend_failure("stop", exc)
            return
        changed = self._phase is not SessionPhase.IDLE or self._highlight_span is not None
        self._phase = SessionPhase.IDLE
        self._highlight_span = None
        if changed:
            self._log("info", "session", "stop", utterance=self._utterance_id)
            self._notify()

    def set_language(self, code: str) -> None:
        """Select a language and rebuild its voice options off the owner context.

        The voice selection resets to System Default immediately. Rebuild
        results for a language that is no longer selected are discarded.
        """

        language = normalize_language(code)
        if not language:
            self._log("warning", "session", "language_ignored", reason="blank")
            return
        if language not in self._catalog.languages:
            self._log(
                "warning",
                "session",
                "language_ignored",
                reason="unavailable",
                language=language,
            )
            return

        self._selected_language = language
        self._selected_voice_index = 0
        self._selected_voice_id = None
        # Only System Default is selectable until the rebuild lands.
        self._apply_options((DEFAULT_VOICE_OPTION,))
        self._rebuild_generation += 1
        generation = self._rebuild_generation

        future = self._executor.submit(self._catalog.options_for_language, language)
        future.add_done_callback(
            lambda done: self._dispatcher.post(
                lambda: self._apply_rebuild(language, generation, done)
            )
        )
        self.validate_selection()
        self._log("info", "session", "language", language=language, generation=generation)
        self._notify()

    def set_voice_index(self, index: int) -> None:
        self._selected_voice_index = index
        self.validate_selection()
        self._notify()

    def set_rate(self, rate: float) -> None:
        """Clamp and store the rate; the active utterance keeps its own rate."""

        self._rate = self._config.clamp_rate(rate)
        self._notify()

    def validate_selection(self) -> None:
        """Repair the voice index and id so they always name a valid option."""

        before = (self._selected_voice_index, self._selected_voice_id)
        if not self._voice_options:
            self._selected_voice_index = 0
            self._selected_voice_id = None
        else:
            if not 0 <= self._selected_voice_index < len(self._voice_options):
                self._selected_voice_index = 0
            self._selected_voice_id = self._voice_options[self._selected_voice_index].id
            if (
                self._selected_voice_id is not None
                and self._selected_voice_id not in self._language_voice_ids
            ):
                self._selected_voice_index = 0
                self._selected_voice_id = None

        after = (self._selected_voice_index, self._selected_voice_id)
        if after != before:
            self._log(
                "debug",
                "session",
                "selection_repaired",
                index=self._selected_voice_index,
            )

    def resolve_voice_for_utterance(self) -> str | None:
        """Return a concrete voice id the backend can use, else `None` for the language default."""

        voice_id = self._selected_voice_id
        if voice_id is None:
            return None
        if not self._backend.has_voice(voice_id):
            self._log("warning", "session", "voice_unavailable", voice=voice_id)
            return None
        return voice_id

    def close(self) -> None:
        """Stop playback, detach from the backend, and release the rebuild worker."""

        if self._closed:
            return
        self._closed = True
        if self._phase is not SessionPhase.IDLE:
            self.stop()
        self._backend.set_listener(None)
        self._listeners.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self._log("info", "session", "closed")

    def _apply_options(self, options: tuple[VoiceDescriptor, ...]) -> None:
        self._voice_options = options
        self._language_voice_ids = frozenset(
            option.id for option in options if option.id is not None
        )

    def _apply_rebuild(
        self,
        language: str,
        generation: int,
        future: Future[tuple[VoiceDescriptor, ...]],
    ) -> None:
        """Apply a finished rebuild if it still matches the selected language."""

        if self._closed or future.cancelled():
            return
        if generation != self._rebuild_generation or language != self._selected_language:
            self._log("debug", "session", "rebuild_discarded", language=language)
            return
        error = future.exception()
        if error is not None:
            self._log_failure("rebuild", error)
            return

        self._apply_options(future.result())
        self.validate_selection()
        self._log(
            "info",
            "session",
            "rebuild_applied",
            language=language,
            options=len(self._voice_options),
        )
        self._notify()

    def _on_backend_event(self, event: BackendEvent) -> None:
        """Receive an event on the backend thread and marshal it to the owner."""

        self._dispatcher.post(lambda: self._handle_backend_event(event))

    def _handle_backend_event(self, event: BackendEvent) -> None:
        if self._closed or event.utterance_id != self._utterance_id:
            return

        if isinstance(event, WillSpeakRange):
            if self._phase is not SessionPhase.SPEAKING:
                return
            span = expand_to_word_boundary(
                self._text,
                HighlightSpan(start=event.start, end=event.start + event.length),
            )
            if span != self._highlight_span:
                self._highlight_span = span
                self._notify()
            return

        if isinstance(event, UtteranceFinished) and self._phase is not SessionPhase.IDLE:
            if event.error is not None:
                self._handle_backend_failure("playback", SpeechBackendError(event.error))
                return
            self._phase = SessionPhase.IDLE
            self._highlight_span = None
            self._log(
                "info",
                "session",
                "finished",
                utterance=event.utterance_id,
                completed=event.completed,
            )
            self._notify()

    def _handle_backend_failure(self, command: str, exc: SpeechBackendError) -> None:
        """Return to idle and publish a recoverable error instead of raising."""

        self._phase = SessionPhase.IDLE
        self._highlight_span = None
        self._last_error = exc.detail
        self._log_failure(command, exc)
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.get_state()
        for listener in list(self._listeners):
            listener(state)

    def _log(self, level: str, component: str, event: str, **context: object) -> None:
        if self._logger is None:
            return
        getattr(self._logger, level)(component, event, **context)

    def _log_failure(self, event: str, exc: BaseException) -> None:
        if self._logger is not None and isinstance(exc, Exception):
            self._logger.failure("session", event, exc)
