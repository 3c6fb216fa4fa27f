"""Unit tests for the pyttsx3 platform backend adapter."""

from __future__ import annotations

import pytest

from speechreader.errors import SpeechBackendError
from speechreader.models.datatypes import (
    BackendEvent,
    SessionPhase,
    SessionState,
    UtteranceFinished,
    UtteranceRequest,
    VoiceDescriptor,
    WillSpeakRange,
)
from speechreader.session.dispatcher import ImmediateDispatcher
from speechreader.session.speech_session import SpeechSession
from speechreader.tts.pyttsx3_backend import (
    Pyttsx3SpeechBackend,
    decode_voice_language,
    words_per_minute,
)
from speechreader.voices.catalog import VoiceCatalog
from tests.fakes import FakeEngine, FakeVoice, InlineThread, ManualExecutor


def _engine() -> FakeEngine:
    return FakeEngine(
        [
            FakeVoice("voice.en", "English (America)", [b"\x05en-us"]),
            FakeVoice("voice.fr", "French", ["fr_FR"]),
            FakeVoice("voice.x", None, []),
        ]
    )


def _backend(engine: FakeEngine) -> tuple[Pyttsx3SpeechBackend, list[BackendEvent]]:
    backend = Pyttsx3SpeechBackend(engine=engine, thread_factory=InlineThread)
    events: list[BackendEvent] = []
    backend.set_listener(events.append)
    return backend, events


def _request(text: str, voice_id: str | None = None, language: str = "en-US") -> UtteranceRequest:
    return UtteranceRequest(
        utterance_id=7,
        text=text,
        rate=0.5,
        voice_id=voice_id,
        language=language,
    )


def test_enumerate_voices_decodes_engine_languages() -> None:
    backend, _ = _backend(_engine())

    assert backend.enumerate_voices() == [
        VoiceDescriptor(id="voice.en", display_name="English (America)", language="en-US"),
        VoiceDescriptor(id="voice.fr", display_name="French", language="fr-FR"),
        VoiceDescriptor(id="voice.x", display_name="voice.x", language="und"),
    ]


def test_decode_voice_language_and_rate_mapping() -> None:
    assert decode_voice_language(b"\x05en-gb") == "en-GB"
    assert decode_voice_language("pt_BR") == "pt-BR"
    assert words_per_minute(0.5) == 200
    assert words_per_minute(0.3) == 120
    assert words_per_minute(0.0) == 1


def test_speak_reports_word_ranges_then_single_finish() -> None:
    engine = _engine()
    backend, events = _backend(engine)

    backend.speak(_request("hello big world"))

    assert events == [
        WillSpeakRange(utterance_id=7, start=0, length=5),
        WillSpeakRange(utterance_id=7, start=6, length=3),
        WillSpeakRange(utterance_id=7, start=10, length=5),
        UtteranceFinished(utterance_id=7, completed=True),
    ]
    assert engine.properties["rate"] == 200
    assert engine.properties["voice"] == "voice.en"


def test_speak_uses_requested_voice_and_rejects_unknown_voice() -> None:
    engine = _engine()
    backend, _ = _backend(engine)

    backend.speak(_request("bonjour", voice_id="voice.fr"))
    assert engine.properties["voice"] == "voice.fr"

    with pytest.raises(SpeechBackendError) as exc_info:
        backend.speak(_request("x", voice_id="voice.gone"))
    assert exc_info.value.stage == "backend"


def test_language_fallback_matches_base_language() -> None:
    engine = _engine()
    backend, _ = _backend(engine)

    backend.speak(_request("salut", language="fr-CA"))

    assert engine.properties["voice"] == "voice.fr"


def test_pause_and_resume_respeak_remainder_with_original_offsets() -> None:
    engine = _engine()
    backend, events = _backend(engine)
    paused: list[bool] = []

    def _pause_on_second_word(name: str | None, location: int) -> None:
        if not paused and location == 4:
            paused.append(True)
            backend.pause()

    engine.on_word = _pause_on_second_word
    backend.speak(_request("one two three four"))

    assert events == [
        WillSpeakRange(utterance_id=7, start=0, length=3),
        WillSpeakRange(utterance_id=7, start=4, length=3),
    ]

    backend.resume()

    assert engine.spoken[-1] == ("two three four", "7:2")
    assert events[2:] == [
        WillSpeakRange(utterance_id=7, start=4, length=3),
        WillSpeakRange(utterance_id=7, start=8, length=5),
        WillSpeakRange(utterance_id=7, start=14, length=4),
        UtteranceFinished(utterance_id=7, completed=True),
    ]


def test_stop_emits_exactly_one_finish_and_idle_commands_are_no_ops() -> None:
    engine = _engine()
    backend, events = _backend(engine)

    backend.stop()
    backend.pause()
    backend.resume()
    assert events == []

    def _stop_on_first_word(name: str | None, location: int) -> None:
        backend.stop()

    engine.on_word = _stop_on_first_word
    backend.speak(_request("stop here please"))
    backend.stop()

    assert events == [
        WillSpeakRange(utterance_id=7, start=0, length=4),
        UtteranceFinished(utterance_id=7, completed=False),
    ]


def test_stop_while_paused_finishes_without_engine_stop() -> None:
    engine = _engine()
    backend, events = _backend(engine)

    def _pause_on_first_word(name: str | None, location: int) -> None:
        if engine.stop_calls == 0:
            backend.pause()

    engine.on_word = _pause_on_first_word
    backend.speak(_request("alpha beta"))
    stop_calls = engine.stop_calls

    backend.stop()

    assert engine.stop_calls == stop_calls
    assert events[-1] == UtteranceFinished(utterance_id=7, completed=False)


def test_engine_failure_finishes_utterance_with_error_detail() -> None:
    engine = _engine()
    engine.run_error = RuntimeError("audio device lost")
    backend, events = _backend(engine)

    backend.speak(_request("hello there"))

    assert events == [
        UtteranceFinished(
            utterance_id=7,
            completed=False,
            error="Speech engine failed: audio device lost",
        )
    ]
    backend.stop()
    assert len(events) == 1


def test_engine_failure_surfaces_as_session_error() -> None:
    engine = _engine()
    engine.run_error = RuntimeError("audio device lost")
    backend = Pyttsx3SpeechBackend(engine=engine, thread_factory=InlineThread)
    session = SpeechSession(
        backend,
        VoiceCatalog.build(backend),
        dispatcher=ImmediateDispatcher(),
        executor=ManualExecutor(),
        system_locale="en_US",
    )
    states: list[SessionState] = []
    session.subscribe(states.append)

    session.speak("hello there")

    assert session.phase is SessionPhase.IDLE
    assert session.highlight_span is None
    assert session.last_error == "Speech engine failed: audio device lost"
    assert states[-1].last_error == "Speech engine failed: audio device lost"
