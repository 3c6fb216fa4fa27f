"""Unit tests for structured session log lines."""

from __future__ import annotations

import io

from speechreader.config import ReaderConfig
from speechreader.session.dispatcher import ImmediateDispatcher
from speechreader.session.speech_session import SpeechSession
from speechreader.telemetry.logger import SessionLogger
from speechreader.voices.catalog import VoiceCatalog
from tests.fakes import FakeSpeechBackend, ManualExecutor


def test_session_logger_formats_sorted_sanitized_context() -> None:
    sink = io.StringIO()
    logger = SessionLogger(sink=sink)

    logger.info("session", "speak", voice="Alex Voice", language="en-US", rate="0.50")

    assert sink.getvalue().strip() == (
        "[session] level=INFO component=session event=speak "
        "language=en-US rate=0.50 voice=Alex_Voice"
    )


def test_session_logger_failure_records_only_exception_type() -> None:
    sink = io.StringIO()
    logger = SessionLogger(sink=sink)

    logger.failure("session", "speak", RuntimeError("secret payload"))

    output = sink.getvalue()
    assert "level=ERROR component=session event=speak error_type=RuntimeError" in output
    assert "secret payload" not in output


def test_session_logger_respects_level_threshold() -> None:
    sink = io.StringIO()
    logger = SessionLogger(sink=sink, level="WARNING")

    logger.info("session", "ready")
    logger.debug("session", "speak_ignored")
    logger.warning("session", "voice_unavailable", voice="x")

    assert sink.getvalue().splitlines() == [
        "[session] level=WARNING component=session event=voice_unavailable voice=x"
    ]


def test_session_emits_lifecycle_events(catalog: VoiceCatalog) -> None:
    sink = io.StringIO()
    backend = FakeSpeechBackend(auto_play=True)
    session = SpeechSession(
        backend,
        catalog,
        ReaderConfig(),
        dispatcher=ImmediateDispatcher(),
        executor=ManualExecutor(),
        logger=SessionLogger(sink=sink),
        system_locale="en_US",
    )

    session.speak("hi")
    session.close()

    lines = sink.getvalue().splitlines()
    assert lines[0] == "[session] level=INFO component=session event=ready language=en-US"
    assert (
        "[session] level=INFO component=session event=speak "
        "language=en-US rate=0.50 utterance=1 voice=default"
    ) in lines
    assert lines[-1] == "[session] level=INFO component=session event=closed"
