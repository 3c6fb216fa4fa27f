"""Integration-test fixtures for deterministic backend behavior."""

from __future__ import annotations

import pytest

from tests.fakes import FakeSpeechBackend


@pytest.fixture
def cli_backend(monkeypatch: pytest.MonkeyPatch) -> FakeSpeechBackend:
    """Replace the platform engine with an auto-playing scripted backend."""

    backend = FakeSpeechBackend(auto_play=True)
    monkeypatch.setattr("speechreader.cli._create_backend", lambda driver: backend)
    return backend


@pytest.fixture(autouse=True)
def _isolate_reader_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host locale and `SPEECHREADER_*` variables out of CLI runs."""

    for key in (
        "SPEECHREADER_LANGUAGE",
        "SPEECHREADER_VOICE_INDEX",
        "SPEECHREADER_RATE",
        "SPEECHREADER_RATE_MIN",
        "SPEECHREADER_RATE_MAX",
        "SPEECHREADER_DRIVER",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("speechreader.cli.system_language", lambda: None)
    monkeypatch.setattr("speechreader.session.speech_session.system_language", lambda: None)
