"""Shared pytest fixtures for the full speechreader test suite."""

from __future__ import annotations

import pytest

from speechreader.config import ReaderConfig
from speechreader.session.dispatcher import QueueDispatcher
from speechreader.session.speech_session import SpeechSession
from speechreader.voices.catalog import VoiceCatalog
from tests.fakes import FakeSpeechBackend, ManualExecutor


@pytest.fixture
def backend() -> FakeSpeechBackend:
    """Provide a scripted backend with English, French, and Persian voices."""

    return FakeSpeechBackend()


@pytest.fixture
def catalog(backend: FakeSpeechBackend) -> VoiceCatalog:
    """Provide a catalog built from the scripted backend inventory."""

    return VoiceCatalog.build(backend)


@pytest.fixture
def dispatcher() -> QueueDispatcher:
    return QueueDispatcher()


@pytest.fixture
def executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def session(
    backend: FakeSpeechBackend,
    catalog: VoiceCatalog,
    dispatcher: QueueDispatcher,
    executor: ManualExecutor,
) -> SpeechSession:
    """Provide an `en-US` session whose events and rebuilds run only when drained."""

    return SpeechSession(
        backend,
        catalog,
        ReaderConfig(),
        dispatcher=dispatcher,
        executor=executor,
        system_locale="en_US",
    )
