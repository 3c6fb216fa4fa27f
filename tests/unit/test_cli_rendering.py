"""Unit tests for CLI output and error rendering helpers."""

from __future__ import annotations

import pytest
import typer

from speechreader.cli_rendering import (
    HighlightPrinter,
    echo_voice_options,
    exit_with_command_error,
    render_highlight,
)
from speechreader.errors import CatalogBuildError
from speechreader.models.datatypes import (
    DEFAULT_VOICE_OPTION,
    HighlightSpan,
    SessionPhase,
    SessionState,
    VoiceDescriptor,
)


def _state(phase: SessionPhase, span: HighlightSpan | None) -> SessionState:
    return SessionState(
        phase=phase,
        selected_language="en-US",
        selected_voice_index=0,
        selected_voice_id=None,
        voice_options=(),
        available_languages=("en-US",),
        rate=0.5,
        highlight_span=span,
        text="read this aloud",
    )


def test_exit_with_command_error_renders_stage_error_with_hint(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print stage diagnostics and hint before exiting with code 1."""

    error = CatalogBuildError(
        "Failed to enumerate speech voices: engine offline",
        hint="Verify a platform speech engine is installed and reachable.",
    )

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("languages", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "languages failed at stage `catalog`" in captured.err
    assert "Hint: Verify a platform speech engine is installed and reachable." in captured.err


def test_exit_with_command_error_renders_non_stage_fallback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print fallback exception text for non-stage failures."""

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("speak", RuntimeError("unexpected engine state"))

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "speak failed: unexpected engine state" in captured.err


def test_render_highlight_brackets_span() -> None:
    assert render_highlight("hello, world!", HighlightSpan(7, 12)) == "hello, [world]!"
    assert render_highlight("hello", None) == "hello"
    assert render_highlight("hello", HighlightSpan(2, 2)) == "hello"


def test_highlight_printer_reports_changes_once(capsys: pytest.CaptureFixture[str]) -> None:
    printer = HighlightPrinter()

    printer.on_state(_state(SessionPhase.SPEAKING, None))
    printer.on_state(_state(SessionPhase.SPEAKING, HighlightSpan(5, 9)))
    printer.on_state(_state(SessionPhase.SPEAKING, HighlightSpan(5, 9)))
    printer.on_state(_state(SessionPhase.PAUSED, HighlightSpan(5, 9)))
    printer.on_state(_state(SessionPhase.IDLE, None))

    assert capsys.readouterr().out.splitlines() == [
        "[phase] speaking",
        "[highlight] 5-9 this",
        "[phase] paused",
        "[phase] idle",
    ]


def test_echo_voice_options_marks_only_an_explicit_selection(
    capsys: pytest.CaptureFixture[str],
) -> None:
    options = (
        DEFAULT_VOICE_OPTION,
        VoiceDescriptor(id="com.voice.thomas", display_name="Thomas", language="fr-FR"),
    )

    echo_voice_options(options)
    unmarked = capsys.readouterr().out.splitlines()
    echo_voice_options(options, selected_index=1)
    marked = capsys.readouterr().out.splitlines()

    assert unmarked == ["  0. System Default", "  1. Thomas (com.voice.thomas)"]
    assert marked == ["  0. System Default", "* 1. Thomas (com.voice.thomas)"]
