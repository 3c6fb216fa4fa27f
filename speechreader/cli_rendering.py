"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
language and voice listings, and live highlight lines.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import ReaderStageError
from .models.datatypes import HighlightSpan, SessionPhase, SessionState, VoiceDescriptor
from .voices.catalog import VoiceCatalog


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, ReaderStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_language_list(catalog: VoiceCatalog) -> None:
    """Print one `<code>  <display name>` row per available language."""

    for language in catalog.languages:
        typer.echo(f"{language}  {catalog.display_name(language)}")


def echo_voice_options(
    options: tuple[VoiceDescriptor, ...], selected_index: int | None = None
) -> None:
    """Print indexed voice options, marking the selected one when given."""

    for index, option in enumerate(options):
        marker = "*" if index == selected_index else " "
        suffix = f" ({option.id})" if option.id is not None else ""
        typer.echo(f"{marker} {index}. {option.display_name}{suffix}")


def render_highlight(text: str, span: HighlightSpan | None) -> str:
    """Return `text` with the highlighted span wrapped in square brackets."""

    if span is None or span.length == 0:
        return text
    return f"{text[:span.start]}[{text[span.start:span.end]}]{text[span.end:]}"


class HighlightPrinter:
    """Session subscriber printing one line per highlight or phase change."""

    def __init__(self) -> None:
        self._last_span: HighlightSpan | None = None
        self._last_phase: SessionPhase | None = None

    def on_state(self, state: SessionState) -> None:
        """Print deterministic `[highlight]` and `[phase]` lines for new state."""

        if state.phase is not self._last_phase:
            self._last_phase = state.phase
            typer.echo(f"[phase] {state.phase.value}")
        span = state.highlight_span
        if span is not None and span != self._last_span:
            word = state.text[span.start:span.end]
            typer.echo(f"[highlight] {span.start}-{span.end} {word}")
        self._last_span = span
