"""Command-line interface for speechreader.

Responsibilities:
- Expose user-facing commands for voice discovery and speaking text.
- Compose backend, catalog, and session, and drain session events on the
  main thread while an utterance plays.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    HighlightPrinter,
    echo_language_list,
    echo_voice_options,
    exit_with_command_error,
    render_highlight,
)
from .config import ConfigLoader, ReaderConfig
from .errors import ReaderStageError
from .models.datatypes import HighlightSpan, SessionPhase
from .parsing import normalize_language
from .session.dispatcher import QueueDispatcher
from .session.highlight import expand_to_word_boundary
from .session.speech_session import SpeechSession, initial_language, system_language
from .telemetry.logger import SessionLogger
from .tts.backend import SpeechBackend
from .tts.pyttsx3_backend import Pyttsx3SpeechBackend
from .voices.catalog import VoiceCatalog

_POLL_INTERVAL_SECONDS = 0.05

app = typer.Typer(
    name="speechreader",
    no_args_is_help=True,
    help="Speech reader CLI.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with reader defaults."),
]
DriverOption = Annotated[
    str | None,
    typer.Option("--driver", help="pyttsx3 driver name (`sapi5`, `nsss`, `espeak`)."),
]
LogLevelOption = Annotated[
    str,
    typer.Option("--log-level", help="Session log level written to stderr."),
]


def _load_config(config_path: Path | None) -> ReaderConfig:
    """Load YAML config when requested, else environment defaults, mapping failures."""

    try:
        if config_path is None:
            return ConfigLoader.from_env()
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise ReaderStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise ReaderStageError(
            stage="config",
            detail=f"Invalid configuration: {exc}",
            hint="Fix config values and rerun.",
        ) from exc


def _create_backend(driver: str | None) -> SpeechBackend:
    """Create the platform speech backend, mapping engine start failures."""

    try:
        return Pyttsx3SpeechBackend(driver_name=driver)
    except Exception as exc:
        raise ReaderStageError(
            stage="backend",
            detail=f"Failed to start speech engine: {exc}",
            hint="Install a platform speech engine (eSpeak NG on Linux) and rerun.",
        ) from exc


def _read_text(text: str | None, text_file: Path | None) -> str:
    """Return text from exactly one of the argument or `--file`."""

    if (text is None) == (text_file is None):
        raise ReaderStageError(
            stage="input",
            detail="Provide exactly one text source: `<text>` or `--file <path>`.",
            hint="Use `speechreader speak --help` for usage examples.",
        )
    if text_file is None:
        return text or ""
    try:
        return text_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReaderStageError(
            stage="input",
            detail=f"Failed to read text file `{text_file}`: {exc}",
        ) from exc


@app.command("languages")
def languages_command(
    config_file: ConfigOption = None,
    driver: DriverOption = None,
) -> None:
    """List languages that have at least one voice."""

    try:
        config = _load_config(config_file).with_overrides(driver=driver)
        catalog = VoiceCatalog.build(_create_backend(config.driver))
    except Exception as exc:
        exit_with_command_error("languages", exc)

    echo_language_list(catalog)


@app.command("voices")
def voices_command(
    language: Annotated[
        str | None,
        typer.Argument(help="Language tag such as `en-US`. Defaults to the session language."),
    ] = None,
    config_file: ConfigOption = None,
    driver: DriverOption = None,
) -> None:
    """List indexed voice options for one language."""

    try:
        config = _load_config(config_file).with_overrides(driver=driver)
        catalog = VoiceCatalog.build(_create_backend(config.driver))
        if language:
            resolved_language = normalize_language(language)
        else:
            resolved_language = initial_language(
                catalog, preferred=config.language, system=system_language()
            )
    except Exception as exc:
        exit_with_command_error("voices", exc)

    typer.echo(f"Language: {resolved_language} ({catalog.display_name(resolved_language)})")
    echo_voice_options(catalog.options_for_language(resolved_language))


@app.command("speak")
def speak_command(
    text: Annotated[str | None, typer.Argument(help="Text to speak.")] = None,
    text_file: Annotated[
        Path | None,
        typer.Option("--file", help="Read the text to speak from a UTF-8 file."),
    ] = None,
    language: Annotated[
        str | None, typer.Option("--language", help="Language tag such as `en-US`.")
    ] = None,
    voice_index: Annotated[
        int | None,
        typer.Option("--voice-index", help="Index from `speechreader voices`; 0 is System Default."),
    ] = None,
    rate: Annotated[
        float | None, typer.Option("--rate", help="Normalized speaking rate.")
    ] = None,
    config_file: ConfigOption = None,
    driver: DriverOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Speak text and print each highlighted word as it is spoken."""

    try:
        content = _read_text(text, text_file)
        config = _load_config(config_file).with_overrides(
            language=language,
            voice_index=voice_index,
            rate=rate,
            driver=driver,
        )
        logger = SessionLogger(level=log_level.upper())
        backend = _create_backend(config.driver)
        catalog = VoiceCatalog.build(backend, logger=logger)
        if config.language is not None and config.language not in catalog.languages:
            raise ReaderStageError(
                stage="config",
                detail=f"No voices are available for language `{config.language}`.",
                hint="Run `speechreader languages` to list available languages.",
            )
        session = SpeechSession(
            backend,
            catalog,
            config,
            dispatcher=QueueDispatcher(),
            logger=logger,
        )
    except Exception as exc:
        exit_with_command_error("speak", exc)

    session.subscribe(HighlightPrinter().on_state)
    try:
        session.speak(content)
        if not content.strip():
            typer.echo("Nothing to speak.")
        while session.phase is not SessionPhase.IDLE:
            session.process_events(timeout=_POLL_INTERVAL_SECONDS)
    except KeyboardInterrupt:
        session.stop()
    finally:
        session.close()

    if session.last_error:
        exit_with_command_error(
            "speak",
            ReaderStageError(stage="backend", detail=session.last_error),
        )


@app.command("highlight")
def highlight_command(
    text: Annotated[str, typer.Argument(help="Utterance text.")],
    start: Annotated[int, typer.Argument(help="Raw range start offset.")],
    end: Annotated[int, typer.Argument(help="Raw range end offset (exclusive).")],
) -> None:
    """Expand a raw character range to word boundaries and show the result."""

    if end < start:
        exit_with_command_error(
            "highlight",
            ReaderStageError(
                stage="input",
                detail="`end` must not be smaller than `start`.",
            ),
        )
    span = expand_to_word_boundary(text, HighlightSpan(start=start, end=end))
    if span is None:
        typer.echo("Span: none")
        return
    typer.echo(f"Span: {span.start}-{span.end}")
    typer.echo(render_highlight(text, span))


def main() -> None:
    """Run the Typer application."""

    app()
