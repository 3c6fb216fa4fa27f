"""Language-keyed index over a speech backend's voice inventory.

Responsibilities:
- Enumerate backend voices once and derive the sorted language list.
- Serve per-language voice lists and option lists (System Default first).
- Answer voice-identity and language-availability checks.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from ..errors import CatalogBuildError
from ..models.datatypes import DEFAULT_VOICE_OPTION, VoiceDescriptor
from ..parsing import normalize_language
from .language_names import language_display_name

if TYPE_CHECKING:
    from ..telemetry.logger import SessionLogger
    from ..tts.backend import SpeechBackend


class VoiceCatalog:
    """Read-only voice index built once per process."""

    def __init__(self, voices: Iterable[VoiceDescriptor]) -> None:
        """Index descriptors, normalizing each language tag."""

        self._voices: tuple[VoiceDescriptor, ...] = tuple(
            VoiceDescriptor(
                id=voice.id,
                display_name=voice.display_name,
                language=normalize_language(voice.language),
            )
            for voice in voices
        )
        self._languages: tuple[str, ...] = tuple(
            sorted({voice.language for voice in self._voices})
        )
        self._voice_ids = frozenset(voice.id for voice in self._voices if voice.id is not None)

    @classmethod
    def build(
        cls,
        backend: SpeechBackend,
        logger: SessionLogger | None = None,
    ) -> VoiceCatalog:
        """Enumerate backend voices and build the catalog.

        Raises:
            CatalogBuildError: If enumeration fails or reports no voices at all.
        """

        try:
            voices = list(backend.enumerate_voices())
        except Exception as exc:
            if logger is not None:
                logger.failure("catalog", "build", exc)
            raise CatalogBuildError(
                f"Failed to enumerate speech voices: {exc}",
                hint="Verify a platform speech engine is installed and reachable.",
            ) from exc

        if not voices:
            raise CatalogBuildError(
                "Speech backend reported no voices.",
                hint="Install at least one system voice and rerun.",
            )

        catalog = cls(voices)
        if logger is not None:
            logger.info(
                "catalog",
                "built",
                voices=len(catalog),
                languages=len(catalog.languages),
            )
        return catalog

    def __len__(self) -> int:
        return len(self._voices)

    @property
    def all_voices(self) -> tuple[VoiceDescriptor, ...]:
        """Return every known voice in enumeration order."""

        return self._voices

    @property
    def languages(self) -> tuple[str, ...]:
        """Return the sorted distinct languages across all voices."""

        return self._languages

    def voices_for_language(self, language: str) -> tuple[VoiceDescriptor, ...]:
        """Return voices for one language sorted by display name."""

        code = normalize_language(language)
        return tuple(
            sorted(
                (voice for voice in self._voices if voice.language == code),
                key=lambda voice: voice.display_name,
            )
        )

    def options_for_language(self, language: str) -> tuple[VoiceDescriptor, ...]:
        """Return the selectable option list, System Default first."""

        return (DEFAULT_VOICE_OPTION, *self.voices_for_language(language))

    def display_name(self, language: str) -> str:
        """Return a readable name for a language tag, never raising."""

        return language_display_name(language)

    def contains_voice_id(self, voice_id: str | None) -> bool:
        """Return `True` when `voice_id` names a voice known to the catalog."""

        return voice_id is not None and voice_id in self._voice_ids

    def is_language_available(self, code: str) -> bool:
        """Return `True` when any voice matches `code` exactly or as a prefix."""

        normalized = normalize_language(code)
        if not normalized:
            return False
        prefix = f"{normalized}-"
        return any(
            language == normalized or language.startswith(prefix)
            for language in self._languages
        )
