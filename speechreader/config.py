"""Configuration model and loaders for speechreader.

Responsibilities:
- Define reader startup defaults as a typed dataclass.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `ReaderConfig`: normalized startup settings for one reader surface.
- `ConfigLoader`: static construction helpers for `ReaderConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_language, normalize_optional_string

DEFAULT_RATE = 0.5
DEFAULT_RATE_MIN = 0.3
DEFAULT_RATE_MAX = 0.6


@dataclass(slots=True)
class ReaderConfig:
    """Startup configuration for one reader surface.

    Attributes:
        language: Preferred initial language; `None` uses the system locale.
        voice_index: Initial index into the language's voice options.
        rate: Initial normalized speaking rate.
        rate_min: Lower bound applied by rate clamping.
        rate_max: Upper bound applied by rate clamping.
        driver: Optional `pyttsx3` driver name (`sapi5`, `nsss`, `espeak`).
    """

    language: str | None = None
    voice_index: int = 0
    rate: float = DEFAULT_RATE
    rate_min: float = DEFAULT_RATE_MIN
    rate_max: float = DEFAULT_RATE_MAX
    driver: str | None = None

    def validate(self) -> None:
        """Validate configuration values before a session is constructed."""

        if self.rate_min <= 0.0 or self.rate_max <= 0.0:
            raise ValueError("`rate_min` and `rate_max` must be positive numbers.")
        if self.rate_min > self.rate_max:
            raise ValueError("`rate_min` must not exceed `rate_max`.")
        if self.voice_index < 0:
            raise ValueError("`voice_index` must be a non-negative integer.")

    def clamp_rate(self, rate: float) -> float:
        """Clamp `rate` into the configured `[rate_min, rate_max]` range."""

        return max(self.rate_min, min(self.rate_max, rate))

    def with_overrides(
        self,
        *,
        language: str | None = None,
        voice_index: int | None = None,
        rate: float | None = None,
        driver: str | None = None,
    ) -> ReaderConfig:
        """Return a copy with explicitly provided values taking precedence."""

        config = ReaderConfig(
            language=normalize_language(language) if language is not None else self.language,
            voice_index=voice_index if voice_index is not None else self.voice_index,
            rate=rate if rate is not None else self.rate,
            rate_min=self.rate_min,
            rate_max=self.rate_max,
            driver=driver if driver is not None else self.driver,
        )
        config.validate()
        return config


class ConfigLoader:
    """Factory methods for loading `ReaderConfig`."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {"language", "voice_index", "rate", "rate_min", "rate_max", "driver"}
    )

    @staticmethod
    def from_yaml(path: Path) -> ReaderConfig:
        """Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If `path` does not exist.
            ValueError: If the payload has unsupported keys or invalid values.
        """

        raw_text = path.read_text(encoding="utf-8")
        payload = yaml.safe_load(raw_text)
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"Config file `{path}` must contain a mapping at top level.")
        return ConfigLoader._build_config_from_mapping(payload, f"Config file `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> ReaderConfig:
        """Load configuration from `SPEECHREADER_*` environment variables."""

        source = env if env is not None else os.environ
        payload: dict[str, Any] = {}
        for key in ("language", "voice_index", "rate", "rate_min", "rate_max", "driver"):
            value = normalize_optional_string(source.get(f"SPEECHREADER_{key.upper()}"))
            if value is not None:
                payload[key] = value
        return ConfigLoader._build_config_from_mapping(payload, "Environment")

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> ReaderConfig:
        """Build and validate configuration from a parsed mapping."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(str(key) for key in unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        language = normalize_optional_string(payload.get("language"))
        config = ReaderConfig(
            language=normalize_language(language) if language is not None else None,
            voice_index=ConfigLoader._optional_int(payload, "voice_index", source_label, 0),
            rate=ConfigLoader._optional_float(payload, "rate", source_label, DEFAULT_RATE),
            rate_min=ConfigLoader._optional_float(
                payload, "rate_min", source_label, DEFAULT_RATE_MIN
            ),
            rate_max=ConfigLoader._optional_float(
                payload, "rate_max", source_label, DEFAULT_RATE_MAX
            ),
            driver=normalize_optional_string(payload.get("driver")),
        )
        config.validate()
        return config

    @staticmethod
    def _optional_int(
        payload: Mapping[str, Any], key: str, source_label: str, default: int
    ) -> int:
        """Read an optional integer field."""

        if key not in payload:
            return default
        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be an integer.")
        if isinstance(raw_value, int):
            return raw_value
        normalized = normalize_optional_string(raw_value)
        if normalized is None:
            return default
        try:
            return int(normalized)
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be an integer.") from exc

    @staticmethod
    def _optional_float(
        payload: Mapping[str, Any], key: str, source_label: str, default: float
    ) -> float:
        """Read an optional numeric field."""

        if key not in payload:
            return default
        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a number.")
        if isinstance(raw_value, (int, float)):
            return float(raw_value)
        normalized = normalize_optional_string(raw_value)
        if normalized is None:
            return default
        try:
            return float(normalized)
        except ValueError as exc:
            raise ValueError(f"{source_label} field `{key}` must be a number.") from exc
