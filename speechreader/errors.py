"""Domain exceptions for catalog, backend, and CLI diagnostics."""

from __future__ import annotations


class ReaderStageError(RuntimeError):
    """Raised when a specific reader stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped reader error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class CatalogBuildError(ReaderStageError):
    """Raised when the backend voice inventory cannot be enumerated."""

    def __init__(self, detail: str, hint: str | None = None) -> None:
        super().__init__(stage="catalog", detail=detail, hint=hint)


class SpeechBackendError(ReaderStageError):
    """Raised when the speech backend rejects a playback command."""

    def __init__(self, detail: str, hint: str | None = None) -> None:
        super().__init__(stage="backend", detail=detail, hint=hint)
