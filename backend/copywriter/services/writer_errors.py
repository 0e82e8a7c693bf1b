"""Typed failures of the writer pipeline.

Every user-visible failure is one of these; the HTTP layer maps the
`reason` to a status code and a structured error body.
"""

from typing import Any


class WriterPipelineError(Exception):
    """Base exception for writer pipeline failures."""

    reason = "internal"

    def __init__(
        self,
        message: str,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason,
            "message": self.message,
            "correlation_id": self.correlation_id,
        }


class GenerationFailedError(WriterPipelineError):
    """Every attempt in a generation round failed."""

    reason = "generation_failed"

    def __init__(
        self,
        message: str,
        status: int = 0,
        status_text: str = "",
        attempts: list[dict[str, Any]] | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            correlation_id=correlation_id,
            details={"status": status, "status_text": status_text},
        )
        self.status = status
        self.status_text = status_text
        self.attempts = attempts or []


class ContentEmptyError(WriterPipelineError):
    """A winner was selected but its repaired text is empty."""

    reason = "content_empty"


class WriterInternalError(WriterPipelineError):
    """Unexpected exception anywhere in the pipeline."""

    reason = "internal"
