"""Structured logging configuration.

All logs go to stdout. JSON format in production, text in development.

ERROR LOGGING REQUIREMENTS:
- Log all outbound generation calls with model, timing and status
- Mask API keys and tokens in all logs
- Never log full generated texts; previews are truncated, phrases masked
- Include correlation_id in every writer pipeline log
- Log rescue attempts and their outcome at INFO level
- Log pipeline failures with reason and attempt summary
"""

import logging
import sys
from datetime import UTC, datetime
from typing import Any

from pythonjsonlogger import jsonlogger

from copywriter.core.config import get_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined]
    """JSON formatter that stamps time, level and logger name."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def mask_secret(value: str | None) -> str:
    """Mask a token keeping the first and last four characters."""
    if not value or len(value) < 8:
        return "<hidden>"
    return f"{value[:4]}...{value[-4:]}"


def setup_logging() -> None:
    """Configure application logging on the root logger."""
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Quiet noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


def _truncate_text(text: str, max_length: int = 500) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... (truncated, {len(text)} chars)"


class OpenAILogger:
    """Logger for generation service calls.

    Logs outbound calls with timing and status, request/response bodies
    at DEBUG level (truncated), rate limits and auth failures.
    """

    def __init__(self) -> None:
        self.logger = get_logger("openai")

    def api_call_start(self, model: str, prompt_length: int) -> None:
        """Log outbound API call start at DEBUG level."""
        self.logger.debug(
            f"OpenAI API call: {model}",
            extra={"model": model, "prompt_length": prompt_length},
        )

    def api_call_success(
        self, model: str, duration_ms: float, status_code: int
    ) -> None:
        """Log successful API call at DEBUG level."""
        self.logger.debug(
            f"OpenAI API call completed: {model}",
            extra={
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "status_code": status_code,
                "success": True,
            },
        )

    def api_call_error(
        self,
        model: str,
        duration_ms: float,
        status_code: int | None,
        error: str,
        error_type: str,
    ) -> None:
        """Log failed API call at WARNING (4xx) or ERROR level."""
        level = logging.WARNING if status_code and 400 <= status_code < 500 else logging.ERROR
        self.logger.log(
            level,
            f"OpenAI API call failed: {model}",
            extra={
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "status_code": status_code,
                "error": _truncate_text(error, 300),
                "error_type": error_type,
                "success": False,
            },
        )

    def rate_limit(self, model: str, retry_after: str | None = None) -> None:
        """Log rate limit (429) at WARNING level."""
        self.logger.warning(
            "OpenAI API rate limit hit (429)",
            extra={"model": model, "retry_after": retry_after},
        )

    def auth_failure(self, status_code: int, api_key: str | None) -> None:
        """Log authentication failure (401/403) at WARNING level."""
        self.logger.warning(
            f"OpenAI API authentication failed ({status_code})",
            extra={"status_code": status_code, "api_key": mask_secret(api_key)},
        )

    def response_body(self, model: str, response_text: str) -> None:
        """Log response text at DEBUG level (truncated)."""
        self.logger.debug(
            "OpenAI API response body",
            extra={"model": model, "response_text": _truncate_text(response_text, 500)},
        )


openai_logger = OpenAILogger()


class WriterLogger:
    """Logger for the writer quality-control pipeline."""

    def __init__(self) -> None:
        self.logger = get_logger("writer")

    def generation_start(
        self, correlation_id: str, count: int, model: str, round_name: str
    ) -> None:
        """Log a generation round start at DEBUG level."""
        self.logger.debug(
            "Writer generation round starting",
            extra={
                "correlation_id": correlation_id,
                "attempts": count,
                "model": model,
                "round": round_name,
            },
        )

    def generation_complete(
        self,
        correlation_id: str,
        round_name: str,
        success_count: int,
        failure_count: int,
        duration_ms: float,
    ) -> None:
        """Log a generation round result at INFO level."""
        self.logger.info(
            "Writer generation round completed",
            extra={
                "correlation_id": correlation_id,
                "round": round_name,
                "success_count": success_count,
                "failure_count": failure_count,
                "duration_ms": round(duration_ms, 2),
            },
        )

    def candidate_failed(
        self,
        correlation_id: str,
        index: int,
        status: int,
        status_text: str,
        error_preview: str,
    ) -> None:
        """Log a single failed attempt at WARNING level."""
        self.logger.warning(
            "Writer candidate generation failed",
            extra={
                "correlation_id": correlation_id,
                "candidate_index": index,
                "status": status,
                "status_text": status_text,
                "error_preview": _truncate_text(error_preview, 200),
            },
        )

    def rescue_triggered(self, correlation_id: str, reason: str) -> None:
        """Log rescue trigger at INFO level."""
        self.logger.info(
            "Writer rescue attempt triggered",
            extra={"correlation_id": correlation_id, "trigger_reason": reason},
        )

    def rescue_complete(
        self, correlation_id: str, outcome: str, error: str | None = None
    ) -> None:
        """Log rescue outcome; failures at WARNING level."""
        level = logging.WARNING if outcome == "failed" else logging.INFO
        self.logger.log(
            level,
            "Writer rescue attempt finished",
            extra={
                "correlation_id": correlation_id,
                "outcome": outcome,
                "error": error,
            },
        )

    def selection_complete(
        self,
        correlation_id: str,
        winner_index: int,
        score: int,
        reasons: list[str],
        pool_size: int,
        density_a: float | None,
    ) -> None:
        """Log the chosen candidate at INFO level."""
        self.logger.info(
            "Writer candidate selected",
            extra={
                "correlation_id": correlation_id,
                "candidate_index": winner_index,
                "score": score,
                "reasons": reasons,
                "pool_size": pool_size,
                "density_a": density_a,
            },
        )

    def pipeline_failure(
        self,
        correlation_id: str,
        reason: str,
        message: str,
        duration_ms: float,
        attempts: list[dict[str, Any]] | None = None,
    ) -> None:
        """Log a typed pipeline failure at ERROR level."""
        self.logger.error(
            "Writer pipeline failed",
            extra={
                "correlation_id": correlation_id,
                "reason": reason,
                "error_message": message,
                "duration_ms": round(duration_ms, 2),
                "attempts": attempts,
            },
        )

    def sink_delivery_failed(self, kind: str, error: str) -> None:
        """Log event sink delivery failure at WARNING level."""
        self.logger.warning(
            "Writer event delivery failed",
            extra={"kind": kind, "error": error},
        )


writer_logger = WriterLogger()
