"""Writer pipeline: generation -> repair -> scoring -> selection -> safety repair.

Orchestrates one request end to end and converts every failure into a
typed WriterPipelineError:
- generation_failed: every attempt in the initial round failed
- content_empty: the selected text is empty after repair
- internal: any unexpected exception (wraps the original message)

A request/success/failure event is sent to the log sink on a best-effort
basis; sink failures never change the result.

ERROR LOGGING REQUIREMENTS:
- Include correlation_id in every log and event
- Log pipeline failures with reason, message and attempt summary
- Never log generated text; events carry a SHA-256 prefix and metrics
- Log density phrases only in masked form
"""

import hashlib
import re
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from copywriter.core.config import WriterPipelineConfig
from copywriter.core.logging import get_logger, writer_logger
from copywriter.integrations.log_sink import LogSink, NullLogSink
from copywriter.integrations.openai import GenerationClient, GenerationRequest
from copywriter.services.candidates import SelectionResult
from copywriter.services.generation import generate_candidates
from copywriter.services.normalizer import NormalizedInput
from copywriter.services.safety_repair import apply_safety_repair
from copywriter.services.selection import CandidateSelector
from copywriter.services.writer_errors import (
    ContentEmptyError,
    GenerationFailedError,
    WriterInternalError,
    WriterPipelineError,
)

logger = get_logger(__name__)

DEFAULT_TONE_KEY = "warm_intelligent"
TONE_PRESET_KEYS: tuple[str, ...] = ("warm_intelligent", "formal", "emotional_sincere")
DETAIL_MIN_CHARS = 500
TEXT_HASH_LENGTH = 16

META_BULLET_RE = re.compile(r"^[\-\*・]")
H2_RE = re.compile(r"^##\s")
FAQ_LINE_RE = re.compile(r"^(?:Q[.．:：]|Ｑ[.．:：])")
PRIMARY_CTA_RE = re.compile(r"^一次CTA[：:]\s?.+", re.MULTILINE)
ALTERNATE_CTA_RE = re.compile(r"^代替CTA[：:]\s?.+", re.MULTILINE)

__all__ = [
    "ContentEmptyError",
    "GenerationFailedError",
    "WriterInternalError",
    "WriterMeta",
    "WriterPipeline",
    "WriterPipelineError",
    "WriterResult",
    "analyze_text",
    "extract_meta",
]


@dataclass(frozen=True)
class WriterMeta:
    """Presentation metadata returned with the final text."""

    style: str
    tone: str
    template_key: str
    cta_mode: str

    def to_dict(self) -> dict[str, str]:
        return {
            "style": self.style,
            "tone": self.tone,
            "template_key": self.template_key,
            "cta_mode": self.cta_mode,
        }


@dataclass(frozen=True)
class WriterResult:
    """Final text plus metadata and the diagnostic trace."""

    text: str
    meta: WriterMeta
    correlation_id: str
    trace: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "meta": self.meta.to_dict(),
            "correlation_id": self.correlation_id,
        }


def text_lines(text: str) -> list[str]:
    return (text or "").strip().split("\n")


def extract_style(text: str) -> str:
    """bullet (2+ bullets), detail (2+ H2 or long), otherwise summary."""
    lines = [line.strip() for line in text_lines(text)]
    if sum(1 for line in lines if META_BULLET_RE.match(line)) >= 2:
        return "bullet"
    if (
        sum(1 for line in lines if H2_RE.match(line)) >= 2
        or len((text or "").strip()) > DETAIL_MIN_CHARS
    ):
        return "detail"
    return "summary"


def resolve_tone_key(data: NormalizedInput) -> str:
    """Known tone preset for the requested tone or style."""
    wanted = (data.tone or "").strip().lower() or (data.style or "").strip().lower()
    if wanted in TONE_PRESET_KEYS:
        return wanted
    for key in TONE_PRESET_KEYS:
        if wanted and key in wanted:
            return key
    return DEFAULT_TONE_KEY


def extract_meta(text: str, data: NormalizedInput) -> WriterMeta:
    return WriterMeta(
        style=extract_style(text),
        tone=resolve_tone_key(data),
        template_key=data.platform or "default",
        cta_mode=data.cta_preference[0] if data.cta_preference else "none",
    )


def analyze_text(text: str) -> dict[str, Any]:
    """Text metrics for the success event."""
    stripped = (text or "").strip()
    lines = [line.strip() for line in text_lines(text)]
    return {
        "char_count": len(stripped),
        "line_count": len(lines),
        "bullet_count": sum(1 for line in lines if META_BULLET_RE.match(line)),
        "h2_count": sum(1 for line in lines if H2_RE.match(line)),
        "faq_count": sum(1 for line in lines if FAQ_LINE_RE.match(line)),
        "has_final_cta": bool(
            PRIMARY_CTA_RE.search(stripped) and ALTERNATE_CTA_RE.search(stripped)
        ),
    }


def text_sha256_16(text: str) -> str:
    return hashlib.sha256((text or "").encode("utf-8")).hexdigest()[:TEXT_HASH_LENGTH]


class WriterPipeline:
    """One configured writer pipeline.

    Example:
        pipeline = WriterPipeline(client, WriterPipelineConfig(), sink)
        result = await pipeline.run(normalized, request)
    """

    def __init__(
        self,
        client: GenerationClient,
        config: WriterPipelineConfig | None = None,
        sink: LogSink | None = None,
    ) -> None:
        self._client = client
        self._config = config or WriterPipelineConfig()
        self._sink: LogSink = sink or NullLogSink()
        self._selector = CandidateSelector(client, self._config)

    @property
    def config(self) -> WriterPipelineConfig:
        return self._config

    async def _emit(self, kind: str, payload: dict[str, Any]) -> None:
        try:
            await self._sink.emit(kind, payload)
        except Exception as e:
            writer_logger.sink_delivery_failed(kind, f"{type(e).__name__}: {e}")

    def _success_payload(
        self,
        text: str,
        meta: WriterMeta,
        selection: SelectionResult,
        request: GenerationRequest,
        data: NormalizedInput,
        correlation_id: str,
        duration_ms: float,
    ) -> dict[str, Any]:
        winner = selection.winner
        return {
            "ok": True,
            "correlation_id": correlation_id,
            "model": request.model,
            "temperature": request.temperature,
            "input": {
                "category": data.category,
                "goal": data.goal,
                "platform": data.platform,
            },
            "meta": meta.to_dict(),
            "metrics": analyze_text(text),
            "durations": {"total_ms": round(duration_ms, 2)},
            "hash": {"text_sha256_16": text_sha256_16(text)},
            "density": {
                "density_a": winner.density_a,
                "input_count": winner.input_count,
                "used_count": winner.used_count,
                "unused_top3_masked": list(winner.unused_top3_masked),
            },
            **selection.to_trace(),
        }

    async def _fail(
        self,
        error: WriterPipelineError,
        request: GenerationRequest,
        start_time: float,
    ) -> None:
        duration_ms = (time.monotonic() - start_time) * 1000
        attempts = error.attempts if isinstance(error, GenerationFailedError) else None
        writer_logger.pipeline_failure(
            error.correlation_id or "",
            error.reason,
            error.message,
            duration_ms,
            attempts=attempts,
        )
        await self._emit(
            "failure",
            {
                "ok": False,
                "correlation_id": error.correlation_id,
                "model": request.model,
                "reason": error.reason,
                "message": error.message,
                "details": error.details,
                "attempts": attempts,
                "durations": {"total_ms": round(duration_ms, 2)},
            },
        )

    async def run(
        self,
        data: NormalizedInput,
        request: GenerationRequest,
        correlation_id: str | None = None,
    ) -> WriterResult:
        """Produce one final text for a normalized request.

        Args:
            data: Normalized request
            request: Composed prompt pair and model parameters
            correlation_id: Caller-supplied ID; generated when omitted

        Returns:
            WriterResult with the safety-repaired winning text

        Raises:
            GenerationFailedError: No initial attempt succeeded
            ContentEmptyError: The selected text is empty
            WriterInternalError: Any unexpected exception
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        start_time = time.monotonic()

        await self._emit(
            "request",
            {
                "correlation_id": correlation_id,
                "model": request.model,
                "attempts": self._config.candidate_count,
            },
        )

        try:
            candidates = await generate_candidates(
                self._client,
                request,
                count=self._config.candidate_count,
                correlation_id=correlation_id,
            )
            selection = await self._selector.select(
                candidates, data, request, correlation_id=correlation_id
            )

            text = apply_safety_repair(selection.winner.text)
            if not text.strip():
                raise ContentEmptyError(
                    "Final text is empty", correlation_id=correlation_id
                )
            meta = extract_meta(text, data)
        except WriterPipelineError as e:
            e.correlation_id = e.correlation_id or correlation_id
            await self._fail(e, request, start_time)
            raise
        except Exception as e:
            logger.exception(
                "Unexpected writer pipeline error",
                extra={"correlation_id": correlation_id, "error_type": type(e).__name__},
            )
            internal = WriterInternalError(
                str(e) or type(e).__name__, correlation_id=correlation_id
            )
            await self._fail(internal, request, start_time)
            raise internal from e

        duration_ms = (time.monotonic() - start_time) * 1000
        trace = self._success_payload(
            text, meta, selection, request, data, correlation_id, duration_ms
        )
        await self._emit("success", trace)

        return WriterResult(
            text=text,
            meta=meta,
            correlation_id=correlation_id,
            trace=trace,
        )
