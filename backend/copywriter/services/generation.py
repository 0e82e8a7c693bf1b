"""Candidate generator: concurrent fan-out to the generation service.

Issues `count` calls with the same request, waits for all of them
(join-all, not first-wins) and maps every result to a Candidate by index.
A client exception becomes a failed Candidate instead of cancelling its
siblings.
"""

import asyncio
import time

from copywriter.core.logging import writer_logger
from copywriter.integrations.openai import (
    GenerationClient,
    GenerationRequest,
    GenerationResult,
)
from copywriter.services.candidates import ERROR_PREVIEW_MAX_LENGTH, Candidate
from copywriter.services.writer_errors import GenerationFailedError

DEFAULT_CANDIDATE_COUNT = 3


def to_candidate(index: int, result: GenerationResult | BaseException) -> Candidate:
    """Map one gathered result (or raised exception) to a Candidate."""
    if isinstance(result, BaseException):
        return Candidate(
            index=index,
            success=False,
            status=0,
            status_text=type(result).__name__,
            error_preview=str(result)[:ERROR_PREVIEW_MAX_LENGTH],
        )
    if result.success:
        return Candidate(
            index=index,
            success=True,
            text=result.text or "",
            latency_ms=result.latency_ms,
            status=result.status,
            status_text=result.status_text,
        )
    return Candidate(
        index=index,
        success=False,
        latency_ms=result.latency_ms,
        status=result.status,
        status_text=result.status_text,
        error_preview=(result.error_text or "")[:ERROR_PREVIEW_MAX_LENGTH],
    )


async def generate_candidates(
    client: GenerationClient,
    request: GenerationRequest,
    count: int = DEFAULT_CANDIDATE_COUNT,
    correlation_id: str = "",
    start_index: int = 1,
    round_name: str = "initial",
) -> tuple[Candidate, ...]:
    """Run `count` concurrent generation calls and collect every outcome.

    Args:
        client: Generation service client
        request: Composed prompt pair and model parameters
        count: Number of concurrent attempts
        correlation_id: Pipeline correlation ID for logs
        start_index: Index assigned to the first attempt
        round_name: Label for logs ("initial" or "rescue")

    Returns:
        Immutable tuple of Candidates ordered by index

    Raises:
        GenerationFailedError: If no attempt succeeded
    """
    writer_logger.generation_start(correlation_id, count, request.model, round_name)
    start_time = time.monotonic()

    results = await asyncio.gather(
        *(client.generate(request) for _ in range(count)),
        return_exceptions=True,
    )
    candidates = tuple(
        to_candidate(start_index + offset, result)
        for offset, result in enumerate(results)
    )

    failures = [c for c in candidates if not c.success]
    for c in failures:
        writer_logger.candidate_failed(
            correlation_id, c.index, c.status, c.status_text, c.error_preview or ""
        )
    writer_logger.generation_complete(
        correlation_id,
        round_name,
        len(candidates) - len(failures),
        len(failures),
        (time.monotonic() - start_time) * 1000,
    )

    if len(failures) == len(candidates):
        first = failures[0] if failures else None
        raise GenerationFailedError(
            message=(
                f"All {count} generation attempts failed"
                + (f": {first.status} {first.status_text}" if first else "")
            ),
            status=first.status if first else 0,
            status_text=first.status_text if first else "",
            attempts=[c.summary() for c in candidates],
            correlation_id=correlation_id or None,
        )
    return candidates


def successful(candidates: tuple[Candidate, ...]) -> tuple[Candidate, ...]:
    return tuple(c for c in candidates if c.success)
