"""Writer API endpoints.

Provides quality-controlled copy generation:
- POST /api/v1/writer - Generate one final text for a writer request
- GET /api/v1/writer/health - Writer subsystem status

Error Logging Requirements:
- Log all incoming requests with request_id and correlation_id
- Return structured error responses:
  {"error": str, "code": str, "reason": str, "correlation_id": str, "request_id": str}
- Log 4xx errors at WARNING, 5xx at ERROR
- Never log prompt or generated text bodies
"""

import time

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from copywriter.core.config import WriterPipelineConfig, get_settings
from copywriter.core.logging import get_logger
from copywriter.integrations.log_sink import get_log_sink
from copywriter.integrations.openai import GenerationRequest, get_openai
from copywriter.schemas.writer import (
    WriterErrorResponse,
    WriterHealthResponse,
    WriterMetaResponse,
    WriterRequest,
    WriterResponse,
)
from copywriter.services.normalizer import (
    InputNormalizationError,
    NormalizedInput,
    coerce_to_input,
    normalize_input,
)
from copywriter.services.writer_errors import (
    ContentEmptyError,
    GenerationFailedError,
    WriterPipelineError,
)
from copywriter.services.writer_pipeline import WriterPipeline

logger = get_logger(__name__)

router = APIRouter()

# reason -> (HTTP status, error code)
ERROR_STATUS: dict[str, tuple[int, str]] = {
    GenerationFailedError.reason: (status.HTTP_502_BAD_GATEWAY, "GENERATION_FAILED"),
    ContentEmptyError.reason: (status.HTTP_502_BAD_GATEWAY, "CONTENT_EMPTY"),
}
INTERNAL_STATUS = (status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR")


def _get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


async def get_writer_pipeline() -> WriterPipeline:
    """Dependency building a pipeline from the current settings."""
    settings = get_settings()
    return WriterPipeline(
        client=await get_openai(),
        config=WriterPipelineConfig.from_settings(settings),
        sink=await get_log_sink(),
    )


def _normalize(data: WriterRequest) -> NormalizedInput:
    if data.input is not None:
        return coerce_to_input(data.input.model_dump(), raw=data.raw_input)
    return normalize_input(data.raw_input)


def pipeline_error_response(
    error: WriterPipelineError, request_id: str
) -> JSONResponse:
    status_code, code = ERROR_STATUS.get(error.reason, INTERNAL_STATUS)
    return JSONResponse(
        status_code=status_code,
        content=WriterErrorResponse(
            error=error.message,
            code=code,
            reason=error.reason,
            correlation_id=error.correlation_id,
            request_id=request_id,
        ).model_dump(),
    )


@router.post(
    "",
    response_model=WriterResponse,
    summary="Generate quality-controlled copy",
    description=(
        "Runs concurrent generation attempts, repairs and scores every "
        "candidate, optionally requests one rescue attempt and returns the "
        "safety-repaired winning text."
    ),
    responses={
        422: {
            "description": "Validation error",
            "content": {
                "application/json": {
                    "example": {
                        "error": "Either input or raw_input is required",
                        "code": "VALIDATION_ERROR",
                        "request_id": "<uuid>",
                    }
                }
            },
        },
        502: {
            "description": "Generation failed or produced no content",
            "content": {
                "application/json": {
                    "example": {
                        "error": "All 3 generation attempts failed: 500 Internal Server Error",
                        "code": "GENERATION_FAILED",
                        "reason": "generation_failed",
                        "correlation_id": "<uuid>",
                        "request_id": "<uuid>",
                    }
                }
            },
        },
        500: {
            "description": "Internal server error",
            "content": {
                "application/json": {
                    "example": {
                        "error": "<details>",
                        "code": "INTERNAL_ERROR",
                        "reason": "internal",
                        "correlation_id": "<uuid>",
                        "request_id": "<uuid>",
                    }
                }
            },
        },
    },
)
async def write(
    request: Request,
    data: WriterRequest,
    pipeline: WriterPipeline = Depends(get_writer_pipeline),
) -> WriterResponse | JSONResponse:
    """Generate one final text for a writer request.

    The correlation_id of the pipeline run is the request_id assigned by
    the request logging middleware, so logs, events and the response can
    be joined on one ID.
    """
    request_id = _get_request_id(request)
    start_time = time.monotonic()
    settings = get_settings()

    try:
        normalized = _normalize(data)
    except InputNormalizationError as e:
        logger.warning(
            "Writer input normalization failed",
            extra={"request_id": request_id, "error": str(e)},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": str(e),
                "code": "VALIDATION_ERROR",
                "request_id": request_id,
            },
        )

    generation_request = GenerationRequest(
        system_prompt=data.system_prompt,
        user_prompt=data.user_prompt,
        model=data.model or settings.openai_model,
        temperature=(
            data.temperature
            if data.temperature is not None
            else settings.openai_temperature
        ),
    )

    logger.info(
        "Writer request",
        extra={
            "request_id": request_id,
            "model": generation_request.model,
            "platform": normalized.platform,
            "selling_point_count": len(normalized.selling_points),
        },
    )

    try:
        result = await pipeline.run(
            normalized, generation_request, correlation_id=request_id
        )
    except WriterPipelineError as e:
        duration_ms = (time.monotonic() - start_time) * 1000
        log = logger.error if e.reason == "internal" else logger.warning
        log(
            "Writer request failed",
            extra={
                "request_id": request_id,
                "reason": e.reason,
                "error": e.message,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return pipeline_error_response(e, request_id)

    duration_ms = (time.monotonic() - start_time) * 1000
    logger.info(
        "Writer response",
        extra={
            "request_id": request_id,
            "style": result.meta.style,
            "text_length": len(result.text),
            "duration_ms": round(duration_ms, 2),
        },
    )

    return WriterResponse(
        text=result.text,
        meta=WriterMetaResponse(**result.meta.to_dict()),
        correlation_id=result.correlation_id,
    )


@router.get(
    "/health",
    response_model=WriterHealthResponse,
    summary="Writer subsystem status",
)
async def writer_health() -> WriterHealthResponse:
    """Report generation configuration and pipeline toggles."""
    settings = get_settings()
    config = WriterPipelineConfig.from_settings(settings)
    configured = bool(settings.openai_api_key)
    return WriterHealthResponse(
        status="ok" if configured else "degraded",
        generation_configured=configured,
        model=settings.openai_model,
        candidate_count=config.candidate_count,
        rescue_enabled=config.rescue_enabled,
        log_mode=settings.writer_log_mode if settings.writer_log_enabled else "disabled",
        details={
            "rescue_on_all_disqualified": config.rescue_on_all_disqualified,
            "min_consecutive_match": config.min_consecutive_match,
        },
    )
