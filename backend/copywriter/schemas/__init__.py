"""Schemas layer - Pydantic models for API validation.

Schemas define the shape of data for API requests and responses.
They handle validation, serialization, and documentation.
"""

from copywriter.schemas.writer import (
    WriterErrorResponse,
    WriterHealthResponse,
    WriterInputSchema,
    WriterMetaResponse,
    WriterRequest,
    WriterResponse,
)

__all__ = [
    "WriterErrorResponse",
    "WriterHealthResponse",
    "WriterInputSchema",
    "WriterMetaResponse",
    "WriterRequest",
    "WriterResponse",
]
