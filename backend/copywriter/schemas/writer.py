"""Pydantic schemas for the writer API.

Defines the request and response schemas for the writer endpoint.
The request carries either a structured `input` object or free-text
`raw_input`, plus the already-composed prompt pair.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class WriterInputSchema(BaseModel):
    """Structured writer request fields."""

    product_name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(default="", max_length=100)
    goal: str = Field(default="", max_length=500)
    audience: str = Field(default="", max_length=200)
    platform: str | None = Field(default=None, max_length=50)
    brand_voice: str | None = None
    tone: str | None = Field(default=None, max_length=50)
    style: str | None = Field(default=None, max_length=50)
    length_hint: str | None = Field(default=None, max_length=50)
    keywords: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    selling_points: list[str] = Field(default_factory=list)
    objections: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)
    cta_preference: list[str] = Field(default_factory=list)


class WriterRequest(BaseModel):
    """Request to generate one quality-controlled text."""

    input: WriterInputSchema | None = Field(
        default=None, description="Structured request fields"
    )
    raw_input: str | None = Field(
        default=None,
        max_length=20000,
        description="JSON text or labelled free text (商品名：... etc.)",
    )
    system_prompt: str = Field(..., min_length=1, description="Composed system prompt")
    user_prompt: str = Field(..., min_length=1, description="Composed user prompt")
    model: str | None = Field(default=None, description="Generation model override")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)

    @model_validator(mode="after")
    def check_input_present(self) -> "WriterRequest":
        if self.input is None and not (self.raw_input or "").strip():
            raise ValueError("Either input or raw_input is required")
        return self


class WriterMetaResponse(BaseModel):
    """Presentation metadata for the generated text."""

    style: str
    tone: str
    template_key: str
    cta_mode: str


class WriterResponse(BaseModel):
    """Successful writer response."""

    text: str
    meta: WriterMetaResponse
    correlation_id: str


class WriterErrorResponse(BaseModel):
    """Structured writer failure."""

    error: str
    code: str
    reason: str
    correlation_id: str | None = None
    request_id: str


class WriterHealthResponse(BaseModel):
    """Writer subsystem status."""

    status: str
    generation_configured: bool
    model: str
    candidate_count: int
    rescue_enabled: bool
    log_mode: str
    details: dict[str, Any] = Field(default_factory=dict)
