"""Pytest configuration and fixtures.

Provides fixtures for:
- Settings override for testing
- A scripted generation client (no network)
- Sample normalized requests and candidate texts
- FastAPI test client with the writer pipeline overridden
"""

import asyncio
from collections.abc import Callable, Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from copywriter.core.config import Settings, WriterPipelineConfig, get_settings
from copywriter.integrations.log_sink import NullLogSink
from copywriter.integrations.openai import GenerationRequest, GenerationResult
from copywriter.services.normalizer import NormalizedInput
from copywriter.services.writer_pipeline import WriterPipeline

# ---------------------------------------------------------------------------
# Sample Texts
# ---------------------------------------------------------------------------

# Two lead sentences, three linked bullets, every input phrase used.
GOOD_TEXT = (
    "真空タンブラーは、デスクで温かい飲み物を長く楽しむための保温タンブラーです。\n"
    "在宅ワーカーが仕事中にデスクで使うと、朝いれたコーヒーが昼まで温かく保てます。\n"
    "・真空二重構造なので、飲み物の温度が外に逃げにくくなります。\n"
    "・容量350mLで、マグカップより多めに入れられます。\n"
    "・フタ付きのため、デスクでこぼれにくく安心です。"
)

# Same shape as GOOD_TEXT but with hype vocabulary in the lead.
ABSTRACT_TEXT = (
    "真空タンブラーは、最高の保温力で特別なひとときを届けるタンブラーです。\n"
    "在宅ワーカーが仕事中にデスクで使うと、朝いれたコーヒーが昼まで温かく保てます。\n"
    "・真空二重構造なので、飲み物の温度が外に逃げにくくなります。\n"
    "・容量350mLで、マグカップより多めに入れられます。\n"
    "・フタ付きのため、デスクでこぼれにくく安心です。"
)


# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


def get_test_settings() -> Settings:
    """Get test settings with a fake API key and console events disabled."""
    return Settings(
        app_name="Test App",
        app_version="0.0.1",
        debug=True,
        environment="test",
        log_level="DEBUG",
        log_format="text",
        openai_api_key="sk-test-key-1234567890",
        openai_model="gpt-test",
        writer_log_enabled=False,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Session-scoped test settings."""
    return get_test_settings()


# ---------------------------------------------------------------------------
# Generation Client Fixtures
# ---------------------------------------------------------------------------


class MockGenerationClient:
    """Scripted generation client.

    Each call consumes the next scripted outcome; the last one repeats
    once the script runs out. An outcome may be a GenerationResult or an
    exception instance, which is raised from generate().
    """

    def __init__(self, outcomes: list[GenerationResult | Exception]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        position = min(len(self.calls), len(self._outcomes) - 1)
        self.calls.append(request)
        outcome = self._outcomes[position]
        await asyncio.sleep(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def ok_result(text: str, latency_ms: float = 12.5) -> GenerationResult:
    return GenerationResult(
        success=True, text=text, latency_ms=latency_ms, status=200, status_text="OK"
    )


def error_result(
    status: int = 500, status_text: str = "Internal Server Error"
) -> GenerationResult:
    return GenerationResult(
        success=False,
        latency_ms=8.0,
        status=status,
        status_text=status_text,
        error_text="upstream exploded",
    )


@pytest.fixture
def make_client() -> Callable[..., MockGenerationClient]:
    """Factory for scripted generation clients."""

    def _make(*outcomes: GenerationResult | Exception) -> MockGenerationClient:
        return MockGenerationClient(list(outcomes))

    return _make


@pytest.fixture
def make_ok() -> Callable[..., GenerationResult]:
    return ok_result


@pytest.fixture
def make_error() -> Callable[..., GenerationResult]:
    return error_result


@pytest.fixture
def good_text() -> str:
    return GOOD_TEXT


@pytest.fixture
def abstract_text() -> str:
    return ABSTRACT_TEXT


# ---------------------------------------------------------------------------
# Request Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_input() -> NormalizedInput:
    """A normalized tumbler request with two selling points."""
    return NormalizedInput(
        product_name="真空タンブラー",
        category="キッチン用品",
        goal="デスクで温かい飲み物を長く楽しむ",
        audience="在宅ワーカー",
        selling_points=("真空二重構造", "容量350mL"),
    )


@pytest.fixture
def generation_request() -> GenerationRequest:
    return GenerationRequest(
        system_prompt="You write concise Japanese product copy.",
        user_prompt="商品名：真空タンブラー",
        model="gpt-test",
        temperature=0.7,
    )


@pytest.fixture
def pipeline_config() -> WriterPipelineConfig:
    return WriterPipelineConfig()


# ---------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def writer_client() -> MockGenerationClient:
    """Generation client used by the app fixture; tests may re-script it."""
    return MockGenerationClient([ok_result(GOOD_TEXT)])


@pytest.fixture
def app(writer_client: MockGenerationClient):
    """Create FastAPI app for testing."""
    from copywriter.api.v1.endpoints.writer import get_writer_pipeline
    from copywriter.main import create_app

    application = create_app()

    def _pipeline() -> WriterPipeline:
        return WriterPipeline(
            client=writer_client,
            config=WriterPipelineConfig(),
            sink=NullLogSink(),
        )

    application.dependency_overrides[get_writer_pipeline] = _pipeline
    application.dependency_overrides[get_settings] = get_test_settings
    return application


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create synchronous test client with mocked dependencies."""
    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """A valid writer request body."""
    return {
        "input": {
            "product_name": "真空タンブラー",
            "category": "キッチン用品",
            "goal": "デスクで温かい飲み物を長く楽しむ",
            "audience": "在宅ワーカー",
            "selling_points": ["真空二重構造", "容量350mL"],
        },
        "system_prompt": "You write concise Japanese product copy.",
        "user_prompt": "商品名：真空タンブラー",
    }
