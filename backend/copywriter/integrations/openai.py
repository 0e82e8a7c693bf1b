"""OpenAI chat completions client used as the generation service.

Features:
- Async HTTP client using httpx (direct API calls)
- One call per generate(); the writer pipeline owns the attempt budget,
  so this client never retries
- Handles timeouts, rate limits (429), auth failures (401/403), 5xx, 4xx
- Masks API keys in all logs
- Never raises for HTTP or transport failures: every outcome is a
  GenerationResult

ERROR LOGGING REQUIREMENTS:
- Log all outbound API calls with model and timing
- Log response bodies at DEBUG level (truncated)
- Log and handle: timeouts, rate limits (429), auth failures (401/403)
- Mask API keys and tokens in all logs
"""

import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from copywriter.core.config import get_settings
from copywriter.core.logging import get_logger, openai_logger

logger = get_logger(__name__)

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
ERROR_TEXT_MAX_LENGTH = 300


@dataclass(frozen=True)
class GenerationRequest:
    """An already-composed prompt pair plus model parameters."""

    system_prompt: str
    user_prompt: str
    model: str
    temperature: float = 0.7


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one generation call."""

    success: bool
    text: str = ""
    latency_ms: float = 0.0
    status: int = 0
    status_text: str = ""
    error_text: str | None = None


class GenerationClient(Protocol):
    """Anything that can turn a GenerationRequest into a GenerationResult."""

    async def generate(self, request: GenerationRequest) -> GenerationResult: ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:ERROR_TEXT_MAX_LENGTH]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])[:ERROR_TEXT_MAX_LENGTH]
    return str(body)[:ERROR_TEXT_MAX_LENGTH]


class OpenAIClient:
    """Async client for the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. Defaults to settings.
            base_url: API base URL. Defaults to settings.
            timeout: Request timeout in seconds. Defaults to settings.
        """
        settings = get_settings()

        self._api_key = api_key or settings.openai_api_key
        self._base_url = base_url or settings.openai_base_url
        self._timeout = timeout or settings.openai_timeout

        # HTTP client (created lazily)
        self._client: httpx.AsyncClient | None = None
        self._available = bool(self._api_key)

    @property
    def available(self) -> bool:
        """Check if OpenAI is configured and available."""
        return self._available

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers: dict[str, str] = {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"

            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        logger.info("OpenAI client closed")

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Send one chat completion request.

        Args:
            request: Composed prompt pair and model parameters

        Returns:
            GenerationResult; failures carry status and truncated error text
        """
        if not self._available:
            return GenerationResult(
                success=False,
                status=0,
                status_text="not_configured",
                error_text="OpenAI not configured (missing API key)",
            )

        client = await self._get_client()
        request_body: dict[str, Any] = {
            "model": request.model,
            "temperature": request.temperature,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
        }

        openai_logger.api_call_start(request.model, len(request.user_prompt))
        start_time = time.monotonic()

        try:
            response = await client.post(CHAT_COMPLETIONS_PATH, json=request_body)
        except httpx.TimeoutException:
            duration_ms = (time.monotonic() - start_time) * 1000
            openai_logger.api_call_error(
                request.model, duration_ms, None, "Request timed out", "TimeoutError"
            )
            return GenerationResult(
                success=False,
                latency_ms=duration_ms,
                status=0,
                status_text="timeout",
                error_text=f"Request timed out after {self._timeout}s",
            )
        except httpx.RequestError as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            openai_logger.api_call_error(
                request.model, duration_ms, None, str(e), type(e).__name__
            )
            return GenerationResult(
                success=False,
                latency_ms=duration_ms,
                status=0,
                status_text="network_error",
                error_text=f"Request failed: {e}"[:ERROR_TEXT_MAX_LENGTH],
            )

        duration_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code
        status_text = response.reason_phrase or ""

        if status == 429:
            openai_logger.rate_limit(
                request.model, retry_after=response.headers.get("retry-after")
            )
            return GenerationResult(
                success=False,
                latency_ms=duration_ms,
                status=status,
                status_text=status_text,
                error_text="Rate limit exceeded",
            )

        if status in (401, 403):
            openai_logger.auth_failure(status, self._api_key)
            return GenerationResult(
                success=False,
                latency_ms=duration_ms,
                status=status,
                status_text=status_text,
                error_text=f"Authentication failed ({status})",
            )

        if status >= 400:
            error_msg = _error_message(response)
            openai_logger.api_call_error(
                request.model,
                duration_ms,
                status,
                error_msg,
                "ServerError" if status >= 500 else "ClientError",
            )
            return GenerationResult(
                success=False,
                latency_ms=duration_ms,
                status=status,
                status_text=status_text,
                error_text=error_msg,
            )

        try:
            data = response.json()
            text = str(data["choices"][0]["message"]["content"] or "")
        except (ValueError, KeyError, IndexError, TypeError) as e:
            openai_logger.api_call_error(
                request.model, duration_ms, status, str(e), "ParseError"
            )
            return GenerationResult(
                success=False,
                latency_ms=duration_ms,
                status=status,
                status_text="invalid_response",
                error_text=f"Unexpected response shape: {e}"[:ERROR_TEXT_MAX_LENGTH],
            )

        openai_logger.api_call_success(request.model, duration_ms, status)
        openai_logger.response_body(request.model, text)
        return GenerationResult(
            success=True,
            text=text,
            latency_ms=duration_ms,
            status=status,
            status_text=status_text,
        )


# Global OpenAI client instance
openai_client: OpenAIClient | None = None


async def init_openai() -> OpenAIClient:
    """Initialize the global OpenAI client."""
    global openai_client
    if openai_client is None:
        openai_client = OpenAIClient()
        if openai_client.available:
            logger.info("OpenAI client initialized")
        else:
            logger.info("OpenAI not configured (missing API key)")
    return openai_client


async def close_openai() -> None:
    """Close the global OpenAI client."""
    global openai_client
    if openai_client:
        await openai_client.close()
        openai_client = None


async def get_openai() -> OpenAIClient:
    """Dependency for getting the OpenAI client.

    Usage:
        @router.post("/writer")
        async def write(client: OpenAIClient = Depends(get_openai)):
            ...
    """
    global openai_client
    if openai_client is None:
        await init_openai()
    return openai_client  # type: ignore[return-value]
