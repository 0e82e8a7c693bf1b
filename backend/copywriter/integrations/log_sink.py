"""Writer diagnostic event sinks.

Events are best-effort: a sink never raises into the pipeline. Delivery
failures are logged and dropped.

Sinks:
- NullLogSink: events disabled (WRITER_LOG_ENABLED=false)
- ConsoleLogSink: structured "WRITER_EVENT" log line on the standard logger
- BetterStackLogSink: console line plus Better Stack (Logtail) direct
  ingest over httpx, falling back between the current and legacy
  ingest endpoints

ERROR LOGGING REQUIREMENTS:
- Never raise from emit()
- Mask the source token in all logs
- Log delivery failures at WARNING level with the event kind
"""

import time
from datetime import UTC, datetime
from typing import Any, Protocol

import httpx

from copywriter.core.config import Settings, get_settings
from copywriter.core.logging import get_logger, mask_secret, writer_logger

logger = get_logger(__name__)

EVENT_NAME = "WRITER_EVENT"
EVENT_ROUTE = "/api/v1/writer"
BETTERSTACK_ENDPOINT = "https://in.logs.betterstack.com"
LEGACY_LOGTAIL_ENDPOINT = "https://in.logtail.com"


class LogSink(Protocol):
    """Accepts structured diagnostic events."""

    async def emit(self, kind: str, payload: dict[str, Any]) -> None: ...


def endpoints_for_try(primary: str) -> list[str]:
    """Primary endpoint followed by the other Better Stack ingest host."""
    alternate = (
        LEGACY_LOGTAIL_ENDPOINT
        if "in.logs.betterstack.com" in primary
        else BETTERSTACK_ENDPOINT
    )
    return [primary, alternate] if alternate != primary else [primary]


class NullLogSink:
    """Drops every event."""

    async def emit(self, kind: str, payload: dict[str, Any]) -> None:
        return None

    async def close(self) -> None:
        return None


class ConsoleLogSink:
    """Writes each event as one structured log record."""

    def __init__(self, environment: str = "development") -> None:
        self._environment = environment
        self._logger = get_logger("writer.events")

    def _wrap(self, kind: str, payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "event": EVENT_NAME,
            "route": EVENT_ROUTE,
            "kind": kind,
            "payload": payload,
            "ts": datetime.now(UTC).isoformat(),
            "env": self._environment,
        }

    async def emit(self, kind: str, payload: dict[str, Any]) -> None:
        try:
            self._logger.info(EVENT_NAME, extra=self._wrap(kind, payload))
        except (TypeError, ValueError) as e:
            writer_logger.sink_delivery_failed(kind, str(e))

    async def close(self) -> None:
        return None


class BetterStackLogSink(ConsoleLogSink):
    """Console events plus Better Stack direct ingest."""

    def __init__(
        self,
        source_token: str,
        endpoint: str = BETTERSTACK_ENDPOINT,
        timeout: float = 5.0,
        environment: str = "development",
    ) -> None:
        super().__init__(environment=environment)
        self._source_token = source_token
        self._endpoint = endpoint
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": f"Bearer {self._source_token}",
                    "Content-Type": "application/json",
                },
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def emit(self, kind: str, payload: dict[str, Any]) -> None:
        await super().emit(kind, payload)

        body = self._wrap(kind, payload)
        client = await self._get_client()
        last_error = "no endpoint attempted"

        for endpoint in endpoints_for_try(self._endpoint):
            start_time = time.monotonic()
            try:
                response = await client.post(endpoint, json=body)
            except httpx.HTTPError as e:
                last_error = f"{type(e).__name__}: {e}"
                continue

            duration_ms = (time.monotonic() - start_time) * 1000
            if response.status_code < 300:
                logger.debug(
                    "Writer event delivered",
                    extra={
                        "kind": kind,
                        "endpoint": endpoint,
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    },
                )
                return
            last_error = f"HTTP {response.status_code}: {response.text[:200]}"

        writer_logger.sink_delivery_failed(
            kind, f"{last_error} (token={mask_secret(self._source_token)})"
        )


def create_log_sink(settings: Settings) -> NullLogSink | ConsoleLogSink:
    """Build the sink selected by WRITER_LOG_ENABLED / WRITER_LOG_MODE."""
    if not settings.writer_log_enabled:
        return NullLogSink()
    if settings.writer_log_mode.lower() == "direct":
        if settings.logtail_source_token:
            return BetterStackLogSink(
                source_token=settings.logtail_source_token,
                endpoint=settings.logtail_endpoint,
                timeout=settings.logtail_timeout,
                environment=settings.environment,
            )
        logger.warning(
            "WRITER_LOG_MODE=direct but LOGTAIL_SOURCE_TOKEN is not set, "
            "falling back to console events"
        )
    return ConsoleLogSink(environment=settings.environment)


# Global writer event sink
writer_log_sink: NullLogSink | ConsoleLogSink | None = None


async def init_log_sink() -> NullLogSink | ConsoleLogSink:
    """Initialize the global writer event sink from settings."""
    global writer_log_sink
    if writer_log_sink is None:
        writer_log_sink = create_log_sink(get_settings())
        logger.info(
            "Writer event sink initialized",
            extra={"sink": type(writer_log_sink).__name__},
        )
    return writer_log_sink


async def close_log_sink() -> None:
    """Close the global writer event sink."""
    global writer_log_sink
    if writer_log_sink:
        await writer_log_sink.close()
        writer_log_sink = None


async def get_log_sink() -> NullLogSink | ConsoleLogSink:
    """Dependency for getting the writer event sink."""
    global writer_log_sink
    if writer_log_sink is None:
        await init_log_sink()
    return writer_log_sink  # type: ignore[return-value]
