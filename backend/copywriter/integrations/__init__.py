"""Integrations layer - External service clients.

Integrations handle communication with external APIs and services.
They abstract the details of external service protocols.
"""

from copywriter.integrations.log_sink import (
    BetterStackLogSink,
    ConsoleLogSink,
    LogSink,
    NullLogSink,
    close_log_sink,
    create_log_sink,
    get_log_sink,
    init_log_sink,
)
from copywriter.integrations.openai import (
    GenerationClient,
    GenerationRequest,
    GenerationResult,
    OpenAIClient,
    close_openai,
    get_openai,
    init_openai,
)

__all__ = [
    # Log sink
    "BetterStackLogSink",
    "ConsoleLogSink",
    "LogSink",
    "NullLogSink",
    "close_log_sink",
    "create_log_sink",
    "get_log_sink",
    "init_log_sink",
    # OpenAI
    "GenerationClient",
    "GenerationRequest",
    "GenerationResult",
    "OpenAIClient",
    "close_openai",
    "get_openai",
    "init_openai",
]
