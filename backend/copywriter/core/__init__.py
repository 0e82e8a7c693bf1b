"""Core utilities and configuration."""

from copywriter.core.config import Settings, WriterPipelineConfig, get_settings
from copywriter.core.logging import (
    get_logger,
    openai_logger,
    setup_logging,
    writer_logger,
)

__all__ = [
    # Config
    "Settings",
    "WriterPipelineConfig",
    "get_settings",
    # Logging
    "get_logger",
    "openai_logger",
    "setup_logging",
    "writer_logger",
]
