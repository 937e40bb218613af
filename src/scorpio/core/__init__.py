"""
Core module - Configuration, browser session and orchestration.
"""

from .config import ScanConfig, ScorpioError, ConfigError, DEFAULT_MODULES
from .session import (
    BrowserSession,
    ProtocolChannel,
    SessionNotStartedError,
    dialog_listener,
    protocol_channel,
    channel_listener,
)
from .orchestrator import Orchestrator
from .logging import configure_logging


__all__ = [
    # Configuration
    "ScanConfig",
    "DEFAULT_MODULES",
    "configure_logging",
    # Errors
    "ScorpioError",
    "ConfigError",
    "SessionNotStartedError",
    # Browser session
    "BrowserSession",
    "ProtocolChannel",
    "dialog_listener",
    "protocol_channel",
    "channel_listener",
    # Orchestration
    "Orchestrator",
]
