# ABOUTME: Environment-driven settings for capture and logging
# ABOUTME: The mitmproxy option history_source overrides the capture source

import logging
import os
import sys
from typing import Optional

# Source tags a completed flow can carry
SOURCE_REPLAY = "replay"
SOURCE_PROXY = "proxy"
SOURCES = (SOURCE_REPLAY, SOURCE_PROXY)

NOTICE_TITLE = "Repeater History Copy"

SOURCE_ENV_VAR = "REPEATER_HISTORY_SOURCE"
LOG_LEVEL_ENV_VAR = "REPEATER_HISTORY_LOG_LEVEL"


def get_capture_source(default: str = SOURCE_REPLAY) -> str:
    """
    Get the traffic source to capture from REPEATER_HISTORY_SOURCE.

    Default: "replay" (flows replayed by hand in mitmproxy). Hosts without
    an interactive replay UI pass their own default.
    Unknown values fall back to the default.

    Returns:
        One of SOURCES
    """
    source = os.environ.get(SOURCE_ENV_VAR, default).strip().lower()
    if source not in SOURCES:
        return default
    return source


def get_log_level() -> int:
    """Get the log level from REPEATER_HISTORY_LOG_LEVEL (default INFO)."""
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: Optional[int] = None) -> logging.Logger:
    """
    Send package logs to stderr.

    stdout carries the MCP stdio transport, so nothing may log there.

    Args:
        level: Logging level (default: from the environment)

    Returns:
        The package logger
    """
    logger = logging.getLogger("repeater_history_mcp")
    logger.setLevel(level if level is not None else get_log_level())

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)
    return logger
