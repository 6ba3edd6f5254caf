"""
Enhanced structlog-based logging configuration for chatrelay.

This is the main entry point for the logging system. Application code obtains
loggers through get_logger() and never calls structlog.get_logger() directly.
"""

import json
import logging
import os
import re
import sys
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from chatrelay.structured_logging.logging_processors import add_correlation_id, sanitize_sensitive_data

VALID_ENVIRONMENTS = ("unit_test", "local", "development", "production")

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class _LoggingState:  # pylint: disable=too-few-public-methods  # Reason: State container, avoids global statements
    """State container for logging initialization."""

    initialized: bool = False
    signature: str | None = None


_logging_state = _LoggingState()


def detect_environment() -> str:
    """
    Detect the current environment.

    Returns:
        Environment name: "unit_test", "local", "development" or "production"
    """
    if "pytest" in sys.modules:
        return "unit_test"

    env = os.getenv("LOGGING_ENVIRONMENT", "")
    if env in VALID_ENVIRONMENTS:
        return env

    return "local"


def strip_ansi_renderer(bound_logger: Any, name: str, event_dict: dict[str, Any]) -> str:
    """Render key=value pairs with ANSI escape sequences stripped."""
    try:
        formatted = structlog.processors.KeyValueRenderer(key_order=["event"])(bound_logger, name, event_dict)
        return _ANSI_ESCAPE.sub("", formatted)
    except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: A renderer failure must never crash the caller
        return f"Logging renderer error: {type(e).__name__}: {str(e)}"


def configure_structlog(environment: str | None = None, log_level: str = "INFO", disable_logging: bool = False) -> None:
    """
    Configure structlog on top of the standard library logging module.

    Args:
        environment: Environment name (auto-detected if None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        disable_logging: Route everything at CRITICAL+1 so nothing is emitted
    """
    if environment is None:
        environment = detect_environment()

    level = logging.CRITICAL + 1 if disable_logging else getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    renderer: Any = strip_ansi_renderer
    if environment == "development":
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            sanitize_sensitive_data,
            add_correlation_id,
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from a configuration dictionary.

    Args:
        config: Configuration dictionary with an optional "logging" section
        force_reconfigure: When True, reconfigure even if already initialized
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _logging_state.initialized and not force_reconfigure:
        get_logger("chatrelay.structured_logging.setup").debug(
            "setup_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment") or detect_environment()
    log_level = logging_config.get("level", "INFO")

    configure_structlog(environment, log_level, bool(logging_config.get("disable_logging", False)))

    get_logger("chatrelay.structured_logging.setup").info(
        "Logging system initialized", environment=environment, log_level=log_level
    )

    _logging_state.initialized = True
    _logging_state.signature = config_signature


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    Args:
        name: Logger name (typically __name__ or "communications.<component>")

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)
