"""Logging utilities for the NanoDLP bridge."""
import logging
import sys

from nanodlp_bridge.core.config import Settings
from nanodlp_bridge.core.request_context import get_request_id

LOGGER_NAME = "nanodlp_bridge"


def configure_logging(settings: Settings, *, logger_name: str = LOGGER_NAME) -> logging.Logger:
    """Configure the root logger and return the application logger.

    Args:
        settings: Settings carrying the desired log level.
        logger_name: Name of the logger to retrieve.

    Returns:
        Configured logger instance.
    """

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - request_id=%(request_id)s - %(message)s"
        ),
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    old_factory = logging.getLogRecordFactory()
    if not getattr(old_factory, "_stamps_request_id", False):

        def record_factory(*args, **kwargs) -> logging.LogRecord:
            record = old_factory(*args, **kwargs)
            record.request_id = get_request_id() or "system"
            return record

        record_factory._stamps_request_id = True  # type: ignore[attr-defined]
        logging.setLogRecordFactory(record_factory)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    # httpx logs every request at INFO; at a 2s poll cadence that drowns everything else.
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    logger.debug("Logging configured with level %s", logging.getLevelName(log_level))
    return logger
