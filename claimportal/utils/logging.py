"""
Logging Configuration
loguru sinks for the API process
Source: https://github.com/Delgan/loguru
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]} - {message}"


def setup_logging(level: str = "INFO", log_file: str | None = None, json_logs: bool = False) -> None:
    """
    Replace loguru's default sink.

    Args:
        level: Minimum level for every sink
        log_file: Also write to this file, rotated at 100 MB and kept 30 days
        json_logs: Emit one JSON object per record instead of coloured text
    """
    logger.remove()
    logger.configure(extra={"name": "claimportal"})

    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            serialize=json_logs,
            rotation="100 MB",
            retention="30 days",
            compression="zip",
        )

    logger.debug(f"Log sinks configured at {level} (json={json_logs})")


def get_logger(name: str = "claimportal"):  # type: ignore[no-untyped-def]
    """
    Module logger carrying `name` in its extra fields.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Claim submitted")
    """
    return logger.bind(name=name)
