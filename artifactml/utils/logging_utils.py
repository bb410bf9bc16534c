"""
Logging helpers.

Library modules only call ``logging.getLogger(__name__)``; applications that
want file output call :func:`setup_logging` once at start-up.
"""

import logging
import os
from logging import Handler
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional

from ..config import get_settings

# Get logger for persistence / stage actions
action_logger = logging.getLogger("artifactml.actions")


def log_stage_action(action: str, success: bool = True, details: Optional[str] = None):
    """
    Log stage-related actions (save, load, fit) for monitoring and debugging

    Args:
        action: The action being performed
        success: Whether the action succeeded
        details: Additional details about the action
    """
    level = logging.INFO if success else logging.ERROR
    message = f"Action: {action}"

    if details:
        message += f" | Details: {details}"

    if not success:
        message += " | Status: FAILED"
    else:
        message += " | Status: SUCCESS"

    action_logger.log(level, message)


def setup_logging(
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
    rotation_type: Optional[str] = None,
    rotation_when: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
    console_log_level: Optional[str] = None,
) -> None:
    """
    Configure the ``artifactml`` logger hierarchy.

    Arguments left as None fall back to the values in Settings.

    Args:
        log_file: Path to log file (creates directory if needed); None disables file output
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_log_level: Logging level for console output
    """
    settings = get_settings()
    log_file = log_file if log_file is not None else settings.LOG_FILE
    log_level = (log_level or settings.LOG_LEVEL).upper()
    rotation_type = rotation_type or settings.LOG_ROTATION_TYPE
    max_bytes = max_bytes if max_bytes is not None else settings.LOG_MAX_BYTES
    backup_count = backup_count if backup_count is not None else settings.LOG_BACKUP_COUNT
    console_log_level = (console_log_level or settings.CONSOLE_LOG_LEVEL).upper()

    package_logger = logging.getLogger("artifactml")
    package_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Remove all existing handlers to prevent duplicates
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler: Handler
        if rotation_type.lower() in ("time", "timed"):
            file_handler = TimedRotatingFileHandler(
                filename=log_file,
                when=rotation_when or "midnight",
                backupCount=backup_count,
                encoding="utf-8",
            )
        else:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        file_handler.setLevel(getattr(logging, log_level, logging.INFO))
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)8s] %(name)s: %(message)s "
                "[%(filename)s:%(lineno)d in %(funcName)s()]"
            )
        )
        package_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, console_log_level, logging.WARNING))
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    package_logger.addHandler(console_handler)

    package_logger.info(
        f"artifactml logging initialized. Log file: {log_file}, Level: {log_level}"
    )
