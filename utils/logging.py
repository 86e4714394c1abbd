"""
Structured logging utilities

Human-readable console output plus structured JSON files. Context set with
set_log_context() (guild, channel, operation) rides along on every record
emitted from the same asyncio task.
"""
import contextvars
import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional, Union

# Context variable for request tracking across async calls
log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('log_context', default={})

LOG_FILE_NAME = 'discord_client.json'

JSONValue = Union[
    str,
    int,
    float,
    bool,
    None,
    dict[str, Any],   # nested object
    list[Any]         # arrays
]

# LogRecord attributes that never belong in the 'extra' block
_RECORD_ATTRIBUTES = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'message', 'asctime'
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    def format(self, record) -> str:
        """Format log record as one JSON line with context information."""
        log_obj: dict[str, JSONValue] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else 'Unknown',
                'message': str(record.exc_info[1]) if record.exc_info[1] else 'No message',
                'traceback': self.formatException(record.exc_info)
            }

        context = log_context.get({})
        if context:
            log_obj['context'] = context.copy()

        extra_data = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            # Ensure JSON serializable
            try:
                json.dumps(value)
                extra_data[key] = value
            except (TypeError, ValueError):
                extra_data[key] = str(value)

        if extra_data:
            log_obj['extra'] = extra_data

        return json.dumps(log_obj, ensure_ascii=False)


class ContextualLogger:
    """
    Logger wrapper that turns keyword arguments into structured 'extra' fields.

    Usage:
        logger = get_contextual_logger(f'{__name__}.RequestQueue')
        logger.warning("Retrying", job_id=job.job_id, attempt=2)
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, exc_info=exc_info, extra=kwargs)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[BaseException] = None, **kwargs):
        """
        Log error message with optional exception details.

        Args:
            message: Error message
            error: Optional exception object; adds type/message and traceback
            **kwargs: Additional structured fields
        """
        if error is not None:
            kwargs['error'] = {
                'type': type(error).__name__,
                'message': str(error)
            }
            self._log(logging.ERROR, message, exc_info=True, **kwargs)
        else:
            self._log(logging.ERROR, message, **kwargs)


def set_log_context(
    guild_id: Optional[Union[str, int]] = None,
    channel_id: Optional[Union[str, int]] = None,
    operation: Optional[str] = None,
    **additional_context
) -> None:
    """
    Set Discord-specific context for logging in the current task.

    Args:
        guild_id: Discord guild ID
        channel_id: Discord channel ID
        operation: Name of the high-level operation (e.g. 'send_message')
        **additional_context: Any additional context to include
    """
    context = log_context.get({}).copy()

    if guild_id:
        context['guild_id'] = str(guild_id)
    if channel_id:
        context['channel_id'] = str(channel_id)
    if operation:
        context['operation'] = operation

    context.update(additional_context)
    log_context.set(context)


def clear_context() -> None:
    """Clear the current logging context."""
    log_context.set({})


def get_contextual_logger(logger_name: str) -> ContextualLogger:
    """
    Get a contextual logger instance.

    Args:
        logger_name: Name for the logger (typically f'{__name__}.ClassName')

    Returns:
        ContextualLogger instance
    """
    return ContextualLogger(logger_name)


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = 'logs') -> logging.Logger:
    """
    Configure hybrid logging: human-readable console + structured JSON files.

    Args:
        log_level: Level name applied to the root logger
        log_dir: Directory for the rotating JSON log; None disables file logging

    Returns:
        The configured root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers: list[logging.Handler] = [console_handler]

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        json_handler = RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME),
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=5
        )
        json_handler.setFormatter(JSONFormatter())
        handlers.append(json_handler)

    # Module loggers ('api.queue.RequestQueue', ...) and aiohttp log through root
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not root_logger.handlers:  # Avoid duplicate handlers
        for handler in handlers:
            root_logger.addHandler(handler)

    return root_logger
