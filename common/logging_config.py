import logging
import os
import sys
from typing import Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class PathRedactingFilter(logging.Filter):
    """Filter that replaces the absolute storage root in log records with a placeholder."""

    def __init__(self, root: str, placeholder: str = '<storage>'):
        super().__init__()
        self.root = root.rstrip(os.sep)
        self.placeholder = placeholder

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the storage root in the message and its arguments."""
        if not self.root:
            return True

        if isinstance(record.msg, str):
            record.msg = record.msg.replace(self.root, self.placeholder)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._redact(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._redact(arg) for arg in record.args)

        return True

    def _redact(self, value):
        if isinstance(value, str):
            return value.replace(self.root, self.placeholder)
        return value


def _apply_redaction(handler: logging.Handler, redact_root: Optional[str]) -> None:
    # Only the most recent storage root is redacted
    for existing in [f for f in handler.filters if isinstance(f, PathRedactingFilter)]:
        handler.removeFilter(existing)
    if redact_root:
        handler.addFilter(PathRedactingFilter(redact_root))


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    redact_root: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component ('receiver' or 'cli')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        redact_root: Absolute storage path to hide from log output

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            _apply_redaction(handler, redact_root)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    _apply_redaction(handler, redact_root)

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
