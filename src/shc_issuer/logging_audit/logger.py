"""Logging configuration and logger factory for the SMART Health Card issuer.

Console output follows the requested level; the rotating log file always
records DEBUG so a failed issue can be traced after the fact. Both handlers
share one ``PIIRedactingFormatter``.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .formatters import PIIRedactingFormatter

# Constants
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "shc-issuer.log"
LOG_FILE_ENV_VAR = "SHC_LOG_FILE"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5

# Third-party loggers that flood DEBUG output (Pillow logs every PNG chunk)
LIBRARY_LOG_LEVELS = {
    "PIL": logging.INFO,
}

# Handlers installed by configure_logging, replaced on reconfiguration
_installed_handlers: list[logging.Handler] = []

logger = logging.getLogger(__name__)


def _resolve_log_file(log_file: Optional[Path]) -> Path:
    if log_file is not None:
        return Path(log_file)
    env_log_file = os.environ.get(LOG_FILE_ENV_VAR)
    return Path(env_log_file) if env_log_file else DEFAULT_LOG_FILE


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Configure logging for the issuer CLI and web server.
    
    Safe to call more than once: handlers from an earlier call are removed
    before the new ones are installed. Handlers added by other code (test
    harnesses, embedding applications) are left alone.
    
    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               The file handler always uses DEBUG.
        log_file: Path to log file. Defaults to SHC_LOG_FILE, then
                  logs/shc-issuer.log.
        redact_pii: Mask patient names, birth dates and lot numbers
        
    Raises:
        ValueError: If invalid log level is provided
        RuntimeError: If log directory cannot be created
        
    Example:
        >>> configure_logging(level="DEBUG", redact_pii=True)
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    
    log_file = _resolve_log_file(log_file)
    log_dir = log_file.parent
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(
            f"Failed to create log directory: {log_dir}. "
            f"Ensure write permissions are available. Error: {e}"
        ) from e
    
    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    
    root_logger.setLevel(logging.DEBUG)
    for name, library_level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)
    
    formatter = PIIRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii)
    
    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)
    
    try:
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        # Console-only logging is still usable
        logger.warning(f"Failed to create file handler for {log_file}: {e}. Logging to console only.")
        return
    
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    _installed_handlers.append(file_handler)
    logger.debug(f"Logging configured: console={level.upper()}, file={log_file}, redact_pii={redact_pii}")


def get_logger(module_name: str) -> logging.Logger:
    """Get a module logger; call with ``__name__``."""
    return logging.getLogger(module_name)
