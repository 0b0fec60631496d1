"""
File logging setup for the storehouse logging system.

A single log file receives every record. The file is removed at start-up when
configured to, so each run starts with a fresh log.
"""

import logging
from pathlib import Path

_HANDLER_NAME = "storehouse-file"


def _remove_existing_handler(root_logger: logging.Logger) -> None:
    for handler in root_logger.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            handler.flush()
            handler.close()
            root_logger.removeHandler(handler)


def setup_file_logging(log_file: str | Path, log_level: str = "INFO", *, reset_on_start: bool = True) -> Path:
    """
    Attach a file handler for the storehouse log to the root logger.

    Args:
        log_file: Path of the log file
        log_level: Minimum level written to the file
        reset_on_start: Delete any existing log file before attaching the handler

    Returns:
        The resolved path of the log file
    """
    log_path = Path(log_file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    _remove_existing_handler(root_logger)

    if reset_on_start:
        log_path.unlink(missing_ok=True)

    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    return log_path


def close_file_logging() -> None:
    """Detach and close the storehouse file handler, if attached."""
    _remove_existing_handler(logging.getLogger())
