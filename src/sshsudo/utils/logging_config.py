"""Logging configuration for sshsudo.

The library itself only creates module loggers. Applications (and the CLI)
call one of the setup functions here to decide where records go.

Two loggers deserve a note:

- ``sshsudo.wire`` logs every byte consumed while waiting for the sudo
  prompt and the READY flag. It is silent unless tracing is enabled.
- ``paramiko`` is noisy at INFO; it is held at WARNING unless tracing.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

WIRE_LOGGER = 'sshsudo.wire'


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console_output: bool = True,
    format_string: Optional[str] = None,
    trace: bool = False,
) -> None:
    """Configure logging for sshsudo.

    Args:
        level: Logging level for sshsudo records.
        log_file: Optional path to also write logs to.
        console_output: Whether to log to stderr.
        format_string: Custom format string (uses default if None).
        trace: Log the raw handshake bytes and paramiko's own debug output.
    """
    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    formatter = logging.Formatter(format_string)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if trace else level)
    root_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger(WIRE_LOGGER).setLevel(logging.DEBUG if trace else logging.WARNING)
    logging.getLogger('paramiko').setLevel(logging.DEBUG if trace else logging.WARNING)


def setup_cli_logging(verbose: bool = False, quiet: bool = False, trace: bool = False) -> None:
    """Convenience function for CLI logging setup.

    Args:
        verbose: Enable verbose (DEBUG) logging.
        quiet: Suppress most logging (WARNING and above only).
        trace: Also log handshake bytes; implies verbose.
    """
    if verbose or trace:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    setup_logging(level=level, console_output=True, format_string='%(levelname)s: %(message)s', trace=trace)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
