"""Byte-at-a-time matcher used to synchronize with the remote sudo process."""
from __future__ import annotations

import logging
from typing import BinaryIO

from .errors import ExpectReadError
from .transport import STREAM_ERRORS
from .utils.logging_config import WIRE_LOGGER, get_logger

wire_logger = get_logger(WIRE_LOGGER)


def expect_only(stream: BinaryIO, expected: bytes) -> bool:
    """Consume ``stream`` until ``expected`` has been seen or ruled out.

    Carriage returns are skipped and never count toward or against the match.
    Returns False on the first byte that breaks the match, leaving the rest of
    the stream unread, and False if the stream ends first. Read failures are
    raised as ExpectReadError.
    """
    pos = 0
    while pos < len(expected):
        try:
            buf = stream.read(1)
        except STREAM_ERRORS as exc:
            raise ExpectReadError(f"error while reading: {exc}") from exc
        if not buf:
            wire_logger.debug("stream ended after %d of %d expected bytes", pos, len(expected))
            return False
        if wire_logger.isEnabledFor(logging.DEBUG):
            wire_logger.debug("read byte %r", buf)
        if buf == b'\r':
            continue
        if buf[0] != expected[pos]:
            return False
        pos += 1
    return True
