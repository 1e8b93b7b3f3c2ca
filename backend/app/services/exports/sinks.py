"""Helpers for the binary output streams the serializers write to."""

from __future__ import annotations

import logging
from typing import Any

from backend.app.services.exports.errors import SinkError

logger = logging.getLogger(__name__)


def ensure_writable(sink: Any) -> None:
    """Raise ``SinkError`` unless ``sink`` looks like an open, writable stream."""
    if sink is None or not callable(getattr(sink, "write", None)):
        raise SinkError("Output stream is not writable")
    if getattr(sink, "closed", False):
        raise SinkError("Output stream is closed")
    writable = getattr(sink, "writable", None)
    if callable(writable) and not writable():
        raise SinkError("Output stream is not writable")


def write_notice(sink: Any, message: str, encoding: str = "utf-8") -> None:
    """Append a human readable notice to a partially written stream."""
    try:
        sink.write(message.encode(encoding))
    except (OSError, ValueError) as exc:
        logger.error("Could not write error notice to output stream: %s", exc)
