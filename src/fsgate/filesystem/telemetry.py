"""
Fire-and-forget telemetry emission.

Events carry derived metadata only (extensions, counts, sizes, timeouts),
never raw paths.
"""

import logging
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Receives telemetry events."""

    def capture(self, event: str, properties: Optional[dict[str, Any]] = None) -> None:
        ...


class NullTelemetrySink:
    """Discards every event."""

    def capture(self, event: str, properties: Optional[dict[str, Any]] = None) -> None:
        pass


class LoggingTelemetrySink:
    """Writes events to the ``fsgate.telemetry`` logger at debug level."""

    def __init__(self, logger_name: str = "fsgate.telemetry"):
        self._logger = logging.getLogger(logger_name)

    def capture(self, event: str, properties: Optional[dict[str, Any]] = None) -> None:
        self._logger.debug(f"{event} {properties or {}}")


def emit(
    sink: Optional[TelemetrySink],
    event: str,
    properties: Optional[dict[str, Any]] = None,
) -> None:
    """Send an event to ``sink``; a failing sink never breaks the caller."""
    if sink is None:
        return
    try:
        sink.capture(event, properties or {})
    except Exception as e:
        logger.debug(f"Telemetry sink failed for {event}: {e}")
