"""
Progress reporting.

The orchestrator writes typed ProgressEvents to a ProgressSink. A UI
callback is just one sink; logging and Prometheus sinks ship here too.
A sink that raises never affects the batch.
"""
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from app.utils.metrics import upload_events_total

logger = logging.getLogger(__name__)


class ProgressStatus(str, enum.Enum):
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    """
    One externally observable transition of a file.

    index is 1-based, total is the batch size.
    """
    filename: str
    index: int
    total: int
    status: ProgressStatus
    error: Optional[str] = None


class ProgressSink(ABC):
    """Consumer of progress events."""

    @abstractmethod
    def emit(self, event: ProgressEvent) -> None:
        pass


class CallbackProgressSink(ProgressSink):
    """
    Adapts a plain callback with the signature
    (filename, index, total, status, error=None).
    """

    def __init__(self, callback: Callable[..., None]):
        self._callback = callback

    def emit(self, event: ProgressEvent) -> None:
        if event.error is None:
            self._callback(event.filename, event.index, event.total, event.status.value)
        else:
            self._callback(event.filename, event.index, event.total, event.status.value, event.error)


class LoggingProgressSink(ProgressSink):
    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def emit(self, event: ProgressEvent) -> None:
        message = f"[{event.index}/{event.total}] {event.filename}: {event.status.value}"
        if event.error:
            message += f" ({event.error})"
        self._log.info(message)


class MetricsProgressSink(ProgressSink):
    """Counts events per status in Prometheus."""

    def emit(self, event: ProgressEvent) -> None:
        upload_events_total.labels(status=event.status.value).inc()


class FanOutProgressSink(ProgressSink):
    """Forwards each event to several sinks; one failing sink does not starve the others."""

    def __init__(self, sinks: Iterable[ProgressSink]):
        self._sinks = list(sinks)

    def emit(self, event: ProgressEvent) -> None:
        for sink in self._sinks:
            safe_emit(sink, event)


def safe_emit(sink: Optional[ProgressSink], event: ProgressEvent) -> None:
    """Deliver an event; errors raised by the sink are logged and dropped."""
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception:
        logger.exception(f"Progress sink failed for {event.filename} ({event.status.value})")
