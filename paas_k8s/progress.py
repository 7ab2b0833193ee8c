"""Progress reporting for long running waits."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Protocol

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Receives human readable progress messages."""

    def start(self, message: str) -> None:
        """A wait is starting."""

    def success(self, message: str) -> None:
        """The wait finished successfully."""

    def failure(self, message: str) -> None:
        """The wait failed."""


class LoggingProgressSink:
    """ProgressSink that writes to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def start(self, message: str) -> None:
        self.log.info(message)

    def success(self, message: str) -> None:
        self.log.info(f"{message}: done")

    def failure(self, message: str) -> None:
        self.log.error(message)


def _emit(callback: Callable[[str], None], message: str) -> None:
    try:
        callback(message)
    except Exception as e:
        logger.warning(f"Progress sink failed: {e}", exc_info=True)


@contextmanager
def report_progress(sink: Optional[ProgressSink], message: str) -> Iterator[None]:
    """
    Report start, success and failure of the wrapped block to a sink.

    Sink errors are logged and dropped; errors from the block propagate.

    Args:
        sink: Progress sink, None disables reporting
        message: Description of the wait
    """
    if sink is None:
        yield
        return

    _emit(sink.start, message)
    try:
        yield
    except Exception as e:
        _emit(sink.failure, f"{message} failed: {e}")
        raise
    _emit(sink.success, message)
