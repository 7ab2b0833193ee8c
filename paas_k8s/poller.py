"""Bounded polling of cluster conditions."""

import logging
import threading
import time
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_delay,
    stop_when_event_set,
    wait_fixed,
)

from .errors import WaitCancelledError, WaitTimeoutError

logger = logging.getLogger(__name__)

ConditionFunc = Callable[[], bool]


def _describe(condition: ConditionFunc) -> str:
    description = getattr(condition, "description", None)
    if isinstance(description, str) and description:
        return description
    return getattr(condition, "__name__", "condition")


def poll_until(
    condition: ConditionFunc,
    interval: float,
    timeout: float,
    *,
    cancel: Optional[threading.Event] = None,
    description: Optional[str] = None,
) -> None:
    """
    Evaluate a condition until it holds, it raises, or time runs out.

    The condition is evaluated immediately and then once per interval. A
    timeout of zero evaluates it exactly once.

    Args:
        condition: Callable returning True once satisfied. Exceptions it
            raises end the wait and propagate unchanged.
        interval: Seconds between evaluations
        timeout: Seconds after which the wait gives up
        cancel: Event that ends the wait early when set
        description: Human readable name used in errors and logs

    Raises:
        ValueError: If interval or timeout are out of range
        WaitTimeoutError: If the deadline elapsed first
        WaitCancelledError: If the cancel event was set first
    """
    if interval <= 0:
        raise ValueError(f"poll interval must be positive, got {interval}")
    if timeout < 0:
        raise ValueError(f"poll timeout must not be negative, got {timeout}")

    description = description or _describe(condition)
    stop = stop_after_delay(timeout)
    sleep = time.sleep
    if cancel is not None:
        stop = stop | stop_when_event_set(cancel)
        # Event.wait returns as soon as the event is set
        sleep = cancel.wait

    def attempt() -> bool:
        if cancel is not None and cancel.is_set():
            raise WaitCancelledError(description, time.monotonic() - started)
        return bool(condition())

    retrying = Retrying(
        retry=retry_if_result(lambda satisfied: not satisfied),
        stop=stop,
        wait=wait_fixed(interval),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
    )

    started = time.monotonic()
    try:
        retrying(attempt)
    except RetryError:
        elapsed = time.monotonic() - started
        if cancel is not None and cancel.is_set():
            raise WaitCancelledError(description, elapsed) from None
        raise WaitTimeoutError(description, timeout, elapsed) from None

    logger.debug(f"{description} satisfied after {time.monotonic() - started:.2f}s")


class PollSpec(BaseModel):
    """Interval and timeout for one bounded poll."""

    model_config = ConfigDict(frozen=True)

    interval: float = Field(default=1.0, gt=0)
    timeout: float = Field(default=300.0, ge=0)

    def run(
        self,
        condition: ConditionFunc,
        *,
        cancel: Optional[threading.Event] = None,
        description: Optional[str] = None,
    ) -> None:
        """Poll the condition with this spec's interval and timeout."""
        poll_until(
            condition,
            self.interval,
            self.timeout,
            cancel=cancel,
            description=description,
        )
