"""Two-phase wait for a CustomResourceDefinition to become usable."""

import logging
import threading
from enum import Enum
from typing import Optional

from .accessor import ResourceAccessor
from .conditions import crd_established, crd_exists
from .errors import CRDWaitError
from .poller import poll_until

logger = logging.getLogger(__name__)


class CRDWaitPhase(str, Enum):
    """States of a CRD wait."""

    AWAITING_EXISTENCE = "awaiting-existence"
    AWAITING_ESTABLISHED = "awaiting-established"
    DONE = "done"


class CRDWaiter:
    """
    Waits for a CRD to exist and then to be established.

    Each phase is its own bounded poll with its own timeout. The second
    phase only starts once the first one succeeded, so a CRD that never
    shows up fails in the existence phase without ever evaluating the
    established condition.
    """

    def __init__(self, accessor: ResourceAccessor, crd_name: str, interval: float = 1.0):
        """
        Initialize CRD waiter.

        Args:
            accessor: Resource accessor
            crd_name: Full CRD name, e.g. "apps.application.paas.io"
            interval: Seconds between polls
        """
        self.accessor = accessor
        self.crd_name = crd_name
        self.interval = interval
        self.phase = CRDWaitPhase.AWAITING_EXISTENCE

    def wait(
        self,
        timeout: float,
        established_timeout: Optional[float] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """
        Run both phases.

        Args:
            timeout: Budget for the existence phase
            established_timeout: Budget for the established phase,
                defaults to ``timeout``
            cancel: Event that ends the wait early when set

        Raises:
            CRDWaitError: Naming the phase that timed out or failed
        """
        if established_timeout is None:
            established_timeout = timeout

        self._run_phase(crd_exists(self.accessor, self.crd_name), timeout, cancel)
        self.phase = CRDWaitPhase.AWAITING_ESTABLISHED
        self._run_phase(
            crd_established(self.accessor, self.crd_name), established_timeout, cancel
        )
        self.phase = CRDWaitPhase.DONE
        logger.info(f"CRD {self.crd_name} is established")

    def _run_phase(self, condition, timeout, cancel):
        logger.debug(f"CRD {self.crd_name}: {self.phase.value}")
        try:
            poll_until(condition, self.interval, timeout, cancel=cancel)
        except Exception as e:
            raise CRDWaitError(self.crd_name, self.phase.value, e) from e
