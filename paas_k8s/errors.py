"""Exceptions raised by the cluster driver."""

from typing import Optional


class ClusterError(Exception):
    """Base class for cluster driver errors."""

    pass


class ClusterInitError(ClusterError):
    """Raised when the cluster handle cannot be built."""

    pass


class ResourceNotFoundError(ClusterError):
    """Raised when a resource that must exist is missing."""

    def __init__(self, kind: str, name: str, namespace: Optional[str] = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        target = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {target} not found")


class ResourceError(ClusterError):
    """Raised when a create/delete call against the cluster fails."""

    def __init__(self, operation: str, target: str, reason: object = None):
        self.operation = operation
        self.target = target
        message = f"failed to {operation} {target}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)


class WaitTimeoutError(ClusterError):
    """Raised when a condition did not hold before its deadline."""

    def __init__(self, condition: str, timeout: float, elapsed: float):
        self.condition = condition
        self.timeout = timeout
        self.elapsed = elapsed
        super().__init__(
            f"timed out waiting for {condition}: deadline of {timeout:g}s "
            f"reached after {elapsed:.2f}s"
        )


class WaitCancelledError(ClusterError):
    """Raised when a wait is cancelled before its condition held."""

    def __init__(self, condition: str, elapsed: float):
        self.condition = condition
        self.elapsed = elapsed
        super().__init__(f"wait for {condition} cancelled after {elapsed:.2f}s")


class CRDWaitError(ClusterError):
    """Raised when a CRD wait fails, naming the phase that failed."""

    def __init__(self, crd_name: str, phase: str, reason: object):
        self.crd_name = crd_name
        self.phase = phase
        super().__init__(f"CRD {crd_name} failed while {phase}: {reason}")
