"""Condition evaluators over cluster resources.

Each builder returns a ``Condition``: a zero-argument callable that reads the
current state through a ``ResourceAccessor`` and returns True once the state
holds, False when it does not hold yet, or raises on a hard failure.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from kubernetes.client.exceptions import ApiException

from .accessor import ResourceAccessor, ResourceKind
from .errors import ResourceNotFoundError
from .models import ResourceRef

logger = logging.getLogger(__name__)

JOB_COMPLETE = "Complete"
JOB_FAILED = "Failed"
DEPLOYMENT_AVAILABLE = "Available"
CRD_ESTABLISHED = "Established"


@dataclass
class Condition:
    """A named predicate over remote state."""

    description: str
    check: Optional[Callable[[], bool]] = None
    # Last object read by conditions that hand it back to the caller
    result: Any = None

    def __call__(self) -> bool:
        return self.check()


def has_condition(obj: Any, *types: str) -> bool:
    """Return True if any status condition of the given types has status True."""
    status = getattr(obj, "status", None)
    for condition in getattr(status, "conditions", None) or []:
        if condition.status == "True" and condition.type in types:
            return True
    return False


def _read(accessor: ResourceAccessor, ref: ResourceRef) -> Any:
    obj = accessor.get(ResourceKind(ref.kind), ref.namespace, ref.name)
    if obj is None:
        raise ResourceNotFoundError(ref.kind, ref.name, ref.namespace)
    return obj


def _status_condition(accessor: ResourceAccessor, ref: ResourceRef, what: str, *types: str) -> Condition:
    return Condition(
        description=f"{ref} {what}",
        check=lambda: has_condition(_read(accessor, ref), *types),
    )


def job_failed(accessor: ResourceAccessor, namespace: str, name: str) -> Condition:
    """Satisfied once the job has a Failed=True condition."""
    ref = ResourceRef(kind=ResourceKind.JOB.value, namespace=namespace, name=name)
    return _status_condition(accessor, ref, "to fail", JOB_FAILED)


def job_done(accessor: ResourceAccessor, namespace: str, name: str) -> Condition:
    """Satisfied once the job is Complete or Failed."""
    ref = ResourceRef(kind=ResourceKind.JOB.value, namespace=namespace, name=name)
    return _status_condition(accessor, ref, "to finish", JOB_FAILED, JOB_COMPLETE)


def job_completed(accessor: ResourceAccessor, namespace: str, name: str) -> Condition:
    """Satisfied once the job has a Complete=True condition."""
    ref = ResourceRef(kind=ResourceKind.JOB.value, namespace=namespace, name=name)
    return _status_condition(accessor, ref, "to complete", JOB_COMPLETE)


def deployment_available(accessor: ResourceAccessor, namespace: str, name: str) -> Condition:
    """Satisfied once the deployment reports Available=True."""
    ref = ResourceRef(kind=ResourceKind.DEPLOYMENT.value, namespace=namespace, name=name)
    return _status_condition(accessor, ref, "to be available", DEPLOYMENT_AVAILABLE)


def namespace_absent(accessor: ResourceAccessor, name: str) -> Condition:
    """Satisfied once the namespace can no longer be read."""
    ref = ResourceRef(kind=ResourceKind.NAMESPACE.value, name=name)
    return Condition(
        description=f"{ref} to be deleted",
        check=lambda: accessor.get(ResourceKind.NAMESPACE, None, name) is None,
    )


def pod_absent(
    accessor: ResourceAccessor,
    namespace: str,
    selector: Optional[str] = None,
    *,
    tolerate_list_errors: bool = False,
) -> Condition:
    """
    Satisfied once no pod in the namespace matches the selector.

    Args:
        accessor: Resource accessor
        namespace: Kubernetes namespace
        selector: Label selector, None matches every pod
        tolerate_list_errors: Count a failed pod listing as "no pods left"
            instead of raising it. Kept for callers that relied on that
            behavior; it hides API failures.
    """
    ref = ResourceRef(kind=ResourceKind.POD.value, namespace=namespace, selector=selector)

    def check() -> bool:
        try:
            pods = accessor.list(ResourceKind.POD, namespace, selector)
        except ApiException as e:
            if not tolerate_list_errors:
                raise
            logger.warning(f"Listing {ref} failed, treating pods as gone: {e.reason}")
            return True
        return len(pods) == 0

    return Condition(description=f"{ref} to be deleted", check=check)


def secret_present(accessor: ResourceAccessor, namespace: str, name: str) -> Condition:
    """Satisfied once the secret can be read; the secret is kept in ``result``."""
    ref = ResourceRef(kind=ResourceKind.SECRET.value, namespace=namespace, name=name)
    condition = Condition(description=f"{ref} to exist")

    def check() -> bool:
        secret = accessor.get(ResourceKind.SECRET, namespace, name)
        if secret is None:
            return False
        condition.result = secret
        return True

    condition.check = check
    return condition


def crd_exists(accessor: ResourceAccessor, name: str) -> Condition:
    """Satisfied once the CRD object exists."""
    return Condition(
        description=f"CRD {name} to exist",
        check=lambda: accessor.get(ResourceKind.CRD, None, name) is not None,
    )


def crd_established(accessor: ResourceAccessor, name: str) -> Condition:
    """Satisfied once the CRD reports Established=True; a missing CRD is an error."""
    ref = ResourceRef(kind=ResourceKind.CRD.value, name=name)
    return _status_condition(accessor, ref, "to be established", CRD_ESTABLISHED)
