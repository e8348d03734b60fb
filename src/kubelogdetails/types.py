"""
Core data types for controller resolution.

This module provides the immutable value types shared across the package:
- Instance: A pod as seen by the resolver (name, namespace, labels, owners)
- OwnerReference: (kind, apiVersion, name) triple from pod metadata
- ControllerKind: The controller kinds the resolver knows how to discover
- ControllerClassification: Derived classification of a pod's owner

Native kinds are only recognized when the owner's apiVersion matches the
core API group that defines them. Anything else, including a familiar
kind name under a foreign group, is treated as a custom resource.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class ControllerKind(str, Enum):
    """Controller kinds known to the discovery strategies."""

    STATEFULSET = "StatefulSet"
    DEPLOYMENT = "Deployment"
    DAEMONSET = "DaemonSet"
    JOB = "Job"
    CRONJOB = "CronJob"
    CUSTOM_RESOURCE = "CustomResource"
    NONE = ""


# Expected apiVersion for each native controller kind
NATIVE_API_VERSIONS: dict[ControllerKind, str] = {
    ControllerKind.STATEFULSET: "apps/v1",
    ControllerKind.DEPLOYMENT: "apps/v1",
    ControllerKind.DAEMONSET: "apps/v1",
    ControllerKind.JOB: "batch/v1",
    ControllerKind.CRONJOB: "batch/v1",
}


@dataclass(frozen=True)
class OwnerReference:
    """
    Owner reference extracted from pod metadata.

    Attributes:
        kind: Owner kind as reported (e.g., "StatefulSet", "Rollout")
        api_version: Owner apiVersion (e.g., "apps/v1")
        name: Owner object name
    """

    kind: str
    api_version: str
    name: str


@dataclass(frozen=True)
class Instance:
    """
    A running workload instance (pod).

    Attributes:
        name: Pod name
        namespace: Namespace the pod lives in
        labels: Pod labels
        owner_references: Owner references in metadata order
    """

    name: str
    namespace: str
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)
    owner_references: tuple[OwnerReference, ...] = ()

    @property
    def owner(self) -> OwnerReference | None:
        """First owner reference, or None when the pod has no owner."""
        if self.owner_references:
            return self.owner_references[0]
        return None


@dataclass(frozen=True)
class ControllerClassification:
    """
    Classification of the controller that owns an instance.

    Attributes:
        kind: Classified kind (CUSTOM_RESOURCE for anything non-native)
        name: Controller name ("" when the instance has no owner)
        is_native: True only for a native kind with its native apiVersion
        reported_kind: Kind string exactly as the owner reference reported it
        api_version: apiVersion exactly as the owner reference reported it
    """

    kind: ControllerKind
    name: str
    is_native: bool
    reported_kind: str = ""
    api_version: str = ""

    @property
    def has_owner(self) -> bool:
        """Return True if the instance had an owner reference."""
        return self.kind is not ControllerKind.NONE

    def describe(self) -> str:
        """Human-readable "name (kind)" label for headers and log lines."""
        if not self.has_owner:
            return "none"
        if self.is_native:
            return f"{self.name} ({self.kind.value})"
        return f"{self.name} ({self.kind.value}: {self.reported_kind} {self.api_version})"


UNOWNED = ControllerClassification(kind=ControllerKind.NONE, name="", is_native=False)


def classify(owner: OwnerReference | None) -> ControllerClassification:
    """
    Classify an owner reference.

    Args:
        owner: First owner reference of the instance, or None

    Returns:
        ControllerClassification; non-native owners collapse to CUSTOM_RESOURCE
    """
    if owner is None:
        return UNOWNED

    try:
        kind = ControllerKind(owner.kind)
    except ValueError:
        kind = ControllerKind.CUSTOM_RESOURCE

    expected = NATIVE_API_VERSIONS.get(kind)
    is_native = expected is not None and owner.api_version == expected
    if not is_native:
        kind = ControllerKind.CUSTOM_RESOURCE

    return ControllerClassification(
        kind=kind,
        name=owner.name,
        is_native=is_native,
        reported_kind=owner.kind,
        api_version=owner.api_version,
    )
