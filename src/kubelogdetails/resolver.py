"""
ControllerResolver for finding a pod's controller and its sibling pods.

Resolution runs in two steps:
1. classify(): fetch the pod and classify its first owner reference
2. discover(): list the pods governed by that controller

Discovery uses a static label-selector strategy per controller kind.
Native kinds fall back to an unfiltered listing only to produce a useful
error: the resolver never substitutes unrelated pods for siblings.

Custom resources have no well-known selector, so the pod's own labels
are probed instead (app, name, component). When nothing matches, the
session shows just the requested pod.
"""

import logging
from dataclasses import dataclass
from typing import NoReturn

from kubelogdetails.cluster import ClusterClient
from kubelogdetails.errors import AmbiguousTargetError, ClusterError, NotFoundError
from kubelogdetails.types import (
    ControllerClassification,
    ControllerKind,
    Instance,
    classify,
)

logger = logging.getLogger(__name__)


# Selector templates per kind, tried in order until one returns pods.
# {instance} is the requested pod name, {controller} the owner name.
DISCOVERY_STRATEGIES: dict[ControllerKind, tuple[str, ...]] = {
    # pod-name is unique per pod, so this only ever selects the target
    ControllerKind.STATEFULSET: ("statefulset.kubernetes.io/pod-name={instance}",),
    ControllerKind.JOB: ("job-name={controller}",),
    ControllerKind.CRONJOB: ("cronjob-name={controller}",),
    ControllerKind.DEPLOYMENT: ("app={controller}",),
    ControllerKind.DAEMONSET: ("name={controller}", "k8s-app={controller}"),
}

# Label keys probed on the pod itself for custom-resource owners
CUSTOM_RESOURCE_LABEL_KEYS: tuple[str, ...] = ("app", "name", "component")


@dataclass(frozen=True)
class Resolution:
    """
    Result of resolving a pod.

    Attributes:
        instance: The requested pod
        classification: Classification of its controller
        instances: Sibling pod names in list order (includes the pod itself)
    """

    instance: Instance
    classification: ControllerClassification
    instances: list[str]


def selectors_for(classification: ControllerClassification, instance_name: str) -> list[str]:
    """
    Build the label selectors to try for a native controller.

    Args:
        classification: Controller classification
        instance_name: Requested pod name

    Returns:
        Selectors in try order (empty for custom resources and unowned pods)
    """
    templates = DISCOVERY_STRATEGIES.get(classification.kind, ())
    return [
        template.format(instance=instance_name, controller=classification.name)
        for template in templates
    ]


class ControllerResolver:
    """
    Resolves a pod to its controller and sibling pods.

    Read-only against the cluster. All failures are raised as
    KubeLogDetailsError subclasses; nothing is printed.

    Example:
        resolver = ControllerResolver(cluster)
        resolution = await resolver.resolve("default", "web-0")
        print(resolution.classification.kind, resolution.instances)
    """

    def __init__(self, cluster: ClusterClient) -> None:
        """
        Initialize resolver.

        Args:
            cluster: Cluster collaborator used for lookups
        """
        self._cluster = cluster

    async def resolve(self, namespace: str, instance_name: str) -> Resolution:
        """
        Classify the pod's controller and discover its siblings.

        Args:
            namespace: Namespace to search
            instance_name: Requested pod name

        Returns:
            Resolution with classification and sibling names

        Raises:
            NotFoundError: Namespace has no pods
            AmbiguousTargetError: Pod or siblings not found but pods exist
            ClusterError: Unexpected API failure
        """
        instance, classification = await self.classify(namespace, instance_name)
        instances = await self.discover(instance, classification)
        return Resolution(
            instance=instance,
            classification=classification,
            instances=instances,
        )

    async def classify(
        self, namespace: str, instance_name: str
    ) -> tuple[Instance, ControllerClassification]:
        """
        Fetch the pod and classify its first owner reference.

        Raises:
            NotFoundError: Pod absent and namespace empty
            AmbiguousTargetError: Pod absent but other pods exist
        """
        instance = await self._cluster.get_instance(namespace, instance_name)
        if instance is None:
            await self._fail_with_candidates(namespace, instance_name)

        if len(instance.owner_references) > 1:
            logger.info(
                f"Pod {instance_name} has {len(instance.owner_references)} owners; "
                f"using the first ({instance.owner.kind}/{instance.owner.name})"
            )
        classification = classify(instance.owner)
        logger.info(f"Found controller: {classification.describe()}")
        return instance, classification

    async def discover(
        self, instance: Instance, classification: ControllerClassification
    ) -> list[str]:
        """
        List sibling pod names for a classified pod.

        Args:
            instance: The requested pod
            classification: Result of classify()

        Returns:
            Non-empty list of pod names in list order
        """
        if not classification.has_owner:
            return [instance.name]

        if classification.kind is ControllerKind.CUSTOM_RESOURCE:
            return await self._discover_by_own_labels(instance)

        for selector in selectors_for(classification, instance.name):
            names = await self._try_selector(instance.namespace, selector)
            if names:
                return names

        await self._fail_with_candidates(
            instance.namespace, instance.name, controller=classification.name
        )

    async def _try_selector(self, namespace: str, selector: str) -> list[str]:
        """List pods for one selector; a failed attempt counts as empty."""
        logger.info(f"Trying label selector: {selector} in namespace: {namespace}")
        try:
            found = await self._cluster.list_instances(namespace, selector)
        except ClusterError as exc:
            logger.warning(f"Label selector {selector} failed: {exc}")
            return []
        return [item.name for item in found]

    async def _discover_by_own_labels(self, instance: Instance) -> list[str]:
        for key in CUSTOM_RESOURCE_LABEL_KEYS:
            if key in instance.labels:
                selector = f"{key}={instance.labels[key]}"
                names = await self._try_selector(instance.namespace, selector)
                if names:
                    return names
                break
        return [instance.name]

    async def _fail_with_candidates(
        self,
        namespace: str,
        requested: str,
        controller: str | None = None,
    ) -> NoReturn:
        """Raise NotFoundError or AmbiguousTargetError from an unfiltered listing."""
        everything = await self._cluster.list_instances(namespace)
        if not everything:
            raise NotFoundError(namespace, requested)
        raise AmbiguousTargetError(
            namespace=namespace,
            requested=requested,
            candidates=[item.name for item in everything],
            controller=controller,
        )
