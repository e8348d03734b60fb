"""
Cluster API collaborator for pod lookup and log streaming.

This module provides:
- ClusterClient, LogStream: Protocols the resolver and tailers depend on
- KubernetesCluster: Read-only implementation over kubernetes_asyncio
- KubernetesLogStream: Byte stream wrapper around a following log response
- default_namespace(): Namespace from kubeconfig or in-cluster credentials

Credential loading follows the usual kubectl order: explicit kubeconfig,
then KUBECONFIG, then ~/.kube/config, falling back to the in-cluster
service account when no kubeconfig is usable.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import aiohttp
import yaml
from kubernetes_asyncio import client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.exceptions import ApiException
from kubernetes_asyncio.config.kube_config import KubeConfigMerger

from kubelogdetails.errors import ClusterError, StreamOpenError, StreamReadError
from kubelogdetails.types import Instance, OwnerReference

logger = logging.getLogger(__name__)

DEFAULT_KUBECONFIG = Path.home() / ".kube" / "config"
SERVICE_ACCOUNT_NAMESPACE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")


@runtime_checkable
class LogStream(Protocol):
    """A following byte stream of one pod's log output."""

    async def read(self, size: int) -> bytes:
        """
        Read up to size bytes; b"" means the stream ended.

        Transport failures are raised as StreamReadError.
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying connection."""
        ...


@runtime_checkable
class ClusterClient(Protocol):
    """
    Read-only view of the cluster used by the resolver and tailers.

    get_instance returns None when the pod does not exist; any other
    failure raises ClusterError. open_log_stream raises StreamOpenError.
    """

    async def get_instance(self, namespace: str, name: str) -> Instance | None:
        ...

    async def list_instances(
        self, namespace: str, label_selector: str | None = None
    ) -> list[Instance]:
        ...

    async def open_log_stream(
        self,
        namespace: str,
        name: str,
        tail_lines: int = 200,
        container: str | None = None,
    ) -> LogStream:
        ...


def _status_message(body: Any, fallback: str) -> str:
    """Extract the "message" field of a Kubernetes Status body."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str) and body:
        try:
            payload = json.loads(body)
        except ValueError:
            return body.strip() or fallback
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
    return fallback


def _api_reason(exc: ApiException) -> str:
    return _status_message(exc.body, f"({exc.status}) {exc.reason}")


def pod_to_instance(pod: Any) -> Instance:
    """
    Convert a V1Pod into an Instance.

    Args:
        pod: kubernetes_asyncio V1Pod (or any object with the same shape)

    Returns:
        Instance with labels and owner references copied from metadata
    """
    meta = pod.metadata
    owners = tuple(
        OwnerReference(kind=ref.kind, api_version=ref.api_version, name=ref.name)
        for ref in meta.owner_references or ()
    )
    return Instance(
        name=meta.name,
        namespace=meta.namespace or "",
        labels=dict(meta.labels or {}),
        owner_references=owners,
    )


class KubernetesLogStream:
    """LogStream over an aiohttp response from read_namespaced_pod_log."""

    def __init__(self, instance: str, response: aiohttp.ClientResponse) -> None:
        self._instance = instance
        self._response = response

    async def read(self, size: int) -> bytes:
        try:
            return await self._response.content.read(size)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise StreamReadError(self._instance, str(exc) or type(exc).__name__) from exc

    async def aclose(self) -> None:
        self._response.close()


class KubernetesCluster:
    """
    ClusterClient backed by the Kubernetes API.

    Never mutates cluster state. Use as an async context manager so the
    underlying HTTP session is closed.

    Example:
        async with await KubernetesCluster.connect() as cluster:
            pod = await cluster.get_instance("default", "web-0")
    """

    def __init__(self, api_client: client.ApiClient) -> None:
        """
        Initialize with a configured API client.

        Args:
            api_client: kubernetes_asyncio ApiClient (owned by this object)
        """
        self._api_client = api_client
        self._core = client.CoreV1Api(api_client)

    @classmethod
    async def connect(
        cls,
        kubeconfig: Path | None = None,
        context: str | None = None,
    ) -> "KubernetesCluster":
        """
        Load credentials and build a cluster client.

        Tries kubeconfig first; when none is usable and no explicit
        kubeconfig/context was given, falls back to in-cluster config.

        Args:
            kubeconfig: Explicit kubeconfig path
            context: Kubeconfig context to use

        Returns:
            Connected KubernetesCluster

        Raises:
            ClusterError: If no credentials could be loaded
        """
        configuration = client.Configuration()
        try:
            await k8s_config.load_kube_config(
                config_file=str(kubeconfig) if kubeconfig else None,
                context=context,
                client_configuration=configuration,
            )
            logger.info("k8s client configured from kubeconfig")
        except (k8s_config.ConfigException, OSError) as exc:
            if kubeconfig is not None or context is not None:
                raise ClusterError("loading kubeconfig", str(exc)) from exc
            try:
                k8s_config.load_incluster_config(client_configuration=configuration)
            except k8s_config.ConfigException as incluster_exc:
                raise ClusterError(
                    "loading cluster credentials",
                    f"{exc}; in-cluster: {incluster_exc}",
                ) from incluster_exc
            logger.info("k8s client configured from in-cluster service account")
        return cls(client.ApiClient(configuration=configuration))

    async def __aenter__(self) -> "KubernetesCluster":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self._api_client.close()

    async def get_instance(self, namespace: str, name: str) -> Instance | None:
        try:
            pod = await self._core.read_namespaced_pod(name=name, namespace=namespace)
        except ApiException as exc:
            if exc.status == 404:
                return None
            raise ClusterError(f"getting pod {namespace}/{name}", _api_reason(exc)) from exc
        except aiohttp.ClientError as exc:
            raise ClusterError(f"getting pod {namespace}/{name}", str(exc)) from exc
        return pod_to_instance(pod)

    async def list_instances(
        self, namespace: str, label_selector: str | None = None
    ) -> list[Instance]:
        kwargs: dict[str, Any] = {"namespace": namespace}
        if label_selector:
            kwargs["label_selector"] = label_selector
        try:
            pods = await self._core.list_namespaced_pod(**kwargs)
        except ApiException as exc:
            raise ClusterError(f"listing pods in {namespace}", _api_reason(exc)) from exc
        except aiohttp.ClientError as exc:
            raise ClusterError(f"listing pods in {namespace}", str(exc)) from exc
        return [pod_to_instance(pod) for pod in pods.items]

    async def open_log_stream(
        self,
        namespace: str,
        name: str,
        tail_lines: int = 200,
        container: str | None = None,
    ) -> LogStream:
        kwargs: dict[str, Any] = {
            "name": name,
            "namespace": namespace,
            "follow": True,
            "tail_lines": tail_lines,
            "_preload_content": False,
        }
        if container:
            kwargs["container"] = container
        try:
            response = await self._core.read_namespaced_pod_log(**kwargs)
        except ApiException as exc:
            raise StreamOpenError(name, _api_reason(exc)) from exc
        except aiohttp.ClientError as exc:
            raise StreamOpenError(name, str(exc)) from exc

        # Streaming responses skip the client's status check
        if response.status >= 400:
            body = await response.read()
            response.close()
            raise StreamOpenError(
                name, _status_message(body, f"({response.status}) {response.reason}")
            )
        return KubernetesLogStream(name, response)


def _kubeconfig_paths(kubeconfig: Path | None) -> str:
    if kubeconfig is not None:
        return str(kubeconfig)
    return os.environ.get("KUBECONFIG") or str(DEFAULT_KUBECONFIG)


def default_namespace(
    kubeconfig: Path | None = None,
    context: str | None = None,
    service_account_file: Path = SERVICE_ACCOUNT_NAMESPACE,
) -> str:
    """
    Determine the namespace to use when none was given on the command line.

    Reads the selected kubeconfig context's namespace, with KUBECONFIG
    files merged by kubernetes_asyncio. Falls back to the in-cluster
    service account namespace, then to "default".

    Args:
        kubeconfig: Explicit kubeconfig path
        context: Context override (defaults to current-context)
        service_account_file: In-cluster namespace file

    Returns:
        Namespace name
    """
    try:
        merged = KubeConfigMerger(_kubeconfig_paths(kubeconfig)).config
        entry = None
        if merged is not None:
            current_context = context or merged.safe_get("current-context")
            if current_context:
                entry = merged["contexts"].get_with_name(current_context, safe=True)
    except (
        k8s_config.ConfigException,
        OSError,
        yaml.YAMLError,
        KeyError,
        TypeError,
        AttributeError,
    ) as exc:
        logger.warning(f"Ignoring unreadable kubeconfig: {exc}")
        entry = None

    if entry is not None:
        return (entry.safe_get("context") or {}).get("namespace") or "default"

    if service_account_file.is_file():
        namespace = service_account_file.read_text().strip()
        if namespace:
            return namespace
    return "default"
