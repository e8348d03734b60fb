"""Shared fakes for the cluster collaborator."""

import asyncio
from collections.abc import Callable

import pytest

from kubelogdetails.errors import ClusterError
from kubelogdetails.types import Instance, OwnerReference


def make_pod(
    name: str,
    namespace: str = "default",
    labels: dict[str, str] | None = None,
    owner: tuple[str, str, str] | None = None,
    extra_owners: list[tuple[str, str, str]] | None = None,
) -> Instance:
    """Build an Instance; owner is (kind, api_version, name)."""
    owners = []
    if owner is not None:
        owners.append(OwnerReference(*owner))
    for extra in extra_owners or []:
        owners.append(OwnerReference(*extra))
    return Instance(
        name=name,
        namespace=namespace,
        labels=labels or {},
        owner_references=tuple(owners),
    )


class FakeLogStream:
    """In-memory LogStream that serves data in reads of at most size bytes."""

    def __init__(
        self,
        data: bytes = b"",
        error: Exception | None = None,
        hold_open: bool = False,
    ) -> None:
        self._data = data
        self._error = error
        self._hold_open = hold_open
        self.read_sizes: list[int] = []
        self.closed = False

    async def read(self, size: int) -> bytes:
        self.read_sizes.append(size)
        # Yield so other tasks interleave like a real network read
        await asyncio.sleep(0)
        if self._data:
            chunk, self._data = self._data[:size], self._data[size:]
            return chunk
        if self._error is not None:
            raise self._error
        if self._hold_open:
            await asyncio.Event().wait()
        return b""

    async def aclose(self) -> None:
        self.closed = True


class FakeCluster:
    """In-memory ClusterClient with label-selector filtering."""

    def __init__(
        self,
        pods: list[Instance] | None = None,
        streams: dict[str, FakeLogStream | Exception] | None = None,
        failing_selectors: tuple[str, ...] = (),
    ) -> None:
        self.pods = list(pods or [])
        self.streams = dict(streams or {})
        self.failing_selectors = failing_selectors
        self.list_calls: list[str | None] = []
        self.opened: list[tuple[str, str, int, str | None]] = []
        self.closed = False

    async def __aenter__(self) -> "FakeCluster":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True

    async def get_instance(self, namespace: str, name: str) -> Instance | None:
        for pod in self.pods:
            if pod.namespace == namespace and pod.name == name:
                return pod
        return None

    async def list_instances(
        self, namespace: str, label_selector: str | None = None
    ) -> list[Instance]:
        self.list_calls.append(label_selector)
        if label_selector in self.failing_selectors:
            raise ClusterError(f"listing pods in {namespace}", "connection refused")
        items = [pod for pod in self.pods if pod.namespace == namespace]
        if label_selector:
            key, value = label_selector.split("=", 1)
            items = [pod for pod in items if pod.labels.get(key) == value]
        return items

    async def open_log_stream(
        self,
        namespace: str,
        name: str,
        tail_lines: int = 200,
        container: str | None = None,
    ) -> FakeLogStream:
        self.opened.append((namespace, name, tail_lines, container))
        stream = self.streams.get(name)
        if isinstance(stream, Exception):
            raise stream
        if stream is None:
            stream = FakeLogStream()
            self.streams[name] = stream
        return stream


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Poll predicate until true or fail the test after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(0.01)
