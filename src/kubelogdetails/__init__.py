"""
Tail the logs of a pod and all sibling pods of its controller.

This package provides:
- ControllerResolver: Classifies a pod's owner and discovers its siblings
- StreamBuffer: Bounded per-pod line buffer fed with raw stream chunks
- LogTailer: Follows one pod's log stream into its buffer
- GridPresenter, compute_layout: 2-column tiled grid of log panes
- SessionController: Wires resolution, tailing and rendering together
- KubernetesCluster: Read-only cluster collaborator over kubernetes_asyncio
"""

from kubelogdetails.buffer import StreamBuffer
from kubelogdetails.cluster import ClusterClient, KubernetesCluster, LogStream, default_namespace
from kubelogdetails.config import SessionConfig, Settings
from kubelogdetails.errors import (
    AmbiguousTargetError,
    ArgumentError,
    ClusterError,
    KubeLogDetailsError,
    NotFoundError,
    StreamOpenError,
    StreamReadError,
)
from kubelogdetails.layout import GridLayout, Region, compute_layout
from kubelogdetails.presenter import GridPresenter, Pane
from kubelogdetails.resolver import ControllerResolver, Resolution
from kubelogdetails.session import SessionController, SessionState
from kubelogdetails.tailer import LogTailer
from kubelogdetails.types import (
    ControllerClassification,
    ControllerKind,
    Instance,
    OwnerReference,
    classify,
)

__all__ = [
    "AmbiguousTargetError",
    "ArgumentError",
    "ClusterClient",
    "ClusterError",
    "ControllerClassification",
    "ControllerKind",
    "ControllerResolver",
    "GridLayout",
    "GridPresenter",
    "Instance",
    "KubeLogDetailsError",
    "KubernetesCluster",
    "LogStream",
    "LogTailer",
    "NotFoundError",
    "OwnerReference",
    "Pane",
    "Region",
    "Resolution",
    "SessionConfig",
    "SessionController",
    "SessionState",
    "Settings",
    "StreamBuffer",
    "StreamOpenError",
    "StreamReadError",
    "classify",
    "compute_layout",
    "default_namespace",
]
