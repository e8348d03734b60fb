"""
Exception classes for controller resolution and log streaming.

Fatal errors abort the session before the terminal grid is entered:
- ArgumentError: Required CLI input is missing
- NotFoundError: The namespace has no matching pods
- AmbiguousTargetError: The target is unknown but other pods exist
- ClusterError: The cluster API failed unexpectedly

Per-pane errors are contained to a single tailer:
- StreamOpenError: The log stream could not be opened
- StreamReadError: The log stream failed mid-read

All classes store their context in attributes and carry an exit_code
used by the CLI.
"""


class KubeLogDetailsError(Exception):
    """Base class for all kubelogdetails errors."""

    exit_code = 1


class ArgumentError(KubeLogDetailsError):
    """Raised when a required command-line argument is missing."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(KubeLogDetailsError):
    """
    Raised when a namespace has no pods to choose from.

    Attributes:
        namespace: Namespace that was searched
        name: Pod name that was requested, if any
    """

    def __init__(self, namespace: str, name: str | None = None) -> None:
        self.namespace = namespace
        self.name = name
        super().__init__(f"no pods found in namespace {namespace}")


class AmbiguousTargetError(KubeLogDetailsError):
    """
    Raised when the requested pod or its siblings cannot be determined.

    The candidate names are part of the message so the user can pick
    a valid pod and rerun.

    Attributes:
        namespace: Namespace that was searched
        requested: Pod name the user asked for
        candidates: Pod names available in the namespace, in list order
        controller: Controller name when sibling discovery came up empty
    """

    def __init__(
        self,
        namespace: str,
        requested: str,
        candidates: list[str],
        controller: str | None = None,
    ) -> None:
        self.namespace = namespace
        self.requested = requested
        self.candidates = list(candidates)
        self.controller = controller
        if controller:
            headline = f"No pods found for controller {controller}."
        else:
            headline = f"Pod {requested} not found in namespace {namespace}."
        listing = "\n".join(f"- {name}" for name in self.candidates)
        super().__init__(
            f"{headline} Available pods:\n{listing}\n"
            f"Please select a valid pod from the list above."
        )


class ClusterError(KubeLogDetailsError):
    """
    Raised when a cluster API call fails for a reason other than 404.

    Attributes:
        operation: What was being attempted (e.g., "list pods")
        reason: Underlying failure description
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"error during {operation}: {reason}")


class StreamOpenError(KubeLogDetailsError):
    """
    Raised when a pod's log stream cannot be opened.

    Attributes:
        instance: Pod whose logs were requested
        reason: Underlying failure description
    """

    def __init__(self, instance: str, reason: str) -> None:
        self.instance = instance
        self.reason = reason
        super().__init__(reason)


class StreamReadError(KubeLogDetailsError):
    """
    Raised when a pod's log stream fails after it was opened.

    Attributes:
        instance: Pod whose stream failed
        reason: Underlying failure description
    """

    def __init__(self, instance: str, reason: str) -> None:
        self.instance = instance
        self.reason = reason
        super().__init__(f"log stream for {instance} failed: {reason}")
