"""Environment-based settings and the per-session configuration."""

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Tunables for log tailing and rendering.

    All settings can be overridden via environment variables with
    KUBELOGDETAILS_ prefix. For example:
        KUBELOGDETAILS_TAIL_LINES=500
        KUBELOGDETAILS_LOG_LEVEL=DEBUG
    """

    # Log stream
    tail_lines: int = Field(default=200, ge=0)
    chunk_size: int = Field(default=1024, gt=0)

    # Retained lines per pod
    max_lines: int = Field(default=1000, gt=0)

    # Minimum seconds between two grid renders
    render_interval: float = Field(default=0.05, ge=0)

    log_level: str = "WARNING"

    model_config = {"env_prefix": "KUBELOGDETAILS_"}


@dataclass(frozen=True)
class SessionConfig:
    """
    Immutable configuration for one session.

    Built once at startup from CLI flags merged over Settings and passed
    into the session; never mutated afterwards.

    Attributes:
        namespace: Namespace to resolve the pod in
        instance_name: Pod the user asked for
        container: Container to stream logs from (None for the pod default)
        kubeconfig: Explicit kubeconfig path, if any
        context: Kubeconfig context override, if any
        tail_lines: Lines of history requested when a stream opens
        chunk_size: Bytes read from a stream per iteration
        max_lines: Lines retained per pod buffer
        render_interval: Minimum seconds between renders
    """

    namespace: str
    instance_name: str
    container: str | None = None
    kubeconfig: Path | None = None
    context: str | None = None
    tail_lines: int = 200
    chunk_size: int = 1024
    max_lines: int = 1000
    render_interval: float = 0.05

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        namespace: str,
        instance_name: str,
        container: str | None = None,
        kubeconfig: Path | None = None,
        context: str | None = None,
        tail_lines: int | None = None,
    ) -> "SessionConfig":
        """
        Merge CLI values over environment settings.

        Args:
            settings: Loaded Settings
            namespace: Resolved namespace
            instance_name: Requested pod name
            container: Optional container name
            kubeconfig: Optional kubeconfig path
            context: Optional kubeconfig context
            tail_lines: CLI override for settings.tail_lines

        Returns:
            A new SessionConfig
        """
        return cls(
            namespace=namespace,
            instance_name=instance_name,
            container=container,
            kubeconfig=kubeconfig,
            context=context,
            tail_lines=tail_lines if tail_lines is not None else settings.tail_lines,
            chunk_size=settings.chunk_size,
            max_lines=settings.max_lines,
            render_interval=settings.render_interval,
        )
