"""kubelogdetails CLI - tail every pod of a controller side by side."""

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from kubelogdetails.cluster import KubernetesCluster, default_namespace
from kubelogdetails.config import SessionConfig, Settings
from kubelogdetails.errors import ArgumentError, KubeLogDetailsError
from kubelogdetails.log import configure_logging
from kubelogdetails.session import SessionController

app = typer.Typer(
    name="kubelogdetails",
    help="Show the logs of a pod and all sibling pods of its controller",
    add_completion=False,
)

err_console = Console(stderr=True)


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        raise ArgumentError(f"invalid KUBELOGDETAILS_ setting: {e}") from e


async def _run_session(config: SessionConfig) -> int:
    async with await KubernetesCluster.connect(config.kubeconfig, config.context) as cluster:
        session = SessionController(config, cluster)
        return await session.run()


@app.command()
def logs(
    pod: str = typer.Argument(None, help="Pod whose controller's pods to tail"),
    namespace: str = typer.Option(
        None,
        "--namespace",
        "-n",
        help="Namespace to use (default: from kubeconfig context)",
    ),
    container: str = typer.Option(
        None, "--container", "-c", help="Container to stream logs from"
    ),
    kubeconfig: Path = typer.Option(
        None, "--kubeconfig", help="Path to kubeconfig file (default: $KUBECONFIG or ~/.kube/config)"
    ),
    context: str = typer.Option(None, "--context", help="Kubeconfig context to use"),
    tail: int = typer.Option(
        None, "--tail", min=0, help="Lines of history per pod (default 200)"
    ),
    log_level: str = typer.Option(
        None, "--log-level", help="Log level (default WARNING)"
    ),
    log_file: Path = typer.Option(
        None, "--log-file", help="Write logs to this file instead of stderr"
    ),
) -> None:
    """
    Find the controller of POD and tail all of its pods in a grid.

    Press q to quit.

    Environment variables:
        KUBELOGDETAILS_TAIL_LINES: Default lines of history
        KUBELOGDETAILS_MAX_LINES: Lines retained per pod
        KUBELOGDETAILS_RENDER_INTERVAL: Minimum seconds between redraws
        KUBELOGDETAILS_LOG_LEVEL: Default log level
    """
    try:
        settings = _load_settings()
        configure_logging(log_level or settings.log_level, log_file, console=err_console)

        if not pod:
            raise ArgumentError("pod name is required")
        config = SessionConfig.from_settings(
            settings,
            namespace=namespace or default_namespace(kubeconfig, context),
            instance_name=pod,
            container=container,
            kubeconfig=kubeconfig,
            context=context,
            tail_lines=tail,
        )
        exit_code = asyncio.run(_run_session(config))
    except KubeLogDetailsError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(e.exit_code)

    raise typer.Exit(exit_code)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
