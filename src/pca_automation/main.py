"""CLI entrypoint for provisioning a Proxmox host and its kubernetes cluster."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .config import load_config
from .models import ConnectionInfo, ServerInfo, StepStatus
from .ssh import SshCommandExecutor
from .tasks import COMMAND_TASKS, build_steps
from .workflow import WorkflowRunner

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    env_level = os.getenv("PCA_AUTOMATION_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, env_level, None)
    if not isinstance(level, int):
        level = logging.INFO
        logging.warning(
            "Unrecognized PCA_AUTOMATION_LOG_LEVEL '%s'; defaulting to INFO",
            env_level,
        )
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")


load_dotenv(find_dotenv(usecwd=True), override=False)
_configure_logging()

app = typer.Typer(help="Provision a Proxmox host and a kubernetes cluster over SSH")


def _host_option() -> Any:
    return typer.Option(..., "--host", "-h", help="The hostname/ip address of the remote host")


def _username_option() -> Any:
    return typer.Option(..., "--username", "-u", help="The username to use to authenticate against the remote host")


def _port_option() -> Any:
    return typer.Option(22, "--port", "-o", help="The port on which to connect to the host")


def _password_option() -> Any:
    return typer.Option(
        None,
        "--password",
        "-p",
        envvar="PCA_SSH_PASSWORD",
        help=(
            "The password to use to authenticate against the remote host. "
            "If a private key is specified, then the password will be used to unlock the private key"
        ),
    )


def _private_key_option() -> Any:
    return typer.Option(None, "--private-key", "-k", help="The path to the ssh private key")


def _config_option() -> Any:
    return typer.Option(None, "--config", exists=True, readable=True, help="Optional automation config YAML")


def _run_command(command: str, connection: ConnectionInfo, config_path: Optional[Path]) -> None:
    try:
        automation_config = load_config(config_path)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as exc:
        typer.secho(f"Invalid configuration: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    tasks = COMMAND_TASKS[command]
    logger.info("Running %s against %s (%s)", command, connection.address, ", ".join(task.TITLE for task in tasks))
    steps = build_steps(tasks, connection, SshCommandExecutor(automation_config.ssh), automation_config)
    runner = WorkflowRunner()
    error: Optional[RuntimeError] = None
    try:
        runner.run(steps)
    except RuntimeError as exc:
        error = exc

    typer.echo(
        json.dumps(
            {
                "command": command,
                "host": connection.host,
                "tasks": [task.TITLE for task in tasks],
                "status": "failed" if error else "succeeded",
                "steps": [
                    {"step": event.step, "status": event.status.value, "detail": event.detail}
                    for event in runner.events
                ],
                "skipped": sum(1 for event in runner.events if event.status is StepStatus.SKIPPED),
            },
            indent=2,
        )
    )

    if error is not None:
        typer.secho(f"Step '{runner.failed_step}' failed: {error}", fg=typer.colors.RED, err=True)
        typer.secho(
            "Fix the underlying issue and re-run the same command; completed phases are detected and skipped.",
            fg=typer.colors.YELLOW,
            err=True,
        )
        raise typer.Exit(code=1) from error


@app.command("configure-host")
def configure_host(
    host: str = _host_option(),
    username: str = _username_option(),
    port: int = _port_option(),
    password: Optional[str] = _password_option(),
    private_key: Optional[str] = _private_key_option(),
    config: Optional[Path] = _config_option(),
) -> None:
    """Configure remote host's software and network."""

    connection = ConnectionInfo(host, username, port, password, private_key)
    _run_command("configure-host", connection, config)


@app.command("create-templates")
def create_templates(
    host: str = _host_option(),
    username: str = _username_option(),
    port: int = _port_option(),
    password: Optional[str] = _password_option(),
    private_key: Optional[str] = _private_key_option(),
    config: Optional[Path] = _config_option(),
) -> None:
    """Create VM templates for kubernetes nodes and bastion."""

    connection = ConnectionInfo(host, username, port, password, private_key)
    _run_command("create-templates", connection, config)


@app.command("create-k8s-cluster")
def create_k8s_cluster(
    host: str = _host_option(),
    username: str = _username_option(),
    port: int = _port_option(),
    password: Optional[str] = _password_option(),
    private_key: Optional[str] = _private_key_option(),
    config: Optional[Path] = _config_option(),
) -> None:
    """Create a kubernetes cluster on the remote host."""

    connection = ConnectionInfo(host, username, port, password, private_key)
    _run_command("create-k8s-cluster", connection, config)


@app.command("register-server")
def register_server(
    host: str = _host_option(),
    username: str = _username_option(),
    port: int = _port_option(),
    password: Optional[str] = _password_option(),
    private_key: Optional[str] = _private_key_option(),
    cloud_endpoint: str = typer.Option(
        ...,
        "--cloud-endpoint",
        "-c",
        help="The endpoint in the cloud that the server will contact for licensing and software update information",
    ),
    server_id: str = typer.Option(..., "--server-id", "-s", help="The id to assign to the server"),
    server_secret: str = typer.Option(
        ...,
        "--server-secret",
        "-e",
        help="A unique secret that the server can use to identify itself to the cloud",
    ),
    config: Optional[Path] = _config_option(),
) -> None:
    """Register server with cloud."""

    server = ServerInfo(
        host,
        username,
        port,
        password,
        private_key,
        cloud_endpoint=cloud_endpoint,
        server_id=server_id,
        server_secret=server_secret,
    )
    _run_command("register-server", server, config)


if __name__ == "__main__":
    app()
