from __future__ import annotations

from types import ModuleType
from typing import Sequence

from ..config import AutomationConfig
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..workflow import WorkflowStep
from . import (
    build_baseline_vm_template,
    build_developer_vm_template,
    build_k8s_vm_template,
    cleanup_template_environment,
    configure_dhcp,
    configure_k8s_cluster,
    configure_nat,
    create_cluster_secrets,
    init_k8s_instances,
    init_server_manager,
    setup_template_environment,
    update_host,
)

__all__ = ["COMMAND_TASKS", "build_steps"]

COMMAND_TASKS: dict[str, list[ModuleType]] = {
    "configure-host": [update_host, configure_nat, configure_dhcp],
    "create-templates": [
        setup_template_environment,
        build_baseline_vm_template,
        build_k8s_vm_template,
        build_developer_vm_template,
        cleanup_template_environment,
    ],
    "create-k8s-cluster": [init_k8s_instances, configure_k8s_cluster],
    "register-server": [create_cluster_secrets, init_server_manager],
}


def build_steps(
    tasks: Sequence[ModuleType],
    connection: ConnectionInfo,
    executor: CommandExecutor,
    config: AutomationConfig,
) -> list[WorkflowStep]:
    """Concatenate the steps of each task so they run as one workflow."""
    steps: list[WorkflowStep] = []
    for task in tasks:
        steps.extend(task.get_steps(connection, executor, config))
    return steps
