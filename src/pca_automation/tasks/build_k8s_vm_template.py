"""Build the template used for every kubernetes node."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import HOST_SSH_KEYS_DIR, K8S_TEMPLATE_ID
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, delay_step, probe_step, skip_when
from ..workflow import WorkflowStep
from ._template import (
    apt_install_script_lines,
    check_vm_exists_commands,
    cleanup_template_commands,
    clone_baseline_commands,
    convert_to_template_commands,
    guest_script,
)

TITLE = "Build k8s VM template"
SKIP_FLAG = "skip_template_build"
TEMPLATE_VM_NAME = "k8s-node"
TEMPLATE_VM_IP = "10.0.0.11"

ENSURE_WORKING_DIRECTORIES_COMMANDS = [
    "# ---------- Ensure that working directories exist ----------",
    f"mkdir -p {HOST_SSH_KEYS_DIR}",
]

INSTALL_SOFTWARE_COMMANDS = [
    "# ---------- Install docker, kubectl, kubeadm and kubelet ----------",
    guest_script(TEMPLATE_VM_IP, apt_install_script_lines(["kubelet", "kubeadm", "kubectl"])),
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    skip = skip_when(SKIP_FLAG, "Template already exists")
    return [
        probe_step(
            "Check if k8s template build is required",
            connection,
            check_vm_exists_commands(K8S_TEMPLATE_ID),
            SKIP_FLAG,
            executor,
            found_message="Template already exists",
        ),
        command_step(
            "Ensure that working directories exist",
            connection,
            ENSURE_WORKING_DIRECTORIES_COMMANDS,
            "Error ensuring working directories",
            executor,
            skip=skip,
        ),
        command_step(
            "Clone and configure baseline template",
            connection,
            clone_baseline_commands(K8S_TEMPLATE_ID, TEMPLATE_VM_NAME, TEMPLATE_VM_IP),
            "Error cloning baseline into k8s VM",
            executor,
            skip=skip,
        ),
        delay_step("Wait for VM instance to start up", config.boot_wait_seconds, skip=skip),
        command_step(
            "Install docker, kubectl, kubeadm and kubelet",
            connection,
            INSTALL_SOFTWARE_COMMANDS,
            "Error installing required software on VM",
            executor,
            skip=skip,
        ),
        command_step(
            "Clean up template; prep for conversion to template",
            connection,
            cleanup_template_commands(K8S_TEMPLATE_ID, TEMPLATE_VM_IP),
            "Error cleaning up VM instance",
            executor,
            skip=skip,
        ),
        command_step(
            "Convert VM into template",
            connection,
            convert_to_template_commands(K8S_TEMPLATE_ID),
            "Error converting VM into template",
            executor,
            skip=skip,
        ),
    ]
