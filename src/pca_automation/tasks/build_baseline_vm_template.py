"""Build the baseline template that every other VM template is cloned from."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import BASELINE_TEMPLATE_ID, CLOUD_IMAGE_NAME, HOST_IMAGES_DIR, PRIVATE_NETWORK_BRIDGE
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, probe_step, skip_when
from ..workflow import WorkflowStep
from ._template import check_vm_exists_commands, convert_to_template_commands

TITLE = "Build baseline VM template"
SKIP_FLAG = "skip_template_build"

ENSURE_WORKING_DIRECTORIES_COMMANDS = [
    "# ---------- Ensure that working directories exist ----------",
    f"mkdir -p {HOST_IMAGES_DIR}",
]

CREATE_VM_COMMANDS = [
    "# ---------- Create baseline VM ----------",
    f"qm create {BASELINE_TEMPLATE_ID} --name baseline --memory 2048 --cores 1 --socket 1"
    f" --net0 virtio,bridge={PRIVATE_NETWORK_BRIDGE} --ide2 local-lvm:cloudinit"
    " --serial0 socket --vga serial0 --boot c --bootdisk scsi0"
    " --ipconfig0 ip=dhcp",
    "# ---------- Import the disk image into the VM ----------",
    f"qm importdisk {BASELINE_TEMPLATE_ID} {HOST_IMAGES_DIR}/{CLOUD_IMAGE_NAME} local-lvm",
    "# ---------- Set the imported image as scsi0 ----------",
    f"qm set {BASELINE_TEMPLATE_ID} --scsihw virtio-scsi-pci --scsi0 local-lvm:vm-{BASELINE_TEMPLATE_ID}-disk-0",
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    skip = skip_when(SKIP_FLAG, "Template already exists")
    return [
        probe_step(
            "Check if baseline template build is required",
            connection,
            check_vm_exists_commands(BASELINE_TEMPLATE_ID),
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
            "Create baseline VM",
            connection,
            CREATE_VM_COMMANDS,
            "Error creating baseline VM",
            executor,
            skip=skip,
        ),
        command_step(
            "Convert VM into template",
            connection,
            convert_to_template_commands(BASELINE_TEMPLATE_ID),
            "Error converting VM into template",
            executor,
            skip=skip,
        ),
    ]
