"""Prepare the host for template builds: base image and temporary SSH keys."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import CLOUD_IMAGE_NAME, CLOUD_IMAGE_URL, HOST_IMAGES_DIR, HOST_SSH_KEYS_DIR
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, probe_step, skip_when
from ..workflow import WorkflowStep
from ._template import EMPTY_KEY_PATH, TEMPLATE_KEY_PATH

TITLE = "Setup template build environment"
SKIP_IMAGE_FLAG = "skip_template_image_download"
SKIP_KEYS_FLAG = "skip_temporary_key_creation"

CHECK_IMAGE_DOWNLOAD_REQUIRED_COMMANDS = [
    "\n".join(
        [
            "# ---------- Check if the VM image already exists on disk ----------",
            f"stat {HOST_IMAGES_DIR}/{CLOUD_IMAGE_NAME} 1>/dev/null 2>&1",
        ]
    )
]

CHECK_TEMPORARY_KEYS_REQUIRED_COMMANDS = [
    "\n".join(
        [
            "# ---------- Check if the temporary SSH key already exists ----------",
            f"stat {TEMPLATE_KEY_PATH} 1>/dev/null 2>&1",
        ]
    )
]

ENSURE_WORKING_DIRECTORIES_COMMANDS = [
    "\n".join(
        [
            "# ---------- Ensure that working directories exist ----------",
            f"mkdir -p {HOST_SSH_KEYS_DIR}",
            f"mkdir -p {HOST_IMAGES_DIR}",
        ]
    )
]

DOWNLOAD_IMAGE_COMMANDS = [
    "\n".join(
        [
            "# ---------- Download the VM image from Ubuntu ----------",
            f"wget {CLOUD_IMAGE_URL} -O {HOST_IMAGES_DIR}/{CLOUD_IMAGE_NAME}",
        ]
    )
]

CREATE_TEMPORARY_KEYS_COMMANDS = [
    "\n".join(
        [
            "# ---------- Generate SSH keys for the template ----------",
            f"ssh-keygen -t rsa -b 4096 -C 'kube@template' -f {TEMPLATE_KEY_PATH} -N ''",
        ]
    ),
    "\n".join(
        [
            "# ---------- Generate empty ssh key (required to remove ssh keys from cloud init) ----------",
            f"cat <<'EOF' > {EMPTY_KEY_PATH}\n\nEOF",
        ]
    ),
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    return [
        probe_step(
            "Check if template image download is required",
            connection,
            CHECK_IMAGE_DOWNLOAD_REQUIRED_COMMANDS,
            SKIP_IMAGE_FLAG,
            executor,
            found_message="Template image already downloaded",
        ),
        probe_step(
            "Check if temporary SSH keys have to be created",
            connection,
            CHECK_TEMPORARY_KEYS_REQUIRED_COMMANDS,
            SKIP_KEYS_FLAG,
            executor,
            found_message="Temporary SSH keys already exist",
        ),
        command_step(
            "Ensure that working directories exist",
            connection,
            ENSURE_WORKING_DIRECTORIES_COMMANDS,
            "Error ensuring working directories",
            executor,
        ),
        command_step(
            "Download template image",
            connection,
            DOWNLOAD_IMAGE_COMMANDS,
            "Error downloading template image",
            executor,
            skip=skip_when(SKIP_IMAGE_FLAG, "Template image already downloaded"),
        ),
        command_step(
            "Create temporary SSH keys",
            connection,
            CREATE_TEMPORARY_KEYS_COMMANDS,
            "Error creating temporary ssh keys",
            executor,
            skip=skip_when(SKIP_KEYS_FLAG, "Temporary SSH keys already exist"),
        ),
    ]
