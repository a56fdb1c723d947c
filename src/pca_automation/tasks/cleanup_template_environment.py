"""Remove the artifacts left on the host by the template builds."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import CLOUD_IMAGE_NAME, HOST_IMAGES_DIR, HOST_SSH_KEYS_DIR
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step
from ..workflow import WorkflowStep
from ._template import EMPTY_KEY_PATH, TEMPLATE_KEY_PATH

TITLE = "Cleanup template build environment"

DELETE_IMAGE_COMMANDS = [
    "\n".join(
        [
            "# ---------- Delete downloaded VM image ----------",
            f"rm -f {HOST_IMAGES_DIR}/{CLOUD_IMAGE_NAME}",
        ]
    )
]

DELETE_TEMPORARY_KEYS_COMMANDS = [
    "\n".join(
        [
            "# ---------- Delete temporary ssh keys ----------",
            f"rm -f {TEMPLATE_KEY_PATH}* {EMPTY_KEY_PATH}",
        ]
    )
]

CLEANUP_KNOWN_HOSTS_COMMANDS = [
    "\n".join(
        [
            "# ---------- Clean up known_hosts file ----------",
            f"cat /dev/null > {HOST_SSH_KEYS_DIR}/known_hosts",
        ]
    )
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    return [
        command_step(
            "Delete downloaded template image",
            connection,
            DELETE_IMAGE_COMMANDS,
            "Error deleting template image",
            executor,
        ),
        command_step(
            "Delete temporary ssh keys",
            connection,
            DELETE_TEMPORARY_KEYS_COMMANDS,
            "Error deleting temporary ssh keys",
            executor,
        ),
        command_step(
            "Clean up entries in known_hosts file",
            connection,
            CLEANUP_KNOWN_HOSTS_COMMANDS,
            "Error cleaning up known_hosts file",
            executor,
        ),
    ]
