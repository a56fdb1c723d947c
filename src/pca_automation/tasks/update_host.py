"""Apply system updates to the Proxmox host and reboot it."""
from __future__ import annotations

from ..config import AutomationConfig
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, wait_for_host_step
from ..workflow import WorkflowStep

TITLE = "Update host system"

UPDATE_APT_SOURCE_LIST_COMMANDS = [
    "# ---------- Remove existing sources ----------",
    "rm -f /etc/apt/sources.list.d/*",
    "# ---------- Configure the no subscription source ----------",
    'echo "deb http://download.proxmox.com/debian/pve stretch pve-no-subscription"'
    " > /etc/apt/sources.list.d/pve-install-repo.list",
]

DOWNLOAD_PROXMOX_KEY_COMMANDS = [
    "# ---------- Get GPG key ----------",
    "wget http://download.proxmox.com/debian/proxmox-ve-release-5.x.gpg"
    " -O /etc/apt/trusted.gpg.d/proxmox-ve-release-5.x.gpg",
]

UPGRADE_HOST_COMMANDS = [
    "# ---------- Update apt ----------",
    "apt update",
    "# ---------- Upgrade host ----------",
    "apt -y dist-upgrade",
]

REBOOT_COMMANDS = ["# ---------- Reboot ----------", "reboot now"]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    return [
        command_step(
            "Update apt source list",
            connection,
            UPDATE_APT_SOURCE_LIST_COMMANDS,
            "Error updating apt source list",
            executor,
        ),
        command_step(
            "Download proxmox gpg key",
            connection,
            DOWNLOAD_PROXMOX_KEY_COMMANDS,
            "Error downloading proxmox GPG key",
            executor,
        ),
        command_step(
            "Upgrade host system",
            connection,
            UPGRADE_HOST_COMMANDS,
            "Error upgrading host system",
            executor,
        ),
        # The reboot severs the session, so a failed response is expected.
        command_step(
            "Request system reboot",
            connection,
            REBOOT_COMMANDS,
            "Error requesting system reboot",
            executor,
            tolerant=True,
        ),
        wait_for_host_step("Wait for system restart", connection, config.readiness),
    ]
