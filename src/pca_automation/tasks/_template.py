"""Command fragments shared by the VM template builders."""
from __future__ import annotations

from typing import Sequence

from ..consts import (
    BASELINE_TEMPLATE_ID,
    HOST_SSH_KEYS_DIR,
    NAMESERVER_IP,
    PRIVATE_GATEWAY_IP,
    TEMPLATE_KEY_NAME,
)

TEMPLATE_USER = "kube"
TEMPLATE_KEY_PATH = f"{HOST_SSH_KEYS_DIR}/{TEMPLATE_KEY_NAME}"
EMPTY_KEY_PATH = f"{HOST_SSH_KEYS_DIR}/nokey"

_GUEST_CLEANUP_LINES = [
    "# ---------- Clean up apt cache files ----------",
    "apt clean all",
    "",
    "# ---------- Clean up log files ----------",
    "logrotate -f /etc/logrotate.conf",
    "rm -f /var/log/*.gz /var/log/*.1",
    "",
    "rm -f /var/apt/*.xz /var/apt/*.gz",
    *[
        f"rm -rf /var/log/{name}/*"
        for name in (
            "containers",
            "dist-upgrade",
            "lxd",
            "landscape",
            "journal",
            "pods",
            "unattended-upgrades",
        )
    ],
    "",
    *[
        f"cat /dev/null > /var/log/{name}"
        for name in (
            "alternatives.log",
            "auth.log",
            "btmp",
            "cloud-init-output.log",
            "dpkg.log",
            "kern.log",
            "lastlog",
            "syslog",
            "tallylog",
            "wtmp",
        )
    ],
    "",
    "# ---------- Clean up temp files ----------",
    "rm -rf /tmp/*",
    "rm -rf /var/tmp/*",
    "",
    "# ---------- Clean up SSH keys ----------",
    "rm -f /etc/ssh/*key*",
    "",
    f"# ---------- Clean up bash history and SSH keys for the user: {TEMPLATE_USER}. ----------",
    f"rm -f ~{TEMPLATE_USER}/.bash_history",
    f"rm -rf ~{TEMPLATE_USER}/.ssh/",
    f"rm -rf ~{TEMPLATE_USER}/.cache/",
    f"rm -rf ~{TEMPLATE_USER}/.gnupg/",
    f"rm -f ~{TEMPLATE_USER}/sudo_as_admin_successful",
    "",
    "# ---------- Clean up bash history and SSH keys for the user: root. ----------",
    "rm -f ~root/.bash_history",
    "rm -rf ~root/.ssh/",
    "unset HISTFILE",
]


def guest_script(ip_address: str, lines: Sequence[str], sudo: bool = True) -> str:
    """Wrap ``lines`` in a heredoc executed on the template VM over SSH."""
    body = ["# ---------- Echo commands ----------", "set -x", "", *lines, ""]
    if sudo:
        body = ["sudo su <<'END_SUDO'", "", *body, "END_SUDO"]
    return "\n".join(
        [
            f"ssh -o 'StrictHostKeyChecking no' -i {TEMPLATE_KEY_PATH} {TEMPLATE_USER}@{ip_address} <<'END_SCRIPT'",
            *body,
            "END_SCRIPT",
        ]
    )


def check_vm_exists_commands(vm_id: int) -> list[str]:
    return [
        "# ---------- Check if the template already exists ----------",
        f"qm status {vm_id} 1>/dev/null 2>&1",
    ]


def clone_baseline_commands(vm_id: int, name: str, ip_address: str) -> list[str]:
    return [
        "# ---------- Copy the baseline template ----------",
        f"qm clone {BASELINE_TEMPLATE_ID} {vm_id} --name {name}",
        "# ---------- Configure the template with ip address and ssh key ----------",
        f"qm set {vm_id} --ciuser {TEMPLATE_USER} --sshkey {TEMPLATE_KEY_PATH}.pub"
        f" --ipconfig0 ip={ip_address}/24,gw={PRIVATE_GATEWAY_IP} --nameserver {NAMESERVER_IP}",
        "# ---------- Resize disk ----------",
        f"qm resize {vm_id} scsi0 +8G",
        "# ---------- Start an instance of the template ----------",
        f"qm start {vm_id}",
    ]


def apt_install_script_lines(kubernetes_packages: Sequence[str]) -> list[str]:
    packages = " ".join(kubernetes_packages)
    return [
        "# ---------- Update APT, install dependencies ----------",
        "apt-get update",
        "apt-get install -y apt-transport-https ca-certificates curl software-properties-common",
        "",
        "# ---------- Install docker ----------",
        "curl -fsSL https://download.docker.com/linux/ubuntu/gpg | apt-key add -",
        'add-apt-repository "deb [arch=amd64] https://download.docker.com/linux/ubuntu $(lsb_release -cs) stable"',
        "apt-get update",
        "apt-get install -y docker-ce=$(apt-cache madison docker-ce | grep 18.06 | head -1 | awk '{print $3}')",
        "",
        f"# ---------- Install {packages} ----------",
        "curl -s https://packages.cloud.google.com/apt/doc/apt-key.gpg | apt-key add -",
        "cat <<EOF >/etc/apt/sources.list.d/kubernetes.list\ndeb http://apt.kubernetes.io/ kubernetes-xenial main\nEOF",
        "apt-get update",
        f"apt-get install -y {packages}",
        f"apt-mark hold {packages}",
    ]


def cleanup_template_commands(vm_id: int, ip_address: str) -> list[str]:
    return [
        "# ---------- Clean up instance and prep for conversion to template ----------",
        guest_script(ip_address, _GUEST_CLEANUP_LINES),
        "# ---------- Shutdown the instance ----------",
        f"qm shutdown {vm_id}",
        "# ---------- Reset ssh keys and ip configuration for the template ----------",
        f"qm set {vm_id} --sshkeys {EMPTY_KEY_PATH} --ipconfig0 ip=dhcp",
    ]


def convert_to_template_commands(vm_id: int) -> list[str]:
    return [
        "# ---------- Convert the VM into a template ----------",
        f"qm template {vm_id}",
    ]
