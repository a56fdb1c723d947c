"""Clone the kubernetes template into one master and several node instances.

If the master instance already exists every remaining step is skipped, even
when some of the node instances are missing.
"""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import (
    HOST_SSH_KEYS_DIR,
    K8S_MASTER_ID,
    K8S_MASTER_IP,
    K8S_NODE_COUNT,
    K8S_TEMPLATE_ID,
    NAMESERVER_IP,
    PRIVATE_GATEWAY_IP,
)
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, delay_step, probe_step, skip_when
from ..workflow import WorkflowStep

TITLE = "Initialize instances for k8s cluster"
SKIP_FLAG = "skip_instance_creation"


def _instances() -> list[tuple[int, str, str, str, int]]:
    """Return (vm id, host alias, key name, ip address, cores) for master and nodes."""
    master_octet = int(K8S_MASTER_IP.rsplit(".", 1)[1])
    subnet = K8S_MASTER_IP.rsplit(".", 1)[0]
    instances = [(K8S_MASTER_ID, "k8s-master", "id_rsa_k8s_master", K8S_MASTER_IP, 2)]
    for number in range(1, K8S_NODE_COUNT + 1):
        instances.append(
            (
                K8S_MASTER_ID + number,
                f"k8s-node-{number}",
                f"id_rsa_k8s_node_{number}",
                f"{subnet}.{master_octet + number}",
                1 if number == K8S_NODE_COUNT else 2,
            )
        )
    return instances


INSTANCES = _instances()

CHECK_INSTANCES_REQUIRED_COMMANDS = [
    "# ---------- Check if the any of the kubernetes nodes have been created ----------",
    f"qm status {K8S_MASTER_ID} 1>/dev/null 2>&1",
]

ENSURE_WORKING_DIRECTORIES_COMMANDS = [
    "# ---------- Ensure that working directories exist ----------",
    f"mkdir -p {HOST_SSH_KEYS_DIR}",
]

CREATE_SSH_KEYS_COMMANDS = [
    "# ---------- Generate SSH key for master and nodes ----------",
    *[
        f"ssh-keygen -t rsa -b 4096 -C 'kube@k8s' -f {HOST_SSH_KEYS_DIR}/{key_name} -N ''"
        for _, _, key_name, _, _ in INSTANCES
    ],
]

CREATE_SSH_CONFIG_COMMANDS = [
    "# ---------- Create SSH config for easy SSH into the cluster ----------",
    "\n".join(
        [
            f"cat <<'EOF' >> {HOST_SSH_KEYS_DIR}/config",
            *[
                line
                for _, alias, key_name, ip_address, _ in INSTANCES
                for line in (
                    f"Host {alias}",
                    f"    HostName {ip_address}",
                    "    Port 22",
                    "    User kube",
                    f"    IdentityFile {HOST_SSH_KEYS_DIR}/{key_name}",
                    "    StrictHostKeyChecking no",
                    "",
                )
            ],
            "EOF",
        ]
    ),
]

CREATE_INSTANCES_COMMANDS = [
    "# ---------- Create the master and node instances ----------",
    *[f"qm clone {K8S_TEMPLATE_ID} {vm_id} --name {alias}" for vm_id, alias, _, _, _ in INSTANCES],
    "# ---------- Set cloud init parameters on the instances (ssh keys, static ip, resources) ----------",
    *[
        f"qm set {vm_id} --sshkey {HOST_SSH_KEYS_DIR}/{key_name}.pub"
        f" --ipconfig0 ip={ip_address}/24,gw={PRIVATE_GATEWAY_IP} --nameserver {NAMESERVER_IP}"
        f" --memory 6144 --cores {cores}"
        for vm_id, _, key_name, ip_address, cores in INSTANCES
    ],
    "# ---------- Start the instances ----------",
    *[f"qm start {vm_id}" for vm_id, _, _, _, _ in INSTANCES],
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    skip = skip_when(SKIP_FLAG, "One or more instances already exist")
    return [
        probe_step(
            "Check if instances have to be created",
            connection,
            CHECK_INSTANCES_REQUIRED_COMMANDS,
            SKIP_FLAG,
            executor,
            found_message="One or more instances already exist",
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
            "Create SSH keys for instances",
            connection,
            CREATE_SSH_KEYS_COMMANDS,
            "Error creating SSH keys",
            executor,
            skip=skip,
        ),
        command_step(
            "Create SSH config for easy SSH to instances",
            connection,
            CREATE_SSH_CONFIG_COMMANDS,
            "Error creating SSH config",
            executor,
            skip=skip,
        ),
        command_step(
            "Create master and node instances",
            connection,
            CREATE_INSTANCES_COMMANDS,
            "Error creating master and/or node instances",
            executor,
            skip=skip,
        ),
        delay_step("Wait for instances to startup", config.boot_wait_seconds, skip=skip),
    ]
