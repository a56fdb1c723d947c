"""Initialize the cluster on the master instance and join the nodes to it."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import HOST_TEMP_DIR, K8S_NODE_COUNT
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step
from ..workflow import WorkflowStep

TITLE = "Configure a kubernetes cluster on existing instances"

JOIN_COMMAND_FILE = f"{HOST_TEMP_DIR}/join-command"

# Pinned to the commit that fixed coreos/flannel#1044; no release carries it yet.
FLANNEL_MANIFEST_URL = (
    "https://raw.githubusercontent.com/coreos/flannel/"
    "bc79dd1505b0c8681ece4de4c0d86c5cd2643275/Documentation/kube-flannel.yml"
)

ENSURE_WORKING_DIRECTORIES_COMMANDS = [
    "# ---------- Ensure that working directories exist ----------",
    f"mkdir -p {HOST_TEMP_DIR}",
]

CONFIGURE_MASTER_COMMANDS = [
    "# ---------- Initialize the master using flannel ----------",
    "\n".join(
        [
            "ssh k8s-master <<'END_SCRIPT'",
            "# ---------- Echo commands ----------",
            "set -x",
            "# ---------- Initialize the master and configure credentials for kubectl ----------",
            "sudo kubeadm init --pod-network-cidr=10.244.0.0/16",
            "# ---------- Copy credentials to home directory ----------",
            "mkdir -p $HOME/.kube",
            "sudo cp -i /etc/kubernetes/admin.conf $HOME/.kube/config",
            "sudo chown $(id -u):$(id -g) $HOME/.kube/config",
            "# ---------- Configure pod network add on (flannel) ----------",
            f"kubectl apply -f {FLANNEL_MANIFEST_URL}",
            "END_SCRIPT",
        ]
    ),
]

GET_JOIN_COMMAND_COMMANDS = [
    "# ---------- Get cluster join token ----------",
    f"ssh k8s-master 'kubeadm token create --print-join-command' > {JOIN_COMMAND_FILE}",
]


def node_join_commands(node_number: int) -> list[str]:
    return [
        f"# ---------- Join node node-{node_number} to the cluster ----------",
        f'ssh k8s-node-{node_number} "sudo $(cat {JOIN_COMMAND_FILE})"',
    ]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    steps = [
        command_step(
            "Ensure that working directories exist",
            connection,
            ENSURE_WORKING_DIRECTORIES_COMMANDS,
            "Error ensuring working directories",
            executor,
        ),
        command_step(
            "Configure cluster master",
            connection,
            CONFIGURE_MASTER_COMMANDS,
            "Error configuring cluster master",
            executor,
        ),
        command_step(
            "Obtain join command from master",
            connection,
            GET_JOIN_COMMAND_COMMANDS,
            "Error obtaining join command from master",
            executor,
        ),
    ]
    for node_number in range(1, K8S_NODE_COUNT + 1):
        steps.append(
            command_step(
                f"Configure node {node_number}",
                connection,
                node_join_commands(node_number),
                f"Error configuring node {node_number}",
                executor,
            )
        )
    return steps
