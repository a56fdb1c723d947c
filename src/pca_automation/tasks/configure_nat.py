"""Add a private bridge with NAT and port forwarding to the host network config.

The check only looks for the bridge name in ``/etc/network/interfaces``. It
prevents duplicate entries but cannot repair a partial or incorrect config.
"""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import PRIVATE_NETWORK_BRIDGE, PUBLIC_NETWORK_BRIDGE
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, probe_step, skip_when
from ..workflow import WorkflowStep

TITLE = "Configure NAT"
SKIP_FLAG = "skip_nat_config"

CHECK_CONFIG_REQUIRED_COMMANDS = [
    "# ---------- Check if NAT/port forwarding has already been configured ----------",
    f'grep -iq "{PRIVATE_NETWORK_BRIDGE}" /etc/network/interfaces',
]

CONFIGURE_NAT_COMMANDS = [
    "# ---------- Add a new bridge with both NAT and port forwarding  ----------",
    "\n".join(
        [
            "cat <<'EOF' >> /etc/network/interfaces",
            f"auto {PRIVATE_NETWORK_BRIDGE}",
            f"iface {PRIVATE_NETWORK_BRIDGE} inet static",
            "    address 10.0.0.1",
            "    netmask 255.255.255.0",
            f"    bridge_ports {PUBLIC_NETWORK_BRIDGE}",
            "    bridge_stp off",
            "    bridge_fd 0",
            "    post-up echo 1 > /proc/sys/net/ipv4/ip_forward",
            f"    post-up   iptables -t nat -A POSTROUTING -s '10.0.0.0/24' -o {PUBLIC_NETWORK_BRIDGE} -j MASQUERADE",
            f"    post-down iptables -t nat -D POSTROUTING -s '10.0.0.0/24' -o {PUBLIC_NETWORK_BRIDGE} -j MASQUERADE",
            f"    post-up iptables -t nat -A PREROUTING -i {PUBLIC_NETWORK_BRIDGE} -p tcp --dport 2222 -j DNAT --to 10.0.0.32:22",
            f"    post-down iptables -t nat -D PREROUTING -i {PUBLIC_NETWORK_BRIDGE} -p tcp --dport 2222 -j DNAT --to 10.0.0.32:22",
            "EOF",
        ]
    ),
]

RESTART_NETWORKING_COMMANDS = [
    "# ---------- Restart networking service ----------",
    "systemctl restart networking.service",
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    skip = skip_when(SKIP_FLAG, "NAT already configured")
    return [
        probe_step(
            "Check if NAT configuration is required",
            connection,
            CHECK_CONFIG_REQUIRED_COMMANDS,
            SKIP_FLAG,
            executor,
            found_message="NAT already configured",
        ),
        command_step(
            "Add linux bridge config and NAT settings",
            connection,
            CONFIGURE_NAT_COMMANDS,
            "Error configuring NAT on host",
            executor,
            skip=skip,
        ),
        command_step(
            "Restart networking service",
            connection,
            RESTART_NETWORKING_COMMANDS,
            "Error restarting networking service",
            executor,
            tolerant=True,
            skip=skip,
        ),
    ]
