"""Install and configure a DHCP server that only serves the private bridge."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import NAMESERVER_IP, PRIVATE_GATEWAY_IP, PRIVATE_NETWORK_BRIDGE
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, probe_step, skip_when
from ..workflow import WorkflowStep

TITLE = "Configure DHCP"
SKIP_FLAG = "skip_dhcp_config"

CHECK_CONFIG_REQUIRED_COMMANDS = [
    "# ---------- Check if dhcp server has already been configured ----------",
    f'grep -iq "{PRIVATE_NETWORK_BRIDGE}" /etc/default/isc-dhcp-server',
]

INSTALL_DHCP_SERVER_COMMANDS = [
    "# ---------- Update apt ----------",
    "apt update",
    "# ---------- Install DHCP server ----------",
    "apt install -y isc-dhcp-server",
]

CONFIGURE_DHCP_SERVER_COMMANDS = [
    f"# ---------- Update dhcp server defaults - only provide dhcp over {PRIVATE_NETWORK_BRIDGE} ----------",
    "\n".join(
        [
            "cat <<'EOF' >> /etc/default/isc-dhcp-server",
            f'INTERFACESv4="{PRIVATE_NETWORK_BRIDGE}"',
            'INTERFACESv6=""',
            "",
            "DHCPDv4_CONF=/etc/dhcp/dhcpd.conf",
            "#DHCPDv6_CONF=/etc/dhcp/dhcpd6.conf",
            "EOF",
        ]
    ),
]

CONFIGURE_DHCP_DAEMON_COMMANDS = [
    "# ---------- Setup DHCP subnet for internal IP addresses ----------",
    "\n".join(
        [
            "cat <<'EOF' >> /etc/dhcp/dhcpd.conf",
            "default-lease-time          3600;",
            "max-lease-time              7200;",
            "",
            "subnet 10.0.0.0 netmask 255.255.255.0 {",
            "    range 10.0.0.128 10.0.0.254;",
            f"    option routers              {PRIVATE_GATEWAY_IP};",
            "    option subnet-mask          255.255.255.0;",
            "    option broadcast-address    10.0.0.255;",
            f"    option domain-name-servers  {NAMESERVER_IP};",
            "}",
            "EOF",
        ]
    ),
]

RESTART_DHCP_SERVICE_COMMANDS = [
    "# ---------- Restart DHCP service ----------",
    "systemctl restart isc-dhcp-server.service",
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    skip = skip_when(SKIP_FLAG, "DHCP already configured")
    return [
        probe_step(
            "Check if DHCP configuration is required",
            connection,
            CHECK_CONFIG_REQUIRED_COMMANDS,
            SKIP_FLAG,
            executor,
            found_message="DHCP already configured",
        ),
        command_step(
            "Install DHCP server",
            connection,
            INSTALL_DHCP_SERVER_COMMANDS,
            "Error installing DHCP server",
            executor,
            skip=skip,
        ),
        command_step(
            "Configure DHCP server defaults",
            connection,
            CONFIGURE_DHCP_SERVER_COMMANDS,
            "Error configuring DHCP server defaults",
            executor,
            skip=skip,
        ),
        command_step(
            "Configure DHCP daemon",
            connection,
            CONFIGURE_DHCP_DAEMON_COMMANDS,
            "Error configuring DHCP daemon",
            executor,
            skip=skip,
        ),
        command_step(
            "Restart DHCP service",
            connection,
            RESTART_DHCP_SERVICE_COMMANDS,
            "Error restarting DHCP service",
            executor,
            tolerant=True,
            skip=skip,
        ),
    ]
