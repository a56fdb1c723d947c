"""Build the template for developer machines, bastion hosts included."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import DEVELOPER_TEMPLATE_ID
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step, delay_step, probe_step, skip_when
from ..workflow import WorkflowStep
from ._template import (
    TEMPLATE_USER,
    apt_install_script_lines,
    check_vm_exists_commands,
    cleanup_template_commands,
    clone_baseline_commands,
    convert_to_template_commands,
    guest_script,
)

TITLE = "Build developer VM template"
SKIP_FLAG = "skip_template_build"
TEMPLATE_VM_NAME = "developer-node"
TEMPLATE_VM_IP = "10.0.0.12"

INSTALL_SOFTWARE_COMMANDS = [
    "# ---------- Install docker and kubectl ----------",
    guest_script(TEMPLATE_VM_IP, apt_install_script_lines(["kubectl"])),
]

_DEVELOPER_TOOLS_LINES = [
    "# ---------- Install zsh and vim ----------",
    "sudo apt-add-repository -y ppa:neovim-ppa/stable",
    "sudo apt-get update",
    "sudo apt-get install -y zsh tree vim git vim-nox",
    "",
    "# ---------- Copy zsh and vim config files ----------",
    "git clone --recursive https://github.com/vamship/vim-files ~/.vim",
    "git clone --recursive https://github.com/vamship/zsh-files ~/.zsh-files",
    "",
    "# ---------- Link zsh and vim config files ----------",
    "ln -s ~/.vim/_vimrc ~/.vimrc",
    "ln -s ~/.zsh-files/_zshenv ~/.zshenv",
    "",
    "# ---------- Set default shell ----------",
    f"sudo chsh -s /bin/zsh {TEMPLATE_USER}",
    "",
    "# ---------- Install neovim ----------",
    "sudo apt-get install -y software-properties-common python-software-properties",
    "sudo apt-get install -y neovim",
    "sudo apt-get install -y python-pip",
    "sudo pip install neovim",
    "",
    "# ---------- neovim configuration ----------",
    "mkdir -p ~/.config/nvim",
    "ln -s ~/.vim/UltiSnips ~/.config/nvim/Ultisnips",
    "ln -s ~/.vim/_vimrc ~/.config/nvim/init.vim",
    "ln -s ~/.vim/plugged ~/.config/nvim/plugged",
]

INSTALL_DEVELOPER_TOOLS_COMMANDS = [
    "# ---------- Setup shell and vi ----------",
    guest_script(TEMPLATE_VM_IP, _DEVELOPER_TOOLS_LINES, sudo=False),
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    skip = skip_when(SKIP_FLAG, "Template already exists")
    return [
        probe_step(
            "Check if developer template build is required",
            connection,
            check_vm_exists_commands(DEVELOPER_TEMPLATE_ID),
            SKIP_FLAG,
            executor,
            found_message="Template already exists",
        ),
        command_step(
            "Clone and configure baseline template",
            connection,
            clone_baseline_commands(DEVELOPER_TEMPLATE_ID, TEMPLATE_VM_NAME, TEMPLATE_VM_IP),
            "Error cloning baseline into developer VM",
            executor,
            skip=skip,
        ),
        delay_step("Wait for VM instance to start up", config.boot_wait_seconds, skip=skip),
        command_step(
            "Install kubectl",
            connection,
            INSTALL_SOFTWARE_COMMANDS,
            "Error installing required software on VM",
            executor,
            skip=skip,
        ),
        command_step(
            "Install developer tools",
            connection,
            INSTALL_DEVELOPER_TOOLS_COMMANDS,
            "Error installing developer tools on VM",
            executor,
            skip=skip,
        ),
        command_step(
            "Clean up template; prep for conversion to template",
            connection,
            cleanup_template_commands(DEVELOPER_TEMPLATE_ID, TEMPLATE_VM_IP),
            "Error cleaning up VM instance",
            executor,
            skip=skip,
        ),
        command_step(
            "Convert VM into template",
            connection,
            convert_to_template_commands(DEVELOPER_TEMPLATE_ID),
            "Error converting VM into template",
            executor,
            skip=skip,
        ),
    ]
