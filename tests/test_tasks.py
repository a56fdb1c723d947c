from __future__ import annotations

from types import ModuleType

import pytest

from pca_automation.config import AutomationConfig
from pca_automation.models import ConnectionInfo, ServerInfo, StepStatus
from pca_automation.steps import CommandBatchError
from pca_automation.tasks import (
    COMMAND_TASKS,
    build_baseline_vm_template,
    build_developer_vm_template,
    build_k8s_vm_template,
    build_steps,
    cleanup_template_environment,
    configure_dhcp,
    configure_k8s_cluster,
    configure_nat,
    create_cluster_secrets,
    init_k8s_instances,
    init_server_manager,
    setup_template_environment,
    update_host,
)
from pca_automation.workflow import WorkflowRunner

from conftest import FakeExecutor

SERVER = ServerInfo(
    host="pve.example.com",
    username="root",
    cloud_endpoint="https://cloud.example.com",
    server_id="srv-01",
    server_secret="it's a secret",
)

# (task, step titles, probe steps, tolerant steps, timed waits)
TASK_TABLE = [
    (
        update_host,
        [
            "Update apt source list",
            "Download proxmox gpg key",
            "Upgrade host system",
            "Request system reboot",
            "Wait for system restart",
        ],
        set(),
        {"Request system reboot"},
        {"Wait for system restart"},
    ),
    (
        configure_nat,
        [
            "Check if NAT configuration is required",
            "Add linux bridge config and NAT settings",
            "Restart networking service",
        ],
        {"Check if NAT configuration is required"},
        {"Restart networking service"},
        set(),
    ),
    (
        configure_dhcp,
        [
            "Check if DHCP configuration is required",
            "Install DHCP server",
            "Configure DHCP server defaults",
            "Configure DHCP daemon",
            "Restart DHCP service",
        ],
        {"Check if DHCP configuration is required"},
        {"Restart DHCP service"},
        set(),
    ),
    (
        setup_template_environment,
        [
            "Check if template image download is required",
            "Check if temporary SSH keys have to be created",
            "Ensure that working directories exist",
            "Download template image",
            "Create temporary SSH keys",
        ],
        {"Check if template image download is required", "Check if temporary SSH keys have to be created"},
        set(),
        set(),
    ),
    (
        build_baseline_vm_template,
        [
            "Check if baseline template build is required",
            "Ensure that working directories exist",
            "Create baseline VM",
            "Convert VM into template",
        ],
        {"Check if baseline template build is required"},
        set(),
        set(),
    ),
    (
        build_k8s_vm_template,
        [
            "Check if k8s template build is required",
            "Ensure that working directories exist",
            "Clone and configure baseline template",
            "Wait for VM instance to start up",
            "Install docker, kubectl, kubeadm and kubelet",
            "Clean up template; prep for conversion to template",
            "Convert VM into template",
        ],
        {"Check if k8s template build is required"},
        set(),
        {"Wait for VM instance to start up"},
    ),
    (
        build_developer_vm_template,
        [
            "Check if developer template build is required",
            "Clone and configure baseline template",
            "Wait for VM instance to start up",
            "Install kubectl",
            "Install developer tools",
            "Clean up template; prep for conversion to template",
            "Convert VM into template",
        ],
        {"Check if developer template build is required"},
        set(),
        {"Wait for VM instance to start up"},
    ),
    (
        cleanup_template_environment,
        [
            "Delete downloaded template image",
            "Delete temporary ssh keys",
            "Clean up entries in known_hosts file",
        ],
        set(),
        set(),
        set(),
    ),
    (
        init_k8s_instances,
        [
            "Check if instances have to be created",
            "Ensure that working directories exist",
            "Create SSH keys for instances",
            "Create SSH config for easy SSH to instances",
            "Create master and node instances",
            "Wait for instances to startup",
        ],
        {"Check if instances have to be created"},
        set(),
        {"Wait for instances to startup"},
    ),
    (
        configure_k8s_cluster,
        [
            "Ensure that working directories exist",
            "Configure cluster master",
            "Obtain join command from master",
            "Configure node 1",
            "Configure node 2",
            "Configure node 3",
        ],
        set(),
        set(),
        set(),
    ),
    (
        create_cluster_secrets,
        [
            "Ensure that working directories exist",
            "Copy CA certs from master",
            "Generate helm and tiller certificates",
            "Upload secrets to cluster",
        ],
        set(),
        set(),
        set(),
    ),
    (
        init_server_manager,
        [
            "Create service accounts on cluster",
            "Launch server manager initializer",
        ],
        set(),
        set(),
        set(),
    ),
]


@pytest.fixture(autouse=True)
def _no_waiting(monkeypatch):
    monkeypatch.setattr("pca_automation.steps.time.sleep", lambda seconds: None)
    monkeypatch.setattr(
        "pca_automation.steps.wait_for_reachable",
        lambda host, port, delay, interval, timeout: None,
    )


def _steps(task: ModuleType, executor: FakeExecutor):
    return task.get_steps(SERVER, executor, AutomationConfig())


@pytest.mark.parametrize("task, titles, probes, tolerant, waits", TASK_TABLE, ids=lambda value: getattr(value, "__name__", None))
def test_task_defines_expected_steps(task, titles, probes, tolerant, waits) -> None:
    steps = _steps(task, FakeExecutor())

    assert isinstance(task.TITLE, str) and task.TITLE
    assert [step.name for step in steps] == titles


@pytest.mark.parametrize("task, titles, probes, tolerant, waits", TASK_TABLE, ids=lambda value: getattr(value, "__name__", None))
def test_task_failure_policies(task, titles, probes, tolerant, waits) -> None:
    for step in _steps(task, FakeExecutor()):
        executor = FakeExecutor(failures=[1000])
        context: dict[str, object] = {}
        failing_step = next(candidate for candidate in _steps(task, executor) if candidate.name == step.name)

        if step.name in probes or step.name in tolerant or step.name in waits:
            failing_step.action(context)
        else:
            with pytest.raises(CommandBatchError):
                failing_step.action(context)

        if step.name not in waits:
            assert len(executor.calls) == 1
            commands, connection = executor.calls[0]
            assert commands
            assert connection is SERVER


@pytest.mark.parametrize("task, titles, probes, tolerant, waits", TASK_TABLE, ids=lambda value: getattr(value, "__name__", None))
def test_probes_skip_the_rest_of_their_phase(task, titles, probes, tolerant, waits) -> None:
    if not probes:
        pytest.skip("task has no probe step")
    executor = FakeExecutor()
    runner = WorkflowRunner()

    runner.run(_steps(task, executor))

    statuses = {event.step: event.status for event in runner.events}
    assert len(executor.calls) == len(probes) + sum(
        1 for name, status in statuses.items() if status is StepStatus.EXECUTED and name not in probes | waits
    )
    gated = [event for event in runner.events if event.status is StepStatus.SKIPPED]
    assert gated
    assert all(event.step not in probes for event in gated)


def test_template_environment_runs_working_directories_step_unconditionally() -> None:
    executor = FakeExecutor()
    runner = WorkflowRunner()

    runner.run(_steps(setup_template_environment, executor))

    statuses = [(event.step, event.status) for event in runner.events]
    assert ("Ensure that working directories exist", StepStatus.EXECUTED) in statuses
    assert ("Download template image", StepStatus.SKIPPED) in statuses
    assert ("Create temporary SSH keys", StepStatus.SKIPPED) in statuses


def test_template_builds_reprobe_shared_flag() -> None:
    # Baseline exists, k8s template is missing: only the k8s build proceeds.
    executor = FakeExecutor(failures=[0, 0, 0, 0, 2])
    runner = WorkflowRunner()
    steps = build_steps(
        [setup_template_environment, build_baseline_vm_template, build_k8s_vm_template],
        SERVER,
        executor,
        AutomationConfig(),
    )

    runner.run(steps)

    events = [(event.step, event.status) for event in runner.events]
    assert ("Create baseline VM", StepStatus.SKIPPED) in events
    assert ("Install docker, kubectl, kubeadm and kubelet", StepStatus.EXECUTED) in events


def test_update_host_waits_on_connection_port(monkeypatch) -> None:
    calls: list[tuple] = []
    monkeypatch.setattr(
        "pca_automation.steps.wait_for_reachable",
        lambda host, port, delay, interval, timeout: calls.append((host, port, timeout)),
    )
    connection = ConnectionInfo(host="10.1.1.1", username="root", port=2222)

    WorkflowRunner().run(update_host.get_steps(connection, FakeExecutor(), AutomationConfig()))

    assert calls == [("10.1.1.1", 2222, 180)]


def test_configure_k8s_cluster_joins_each_node() -> None:
    executor = FakeExecutor()

    WorkflowRunner().run(_steps(configure_k8s_cluster, executor))

    join_batches = [commands for commands, _ in executor.calls if any("join-command)" in c for c in commands)]
    assert [batch[1].split()[1] for batch in join_batches] == ["k8s-node-1", "k8s-node-2", "k8s-node-3"]


def test_init_k8s_instances_assigns_distinct_addresses() -> None:
    addresses = [ip_address for _, _, _, ip_address, _ in init_k8s_instances.INSTANCES]

    assert addresses == ["10.0.0.64", "10.0.0.65", "10.0.0.66", "10.0.0.67"]
    assert [vm_id for vm_id, _, _, _, _ in init_k8s_instances.INSTANCES] == [401, 402, 403, 404]


def test_cluster_secrets_quote_server_identity() -> None:
    commands = create_cluster_secrets.upload_secrets_commands(SERVER)
    script = next(command for command in commands if "svm-server-identity" in command)

    assert "--from-literal=serverId=srv-01" in script
    assert "--from-literal=serverKey='it'\"'\"'s a secret'" in script
    assert "--from-literal=cloudEndpoint=https://cloud.example.com" in script


def test_cluster_secrets_require_server_info() -> None:
    connection = ConnectionInfo(host="pve", username="root")

    with pytest.raises(TypeError):
        create_cluster_secrets.get_steps(connection, FakeExecutor(), AutomationConfig())


def test_every_cli_command_has_tasks() -> None:
    assert set(COMMAND_TASKS) == {"configure-host", "create-templates", "create-k8s-cluster", "register-server"}
    for tasks in COMMAND_TASKS.values():
        steps = build_steps(tasks, SERVER, FakeExecutor(), AutomationConfig())
        assert len(steps) == sum(len(task.get_steps(SERVER, FakeExecutor(), AutomationConfig())) for task in tasks)
