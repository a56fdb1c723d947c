from __future__ import annotations

import logging

import pytest

from pca_automation.config import ReadinessConfig
from pca_automation.models import ConnectionInfo, StepStatus
from pca_automation.readiness import ReadinessTimeoutError
from pca_automation.steps import (
    CommandBatchError,
    command_step,
    delay_step,
    probe_step,
    skip_when,
    wait_for_host_step,
)
from pca_automation.workflow import WorkflowRunner

from conftest import FakeExecutor

COMMANDS = ["# ---------- comment ----------", "true"]


def test_skip_when_returns_reason_only_for_truthy_flag() -> None:
    skip = skip_when("skip_build", "Template already exists")

    assert skip({}) is False
    assert skip({"skip_build": False}) is False
    assert skip({"skip_build": True}) == "Template already exists"


def test_probe_sets_flag_false_when_every_check_fails(connection: ConnectionInfo) -> None:
    executor = FakeExecutor(failures=[len(COMMANDS)])
    context: dict[str, object] = {}

    probe_step("Check", connection, COMMANDS, "skip_build", executor, "exists").action(context)

    assert context["skip_build"] is False


def test_probe_treats_partial_failure_as_not_provisioned(connection: ConnectionInfo) -> None:
    executor = FakeExecutor(failures=[1])
    context: dict[str, object] = {"skip_build": True}

    probe_step("Check", connection, COMMANDS, "skip_build", executor, "exists").action(context)

    assert context["skip_build"] is False


def test_probe_sets_flag_true_when_checks_succeed(connection: ConnectionInfo) -> None:
    executor = FakeExecutor()
    context: dict[str, object] = {}

    probe_step("Check", connection, COMMANDS, "skip_build", executor, "exists").action(context)

    assert context["skip_build"] is True
    assert executor.calls == [(COMMANDS, connection)]


@pytest.mark.parametrize("failures", [1, 2])
def test_strict_step_raises_on_any_failure(connection: ConnectionInfo, failures: int) -> None:
    executor = FakeExecutor(failures=[failures])
    step = command_step("Create baseline VM", connection, COMMANDS, "Error creating baseline VM", executor)

    with pytest.raises(CommandBatchError) as excinfo:
        step.action({})

    assert str(excinfo.value) == "Error creating baseline VM"
    assert excinfo.value.result.failure_count == failures


def test_strict_step_succeeds_without_failures(connection: ConnectionInfo, executor: FakeExecutor) -> None:
    step = command_step("Create baseline VM", connection, COMMANDS, "Error creating baseline VM", executor)

    step.action({})

    assert executor.calls == [(COMMANDS, connection)]


@pytest.mark.parametrize("failures", [0, 1, 2])
def test_tolerant_step_always_succeeds(connection: ConnectionInfo, failures: int, caplog) -> None:
    executor = FakeExecutor(failures=[failures])
    step = command_step("Restart service", connection, COMMANDS, "Error restarting", executor, tolerant=True)

    with caplog.at_level(logging.WARNING, logger="pca_automation.steps"):
        step.action({})

    warned = any("Ignoring" in record.getMessage() for record in caplog.records)
    assert warned is (failures > 0)


def test_delay_step_sleeps_for_fixed_duration(monkeypatch) -> None:
    slept: list[float] = []
    monkeypatch.setattr("pca_automation.steps.time.sleep", slept.append)

    delay_step("Wait for VM instance to start up", 180).action({})

    assert slept == [180]


def test_wait_for_host_step_polls_connection_port(connection: ConnectionInfo, monkeypatch) -> None:
    calls: list[tuple] = []

    def fake_wait(host, port, delay, interval, timeout) -> None:
        calls.append((host, port, delay, interval, timeout))

    monkeypatch.setattr("pca_automation.steps.wait_for_reachable", fake_wait)
    readiness = ReadinessConfig(delay=5, interval=1, timeout=180)

    wait_for_host_step("Wait for system restart", connection, readiness).action({})

    assert calls == [("pve.example.com", 2022, 5, 1, 180)]


def test_wait_for_host_step_timeout_is_fatal(connection: ConnectionInfo, monkeypatch) -> None:
    def fake_wait(host, port, delay, interval, timeout) -> None:
        raise ReadinessTimeoutError(host=host, port=port, timeout=timeout)

    monkeypatch.setattr("pca_automation.steps.wait_for_reachable", fake_wait)
    step = wait_for_host_step("Wait for system restart", connection, ReadinessConfig())

    with pytest.raises(ReadinessTimeoutError) as excinfo:
        WorkflowRunner().run([step])

    assert "pve.example.com:2022" in str(excinfo.value)


def test_scenario_three_successful_steps(connection: ConnectionInfo, executor: FakeExecutor) -> None:
    runner = WorkflowRunner()
    steps = [
        command_step(f"Step {index}", connection, [f"echo {index}"], f"Error {index}", executor)
        for index in range(3)
    ]

    runner.run(steps)

    assert [(event.step, event.status) for event in runner.events] == [
        ("Step 0", StepStatus.EXECUTED),
        ("Step 1", StepStatus.EXECUTED),
        ("Step 2", StepStatus.EXECUTED),
    ]
    assert [commands for commands, _ in executor.calls] == [["echo 0"], ["echo 1"], ["echo 2"]]


def test_scenario_probe_skips_rest_of_phase(connection: ConnectionInfo, executor: FakeExecutor) -> None:
    runner = WorkflowRunner()
    skip = skip_when("probe_flag", "Already configured")
    steps = [
        probe_step("Probe", connection, ["grep -q marker /etc/file"], "probe_flag", executor, "Already configured"),
        command_step("Step A", connection, ["echo a"], "Error A", executor, skip=skip),
        command_step("Step B", connection, ["echo b"], "Error B", executor, skip=skip),
    ]

    context = runner.run(steps)

    assert context["probe_flag"] is True
    assert len(executor.calls) == 1
    assert [event.status for event in runner.events] == [
        StepStatus.EXECUTED,
        StepStatus.SKIPPED,
        StepStatus.SKIPPED,
    ]
    assert runner.events[1].detail == "Already configured"


def test_scenario_strict_failure_names_the_step_purpose(connection: ConnectionInfo) -> None:
    executor = FakeExecutor(failures=[1])
    runner = WorkflowRunner()
    steps = [command_step("Create baseline VM", connection, ["qm create 1000"], "Error creating baseline VM", executor)]

    with pytest.raises(CommandBatchError, match="Error creating baseline VM"):
        runner.run(steps)

    assert runner.failed_step == "Create baseline VM"


def test_scenario_tolerant_failure_continues(connection: ConnectionInfo, caplog) -> None:
    executor = FakeExecutor(failures=[1, 0])
    runner = WorkflowRunner()
    steps = [
        command_step("Request system reboot", connection, ["reboot now"], "Error rebooting", executor, tolerant=True),
        command_step("Next", connection, ["echo next"], "Error next", executor),
    ]

    with caplog.at_level(logging.WARNING):
        runner.run(steps)

    assert [event.status for event in runner.events] == [StepStatus.EXECUTED, StepStatus.EXECUTED]
    assert len(executor.calls) == 2
    assert any(
        record.levelno == logging.WARNING and "Request system reboot" in record.getMessage()
        for record in caplog.records
    )
