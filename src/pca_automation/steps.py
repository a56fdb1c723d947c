"""Building blocks for provisioning steps that run remote command batches."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

from .config import ReadinessConfig
from .models import CommandBatchResult, ConnectionInfo
from .readiness import ReadinessTimeoutError, wait_for_reachable
from .ssh import CommandExecutor
from .workflow import SkipResult, WorkflowContext, WorkflowStep

logger = logging.getLogger(__name__)

SkipPredicate = Callable[[WorkflowContext], SkipResult]


class CommandBatchError(RuntimeError):
    """Raised when a strict step sees one or more failed remote commands."""

    def __init__(self, message: str, result: CommandBatchResult) -> None:
        super().__init__(message)
        self.result = result


def skip_when(flag: str, reason: str) -> SkipPredicate:
    """Skip while ``context[flag]`` is truthy; an unset flag never skips."""

    def _skip(context: WorkflowContext) -> SkipResult:
        if context.get(flag):
            logger.warning("%s; skipping", reason)
            return reason
        return False

    return _skip


def probe_step(
    name: str,
    connection: ConnectionInfo,
    commands: Sequence[str],
    flag: str,
    executor: CommandExecutor,
    found_message: str,
) -> WorkflowStep:
    """Record in ``context[flag]`` whether the probed state already exists.

    Any failed check is read as "not provisioned yet", including failures that
    have nothing to do with the object being absent.
    """

    def _action(context: WorkflowContext) -> None:
        result = executor.execute(commands, connection)
        logger.debug("%s: %s", name, result)
        if not result.succeeded:
            logger.debug("%s: provisioning required", name)
            context[flag] = False
        else:
            logger.warning(found_message)
            context[flag] = True

    return WorkflowStep(name=name, action=_action)


def command_step(
    name: str,
    connection: ConnectionInfo,
    commands: Sequence[str],
    error_message: str,
    executor: CommandExecutor,
    tolerant: bool = False,
    skip: Optional[SkipPredicate] = None,
) -> WorkflowStep:
    """Run a command batch, failing the workflow on any failed command unless tolerant."""

    def _action(context: WorkflowContext) -> None:
        result = executor.execute(commands, connection)
        logger.debug("%s: %s", name, result)
        if result.succeeded:
            logger.debug("%s: done", name)
            return
        if tolerant:
            logger.warning("%s returned an error (%d of %d commands failed). Ignoring.",
                           name, result.failure_count, result.command_count)
            return
        logger.error("%s (%d of %d commands failed)", error_message, result.failure_count, result.command_count)
        raise CommandBatchError(error_message, result)

    return WorkflowStep(name=name, action=_action, skip=skip)


def delay_step(name: str, seconds: float, skip: Optional[SkipPredicate] = None) -> WorkflowStep:
    """Suspend for a fixed time; nothing is checked on the remote side."""

    def _action(context: WorkflowContext) -> None:
        logger.info("Waiting %gs", seconds)
        time.sleep(seconds)

    return WorkflowStep(name=name, action=_action, skip=skip)


def wait_for_host_step(name: str, connection: ConnectionInfo, readiness: ReadinessConfig) -> WorkflowStep:
    def _action(context: WorkflowContext) -> None:
        logger.debug("Waiting for %s:%s to come back", connection.host, connection.port)
        try:
            wait_for_reachable(
                connection.host,
                connection.port,
                delay=readiness.delay,
                interval=readiness.interval,
                timeout=readiness.timeout,
            )
        except ReadinessTimeoutError as exc:
            logger.error("Timeout waiting for server to come up: %s", exc)
            raise
        logger.debug("Server is now reachable")

    return WorkflowStep(name=name, action=_action)
