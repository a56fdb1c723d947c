"""Domain models for remote provisioning workflows."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class ConnectionInfo:
    """Parameters required to reach a remote host over SSH."""

    host: str
    username: str
    port: int = 22
    password: Optional[str] = None
    private_key: Optional[str] = None

    @property
    def address(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class ServerInfo(ConnectionInfo):
    """Connection details extended with the identity used for cloud registration."""

    cloud_endpoint: str = ""
    server_id: str = ""
    server_secret: str = ""


@dataclass(frozen=True, slots=True)
class CommandBatchResult:
    """Success and failure tally for one batch of remote commands."""

    command_count: int
    success_count: int
    failure_count: int

    def __post_init__(self) -> None:
        if min(self.command_count, self.success_count, self.failure_count) < 0:
            raise ValueError("Command counts cannot be negative")
        if self.success_count + self.failure_count != self.command_count:
            raise ValueError(
                f"Inconsistent batch result: {self.success_count} succeeded + "
                f"{self.failure_count} failed != {self.command_count} commands"
            )

    @property
    def succeeded(self) -> bool:
        return self.failure_count == 0


class StepStatus(str, Enum):
    EXECUTED = "executed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class StepEvent:
    """Outcome of a single workflow step, reported as the step finishes."""

    step: str
    status: StepStatus
    detail: Optional[str] = None
