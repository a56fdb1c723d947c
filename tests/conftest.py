from __future__ import annotations

from collections import deque
from typing import Optional, Sequence

import pytest

from pca_automation.models import CommandBatchResult, ConnectionInfo


class FakeExecutor:
    """Records submitted batches and answers with queued failure counts.

    Batches beyond the queued answers succeed.
    """

    def __init__(self, failures: Optional[Sequence[int]] = None) -> None:
        self.calls: list[tuple[list[str], ConnectionInfo]] = []
        self._failures = deque(failures or [])

    def execute(self, commands: Sequence[str], connection: ConnectionInfo) -> CommandBatchResult:
        self.calls.append((list(commands), connection))
        failed = self._failures.popleft() if self._failures else 0
        failed = min(failed, len(commands))
        return CommandBatchResult(
            command_count=len(commands),
            success_count=len(commands) - failed,
            failure_count=failed,
        )


@pytest.fixture
def connection() -> ConnectionInfo:
    return ConnectionInfo(host="pve.example.com", username="root", port=2022, password="secret")


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()
