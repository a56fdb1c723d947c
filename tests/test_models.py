from __future__ import annotations

import dataclasses

import pytest

from pca_automation.models import CommandBatchResult, ConnectionInfo, ServerInfo


def test_command_batch_result_rejects_inconsistent_counts() -> None:
    with pytest.raises(ValueError):
        CommandBatchResult(command_count=3, success_count=1, failure_count=1)


def test_command_batch_result_flags() -> None:
    clean = CommandBatchResult(command_count=2, success_count=2, failure_count=0)
    broken = CommandBatchResult(command_count=2, success_count=0, failure_count=2)
    partial = CommandBatchResult(command_count=2, success_count=1, failure_count=1)

    assert clean.succeeded
    assert not broken.succeeded
    assert not partial.succeeded


def test_empty_batch_is_a_success() -> None:
    result = CommandBatchResult(command_count=0, success_count=0, failure_count=0)

    assert result.succeeded


def test_connection_info_defaults_and_is_immutable() -> None:
    info = ConnectionInfo(host="pve", username="root")

    assert info.port == 22
    assert info.password is None
    assert info.private_key is None
    assert info.address == "root@pve:22"
    with pytest.raises(dataclasses.FrozenInstanceError):
        info.host = "other"  # type: ignore[misc]


def test_server_info_extends_connection_info() -> None:
    server = ServerInfo(
        host="pve",
        username="root",
        cloud_endpoint="https://cloud.example.com",
        server_id="srv-1",
        server_secret="s3cret",
    )

    assert isinstance(server, ConnectionInfo)
    assert server.port == 22
    assert server.server_id == "srv-1"
