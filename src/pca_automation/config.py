"""Configuration loading utilities for the provisioning CLI."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class SshConfig(BaseModel):
    connect_timeout: float = Field(30.0, gt=0, description="Seconds to wait for the TCP connection")
    banner_timeout: float = Field(30.0, gt=0, description="Seconds to wait for the SSH banner")
    auth_timeout: float = Field(30.0, gt=0, description="Seconds to wait for authentication")
    command_timeout: Optional[float] = Field(
        default=None,
        description="Optional per-command channel timeout; unset waits for the command to finish",
    )
    strict_host_key_checking: bool = Field(
        False,
        description="Reject hosts missing from known_hosts instead of accepting them",
    )


class ReadinessConfig(BaseModel):
    delay: float = Field(5.0, ge=0, description="Seconds to wait before the first reachability probe")
    interval: float = Field(1.0, gt=0, description="Seconds between reachability probes")
    timeout: float = Field(180.0, gt=0, description="Seconds of probing before giving up")

    @model_validator(mode="after")
    def _timeout_covers_interval(self) -> "ReadinessConfig":
        if self.timeout < self.interval:
            raise ValueError("readiness.timeout must not be shorter than readiness.interval")
        return self


class AutomationConfig(BaseModel):
    ssh: SshConfig = Field(default_factory=SshConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)
    boot_wait_seconds: float = Field(
        180.0,
        description="Fixed wait after starting VM instances before they are used",
    )

    @field_validator("boot_wait_seconds")
    def validate_boot_wait(cls, value: float) -> float:
        if value < 0:
            raise ValueError("boot_wait_seconds cannot be negative")
        return value

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "AutomationConfig":
        return cls.model_validate(raw or {})

    @classmethod
    def from_yaml(cls, path: Path) -> "AutomationConfig":
        data = yaml.safe_load(path.read_text())
        return cls.from_dict(data)


def load_config(path: str | Path | None = None) -> AutomationConfig:
    """Load an AutomationConfig from a YAML file, or the defaults when no path is given."""
    if path is None:
        return AutomationConfig()
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    return AutomationConfig.from_yaml(config_path)
