"""Blocking TCP reachability checks used after disruptive remote actions."""
from __future__ import annotations

import logging
import socket
import time

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 5.0
DEFAULT_INTERVAL = 1.0
DEFAULT_TIMEOUT = 180.0


class ReadinessTimeoutError(RuntimeError):
    """Raised when a host port does not accept connections before the timeout."""

    def __init__(self, host: str, port: int, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for {host}:{port} to accept connections")
        self.host = host
        self.port = port
        self.timeout = timeout


def _probe(host: str, port: int, connect_timeout: float) -> None:
    with socket.create_connection((host, port), timeout=connect_timeout):
        pass


def wait_for_reachable(
    host: str,
    port: int,
    delay: float = DEFAULT_DELAY,
    interval: float = DEFAULT_INTERVAL,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """Block until ``host:port`` accepts a TCP connection.

    Waits ``delay`` seconds before the first probe, then probes every
    ``interval`` seconds. The delay counts toward ``timeout``; once
    ``timeout`` seconds have passed since the call without a successful
    connection, ReadinessTimeoutError is raised. At least one probe is made.
    """

    logger.debug("Waiting %ss before probing %s:%s", delay, host, port)
    time.sleep(delay)

    retrying = Retrying(
        stop=stop_after_delay(max(timeout - delay, 0.0)),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(OSError),
        sleep=time.sleep,
    )
    try:
        for attempt in retrying:
            with attempt:
                _probe(host, port, connect_timeout=interval)
    except RetryError as exc:
        raise ReadinessTimeoutError(host=host, port=port, timeout=timeout) from exc
    logger.info("%s:%s is reachable", host, port)
