"""Runtime configuration: FlowConfig, init() and get_config()."""

from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass

import psutil

from remoteflow.runtime._logging import configure_logging
from remoteflow.runtime.types import ChannelCapacity, ConcurrencyLimit, TimeoutSeconds, validate

__all__ = [
    'FlowConfig',
    'get_config',
    'init',
]

DEFAULT_REQUEST_TIMEOUT = 1.0
DEFAULT_GATHER_TIMEOUT = 2.0
DEFAULT_CHANNEL_CAPACITY = 10_000

ENV_REQUEST_TIMEOUT = 'REMOTEFLOW_REQUEST_TIMEOUT'
ENV_GATHER_TIMEOUT = 'REMOTEFLOW_GATHER_TIMEOUT'
ENV_LOG_LEVEL = 'REMOTEFLOW_LOG_LEVEL'


@dataclass(frozen=True)
class FlowConfig:
    """Configuration for buses, lookups and gather buffers.

    Attributes:
        request_timeout: Seconds a request (or Lookup) waits for its
            correlated reply before failing with TimeoutError.
        gather_timeout: Seconds Gather.wait() blocks before returning
            whatever has been collected.
        concurrency: Worker threads for offloaded synchronous work (Responder lookups).
        channel_capacity: Buffered messages per channel before senders block.
        log_level: Logging level (e.g., "DEBUG", "INFO"). None = silent.
    """

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    gather_timeout: float = DEFAULT_GATHER_TIMEOUT
    concurrency: int = 4
    channel_capacity: int = DEFAULT_CHANNEL_CAPACITY
    log_level: str | None = None


_config: FlowConfig | None = None


def _detect_concurrency() -> int:
    """Detect worker count from local system resources.

    Uses physical CPU cores, capped by a container CPU quota when one is
    set, within 1..256.
    """
    try:
        cores = psutil.cpu_count(logical=False)
        if cores is None:
            cores = psutil.cpu_count(logical=True) or 4

        container_limit = _detect_container_cpu_limit()
        if container_limit is not None:
            cores = min(cores, container_limit)

        return max(1, min(256, cores))
    except Exception:
        return 4


def _detect_container_cpu_limit() -> int | None:
    """Detect CPU limit in containerized environments (cgroups v2)."""
    try:
        with pathlib.Path('/sys/fs/cgroup/cpu.max').open() as f:
            content = f.read().strip()
            quota, period = content.split()
            if quota != 'max':
                return max(1, int(int(quota) / int(period)))
    except (FileNotFoundError, ValueError, PermissionError):
        pass
    return None


def _env_seconds(name: str) -> float | None:
    raw = os.environ.get(name, '').strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        logging.warning("Ignoring non-numeric %s='%s'", name, raw)
        return None


def init(
    request_timeout: float | None = None,
    gather_timeout: float | None = None,
    concurrency: int | None = None,
    channel_capacity: int | None = None,
    log_level: str | None = None,
) -> FlowConfig:
    """Initialize remoteflow with the given configuration.

    Arguments left as None fall back to the environment
    (`REMOTEFLOW_REQUEST_TIMEOUT`, `REMOTEFLOW_GATHER_TIMEOUT`,
    `REMOTEFLOW_LOG_LEVEL`) and then to the defaults.

    Args:
        request_timeout: Seconds to wait for a correlated reply.
        gather_timeout: Seconds Gather.wait() blocks at most.
        concurrency: Worker threads for offloaded synchronous work. Auto-detected if None.
        channel_capacity: Buffered messages per channel.
        log_level: Logging level ("DEBUG", "INFO", etc.). None = silent.

    Returns:
        The FlowConfig that was set.

    Raises:
        ValueError: If a value violates its constraint (e.g. a zero timeout).

    Example:
        ```python
        from remoteflow.runtime import init

        init(request_timeout=0.5, gather_timeout=5.0, log_level='DEBUG')
        ```
    """
    global _config  # noqa: PLW0603

    if request_timeout is None:
        request_timeout = _env_seconds(ENV_REQUEST_TIMEOUT) or DEFAULT_REQUEST_TIMEOUT
    if gather_timeout is None:
        gather_timeout = _env_seconds(ENV_GATHER_TIMEOUT) or DEFAULT_GATHER_TIMEOUT
    if log_level is None:
        log_level = os.environ.get(ENV_LOG_LEVEL) or None

    if concurrency is None:
        resolved_concurrency = _detect_concurrency()
    else:
        resolved_concurrency = validate(concurrency, ConcurrencyLimit)

    _config = FlowConfig(
        request_timeout=validate(request_timeout, TimeoutSeconds),
        gather_timeout=validate(gather_timeout, TimeoutSeconds),
        concurrency=resolved_concurrency,
        channel_capacity=validate(
            DEFAULT_CHANNEL_CAPACITY if channel_capacity is None else channel_capacity,
            ChannelCapacity,
        ),
        log_level=log_level,
    )

    if log_level is not None:
        configure_logging(log_level)

    return _config


def get_config() -> FlowConfig:
    """Get the current configuration, initializing defaults on first use.

    Returns:
        The current FlowConfig.
    """
    if _config is None:
        return init()
    return _config
