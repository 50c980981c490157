"""Configuration for the WLAN assignment workflows.

Values come from the environment (a .env file is honoured via
python-dotenv):

    WLAN_ASSIGN_BATCH_SIZE      Profiles assigned concurrently per batch (default 5)
    WLAN_ASSIGN_CALL_TIMEOUT    Seconds allowed per assign/sync call, 0 = no limit (default 30)
    WLAN_DISCOVERY_CONCURRENCY  Sites discovered at once (default 1, sequential)
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from ..api.exceptions import ConfigurationError

DEFAULT_BATCH_SIZE = 5
DEFAULT_CALL_TIMEOUT = 30.0
DEFAULT_DISCOVERY_CONCURRENCY = 1


def _read_number(name: str, default, cast, minimum):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            details={"variable": name},
            cause=e,
        )
    if value < minimum:
        raise ConfigurationError(
            f"{name} must be >= {minimum}, got {value}",
            details={"variable": name},
        )
    return value


@dataclass
class AssignmentConfig:
    """Tuning knobs for discovery, assignment and sync.

    Attributes:
        batch_size: Profiles assigned concurrently; batches run one after another
        call_timeout: Upper bound in seconds on each assign/sync call.
            None or 0 leaves calls unbounded.
        discovery_concurrency: Sites discovered at once. 1 keeps discovery
            strictly sequential.
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    call_timeout: Optional[float] = DEFAULT_CALL_TIMEOUT
    discovery_concurrency: int = DEFAULT_DISCOVERY_CONCURRENCY

    def __post_init__(self):
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.discovery_concurrency < 1:
            raise ConfigurationError(
                f"discovery_concurrency must be >= 1, got {self.discovery_concurrency}"
            )

    @classmethod
    def from_env(cls) -> "AssignmentConfig":
        """Build the configuration from environment variables.

        Raises:
            ConfigurationError: If a variable is not a valid number
        """
        load_dotenv()
        return cls(
            batch_size=_read_number("WLAN_ASSIGN_BATCH_SIZE", DEFAULT_BATCH_SIZE, int, 1),
            call_timeout=_read_number(
                "WLAN_ASSIGN_CALL_TIMEOUT", DEFAULT_CALL_TIMEOUT, float, 0
            ) or None,
            discovery_concurrency=_read_number(
                "WLAN_DISCOVERY_CONCURRENCY", DEFAULT_DISCOVERY_CONCURRENCY, int, 1
            ),
        )
