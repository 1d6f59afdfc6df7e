"""Configuration objects for work-status."""

from dataclasses import dataclass

DEFAULT_SYNC_INTERVAL = 60.0
MIN_SYNC_INTERVAL = 1.0


@dataclass
class StatusControllerConfig:
    """Configuration for the StatusController."""

    sync_interval: float = DEFAULT_SYNC_INTERVAL
    """Seconds between level-triggered passes over every Work."""

    stop_sync_threshold: int = 0
    """Consecutive unchanged passes after which a manifest is no longer synced.

    The value 0 means never stop syncing.
    """

    fetch_timeout: float = 10.0
    """Seconds allowed for fetching one resource from the spoke cluster."""

    store_timeout: float = 10.0
    """Seconds allowed for one read, list or status write on the hub store."""

    max_concurrent_works: int = 8
    """Maximum number of Work records processed in parallel by a pass."""

    watch_updates: bool = False
    """Also reconcile each Work as soon as it is added or its spec changes."""

    def __post_init__(self) -> None:
        """Validate the configuration."""
        if self.sync_interval < MIN_SYNC_INTERVAL:
            raise ValueError(
                f"sync_interval must be at least {MIN_SYNC_INTERVAL} seconds, "
                f"got {self.sync_interval}"
            )
        if self.stop_sync_threshold < 0:
            raise ValueError(
                "stop_sync_threshold must not be negative, "
                f"got {self.stop_sync_threshold}"
            )
        if self.fetch_timeout <= 0 or self.store_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.max_concurrent_works < 1:
            raise ValueError(
                "max_concurrent_works must be at least 1, "
                f"got {self.max_concurrent_works}"
            )
