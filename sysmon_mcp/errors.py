"""Error types raised by the collectors and the speed tester."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for every failure reported by the monitor."""


class CollectionError(MonitorError):
    """psutil failed, or returned nothing usable, for one metric."""

    def __init__(self, metric: str, cause: str):
        self.metric = metric
        self.cause = cause
        super().__init__(f"Failed to retrieve {metric}: {cause}")


class SpeedTestError(MonitorError):
    """No download source produced a usable measurement."""

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"Failed to measure internet speed: {cause}")


__all__ = ["MonitorError", "CollectionError", "SpeedTestError"]
