"""Value records returned by the collectors and the speed tester."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class CpuUsage:
    load: float
    cores: Tuple[float, ...]


@dataclass(frozen=True)
class MemoryUsage:
    total: int
    free: int
    used: int
    usage_percent: float


@dataclass(frozen=True)
class DiskSpace:
    total: int
    free: int
    used: int
    usage_percent: float
    mount: str


@dataclass(frozen=True)
class NetworkUsage:
    rx_bytes: int
    tx_bytes: int
    rx_sec: float  # bytes per second
    tx_sec: float
    interface: str


@dataclass(frozen=True)
class BatteryStatus:
    has_battery: bool
    percent: float
    is_charging: bool
    time_remaining: Optional[int]  # minutes


@dataclass(frozen=True)
class InternetSpeed:
    download_mbps: float
    upload_mbps: Optional[float] = None


@dataclass(frozen=True)
class SourceResult:
    """Outcome of probing a single speed-test source."""

    url: str
    mbps: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.mbps is not None


def usage_percent(used: int, total: int) -> float:
    """Percentage of *total* taken by *used*, 0.0 for an empty total."""
    return (used / total) * 100 if total > 0 else 0.0
