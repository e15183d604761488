"""psutil-backed collectors for the host metrics exposed as MCP tools.

Every collector takes a fresh reading and returns a frozen record. Any failure
inside psutil is re-raised as :class:`CollectionError` naming the metric.
"""

from __future__ import annotations

import time
from typing import Any, Mapping, Optional, Sequence

import psutil

from .errors import CollectionError
from .log import get_logger
from .models import (
    BatteryStatus,
    CpuUsage,
    DiskSpace,
    MemoryUsage,
    NetworkUsage,
    usage_percent,
)

logger = get_logger(__name__)


def get_cpu_usage(interval: float = 0.5) -> CpuUsage:
    """Sample per-core load over *interval* seconds; overall load is their mean."""
    try:
        per_core = psutil.cpu_percent(interval=interval, percpu=True)
    except Exception as exc:
        raise CollectionError("CPU usage", str(exc)) from exc

    cores = tuple(float(c or 0.0) for c in per_core or [])
    load = sum(cores) / len(cores) if cores else 0.0
    return CpuUsage(load=load, cores=cores)


def get_memory_usage() -> MemoryUsage:
    try:
        mem = psutil.virtual_memory()
    except Exception as exc:
        raise CollectionError("memory usage", str(exc)) from exc

    total = getattr(mem, "total", None) or 0
    free = getattr(mem, "free", None) or 0
    used = getattr(mem, "used", None) or 0
    return MemoryUsage(
        total=total,
        free=free,
        used=used,
        usage_percent=usage_percent(used, total),
    )


def select_largest_disk(disks: Sequence[DiskSpace]) -> DiskSpace:
    """Pick the filesystem with the greatest total size; the first one wins ties."""
    if not disks:
        raise CollectionError("disk space", "no filesystems reported")
    largest = disks[0]
    for disk in disks[1:]:
        if disk.total > largest.total:
            largest = disk
    return largest


def get_disk_space() -> DiskSpace:
    """Report usage of the largest mounted filesystem."""
    try:
        partitions = psutil.disk_partitions()
    except Exception as exc:
        raise CollectionError("disk space", str(exc)) from exc

    disks = []
    for partition in partitions:
        mount = partition.mountpoint or "unknown"
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except (PermissionError, OSError) as exc:
            logger.debug("Skipping %s: %s", mount, exc)
            continue
        total = usage.total or 0
        used = usage.used or 0
        disks.append(DiskSpace(
            total=total,
            free=usage.free or 0,
            used=used,
            usage_percent=usage_percent(used, total),
            mount=mount,
        ))

    return select_largest_disk(disks)


def _traffic(counters: Any) -> int:
    return (counters.bytes_recv or 0) + (counters.bytes_sent or 0)


def select_busiest_interface(counters: Mapping[str, Any]) -> str:
    """Name of the interface with the most cumulative rx+tx bytes; first wins ties."""
    if not counters:
        raise CollectionError("network usage", "no network interfaces reported")
    names = list(counters)
    busiest = names[0]
    for name in names[1:]:
        if _traffic(counters[name]) > _traffic(counters[busiest]):
            busiest = name
    return busiest


def _rate(before: Optional[int], after: int, elapsed: float) -> float:
    if before is None or elapsed <= 0:
        return 0.0
    return max(after - before, 0) / elapsed


def get_network_usage(interval: float = 1.0) -> NetworkUsage:
    """Cumulative and per-second traffic of the busiest interface.

    Two counter snapshots are taken *interval* seconds apart; the per-second
    rates are the byte deltas between them.
    """
    try:
        first = psutil.net_io_counters(pernic=True)
        started = time.perf_counter()
        time.sleep(interval)
        second = psutil.net_io_counters(pernic=True)
        elapsed = time.perf_counter() - started
    except Exception as exc:
        raise CollectionError("network usage", str(exc)) from exc

    name = select_busiest_interface(second or {})
    now = second[name]
    before = (first or {}).get(name)

    return NetworkUsage(
        rx_bytes=now.bytes_recv or 0,
        tx_bytes=now.bytes_sent or 0,
        rx_sec=_rate(before.bytes_recv if before else None, now.bytes_recv or 0, elapsed),
        tx_sec=_rate(before.bytes_sent if before else None, now.bytes_sent or 0, elapsed),
        interface=name or "unknown",
    )


def _minutes_left(secsleft: Any) -> Optional[int]:
    if secsleft is None or secsleft in (psutil.POWER_TIME_UNLIMITED, psutil.POWER_TIME_UNKNOWN):
        return None
    if secsleft < 0:
        return None
    return int(secsleft // 60)


def get_battery_status() -> BatteryStatus:
    """Battery charge and state; a machine without a battery is not an error."""
    sensors_battery = getattr(psutil, "sensors_battery", None)
    if sensors_battery is None:
        return BatteryStatus(has_battery=False, percent=0.0, is_charging=False, time_remaining=None)

    try:
        battery = sensors_battery()
    except Exception as exc:
        raise CollectionError("battery status", str(exc)) from exc

    if battery is None:
        return BatteryStatus(has_battery=False, percent=0.0, is_charging=False, time_remaining=None)

    return BatteryStatus(
        has_battery=True,
        percent=float(battery.percent or 0.0),
        is_charging=bool(battery.power_plugged),
        time_remaining=_minutes_left(battery.secsleft),
    )


__all__ = [
    "get_cpu_usage",
    "get_memory_usage",
    "get_disk_space",
    "get_network_usage",
    "get_battery_status",
    "select_largest_disk",
    "select_busiest_interface",
]
