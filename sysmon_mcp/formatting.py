"""Plain-text rendering of the metric records."""

from __future__ import annotations

from typing import Union

from .models import (
    BatteryStatus,
    CpuUsage,
    DiskSpace,
    InternetSpeed,
    MemoryUsage,
    NetworkUsage,
)

GIB = 1024 ** 3
MIB = 1024 ** 2
KIB = 1024


def _number(value: float) -> str:
    """Shortest rendering of a value already rounded to two decimals (12.50 -> 12.5)."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


def format_cpu(cpu: CpuUsage) -> str:
    cores = ", ".join(f"{c:.2f}" for c in cpu.cores)
    return f"CPU Load: {cpu.load:.2f}% (Cores: {cores}%)"


def format_memory(memory: MemoryUsage) -> str:
    return (
        f"Memory: {memory.usage_percent:.2f}% used "
        f"({memory.used / GIB:.2f}GB / {memory.total / GIB:.2f}GB)"
    )


def format_disk(disk: DiskSpace) -> str:
    return (
        f"Disk ({disk.mount}): {disk.usage_percent:.2f}% used "
        f"({disk.used / GIB:.2f}GB / {disk.total / GIB:.2f}GB)"
    )


def format_network(network: NetworkUsage, totals: bool = True) -> str:
    text = (
        f"Network ({network.interface}): RX: {network.rx_sec / KIB:.2f}KB/s, "
        f"TX: {network.tx_sec / KIB:.2f}KB/s"
    )
    if totals:
        text += (
            f" (Total: RX {network.rx_bytes / MIB:.2f}MB, "
            f"TX {network.tx_bytes / MIB:.2f}MB)"
        )
    return text


def format_battery(battery: BatteryStatus, remaining_label: str = "remaining") -> str:
    if not battery.has_battery:
        return "No battery detected"
    text = f"Battery: {_number(battery.percent)}%"
    if battery.is_charging:
        text += " (charging)"
    if battery.time_remaining:
        text += f", {battery.time_remaining} min {remaining_label}"
    return text


def _snapshot_battery(battery: BatteryStatus) -> str:
    if not battery.has_battery:
        return "Battery: No battery detected"
    return format_battery(battery, remaining_label="left")


def format_speed(speed: InternetSpeed) -> str:
    upload = "N/A" if speed.upload_mbps is None else f"{_number(speed.upload_mbps)}Mbps"
    return f"Internet Speed: Download {_number(speed.download_mbps)}Mbps, Upload {upload}"


def format_snapshot(
    cpu: Union[CpuUsage, str],
    memory: Union[MemoryUsage, str],
    disk: Union[DiskSpace, str],
    network: Union[NetworkUsage, str],
    battery: Union[BatteryStatus, str],
    speed: Union[InternetSpeed, str],
) -> str:
    """Multi-line digest of all metrics.

    Any argument may be an error message instead of a record; it is written
    in that metric's place unchanged.
    """
    def line(value, render):
        return value if isinstance(value, str) else render(value)

    lines = [
        line(cpu, format_cpu),
        line(memory, format_memory),
        line(disk, format_disk),
        line(network, lambda n: format_network(n, totals=False)),
        line(battery, _snapshot_battery),
        line(speed, format_speed),
    ]
    return "\n".join(lines)


__all__ = [
    "format_cpu",
    "format_memory",
    "format_disk",
    "format_network",
    "format_battery",
    "format_speed",
    "format_snapshot",
]
