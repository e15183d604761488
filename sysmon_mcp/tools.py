"""Tools exposed by the system monitor MCP server."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List

from fastmcp.exceptions import ToolError

from . import collectors
from .config import Settings
from .errors import CollectionError, SpeedTestError
from .formatting import (
    format_battery,
    format_cpu,
    format_disk,
    format_memory,
    format_network,
    format_snapshot,
    format_speed,
)
from .log import get_logger
from .speedtest import SpeedTester

logger = get_logger(__name__)


def _speed_tester(settings: Settings) -> SpeedTester:
    return SpeedTester(
        download_urls=settings.download_urls,
        upload_urls=settings.upload_urls,
        timeout=settings.speedtest_timeout,
        upload_bytes=settings.upload_bytes,
    )


def create_monitor_tools(settings: Settings) -> List[Callable[[], Awaitable[str]]]:
    """Create the six metric tools bound to *settings*."""

    async def get_cpu_usage() -> str:
        """Returns the current CPU usage as a percentage, including overall load and load per core. Useful for identifying if high CPU usage is causing system slowdowns."""
        try:
            cpu = await asyncio.to_thread(collectors.get_cpu_usage, settings.cpu_interval)
            return format_cpu(cpu)
        except CollectionError as e:
            logger.error("%s", e)
            raise ToolError(f"Error retrieving CPU usage: {e}") from e

    async def get_memory_usage() -> str:
        """Returns the current memory usage, including total, used, and free memory in GB, plus the percentage used. Helps diagnose memory-related performance issues."""
        try:
            return format_memory(await asyncio.to_thread(collectors.get_memory_usage))
        except CollectionError as e:
            logger.error("%s", e)
            raise ToolError(f"Error retrieving memory usage: {e}") from e

    async def get_disk_space() -> str:
        """Returns the disk space usage for the largest drive, including total, used, and free space in GB, plus the percentage used. Useful for checking available storage."""
        try:
            return format_disk(await asyncio.to_thread(collectors.get_disk_space))
        except CollectionError as e:
            logger.error("%s", e)
            raise ToolError(f"Error retrieving disk space: {e}") from e

    async def get_network_usage() -> str:
        """Returns current network usage for the most active interface, including received (RX) and transmitted (TX) rates in KB/s, and total data since boot in MB. Useful for monitoring bandwidth consumption."""
        try:
            network = await asyncio.to_thread(collectors.get_network_usage, settings.network_interval)
            return format_network(network)
        except CollectionError as e:
            logger.error("%s", e)
            raise ToolError(f"Error retrieving network usage: {e}") from e

    async def get_battery_status() -> str:
        """Returns the current battery status, including charge percentage, charging state, and estimated time remaining (if applicable). Useful for laptops or devices to monitor power levels."""
        try:
            return format_battery(await asyncio.to_thread(collectors.get_battery_status))
        except CollectionError as e:
            logger.error("%s", e)
            raise ToolError(f"Error retrieving battery status: {e}") from e

    async def get_internet_speed() -> str:
        """Measures the current internet speed: download rate as the median over several download mirrors, and upload rate from a fixed-size POST, both in Mbps. Takes several seconds. Useful for diagnosing network performance issues."""
        try:
            return format_speed(await asyncio.to_thread(_speed_tester(settings).measure))
        except SpeedTestError as e:
            logger.error("%s", e)
            raise ToolError(f"Error measuring internet speed: {e}") from e

    return [
        get_cpu_usage,
        get_memory_usage,
        get_disk_space,
        get_network_usage,
        get_battery_status,
        get_internet_speed,
    ]


def create_snapshot(settings: Settings) -> Callable[[], Awaitable[str]]:
    """Create the reader for the ``system://resources`` snapshot."""
    tester = _speed_tester(settings)

    async def read(collect, *args):
        try:
            return await asyncio.to_thread(collect, *args)
        except (CollectionError, SpeedTestError) as e:
            logger.error("%s", e)
            return str(e)

    async def system_snapshot() -> str:
        """A plain-text snapshot of CPU, memory, disk, network, battery and internet speed."""
        return format_snapshot(
            cpu=await read(collectors.get_cpu_usage, settings.cpu_interval),
            memory=await read(collectors.get_memory_usage),
            disk=await read(collectors.get_disk_space),
            network=await read(collectors.get_network_usage, settings.network_interval),
            battery=await read(collectors.get_battery_status),
            speed=await read(tester.measure),
        )

    return system_snapshot


__all__ = ["create_monitor_tools", "create_snapshot"]
