"""Tests for the psutil-backed collectors, with psutil replaced by fakes."""

from __future__ import annotations

from collections import namedtuple

import pytest

from sysmon_mcp import collectors
from sysmon_mcp.errors import CollectionError

Partition = namedtuple("Partition", "device mountpoint fstype opts")
Usage = namedtuple("Usage", "total used free percent")
Mem = namedtuple("Mem", "total available percent used free")
NetIO = namedtuple("NetIO", "bytes_sent bytes_recv packets_sent packets_recv")
Battery = namedtuple("Battery", "percent secsleft power_plugged")


def boom(*args, **kwargs):
    raise RuntimeError("boom")


# --- CPU -------------------------------------------------------------------

def test_cpu_usage_averages_cores(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "cpu_percent", lambda interval, percpu: [10.0, 30.0, 20.0])
    cpu = collectors.get_cpu_usage(interval=0)
    assert cpu.cores == (10.0, 30.0, 20.0)
    assert cpu.load == 20.0


def test_cpu_missing_values_count_as_zero(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "cpu_percent", lambda interval, percpu: [None, 40.0])
    cpu = collectors.get_cpu_usage(interval=0)
    assert cpu.cores == (0.0, 40.0)
    assert cpu.load == 20.0


def test_cpu_without_cores(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "cpu_percent", lambda interval, percpu: [])
    cpu = collectors.get_cpu_usage(interval=0)
    assert cpu.load == 0.0
    assert cpu.cores == ()


def test_cpu_provider_failure(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "cpu_percent", boom)
    with pytest.raises(CollectionError, match="Failed to retrieve CPU usage: boom") as info:
        collectors.get_cpu_usage(interval=0)
    assert info.value.metric == "CPU usage"
    assert info.value.cause == "boom"


# --- memory ----------------------------------------------------------------

def test_memory_percent(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "virtual_memory", lambda: Mem(200, 120, 25.0, 50, 150))
    memory = collectors.get_memory_usage()
    assert (memory.total, memory.free, memory.used) == (200, 150, 50)
    assert memory.usage_percent == 50 / 200 * 100


def test_memory_zero_total(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "virtual_memory", lambda: Mem(0, 0, 0.0, 0, 0))
    assert collectors.get_memory_usage().usage_percent == 0.0


def test_memory_provider_failure(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "virtual_memory", boom)
    with pytest.raises(CollectionError, match="memory usage"):
        collectors.get_memory_usage()


# --- disk ------------------------------------------------------------------

def fake_disks(monkeypatch, sizes, unreadable=()):
    partitions = [Partition(f"/dev/sd{i}", mount, "ext4", "rw") for i, mount in enumerate(sizes)]

    def disk_usage(path):
        if path in unreadable:
            raise PermissionError(path)
        total = sizes[path]
        return Usage(total, total // 2, total - total // 2, 50.0)

    monkeypatch.setattr(collectors.psutil, "disk_partitions", lambda: partitions)
    monkeypatch.setattr(collectors.psutil, "disk_usage", disk_usage)


def test_largest_disk_is_selected_regardless_of_position(monkeypatch):
    fake_disks(monkeypatch, {"/a": 10, "/b": 50, "/c": 20})
    disk = collectors.get_disk_space()
    assert disk.mount == "/b"
    assert disk.total == 50
    assert disk.usage_percent == 25 / 50 * 100


def test_disk_tie_keeps_first(monkeypatch):
    fake_disks(monkeypatch, {"/first": 50, "/second": 50})
    assert collectors.get_disk_space().mount == "/first"


def test_unreadable_partitions_are_skipped(monkeypatch):
    fake_disks(monkeypatch, {"/big": 500, "/small": 5}, unreadable={"/big"})
    assert collectors.get_disk_space().mount == "/small"


def test_no_filesystems_is_a_collection_error(monkeypatch):
    fake_disks(monkeypatch, {})
    with pytest.raises(CollectionError, match="no filesystems reported"):
        collectors.get_disk_space()


def test_disk_zero_total(monkeypatch):
    fake_disks(monkeypatch, {"/empty": 0})
    disk = collectors.get_disk_space()
    assert disk.mount == "/empty"
    assert disk.usage_percent == 0.0


def test_disk_provider_failure(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "disk_partitions", boom)
    with pytest.raises(CollectionError, match="disk space: boom"):
        collectors.get_disk_space()


# --- network ---------------------------------------------------------------

def test_busiest_interface():
    counters = {"eth0": NetIO(50, 100, 0, 0), "wlan0": NetIO(10, 10, 0, 0)}
    assert collectors.select_busiest_interface(counters) == "eth0"


def test_busiest_interface_empty():
    with pytest.raises(CollectionError, match="no network interfaces"):
        collectors.select_busiest_interface({})


def test_network_usage_rates(monkeypatch):
    samples = iter([
        {"lo": NetIO(10, 10, 0, 0), "eth0": NetIO(1000, 4000, 0, 0)},
        {"lo": NetIO(10, 10, 0, 0), "eth0": NetIO(2000, 8000, 0, 0)},
    ])
    clock = iter([100.0, 102.0])
    monkeypatch.setattr(collectors.psutil, "net_io_counters", lambda pernic: next(samples))
    monkeypatch.setattr(collectors.time, "sleep", lambda seconds: None)
    monkeypatch.setattr(collectors.time, "perf_counter", lambda: next(clock))

    network = collectors.get_network_usage(interval=2.0)
    assert network.interface == "eth0"
    assert (network.rx_bytes, network.tx_bytes) == (8000, 2000)
    assert network.rx_sec == 2000.0
    assert network.tx_sec == 500.0


def test_new_interface_has_no_rate(monkeypatch):
    samples = iter([{}, {"eth1": NetIO(10, 20, 0, 0)}])
    monkeypatch.setattr(collectors.psutil, "net_io_counters", lambda pernic: next(samples))
    network = collectors.get_network_usage(interval=0)
    assert network.interface == "eth1"
    assert network.rx_sec == network.tx_sec == 0.0


def test_no_interfaces_is_a_collection_error(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "net_io_counters", lambda pernic: {})
    with pytest.raises(CollectionError, match="network usage"):
        collectors.get_network_usage(interval=0)


# --- battery ---------------------------------------------------------------

def test_no_battery_is_not_an_error(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "sensors_battery", lambda: None, raising=False)
    battery = collectors.get_battery_status()
    assert battery.has_battery is False
    assert battery.time_remaining is None


def test_platform_without_battery_sensor(monkeypatch):
    monkeypatch.delattr(collectors.psutil, "sensors_battery", raising=False)
    assert collectors.get_battery_status().has_battery is False


def test_discharging_battery(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "sensors_battery", lambda: Battery(64.5, 5430, False), raising=False)
    battery = collectors.get_battery_status()
    assert battery.has_battery is True
    assert battery.percent == 64.5
    assert battery.is_charging is False
    assert battery.time_remaining == 90


def test_charging_battery_has_no_time_remaining(monkeypatch):
    plugged = Battery(80, collectors.psutil.POWER_TIME_UNLIMITED, True)
    monkeypatch.setattr(collectors.psutil, "sensors_battery", lambda: plugged, raising=False)
    battery = collectors.get_battery_status()
    assert battery.is_charging is True
    assert battery.time_remaining is None


def test_battery_provider_failure(monkeypatch):
    monkeypatch.setattr(collectors.psutil, "sensors_battery", boom, raising=False)
    with pytest.raises(CollectionError, match="battery status"):
        collectors.get_battery_status()
