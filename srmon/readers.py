"""Entity readers: one psutil probe per domain, returning absolute counters.

Readers never compute rates. They return cumulative counters (bytes, jiffies,
CPU centiseconds) and leave the deltas to the collector.
"""

from __future__ import annotations

import os
import platform
import socket
import time
from dataclasses import dataclass
from typing import Any

import psutil

from srmon.errors import ProcessInfoError, SystemInfoError
from srmon.model import (
    DiskInfo,
    MemoryInfo,
    NetworkInfo,
    PlatformMetrics,
    ProcessInfo,
    ProcessState,
    SystemInfo,
    TemperatureInfo,
)
from srmon.platforms import PlatformProvider, get_platform_provider

# psutil status strings -> our closed set; anything else is UNKNOWN
_STATUS_MAP: dict[str, ProcessState] = {
    "running": ProcessState.RUNNING,
    "sleeping": ProcessState.SLEEPING,
    "idle": ProcessState.SLEEPING,
    "wake-kill": ProcessState.SLEEPING,
    "disk-sleep": ProcessState.WAITING,
    "waking": ProcessState.WAITING,
    "waiting": ProcessState.WAITING,
    "locked": ProcessState.WAITING,
    "parked": ProcessState.WAITING,
    "tracing-stop": ProcessState.WAITING,
    "stopped": ProcessState.STOPPED,
    "zombie": ProcessState.ZOMBIE,
    "dead": ProcessState.DEAD,
    "paging": ProcessState.PAGING,
}

_PROC_ATTRS = [
    "pid",
    "ppid",
    "name",
    "cmdline",
    "username",
    "status",
    "memory_percent",
    "memory_info",
    "num_threads",
    "create_time",
    "cpu_times",
]


def map_status(status: str | None) -> ProcessState:
    return _STATUS_MAP.get((status or "").lower(), ProcessState.UNKNOWN)


# ── Raw sample types ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class CoreTimes:
    """Cumulative jiffies (centiseconds) for one logical CPU."""

    id: int
    busy: int
    total: int
    frequency: float = 0.0


@dataclass(frozen=True)
class ProcessSample:
    info: ProcessInfo  # cpu_percent is left at 0.0
    cpu_ticks: int  # cumulative user+system centiseconds


# ── Probes ─────────────────────────────────────────────────────────────────


def read_system(provider: PlatformProvider) -> SystemInfo:
    try:
        boot = psutil.boot_time()
        hostname = socket.gethostname()
    except (psutil.Error, OSError) as e:
        raise SystemInfoError(f"cannot read host info: {e}") from e
    return SystemInfo(
        hostname=hostname or "unknown",
        os_name=platform.system() or "unknown",
        os_version=platform.release() or "unknown",
        uptime=max(0.0, time.time() - boot),
        boot_time=boot,
        load_avg=provider.load_average(),
    )


def read_cpu_times() -> list[CoreTimes]:
    """Per-core cumulative busy/total time, as integer centiseconds."""
    times = psutil.cpu_times(percpu=True)
    try:
        freqs = psutil.cpu_freq(percpu=True) or []
    except (AttributeError, NotImplementedError, OSError):
        freqs = []

    cores: list[CoreTimes] = []
    for i, t in enumerate(times):
        total = sum(t)
        idle = t.idle + getattr(t, "iowait", 0.0)
        freq = freqs[i].current if i < len(freqs) else 0.0
        cores.append(
            CoreTimes(id=i, busy=int((total - idle) * 100), total=int(total * 100), frequency=freq)
        )
    return cores


def read_memory() -> MemoryInfo:
    ram = psutil.virtual_memory()
    swap = psutil.swap_memory()
    return MemoryInfo(
        total=ram.total,
        used=ram.used,
        available=ram.available,
        free=ram.free,
        buffers=getattr(ram, "buffers", 0),
        cached=getattr(ram, "cached", 0),
        swap_total=swap.total,
        swap_used=swap.used,
        swap_free=swap.free,
    )


def read_disks() -> list[DiskInfo]:
    """Mounted disks with capacity and cumulative I/O bytes.

    A device mounted more than once is reported only for its first mount.
    """
    io: dict[str, Any] = psutil.disk_io_counters(perdisk=True) or {}
    disks: list[DiskInfo] = []
    seen: set[str] = set()
    for part in psutil.disk_partitions(all=False):
        name = os.path.basename(part.device) or part.device
        if name in seen:
            continue
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except OSError:
            continue  # unreadable mount (permissions, stale network fs)
        seen.add(name)
        counters = io.get(name)
        disks.append(
            DiskInfo(
                name=name,
                mount_point=part.mountpoint,
                file_system=part.fstype,
                total_space=usage.total,
                used_space=usage.used,
                available_space=usage.free,
                read_bytes=counters.read_bytes if counters else 0,
                write_bytes=counters.write_bytes if counters else 0,
            )
        )
    return disks


def read_networks() -> list[NetworkInfo]:
    counters = psutil.net_io_counters(pernic=True) or {}
    return [
        NetworkInfo(
            interface_name=name,
            rx_bytes=c.bytes_recv,
            tx_bytes=c.bytes_sent,
            rx_packets=c.packets_recv,
            tx_packets=c.packets_sent,
            rx_errors=c.errin,
            tx_errors=c.errout,
        )
        for name, c in counters.items()
    ]


def read_temperatures() -> list[TemperatureInfo]:
    try:
        chips = psutil.sensors_temperatures()
    except AttributeError:
        return []  # not provided on this platform
    readings: list[TemperatureInfo] = []
    for chip, entries in (chips or {}).items():
        for entry in entries:
            if entry.current is None or entry.current <= 0:
                continue
            readings.append(
                TemperatureInfo(
                    label=entry.label or chip,
                    temperature=float(entry.current),
                    critical=float(entry.critical) if entry.critical else None,
                    max=float(entry.high) if entry.high else None,
                )
            )
    return readings


def read_processes() -> list[ProcessSample]:
    """All visible processes; ones that vanish or deny access mid-scan are skipped."""
    samples: list[ProcessSample] = []
    try:
        procs = psutil.process_iter(attrs=_PROC_ATTRS)
        for proc in procs:
            try:
                info: dict[str, Any] = proc.info
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            pid = info.get("pid") or 0
            mem = info.get("memory_info")
            times = info.get("cpu_times")
            ticks = int((times.user + times.system) * 100) if times else 0
            samples.append(
                ProcessSample(
                    info=ProcessInfo(
                        pid=pid,
                        name=info.get("name") or "",
                        cmd=tuple(info.get("cmdline") or ()),
                        user=info.get("username") or "",
                        memory_percent=float(info.get("memory_percent") or 0.0),
                        memory_rss=mem.rss if mem else 0,
                        memory_vsz=mem.vms if mem else 0,
                        threads=info.get("num_threads") or 0,
                        state=map_status(info.get("status")),
                        start_time=info.get("create_time") or 0.0,
                        parent_pid=info.get("ppid"),
                    ),
                    cpu_ticks=ticks,
                )
            )
    except psutil.Error as e:
        raise ProcessInfoError(f"process enumeration failed: {e}") from e
    return samples


class PsutilReaders:
    """Bundles the probes the collector calls once per tick."""

    def __init__(self, provider: PlatformProvider | None = None) -> None:
        self.provider = provider or get_platform_provider()

    def system(self) -> SystemInfo:
        return read_system(self.provider)

    def cpu_times(self) -> list[CoreTimes]:
        return read_cpu_times()

    def memory(self) -> MemoryInfo:
        return read_memory()

    def disks(self) -> list[DiskInfo]:
        return read_disks()

    def networks(self) -> list[NetworkInfo]:
        return read_networks()

    def temperatures(self) -> list[TemperatureInfo]:
        return read_temperatures()

    def processes(self) -> list[ProcessSample]:
        return read_processes()

    def platform_metrics(self) -> PlatformMetrics:
        if not self.provider.supports_system_metrics:
            return PlatformMetrics()
        return self.provider.system_metrics()
