"""Data model shared by the collector, the view controller and the renderer.

Everything here is immutable: a ``Snapshot`` is built once per tick and
replaced wholesale by the next one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ── Enumerations ───────────────────────────────────────────────────────────


class SortKey(Enum):
    """Sort keys for the process table, in cycling order."""

    CPU = "cpu"
    MEMORY = "memory"
    PID = "pid"
    NAME = "name"

    def next(self) -> SortKey:
        keys = list(SortKey)
        return keys[(keys.index(self) + 1) % len(keys)]

    @property
    def descending_by_default(self) -> bool:
        # Busiest first for the resource keys
        return self in (SortKey.CPU, SortKey.MEMORY)

    @property
    def label(self) -> str:
        return {
            SortKey.CPU: "CPU%",
            SortKey.MEMORY: "MEM%",
            SortKey.PID: "PID",
            SortKey.NAME: "NAME",
        }[self]


class ProcessState(Enum):
    RUNNING = "Running"
    SLEEPING = "Sleeping"
    WAITING = "Waiting"
    ZOMBIE = "Zombie"
    STOPPED = "Stopped"
    PAGING = "Paging"
    DEAD = "Dead"
    UNKNOWN = "Unknown"


class Theme(Enum):
    DARK = "dark"
    LIGHT = "light"


class TemperatureStatus(Enum):
    COOL = "cool"
    WARM = "warm"
    WARNING = "warning"
    CRITICAL = "critical"


# Column identifiers in display order; keys match ``process_columns`` config.
COLUMN_KEYS: dict[str, str] = {
    "pid": "PID",
    "name": "NAME",
    "user": "USER",
    "cpu_percent": "CPU%",
    "memory_percent": "MEM%",
    "memory_rss": "RSS",
    "memory_vsz": "VSZ",
    "threads": "THR",
    "state": "STATE",
    "start_time": "TIME",
}

ALL_COLUMNS: tuple[str, ...] = tuple(COLUMN_KEYS.values())
COMPACT_COLUMNS: tuple[str, ...] = ("PID", "NAME", "CPU%", "MEM%")


def columns_from_flags(flags: dict[str, bool]) -> tuple[str, ...]:
    """Translate ``process_columns`` config flags to visible column names."""
    return tuple(title for key, title in COLUMN_KEYS.items() if flags.get(key, False))


# ── Snapshot components ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SystemInfo:
    hostname: str = "unknown"
    os_name: str = "unknown"
    os_version: str = "unknown"
    uptime: float = 0.0  # seconds
    boot_time: float = 0.0  # epoch seconds
    load_avg: tuple[float, float, float] | None = None  # None = not supported


@dataclass(frozen=True)
class CpuCore:
    id: int
    name: str
    usage_percent: float
    frequency: float = 0.0  # MHz


@dataclass(frozen=True)
class MemoryInfo:
    total: int = 0
    used: int = 0
    available: int = 0
    free: int = 0
    buffers: int = 0
    cached: int = 0
    swap_total: int = 0
    swap_used: int = 0
    swap_free: int = 0

    @property
    def percent(self) -> float:
        return self.used / self.total * 100.0 if self.total else 0.0

    @property
    def swap_percent(self) -> float:
        return self.swap_used / self.swap_total * 100.0 if self.swap_total else 0.0


@dataclass(frozen=True)
class DiskInfo:
    name: str
    mount_point: str
    file_system: str
    total_space: int
    used_space: int
    available_space: int
    read_bytes: int = 0
    write_bytes: int = 0
    read_bytes_delta: int = 0  # since last snapshot
    write_bytes_delta: int = 0


@dataclass(frozen=True)
class NetworkInfo:
    interface_name: str
    rx_bytes: int
    tx_bytes: int
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0
    rx_bytes_delta: int = 0  # since last snapshot
    tx_bytes_delta: int = 0

    @property
    def is_loopback(self) -> bool:
        return self.interface_name.startswith("lo")

    @property
    def is_idle(self) -> bool:
        """True when the interface never moved a byte or a packet."""
        return not (self.rx_bytes or self.tx_bytes or self.rx_packets or self.tx_packets)

    @property
    def is_active(self) -> bool:
        return self.rx_bytes_delta > 0 or self.tx_bytes_delta > 0


@dataclass(frozen=True)
class TemperatureInfo:
    label: str
    temperature: float  # Celsius
    critical: float | None = None
    max: float | None = None

    @property
    def status(self) -> TemperatureStatus:
        critical = self.critical or 80.0
        if self.temperature >= critical:
            return TemperatureStatus.CRITICAL
        if self.temperature >= critical * 0.8:
            return TemperatureStatus.WARNING
        if self.temperature >= critical * 0.6:
            return TemperatureStatus.WARM
        return TemperatureStatus.COOL

    @property
    def percentage(self) -> float:
        ceiling = self.max or self.critical or 100.0
        return min(100.0, max(0.0, self.temperature / ceiling * 100.0))


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    name: str
    cmd: tuple[str, ...] = ()
    user: str = ""
    cpu_percent: float = 0.0
    memory_percent: float = 0.0
    memory_rss: int = 0  # bytes
    memory_vsz: int = 0  # bytes
    threads: int = 0
    state: ProcessState = ProcessState.UNKNOWN
    start_time: float = 0.0  # epoch seconds
    parent_pid: int | None = None
    cgroup: str | None = None  # Linux only

    @property
    def command_line(self) -> str:
        return " ".join(self.cmd) if self.cmd else self.name


@dataclass(frozen=True)
class PlatformMetrics:
    """Optional kernel counters; ``None`` where the platform has no source."""

    context_switches: int | None = None
    context_switches_delta: int = 0
    interrupts: int | None = None
    processes_created: int | None = None
    processes_running: int | None = None
    processes_blocked: int | None = None


@dataclass(frozen=True)
class Snapshot:
    """All readings for a single poll, stamped with one instant."""

    timestamp: float
    interval: float = 0.0  # seconds since the previous snapshot, 0 on the first
    system: SystemInfo = field(default_factory=SystemInfo)
    cpu_cores: tuple[CpuCore, ...] = ()
    memory: MemoryInfo = field(default_factory=MemoryInfo)
    disks: tuple[DiskInfo, ...] = ()
    networks: tuple[NetworkInfo, ...] = ()
    temperatures: tuple[TemperatureInfo, ...] = ()
    processes: tuple[ProcessInfo, ...] = ()
    platform_metrics: PlatformMetrics = field(default_factory=PlatformMetrics)

    @property
    def cpu_total(self) -> float:
        if not self.cpu_cores:
            return 0.0
        return sum(c.usage_percent for c in self.cpu_cores) / len(self.cpu_cores)

    def rate(self, delta: int) -> float:
        """Convert a per-interval delta into a per-second rate."""
        return delta / self.interval if self.interval > 0 else 0.0
