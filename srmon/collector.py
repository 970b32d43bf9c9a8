"""Snapshot aggregation: run every reader once and turn counters into rates."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable, TypeVar

import psutil

from srmon.delta import DeltaTracker
from srmon.errors import SrmonError
from srmon.model import (
    CpuCore,
    DiskInfo,
    MemoryInfo,
    NetworkInfo,
    PlatformMetrics,
    ProcessInfo,
    Snapshot,
    SystemInfo,
)
from srmon.readers import CoreTimes, ProcessSample, PsutilReaders

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors a single reader may raise without taking the whole tick down
READER_ERRORS = (SrmonError, psutil.Error, OSError)


class SnapshotAggregator:
    """Builds one ``Snapshot`` per ``collect()`` call.

    Owns the delta trackers for cores, disks, interfaces, processes and the
    platform counters. A reader that fails is logged and its domain comes
    back empty; the other readers still run.
    """

    def __init__(self, readers: Any | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.readers = readers if readers is not None else PsutilReaders()
        self._clock = clock
        self._last_tick: float | None = None
        self.cores = DeltaTracker()
        self.disks = DeltaTracker()
        self.interfaces = DeltaTracker()
        self.processes = DeltaTracker()
        self.platform = DeltaTracker()

    def prime(self) -> Snapshot:
        """Take a baseline sample so the next ``collect()`` has real rates."""
        return self.collect()

    def collect(self) -> Snapshot:
        now = self._clock()
        interval = now - self._last_tick if self._last_tick is not None else 0.0
        self._last_tick = now
        timestamp = time.time()

        system = self._read("system", self.readers.system, SystemInfo())
        core_times = self._read("cpu", self.readers.cpu_times, [])
        memory = self._read("memory", self.readers.memory, MemoryInfo())
        disks = self._read("disks", self.readers.disks, [])
        networks = self._read("network", self.readers.networks, [])
        temperatures = self._read("temperature", self.readers.temperatures, [])
        samples = self._read("processes", self.readers.processes, [])
        platform_metrics = self._read("platform", self.readers.platform_metrics, PlatformMetrics())

        return Snapshot(
            timestamp=timestamp,
            interval=max(0.0, interval),
            system=system,
            cpu_cores=tuple(self._cores(core_times)),
            memory=memory,
            disks=tuple(self._disks(disks)),
            networks=tuple(self._networks(networks)),
            temperatures=tuple(temperatures),
            processes=tuple(self._processes(samples, interval)),
            platform_metrics=self._platform(platform_metrics),
        )

    # ── Internals ──────────────────────────────────────────────────────────

    @staticmethod
    def _read(domain: str, reader: Callable[[], T], fallback: T) -> T:
        try:
            return reader()
        except READER_ERRORS as e:
            logger.warning("%s reader failed: %s", domain, e)
            return fallback

    def _cores(self, times: list[CoreTimes]) -> list[CpuCore]:
        cores = []
        for t in sorted(times, key=lambda c: c.id):
            busy, total = self.cores.update(t.id, t.busy, t.total)
            usage = min(100.0, busy / total * 100.0) if total else 0.0
            cores.append(CpuCore(id=t.id, name=f"cpu{t.id}", usage_percent=usage, frequency=t.frequency))
        return cores

    def _disks(self, disks: list[DiskInfo]) -> list[DiskInfo]:
        out = []
        for d in disks:
            read, write = self.disks.update(d.name, d.read_bytes, d.write_bytes)
            out.append(replace(d, read_bytes_delta=read, write_bytes_delta=write))
        return out

    def _networks(self, networks: list[NetworkInfo]) -> list[NetworkInfo]:
        out = []
        for n in networks:
            # Deltas first for every interface, so a filtered one keeps its baseline
            rx, tx, _, _ = self.interfaces.update(
                n.interface_name, n.rx_bytes, n.tx_bytes, n.rx_packets, n.tx_packets
            )
            if n.is_loopback or n.is_idle:
                continue
            out.append(replace(n, rx_bytes_delta=rx, tx_bytes_delta=tx))
        return out

    def _processes(self, samples: list[ProcessSample], interval: float) -> list[ProcessInfo]:
        centis = interval * 100.0
        out = []
        for s in samples:
            (ticks,) = self.processes.update(s.info.pid, s.cpu_ticks)
            cpu = ticks / centis * 100.0 if centis > 0 else 0.0
            out.append(replace(s.info, cpu_percent=cpu))
        return out

    def _platform(self, metrics: PlatformMetrics) -> PlatformMetrics:
        if metrics.context_switches is None:
            return metrics
        (ctxt,) = self.platform.update("ctxt", metrics.context_switches)
        return replace(metrics, context_switches_delta=ctxt)
