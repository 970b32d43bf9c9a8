"""Per-platform capabilities.

Callers check the ``supports_*`` flags before acting instead of relying on
exceptions. ``get_platform_provider`` picks the variant for the running OS
and falls back to ``GenericProvider`` which supports nothing.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import psutil

from srmon.errors import (
    PermissionDeniedError,
    PlatformError,
    ProcessInfoError,
    UnsupportedPlatformError,
)
from srmon.model import PlatformMetrics

logger = logging.getLogger(__name__)

PROC_ROOT = Path("/proc")


@dataclass(frozen=True)
class ProcessDetails:
    cmdline: str | None = None
    cwd: str | None = None
    environment: tuple[tuple[str, str], ...] | None = None
    open_files: tuple[str, ...] | None = None
    cgroup: str | None = None
    container_id: str | None = None


class KillOutcome(Enum):
    SENT = "sent"
    UNSUPPORTED = "unsupported"
    NO_SUCH_PROCESS = "no such process"
    PERMISSION_DENIED = "permission denied"
    FAILED = "failed"


@dataclass(frozen=True)
class KillResult:
    outcome: KillOutcome
    pid: int
    message: str

    @property
    def ok(self) -> bool:
        return self.outcome is KillOutcome.SENT


def container_id_from_cgroup(cgroup: str | None) -> str | None:
    """Extract a short container id from a docker or kubernetes cgroup path."""
    if not cgroup or ("docker" not in cgroup and "kubepods" not in cgroup):
        return None
    last = cgroup.rstrip("/").rsplit("/", 1)[-1]
    for prefix in ("docker-", "cri-containerd-", "crio-"):
        last = last.removeprefix(prefix)
    last = last.removesuffix(".scope")
    return last[:12] or None


def _parse_proc_stat(text: str) -> dict[str, int]:
    values: dict[str, int] = {}
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        if parts[0] in ("ctxt", "processes", "procs_running", "procs_blocked"):
            values[parts[0]] = int(parts[1])
        elif parts[0] == "intr":
            values["intr"] = int(parts[1])
    return values


# ── Providers ──────────────────────────────────────────────────────────────


class PlatformProvider:
    """No-op provider; the base for every platform variant."""

    name = "generic"
    supports_process_kill = False
    supports_process_details = False
    supports_system_metrics = False
    supports_load_average = False

    def __init__(self, use_procfs: bool = True) -> None:
        self.use_procfs = use_procfs

    def load_average(self) -> tuple[float, float, float] | None:
        if not self.supports_load_average:
            return None
        la = psutil.getloadavg()
        return (float(la[0]), float(la[1]), float(la[2]))

    def process_cgroup(self, pid: int) -> str | None:
        return None

    def process_details(self, pid: int) -> ProcessDetails:
        raise UnsupportedPlatformError(f"process details are not available on {self.name}")

    def system_metrics(self) -> PlatformMetrics:
        return PlatformMetrics()

    def terminate_process(self, pid: int) -> KillResult:
        """Ask the process to exit (SIGTERM where the platform has signals)."""
        if not self.supports_process_kill:
            return KillResult(
                KillOutcome.UNSUPPORTED,
                pid,
                f"process termination is not supported on {self.name}",
            )
        try:
            psutil.Process(pid).terminate()
        except psutil.NoSuchProcess:
            return KillResult(KillOutcome.NO_SUCH_PROCESS, pid, f"PID {pid} no longer exists")
        except psutil.AccessDenied:
            return KillResult(KillOutcome.PERMISSION_DENIED, pid, f"PID {pid}: permission denied")
        except psutil.Error as e:
            logger.warning("terminate(%d) failed: %s", pid, e)
            return KillResult(KillOutcome.FAILED, pid, f"PID {pid}: {e}")
        logger.info("sent SIGTERM to %d", pid)
        return KillResult(KillOutcome.SENT, pid, f"Sent SIGTERM to PID {pid}")

    def _psutil_details(self, pid: int, cgroup: str | None = None) -> ProcessDetails:
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                cmdline = " ".join(proc.cmdline()) or None
                try:
                    cwd: str | None = proc.cwd()
                except psutil.AccessDenied:
                    cwd = None
                try:
                    env: tuple[tuple[str, str], ...] | None = tuple(sorted(proc.environ().items()))
                except psutil.AccessDenied:
                    env = None
                try:
                    files: tuple[str, ...] | None = tuple(f.path for f in proc.open_files())
                except psutil.AccessDenied:
                    files = None
        except psutil.NoSuchProcess as e:
            raise ProcessInfoError(f"PID {pid} no longer exists") from e
        except psutil.AccessDenied as e:
            raise PermissionDeniedError(f"PID {pid}: access denied") from e
        return ProcessDetails(
            cmdline=cmdline,
            cwd=cwd,
            environment=env,
            open_files=files,
            cgroup=cgroup,
            container_id=container_id_from_cgroup(cgroup),
        )


class LinuxProvider(PlatformProvider):
    name = "linux"
    supports_process_kill = True
    supports_process_details = True
    supports_load_average = True

    @property
    def supports_system_metrics(self) -> bool:  # type: ignore[override]
        return self.use_procfs

    def process_cgroup(self, pid: int) -> str | None:
        if not self.use_procfs:
            return None
        try:
            text = (PROC_ROOT / str(pid) / "cgroup").read_text(encoding="utf-8")
        except OSError:
            return None
        for line in text.splitlines():
            parts = line.split(":", 2)
            if len(parts) == 3 and parts[2]:
                return parts[2]
        return None

    def process_details(self, pid: int) -> ProcessDetails:
        return self._psutil_details(pid, self.process_cgroup(pid))

    def system_metrics(self) -> PlatformMetrics:
        if not self.use_procfs:
            return PlatformMetrics()
        try:
            values = _parse_proc_stat((PROC_ROOT / "stat").read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PlatformError(f"failed to read /proc/stat: {e}") from e
        return PlatformMetrics(
            context_switches=values.get("ctxt"),
            interrupts=values.get("intr"),
            processes_created=values.get("processes"),
            processes_running=values.get("procs_running"),
            processes_blocked=values.get("procs_blocked"),
        )


class MacosProvider(PlatformProvider):
    name = "macos"
    supports_process_kill = True
    supports_process_details = True
    supports_load_average = True

    def process_details(self, pid: int) -> ProcessDetails:
        return self._psutil_details(pid)


class WindowsProvider(PlatformProvider):
    # TerminateProcess has no graceful variant, so kill stays disabled here.
    name = "windows"
    supports_process_details = True

    def process_details(self, pid: int) -> ProcessDetails:
        return self._psutil_details(pid)


class GenericProvider(PlatformProvider):
    name = "generic"


def get_platform_provider(platform: str | None = None, use_procfs: bool = True) -> PlatformProvider:
    """Return the provider for ``platform`` (defaults to ``sys.platform``)."""
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return LinuxProvider(use_procfs=use_procfs)
    if platform == "darwin":
        return MacosProvider(use_procfs=False)
    if platform in ("win32", "cygwin"):
        return WindowsProvider(use_procfs=False)
    return GenericProvider(use_procfs=False)
