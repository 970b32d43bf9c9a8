"""Exception hierarchy for srmon."""

from __future__ import annotations


class SrmonError(Exception):
    """Base class for every error raised by srmon itself."""


class SystemInfoError(SrmonError):
    """A host-level probe (cpu, memory, disks, network, sensors) failed."""


class ProcessInfoError(SrmonError):
    """Enumerating or inspecting processes failed."""


class ConfigError(SrmonError):
    """Config file is missing, malformed, or holds an out-of-range value."""


class PlatformError(SrmonError):
    """A platform-specific call failed."""


class PermissionDeniedError(PlatformError):
    """The OS refused access to a process or resource."""


class UnsupportedPlatformError(PlatformError):
    """The requested capability does not exist on this platform."""
