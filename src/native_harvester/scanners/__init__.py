"""Runtime dependency scanners, one per OS family."""

from native_harvester.core.process import ProcessRunner, run_process
from native_harvester.models.manifest import OsFamily
from native_harvester.scanners.base import RuntimeScanner
from native_harvester.scanners.linux import LinuxLddScanner
from native_harvester.scanners.macos import MacOtoolScanner
from native_harvester.scanners.windows import WindowsDumpbinScanner


def get_scanner(os_family: OsFamily, runner: ProcessRunner = run_process) -> RuntimeScanner:
    """Factory function to create the scanner for an OS family."""
    match os_family:
        case OsFamily.WINDOWS:
            return WindowsDumpbinScanner(runner=runner)
        case OsFamily.LINUX:
            return LinuxLddScanner(runner=runner)
        case OsFamily.OSX:
            return MacOtoolScanner(runner=runner)
        case _:
            raise ValueError(f"No runtime scanner for OS family: {os_family!r}")


__all__ = [
    "RuntimeScanner",
    "LinuxLddScanner",
    "MacOtoolScanner",
    "WindowsDumpbinScanner",
    "get_scanner",
]
