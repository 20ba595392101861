"""
RuntimeScanner Protocol: base interface for all runtime dependency scanners.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class RuntimeScanner(Protocol):
    """
    Protocol that all runtime dependency scanners must implement.

    A scanner runs the platform's dependency-listing tool on one binary and
    returns the absolute paths of the binaries it links against. Relocatable
    references are resolved and only files that exist are returned.
    """

    async def scan(self, binary: Path) -> set[Path]:
        """Return the runtime dependencies of ``binary``."""
        ...
