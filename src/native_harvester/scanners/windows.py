"""
Windows dumpbin Scanner.

dumpbin only lists DLL names. They are resolved against the directory of the
scanned DLL, which is where vcpkg installs all of a triplet's DLLs (``bin/``);
anything not found there comes from the system or the loader search path.
"""

import logging
from pathlib import Path

from native_harvester.core.process import ProcessRunner, run_process
from native_harvester.parsers.dumpbin import parse_dumpbin_dependents

logger = logging.getLogger(__name__)


class WindowsDumpbinScanner:
    """Resolves DLL dependencies with ``dumpbin /dependents``."""

    def __init__(self, runner: ProcessRunner = run_process, dumpbin: str = "dumpbin"):
        self.runner = runner
        self.dumpbin = dumpbin

    async def scan(self, binary: Path) -> set[Path]:
        try:
            result = await self.runner(self.dumpbin, "/dependents", str(binary))
        except OSError as e:
            logger.error(f"dumpbin not found or failed for {binary.name}: {e}")
            return set()

        if not result.ok:
            logger.error(f"dumpbin scan failed for {binary.name} (exit code {result.returncode})")
            return set()

        found: set[Path] = set()
        for dll in parse_dumpbin_dependents(result.stdout):
            candidate = binary.parent / dll
            if candidate.exists():
                found.add(candidate)
                logger.debug(f"Added dependency: {dll} => {candidate}")
            else:
                logger.debug(f"Dependency {dll} not next to {binary.name}, assuming system DLL")

        logger.debug(f"dumpbin scan of {binary.name} found {len(found)} dependencies")
        return found
