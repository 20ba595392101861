"""
Linux ldd Scanner.
"""

import logging
import os
from pathlib import Path

from native_harvester.core.process import ProcessRunner, run_process
from native_harvester.parsers.ldd import parse_ldd_output

logger = logging.getLogger(__name__)

VIRTUAL_LIBRARIES = {"linux-vdso.so.1"}
SYSTEM_PREFIXES = ("/lib/", "/usr/lib/", "/lib64/", "/usr/lib64/")


class LinuxLddScanner:
    """Resolves shared library dependencies with ``ldd``."""

    def __init__(self, runner: ProcessRunner = run_process):
        self.runner = runner

    async def scan(self, binary: Path) -> set[Path]:
        try:
            result = await self.runner("ldd", str(binary))
        except OSError as e:
            logger.error(f"ldd not found or failed for {binary.name}: {e}")
            return set()

        if not result.ok:
            logger.error(f"ldd scan failed for {binary.name}: {result.stderr.strip()}")
            return set()

        found: set[Path] = set()
        for lib_name, lib_path in parse_ldd_output(result.stdout).items():
            if _is_virtual_or_system(lib_name, lib_path):
                logger.debug(f"Skipping system/virtual library: {lib_name} => {lib_path}")
                continue

            path = Path(os.path.normpath(lib_path))
            if path.exists():
                found.add(path)
                logger.debug(f"Added dependency: {lib_name} => {lib_path}")
            else:
                logger.warning(f"Dependency {lib_name} at {lib_path} not found on filesystem")

        logger.info(f"ldd scan of {binary.name} found {len(found)} dependencies")
        return found


def _is_virtual_or_system(lib_name: str, lib_path: str) -> bool:
    return lib_name.lower() in VIRTUAL_LIBRARIES or lib_path.startswith(SYSTEM_PREFIXES)
