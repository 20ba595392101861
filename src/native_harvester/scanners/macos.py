"""
macOS otool Scanner.

``otool -L`` reports install names, which may be relocatable
(``@rpath/``, ``@loader_path/``, ``@executable_path/``). They are resolved
against the scanned binary's directory before checking that they exist.
"""

import logging
import os
from pathlib import Path

from native_harvester.core.process import ProcessRunner, run_process
from native_harvester.parsers.otool import parse_otool_output

logger = logging.getLogger(__name__)

SYSTEM_PREFIXES = ("/System/", "/usr/lib/")


class MacOtoolScanner:
    """Resolves dylib dependencies with ``otool -L``."""

    def __init__(self, runner: ProcessRunner = run_process):
        self.runner = runner

    async def scan(self, binary: Path) -> set[Path]:
        try:
            result = await self.runner("otool", "-L", str(binary))
        except OSError as e:
            logger.error(f"otool scan failed for {binary.name}: {e}")
            return set()

        if not result.ok:
            logger.error(f"otool scan failed for {binary.name}: {result.stderr.strip()}")
            return set()

        found: set[Path] = set()
        for lib_name, lib_path in parse_otool_output(result.stdout).items():
            resolved = resolve_install_name(lib_path, binary)
            if resolved is not None and resolved.exists():
                found.add(resolved)
                logger.debug(f"Added dependency: {lib_name} => {resolved}")
            elif not lib_path.startswith(SYSTEM_PREFIXES):
                logger.debug(f"Dependency {lib_name} at {lib_path} not found or unresolved")

        logger.debug(f"otool scan of {binary.name} found {len(found)} dependencies")
        return found


def resolve_install_name(install_name: str, binary: Path) -> Path | None:
    """
    Resolve an install name to a filesystem path, or None if it cannot be found.

    Absolute paths are returned as-is. ``@rpath/`` is tried next to the binary
    and in a sibling ``lib`` directory; ``@loader_path/`` and
    ``@executable_path/`` are resolved next to the binary.
    """
    if not install_name.startswith("@"):
        return Path(install_name) if os.path.isabs(install_name) else None

    binary_dir = binary.parent
    prefix, _, relative = install_name.partition("/")
    if not relative:
        return None

    match prefix:
        case "@rpath":
            candidates = [binary_dir / relative, binary_dir.parent / "lib" / relative]
        case "@loader_path" | "@executable_path":
            candidates = [binary_dir / relative]
        case _:
            return None

    for candidate in candidates:
        if candidate.exists():
            return Path(os.path.normpath(candidate))
    return None
