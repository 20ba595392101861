"""
Subprocess helpers.

All external tools (vcpkg, dumpbin, ldd, otool, tar) are run through
``run_process`` so collaborators can be given a fake runner in tests.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


ProcessRunner = Callable[..., Awaitable[ProcessResult]]


async def run_process(program: str, *args: str, cwd: Path | None = None) -> ProcessResult:
    """
    Run a program and capture its output.

    Raises:
        FileNotFoundError: if the program cannot be found.
    """
    logger.debug(f"Running: {program} {' '.join(args)}" + (f" (cwd: {cwd})" if cwd else ""))

    proc = await asyncio.create_subprocess_exec(
        program,
        *args,
        cwd=str(cwd) if cwd else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise

    return ProcessResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )
