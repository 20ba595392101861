"""
Runtime Profile.

Derives the OS family and package manager triplet of a target runtime
identifier (RID) and decides which dependencies are provided by the
operating system and therefore must not be harvested.
"""

import logging
import platform
from pathlib import Path, PurePath

from native_harvester.core.errors import UnsupportedRuntimeError
from native_harvester.models.manifest import (
    LibraryManifest,
    OsFamily,
    RuntimeInfo,
    SystemArtefactsConfig,
)

logger = logging.getLogger(__name__)

RID_PREFIXES: dict[str, OsFamily] = {
    "win-": OsFamily.WINDOWS,
    "linux-": OsFamily.LINUX,
    "osx-": OsFamily.OSX,
}


def os_family_for_rid(rid: str) -> OsFamily:
    """Map a RID such as 'win-x64' to its OS family."""
    lowered = rid.lower()
    for prefix, family in RID_PREFIXES.items():
        if lowered.startswith(prefix):
            return family
    raise UnsupportedRuntimeError(f"Unsupported rid {rid}")


def detect_host_rid() -> str:
    """Best-effort RID of the machine we are running on."""
    system = platform.system().lower()
    machine = platform.machine().lower()

    arch = {"amd64": "x64", "x86_64": "x64", "arm64": "arm64", "aarch64": "arm64"}.get(machine, "x86")
    match system:
        case "windows":
            return f"win-{arch}"
        case "darwin":
            return f"osx-{arch}"
        case "linux":
            return f"linux-{arch}"
        case _:
            raise UnsupportedRuntimeError(f"Unsupported host platform: {platform.system()}")


def wildcard_match(name: str, pattern: str) -> bool:
    """
    Case-insensitive match of ``name`` against ``pattern`` where ``*`` matches
    any run of characters and every other character is literal.

    Two-pointer scan that only ever backtracks to the most recent ``*``, so a
    match costs at most O(len(name) * len(pattern)) however many stars the
    pattern holds.
    """
    name = name.lower()
    pattern = pattern.lower()

    n = p = 0
    star = -1  # index of the last '*' seen in pattern
    resume = 0  # position in name that star currently absorbs up to

    while n < len(name):
        if p < len(pattern) and pattern[p] == "*":
            star = p
            resume = n
            p += 1
        elif p < len(pattern) and pattern[p] == name[n]:
            n += 1
            p += 1
        elif star >= 0:
            resume += 1
            n = resume
            p = star + 1
        else:
            return False

    while p < len(pattern) and pattern[p] == "*":
        p += 1
    return p == len(pattern)


class SystemFileMatcher:
    """
    Matches a file name against one system library pattern.

    Patterns without ``*`` are case-insensitive exact names. Wildcard patterns
    go through ``wildcard_match``, whose cost is bounded for any pattern read
    from ``system_artefacts.json``.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern
        self._exact: str | None = None if "*" in pattern else pattern.lower()

    def matches(self, file_name: str) -> bool:
        if self._exact is not None:
            return file_name.lower() == self._exact
        return wildcard_match(file_name, self.pattern)

    def __repr__(self) -> str:
        return f"SystemFileMatcher({self.pattern!r})"


class RuntimeProfile:
    """Target platform facts used by the closure walker and the planner."""

    def __init__(
        self,
        runtime: RuntimeInfo,
        artefacts: SystemArtefactsConfig,
        core_manifest: LibraryManifest | None = None,
    ):
        self.rid = runtime.rid
        self.triplet = runtime.triplet
        self.os_family = os_family_for_rid(runtime.rid)

        self._matchers = [SystemFileMatcher(p) for p in artefacts.patterns_for(self.os_family)]
        logger.debug(
            f"Runtime profile {self.rid} ({self.os_family.value}, {self.triplet}): "
            f"{len(self._matchers)} system library patterns"
        )

        self.core_lib_name: str | None = None
        if core_manifest is not None:
            patterns = core_manifest.patterns_for(self.os_family)
            self.core_lib_name = patterns[0] if patterns else None

    @property
    def is_unix(self) -> bool:
        return self.os_family.is_unix

    def is_system_file(self, path: Path | PurePath | str) -> bool:
        """True if the file's base name matches any configured system library pattern."""
        name = PurePath(path).name
        return any(m.matches(name) for m in self._matchers)

    def __repr__(self) -> str:
        return f"RuntimeProfile(rid={self.rid!r}, triplet={self.triplet!r}, os_family={self.os_family.value})"
