"""
Library Manifest Models.

Describe the libraries that can be harvested, the runtimes (RIDs) they are
harvested for, and the per-OS system libraries that must never be bundled.
All of these are loaded from the JSON files in the build config directory.
"""

from dataclasses import dataclass, field
from enum import Enum


class OsFamily(Enum):
    """Operating system family of a runtime identifier."""

    WINDOWS = "Windows"
    LINUX = "Linux"
    OSX = "OSX"

    @property
    def is_unix(self) -> bool:
        return self is not OsFamily.WINDOWS

    @classmethod
    def parse(cls, value: str) -> "OsFamily":
        """Parse a family name case-insensitively ('windows', 'osx', 'macOS', ...)."""
        normalized = value.strip().lower()
        if normalized in ("macos", "darwin"):
            normalized = "osx"
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown OS family: {value!r}")


@dataclass(frozen=True)
class PrimaryBinaryPattern:
    """Primary binary filename patterns of a library for one OS family."""

    os: str
    patterns: tuple[str, ...] = ()

    def matches_family(self, family: OsFamily) -> bool:
        try:
            return OsFamily.parse(self.os) is family
        except ValueError:
            return False


@dataclass(frozen=True)
class LibraryManifest:
    """
    A library that can be harvested.

    ``vcpkg_name`` is the package name known to the package manager. Exactly one
    manifest in a config is the core library (``is_core``); satellite libraries
    depend on it and never re-bundle its binaries.
    """

    name: str
    vcpkg_name: str
    vcpkg_version: str = ""
    vcpkg_port_version: int = 0
    native_lib_name: str = ""
    native_lib_version: str = ""
    is_core: bool = False
    primary_binaries: tuple[PrimaryBinaryPattern, ...] = ()

    def patterns_for(self, family: OsFamily) -> list[str]:
        """Primary binary patterns declared for ``family`` (empty if none)."""
        for entry in self.primary_binaries:
            if entry.matches_family(family):
                return list(entry.patterns)
        return []

    @classmethod
    def from_dict(cls, data: dict) -> "LibraryManifest":
        """Deserialize from a ``manifest.json`` entry."""
        primary = [
            PrimaryBinaryPattern(os=item["os"], patterns=tuple(item.get("patterns", [])))
            for item in data.get("primary_binaries", [])
        ]
        # Older manifests declare a single binary name per OS.
        if not primary:
            primary = [
                PrimaryBinaryPattern(os=item["os"], patterns=(item["name"],))
                for item in data.get("lib_names", [])
                if item.get("name")
            ]

        return cls(
            name=data["name"],
            vcpkg_name=data["vcpkg_name"],
            vcpkg_version=data.get("vcpkg_version", ""),
            vcpkg_port_version=int(data.get("vcpkg_port_version", 0)),
            native_lib_name=data.get("native_lib_name", ""),
            native_lib_version=data.get("native_lib_version", ""),
            is_core=bool(data.get("core_lib", False)),
            primary_binaries=tuple(primary),
        )


@dataclass
class ManifestConfig:
    """All library manifests of the repository."""

    library_manifests: list[LibraryManifest] = field(default_factory=list)

    @property
    def core_manifest(self) -> LibraryManifest:
        """The single core library manifest."""
        cores = [m for m in self.library_manifests if m.is_core]
        if len(cores) != 1:
            raise ValueError(f"Expected exactly one core library manifest, found {len(cores)}")
        return cores[0]

    def find(self, name: str) -> LibraryManifest | None:
        """Find a manifest by library name (case-insensitive)."""
        return next(
            (m for m in self.library_manifests if m.name.lower() == name.lower()),
            None,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ManifestConfig":
        return cls(
            library_manifests=[LibraryManifest.from_dict(m) for m in data["library_manifests"]]
        )


@dataclass(frozen=True)
class RuntimeInfo:
    """A target runtime identifier and its package manager triplet."""

    rid: str
    triplet: str
    runner: str = ""
    container_image: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "RuntimeInfo":
        return cls(
            rid=data["rid"],
            triplet=data["triplet"],
            runner=data.get("runner", ""),
            container_image=data.get("container_image"),
        )


@dataclass
class RuntimeConfig:
    runtimes: list[RuntimeInfo] = field(default_factory=list)

    def find(self, rid: str) -> RuntimeInfo | None:
        return next((r for r in self.runtimes if r.rid.lower() == rid.lower()), None)

    @classmethod
    def from_dict(cls, data: dict) -> "RuntimeConfig":
        return cls(runtimes=[RuntimeInfo.from_dict(r) for r in data["runtimes"]])


@dataclass
class SystemArtefactsConfig:
    """Per-OS name patterns of libraries provided by the operating system."""

    windows: list[str] = field(default_factory=list)
    linux: list[str] = field(default_factory=list)
    osx: list[str] = field(default_factory=list)

    def patterns_for(self, family: OsFamily) -> list[str]:
        match family:
            case OsFamily.WINDOWS:
                return self.windows
            case OsFamily.LINUX:
                return self.linux
            case _:
                return self.osx

    @classmethod
    def from_dict(cls, data: dict) -> "SystemArtefactsConfig":
        return cls(
            windows=list(data.get("windows", {}).get("system_dlls", [])),
            linux=list(data.get("linux", {}).get("system_libraries", [])),
            osx=list(data.get("osx", {}).get("system_libraries", [])),
        )
