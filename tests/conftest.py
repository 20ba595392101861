"""Shared fakes and fixtures for native-harvester tests."""

from pathlib import Path

import pytest

from native_harvester.core.errors import PackageInfoError
from native_harvester.core.process import ProcessResult
from native_harvester.core.profile import RuntimeProfile
from native_harvester.models.closure import PackageInfo
from native_harvester.models.manifest import (
    LibraryManifest,
    PrimaryBinaryPattern,
    RuntimeInfo,
    SystemArtefactsConfig,
)


class FakeProvider:
    """In-memory PackageInfoProvider."""

    def __init__(self, packages: list[PackageInfo] | None = None, broken: set[str] | None = None):
        self.packages = {p.package_name.lower(): p for p in packages or []}
        self.broken = {b.lower() for b in broken or set()}
        self.calls: list[str] = []

    def add(self, info: PackageInfo) -> None:
        self.packages[info.package_name.lower()] = info

    async def get_package_info(self, package_name: str, triplet: str) -> PackageInfo:
        self.calls.append(package_name)
        if package_name.lower() in self.broken:
            raise RuntimeError(f"metadata for {package_name} is corrupted")
        info = self.packages.get(package_name.lower())
        if info is None:
            raise PackageInfoError(f"Package {package_name}:{triplet} not found in vcpkg output")
        return info


class FakeScanner:
    """RuntimeScanner answering from a fixed dependency graph."""

    def __init__(self, graph: dict[Path, set[Path]] | None = None):
        self.graph = graph or {}
        self.scanned: list[Path] = []

    async def scan(self, binary: Path) -> set[Path]:
        self.scanned.append(binary)
        return set(self.graph.get(binary, set()))


class FakeRunner:
    """Process runner that records invocations and returns canned results."""

    def __init__(self, results: dict[str, ProcessResult] | None = None, default: ProcessResult | None = None):
        self.results = results or {}
        self.default = default or ProcessResult(returncode=0)
        self.calls: list[tuple[tuple[str, ...], Path | None]] = []
        self.on_call = None

    async def __call__(self, program: str, *args: str, cwd: Path | None = None) -> ProcessResult:
        self.calls.append(((program, *args), cwd))
        if self.on_call is not None:
            self.on_call(program, args, cwd)
        return self.results.get(program, self.default)


def touch(path: Path, content: str = "binary") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def make_manifest(
    name: str,
    vcpkg_name: str,
    is_core: bool = False,
    windows: list[str] | None = None,
    linux: list[str] | None = None,
    osx: list[str] | None = None,
) -> LibraryManifest:
    primary = []
    if windows:
        primary.append(PrimaryBinaryPattern(os="Windows", patterns=tuple(windows)))
    if linux:
        primary.append(PrimaryBinaryPattern(os="Linux", patterns=tuple(linux)))
    if osx:
        primary.append(PrimaryBinaryPattern(os="OSX", patterns=tuple(osx)))
    return LibraryManifest(name=name, vcpkg_name=vcpkg_name, is_core=is_core, primary_binaries=tuple(primary))


SYSTEM_ARTEFACTS = SystemArtefactsConfig(
    windows=["kernel32.dll", "api-ms-win-*.dll", "MSVCP140.dll"],
    linux=["libc.so*", "libm.so*", "libstdc++.so*", "ld-linux-x86-64.so.2"],
    osx=["libSystem.B.dylib", "libc++*.dylib"],
)


@pytest.fixture
def installed(tmp_path) -> Path:
    """Root of a fake vcpkg installed tree."""
    return tmp_path / "vcpkg" / "installed"


@pytest.fixture
def windows_profile() -> RuntimeProfile:
    return RuntimeProfile(RuntimeInfo(rid="win-x64", triplet="x64-windows"), SYSTEM_ARTEFACTS)


@pytest.fixture
def linux_profile() -> RuntimeProfile:
    return RuntimeProfile(RuntimeInfo(rid="linux-x64", triplet="x64-linux-dynamic"), SYSTEM_ARTEFACTS)


@pytest.fixture
def osx_profile() -> RuntimeProfile:
    return RuntimeProfile(RuntimeInfo(rid="osx-arm64", triplet="arm64-osx-dynamic"), SYSTEM_ARTEFACTS)
