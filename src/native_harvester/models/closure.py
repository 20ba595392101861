"""
Closure Models.

Package metadata as reported by the package manager and the binary
dependency closure computed from it.
"""

from dataclasses import dataclass, field
from pathlib import Path


UNKNOWN_PACKAGE = "unknown"


@dataclass
class PackageInfo:
    """Files owned by an installed package and the packages it declares as dependencies."""

    package_name: str
    triplet: str
    owned_files: list[Path] = field(default_factory=list)
    declared_dependencies: list[str] = field(default_factory=list)  # "<package>:<triplet>"


@dataclass(frozen=True)
class BinaryNode:
    """
    One binary of a closure.

    ``owner_package`` owns the file according to package metadata (or is inferred
    from its install location). ``origin_package`` is the package through which
    the walk first reached it, which lets the planner drop everything pulled in
    via the core library without re-scanning.
    """

    path: Path
    owner_package: str
    origin_package: str


@dataclass
class BinaryClosure:
    """Result of a dependency walk: primary binaries, every reachable binary and visited packages."""

    primary_binaries: tuple[Path, ...]
    nodes: list[BinaryNode]
    packages: set[str] = field(default_factory=set)

    @property
    def primary_binary(self) -> Path:
        return self.primary_binaries[0]

    def all_binaries(self) -> list[Path]:
        return [node.path for node in self.nodes]

    def is_primary(self, path: Path) -> bool:
        return path in self.primary_binaries
