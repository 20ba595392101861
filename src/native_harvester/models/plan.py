"""
Deployment Plan Models.

A deployment plan is an ordered list of actions (file copies and archive
creations) plus statistics describing what is being deployed and how.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path


class ArtifactOrigin(Enum):
    """Why an artifact is part of a deployment."""

    PRIMARY = "primary"
    RUNTIME = "runtime"
    LICENSE = "license"


class DeploymentStrategy(Enum):
    """How binaries are deployed."""

    DIRECT_COPY = "direct_copy"  # Windows
    ARCHIVE = "archive"  # Unix, preserves symlink chains


class DeploymentLocation(Enum):
    FILESYSTEM = "filesystem"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class FileCopyAction:
    """Copy a single file to its target location."""

    source: Path
    target: Path
    package_name: str
    origin: ArtifactOrigin


@dataclass(frozen=True)
class ArchivedItem:
    """A file to be included in an archive."""

    source: Path
    package_name: str
    origin: ArtifactOrigin


@dataclass(frozen=True)
class ArchiveCreationAction:
    """
    Create a gzip-compressed tarball.

    Items are archived by file name relative to ``base_directory``, which is
    used as the archiver's working directory.
    """

    archive_path: Path
    base_directory: Path
    items: tuple[ArchivedItem, ...]
    archive_name: str


DeploymentAction = FileCopyAction | ArchiveCreationAction


@dataclass(frozen=True)
class FileDeploymentInfo:
    path: Path
    package_name: str
    location: DeploymentLocation


@dataclass
class DeploymentStatistics:
    """
    What a plan deploys for a library, for reporting only.

    ``filtered_packages`` holds packages whose binaries were all dropped as core
    library artifacts. Header-only packages and packages whose metadata lookup
    failed never appear there.
    """

    library_name: str
    strategy: DeploymentStrategy
    primary_files: list[FileDeploymentInfo] = field(default_factory=list)
    runtime_files: list[FileDeploymentInfo] = field(default_factory=list)
    license_files: list[FileDeploymentInfo] = field(default_factory=list)
    deployed_packages: set[str] = field(default_factory=set)
    filtered_packages: set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary."""
        data = asdict(self)
        data["strategy"] = self.strategy.value
        for key in ("primary_files", "runtime_files", "license_files"):
            data[key] = [
                {
                    "path": str(info.path),
                    "package_name": info.package_name,
                    "location": info.location.value,
                }
                for info in getattr(self, key)
            ]
        data["deployed_packages"] = sorted(self.deployed_packages)
        data["filtered_packages"] = sorted(self.filtered_packages)
        return data


@dataclass
class DeploymentPlan:
    actions: list[DeploymentAction]
    statistics: DeploymentStatistics
