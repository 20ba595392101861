"""
Artifact Planner.

Turns a BinaryClosure into a DeploymentPlan:

- satellite libraries never re-bundle binaries of the core library
- Windows binaries are copied one by one into ``runtimes/<rid>/native``
- Unix binaries go into a single tarball so symlink chains survive intact
- license files of every deployed package are always copied individually
"""

import logging
from pathlib import Path, PurePath

from native_harvester.core.errors import PlannerError
from native_harvester.core.profile import RuntimeProfile
from native_harvester.models.closure import UNKNOWN_PACKAGE, BinaryClosure, BinaryNode
from native_harvester.models.manifest import LibraryManifest
from native_harvester.models.plan import (
    ArchiveCreationAction,
    ArchivedItem,
    ArtifactOrigin,
    DeploymentAction,
    DeploymentLocation,
    DeploymentPlan,
    DeploymentStatistics,
    DeploymentStrategy,
    FileCopyAction,
    FileDeploymentInfo,
)
from native_harvester.providers.base import PackageInfoProvider

logger = logging.getLogger(__name__)


def is_license(path: PurePath) -> bool:
    """vcpkg installs each port's license as ``share/<port>/copyright``."""
    return path.name.lower() == "copyright" and any(p.lower() == "share" for p in path.parts)


class ArtifactPlanner:
    """Creates deployment plans for harvested closures."""

    def __init__(
        self,
        provider: PackageInfoProvider,
        profile: RuntimeProfile,
        core_package_name: str,
        lib_dir: Path,
    ):
        """
        Args:
            provider: Package metadata source, re-queried for license files.
            profile: Target runtime profile.
            core_package_name: vcpkg name of the core library.
            lib_dir: The triplet's installed ``lib`` directory (archive base on Unix).
        """
        self.provider = provider
        self.profile = profile
        self.core_package_name = core_package_name
        self.lib_dir = lib_dir

    @property
    def strategy(self) -> DeploymentStrategy:
        return DeploymentStrategy.ARCHIVE if self.profile.is_unix else DeploymentStrategy.DIRECT_COPY

    async def create_plan(
        self, manifest: LibraryManifest, closure: BinaryClosure, output_root: Path
    ) -> DeploymentPlan:
        """
        Plan the deployment of ``closure`` for ``manifest`` under ``output_root``.

        Raises:
            PlannerError: on any unexpected failure while planning.
        """
        try:
            return await self._create_plan(manifest, closure, output_root)
        except Exception as e:
            raise PlannerError(f"Error while planning artifacts: {e}", e) from e

    async def _create_plan(
        self, manifest: LibraryManifest, closure: BinaryClosure, output_root: Path
    ) -> DeploymentPlan:
        library_root = output_root / manifest.name
        native_dir = library_root / "runtimes" / self.profile.rid / "native"

        binaries: list[tuple[BinaryNode, ArtifactOrigin]] = []
        owners: dict[str, None] = {}  # ordered set
        filtered: dict[str, None] = {}

        for node in closure.nodes:
            if not manifest.is_core and self._is_core_node(node):
                logger.debug(f"Filtered core library artifact: {node.path.name} ({node.owner_package})")
                filtered.setdefault(node.owner_package, None)
                continue

            origin = ArtifactOrigin.PRIMARY if closure.is_primary(node.path) else ArtifactOrigin.RUNTIME
            binaries.append((node, origin))
            owners.setdefault(node.owner_package, None)

        actions: list[DeploymentAction] = []
        if self.strategy is DeploymentStrategy.DIRECT_COPY:
            for node, origin in binaries:
                actions.append(
                    FileCopyAction(
                        source=node.path,
                        target=native_dir / node.path.name,
                        package_name=node.owner_package,
                        origin=origin,
                    )
                )
        else:
            archive_name = f"{manifest.name}-{self.profile.rid}.tar.gz"
            actions.append(
                ArchiveCreationAction(
                    archive_path=native_dir / archive_name,
                    base_directory=self.lib_dir,
                    items=tuple(
                        ArchivedItem(source=node.path, package_name=node.owner_package, origin=origin)
                        for node, origin in binaries
                    ),
                    archive_name=archive_name,
                )
            )

        actions.extend(await self._plan_licenses(owners, library_root))

        statistics = self._compute_statistics(manifest, actions, filtered)
        logger.info(
            f"[{manifest.name}] Planned {len(actions)} action(s) "
            f"({self.strategy.value}): {len(statistics.primary_files)} primary, "
            f"{len(statistics.runtime_files)} runtime, {len(statistics.license_files)} license"
        )
        return DeploymentPlan(actions=actions, statistics=statistics)

    def _is_core_node(self, node: BinaryNode) -> bool:
        core = self.core_package_name.lower()
        return node.owner_package.lower() == core or node.origin_package.lower() == core

    async def _plan_licenses(self, owners: dict[str, None], library_root: Path) -> list[FileCopyAction]:
        actions: list[FileCopyAction] = []

        for package in owners:
            if package == UNKNOWN_PACKAGE:
                continue
            try:
                info = await self.provider.get_package_info(package, self.profile.triplet)
            except Exception as e:
                logger.warning(f"Package info not found for {package}, skipping its license. ({e})")
                continue

            for path in info.owned_files:
                if not is_license(path):
                    continue
                actions.append(
                    FileCopyAction(
                        source=path,
                        target=library_root / "licenses" / package / path.name,
                        package_name=package,
                        origin=ArtifactOrigin.LICENSE,
                    )
                )

        return actions

    def _compute_statistics(
        self, manifest: LibraryManifest, actions: list[DeploymentAction], filtered: dict[str, None]
    ) -> DeploymentStatistics:
        stats = DeploymentStatistics(library_name=manifest.name, strategy=self.strategy)
        buckets = {
            ArtifactOrigin.PRIMARY: stats.primary_files,
            ArtifactOrigin.RUNTIME: stats.runtime_files,
            ArtifactOrigin.LICENSE: stats.license_files,
        }

        for action in actions:
            match action:
                case FileCopyAction():
                    buckets[action.origin].append(
                        FileDeploymentInfo(action.source, action.package_name, DeploymentLocation.FILESYSTEM)
                    )
                    stats.deployed_packages.add(action.package_name)
                case ArchiveCreationAction():
                    for item in action.items:
                        buckets[item.origin].append(
                            FileDeploymentInfo(item.source, item.package_name, DeploymentLocation.ARCHIVE)
                        )
                        stats.deployed_packages.add(item.package_name)

        deployed = {p.lower() for p in stats.deployed_packages}
        # packages that lost binaries to core filtering and kept none
        stats.filtered_packages = {p for p in filtered if p.lower() not in deployed}
        return stats
