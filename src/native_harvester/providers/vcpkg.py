"""
vcpkg CLI Provider.

Answers package metadata queries by running ``vcpkg x-package-info`` against
the installed tree.
"""

import logging
import os
from pathlib import Path

from native_harvester.core.errors import PackageInfoError
from native_harvester.core.process import ProcessRunner, run_process
from native_harvester.models.closure import PackageInfo
from native_harvester.parsers.vcpkg import parse_package_info

logger = logging.getLogger(__name__)


class VcpkgCliProvider:
    """
    PackageInfoProvider backed by the vcpkg executable.

    Owned files are reported by vcpkg relative to the install root
    (``x64-windows/bin/SDL2.dll``) and are returned as absolute paths.
    """

    def __init__(self, vcpkg_root: Path, installed_dir: Path, runner: ProcessRunner = run_process):
        self.vcpkg_root = vcpkg_root
        self.installed_dir = installed_dir
        self.runner = runner

    @property
    def executable(self) -> Path:
        return self.vcpkg_root / ("vcpkg.exe" if os.name == "nt" else "vcpkg")

    async def get_package_info(self, package_name: str, triplet: str) -> PackageInfo:
        if not package_name or not triplet:
            raise ValueError("package_name and triplet are required")

        package_key = f"{package_name}:{triplet}"
        try:
            result = await self.runner(
                str(self.executable),
                "x-package-info",
                package_key,
                f"--x-install-root={self.installed_dir}",
                "--x-installed",
                "--x-json",
            )
        except OSError as e:
            raise PackageInfoError(f"Failed to run vcpkg for {package_key}: {e}", e) from e

        if not result.ok or not result.stdout.strip():
            message = f"vcpkg x-package-info returned no output for {package_key}."
            logger.warning(message)
            raise PackageInfoError(message)

        try:
            entry = parse_package_info(result.stdout, package_key)
        except ValueError as e:
            logger.warning(str(e))
            raise PackageInfoError(str(e), e) from e

        return PackageInfo(
            package_name=package_name,
            triplet=triplet,
            owned_files=[self.installed_dir / rel for rel in entry["owns"]],
            declared_dependencies=entry["dependencies"],
        )
