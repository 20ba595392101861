"""
PackageInfoProvider Protocol: package manager metadata lookups.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from native_harvester.models.closure import PackageInfo


@runtime_checkable
class PackageInfoProvider(Protocol):
    """
    Protocol for package manager metadata sources.

    Implementations return the absolute paths of the files an installed package
    owns and its declared dependency keys, or raise ``PackageInfoError`` when
    the package is not installed for the triplet.
    """

    async def get_package_info(self, package_name: str, triplet: str) -> PackageInfo:
        """Look up an installed package."""
        ...
