"""
Binary Closure Walker.

Computes every binary a library needs at runtime in two breadth-first phases:

1. Package walk: follow the package manager's declared dependencies from the
   library's package and collect the binaries each package owns.
2. Binary walk: run the platform's runtime scanner on every collected binary
   and follow the dependencies the linker actually resolves, which catches
   libraries that were not declared (or are owned by packages we never
   visited).

Both phases run sequentially so owner/origin bookkeeping is deterministic.
"""

import asyncio
import logging
import re
from collections import deque
from pathlib import Path, PurePath

from native_harvester.core.errors import ClosureError, ClosureNotFound, PackageInfoError
from native_harvester.core.profile import RuntimeProfile
from native_harvester.models.closure import UNKNOWN_PACKAGE, BinaryClosure, BinaryNode, PackageInfo
from native_harvester.models.manifest import LibraryManifest, OsFamily
from native_harvester.providers.base import PackageInfoProvider
from native_harvester.scanners.base import RuntimeScanner

logger = logging.getLogger(__name__)

# vcpkg helper ports (vcpkg-cmake, vcpkg-cmake-config, ...) never ship runtime binaries
TOOLING_PREFIX = "vcpkg-"
INSTALL_ROOT_SEGMENTS = ("vcpkg_installed", "installed")

# Multi-word library families whose file names do not match their port names
PACKAGE_ALIASES: dict[str, str] = {
    "sdl2main": "sdl2",
    "webp": "libwebp",
    "webpdemux": "libwebp",
    "webpmux": "libwebp",
    "sharpyuv": "libwebp",
    "png16": "libpng",
    "png": "libpng",
    "jpeg": "libjpeg-turbo",
    "turbojpeg": "libjpeg-turbo",
    "z": "zlib",
    "ogg": "libogg",
    "vorbis": "libvorbis",
    "vorbisfile": "libvorbis",
    "vorbisenc": "libvorbis",
    "flac": "libflac",
    "modplug": "libmodplug",
    "bz2": "bzip2",
    "tiff": "tiff",
    "avif": "libavif",
    "yuv": "libyuv",
}

_VERSION_SUFFIX = re.compile(r"-\d+$")


# ──────────────────────────────────────────────
# Pure helpers
# ──────────────────────────────────────────────


def is_binary(path: PurePath, os_family: OsFamily) -> bool:
    """True if ``path`` is a shared library that should be harvested for ``os_family``."""
    if any(part.lower() == "debug" for part in path.parts):
        return False

    name = path.name.lower()
    match os_family:
        case OsFamily.WINDOWS:
            return name.endswith(".dll")
        case OsFamily.LINUX:
            # Only files directly under lib/ (skips dev symlinks in other dirs)
            if path.parent.name.lower() != "lib":
                return False
            return name.endswith(".so") or ".so." in name
        case OsFamily.OSX:
            return name.endswith(".dylib")
        case _:
            return False


def match_binary_pattern(file_name: str, pattern: str) -> bool:
    """
    Match a file name against an exact name or a single-wildcard pattern.

    Only the first '*' is a wildcard (prefix*suffix); any further '*' is ignored.
    """
    name = file_name.lower()
    pattern = pattern.lower()

    if "*" not in pattern:
        return name == pattern

    prefix, _, suffix = pattern.partition("*")
    suffix = suffix.replace("*", "")
    return len(name) >= len(prefix) + len(suffix) and name.startswith(prefix) and name.endswith(suffix)


def dependency_package_name(dependency_key: str) -> str | None:
    """'sdl2:x64-windows' -> 'sdl2'; None for tooling ports and malformed keys."""
    if dependency_key.lower().startswith(TOOLING_PREFIX):
        return None
    name, sep, _ = dependency_key.partition(":")
    if not sep or not name:
        return None
    return name


def infer_package_from_library_name(file_name: str) -> str:
    """
    Guess a package name from a Unix shared library file name.

    'libSDL2-2.0.so.0.3200.4' -> 'sdl2'
    'libSDL2_image-2.0.so.0'  -> 'sdl2-image'
    'libwebp.so.7.1.10'       -> 'libwebp'
    """
    if not file_name.lower().startswith("lib"):
        return UNKNOWN_PACKAGE

    stem = file_name[3:].split(".")[0].lower()
    stem = _VERSION_SUFFIX.sub("", stem)
    if not stem:
        return UNKNOWN_PACKAGE

    if stem in PACKAGE_ALIASES:
        return PACKAGE_ALIASES[stem]
    return stem.replace("_", "-")


def infer_package_name(path: PurePath, os_family: OsFamily) -> str:
    """
    Infer the package owning a binary from its place in the installed tree.

    Layout: ``.../installed/<triplet>/<bin|lib|share>/<package>/...``. Unix
    libraries sit flat in ``lib/`` so their package is guessed from the file
    name. Returns ``UNKNOWN_PACKAGE`` when nothing can be inferred.
    """
    parts = path.parts
    lowered = [p.lower() for p in parts]

    root_index = -1
    for marker in INSTALL_ROOT_SEGMENTS:
        if marker in lowered:
            root_index = max(root_index, len(lowered) - 1 - lowered[::-1].index(marker))

    if root_index < 0 or root_index + 2 >= len(parts) - 1:
        # Outside the installed tree: last resort is the file name itself
        if os_family.is_unix:
            return infer_package_from_library_name(path.name)
        return UNKNOWN_PACKAGE

    subdir = lowered[root_index + 2]
    if subdir == "lib" and os_family.is_unix:
        return infer_package_from_library_name(path.name)

    # A package directory segment exists only if it is not the file itself
    if root_index + 3 < len(parts) - 1:
        return parts[root_index + 3].lower()

    if os_family.is_unix:
        return infer_package_from_library_name(path.name)
    stem = path.name.rsplit(".", 1)[0].lower()
    return PACKAGE_ALIASES.get(stem, stem.replace("_", "-")) if stem else UNKNOWN_PACKAGE


def is_symlink(path: Path) -> bool:
    try:
        return path.is_symlink()
    except OSError:
        # Unreadable entries are treated as regular files
        return False


# ──────────────────────────────────────────────
# Walker
# ──────────────────────────────────────────────


class BinaryClosureWalker:
    """Builds the BinaryClosure of a library manifest."""

    def __init__(self, scanner: RuntimeScanner, provider: PackageInfoProvider, profile: RuntimeProfile):
        self.scanner = scanner
        self.provider = provider
        self.profile = profile

    async def build_closure(self, manifest: LibraryManifest) -> BinaryClosure:
        """
        Walk the package and runtime dependency graphs of ``manifest``.

        Raises:
            ClosureNotFound: the library's package is not installed.
            ClosureError: no primary binary could be resolved, or the walk failed.
        """
        try:
            return await self._build_closure(manifest)
        except ClosureError:
            raise
        except Exception as e:
            raise ClosureError(f"Error building dependency closure: {e}", e) from e

    async def _build_closure(self, manifest: LibraryManifest) -> BinaryClosure:
        triplet = self.profile.triplet
        try:
            root_info = await self.provider.get_package_info(manifest.vcpkg_name, triplet)
        except PackageInfoError as e:
            raise ClosureNotFound(f"vcpkg info for package {manifest.vcpkg_name} not found.", e) from e

        primaries = self._resolve_primary_binaries(root_info, manifest)
        if not primaries:
            patterns = manifest.patterns_for(self.profile.os_family)
            raise ClosureError(
                f"Primary binary {patterns} not found for {manifest.vcpkg_name} ({self.profile.rid})"
            )

        nodes: dict[Path, BinaryNode] = {}
        packages = await self._walk_packages(root_info, nodes)
        logger.info(
            f"[{manifest.name}] Package walk: {len(packages)} packages, {len(nodes)} binaries"
        )

        await self._walk_binaries(nodes)
        logger.info(f"[{manifest.name}] Closure complete: {len(nodes)} binaries")

        return BinaryClosure(
            primary_binaries=tuple(primaries),
            nodes=list(nodes.values()),
            packages=packages,
        )

    # ──────────────────────────────────────────────
    # Phase A: package walk
    # ──────────────────────────────────────────────

    async def _walk_packages(self, root_info: PackageInfo, nodes: dict[Path, BinaryNode]) -> set[str]:
        root = root_info.package_name
        queue: deque[tuple[str, str]] = deque([(root, root)])
        seen: dict[str, str] = {}  # lowercase -> package name as queried

        while queue:
            await asyncio.sleep(0)  # cancellation point
            owner, origin = queue.popleft()

            if owner.lower() in seen:
                continue
            seen[owner.lower()] = owner

            if owner == root:
                info = root_info
            else:
                try:
                    info = await self.provider.get_package_info(owner, self.profile.triplet)
                except Exception as e:
                    logger.warning(f"Package info not found for dependency {owner}, continuing. ({e})")
                    continue

            for path in info.owned_files:
                if path in nodes or not is_binary(path, self.profile.os_family):
                    continue
                nodes[path] = BinaryNode(path=path, owner_package=owner, origin_package=origin)

            # Children are attributed to the package that declared them
            child_origin = info.package_name
            for key in info.declared_dependencies:
                dependency = dependency_package_name(key)
                if dependency is None:
                    continue
                queue.append((dependency, child_origin))

        return set(seen.values())

    # ──────────────────────────────────────────────
    # Phase B: runtime binary walk
    # ──────────────────────────────────────────────

    async def _walk_binaries(self, nodes: dict[Path, BinaryNode]) -> None:
        queue: deque[Path] = deque(nodes.keys())

        while queue:
            await asyncio.sleep(0)  # cancellation point
            binary = queue.popleft()
            origin = nodes[binary].origin_package

            dependencies = await self.scanner.scan(binary)
            for dependency in sorted(dependencies):
                if self.profile.is_system_file(dependency) or dependency in nodes:
                    continue

                owner = infer_package_name(dependency, self.profile.os_family)
                logger.debug(f"Runtime dependency {dependency.name} of {binary.name} (owner: {owner})")
                nodes[dependency] = BinaryNode(path=dependency, owner_package=owner, origin_package=origin)
                queue.append(dependency)

    # ──────────────────────────────────────────────
    # Primary binary resolution
    # ──────────────────────────────────────────────

    def _resolve_primary_binaries(self, info: PackageInfo, manifest: LibraryManifest) -> list[Path]:
        resolved: list[Path] = []
        for pattern in manifest.patterns_for(self.profile.os_family):
            primary = self._resolve_primary_binary(info, pattern)
            if primary is None:
                logger.warning(f"Could not resolve primary binary '{pattern}' for {info.package_name}")
            elif primary not in resolved:
                resolved.append(primary)
        return resolved

    def _resolve_primary_binary(self, info: PackageInfo, pattern: str) -> Path | None:
        candidates = [
            f
            for f in info.owned_files
            if is_binary(f, self.profile.os_family) and match_binary_pattern(f.name, pattern)
        ]
        existing = [c for c in candidates if c.exists()]
        logger.debug(f"Found {len(existing)} existing candidates for primary binary '{pattern}'")

        if not existing:
            return None
        if not self.profile.is_unix:
            return existing[0]

        # The real file of a versioned symlink chain is the most versioned name
        for candidate in sorted(existing, key=lambda p: len(p.name), reverse=True):
            if not is_symlink(candidate):
                logger.debug(f"Found real file in symlink chain: {candidate}")
                return candidate

        logger.debug(f"Using fallback candidate: {existing[0]}")
        return existing[0]
