"""
Build configuration loading and path layout.

The config directory holds three JSON files:

    manifest.json          library manifests (exactly one core library)
    runtimes.json          RID -> triplet mapping
    system_artefacts.json  per-OS system library name patterns
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from native_harvester.core.errors import ConfigError
from native_harvester.models.manifest import ManifestConfig, RuntimeConfig, SystemArtefactsConfig

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
RUNTIMES_FILE = "runtimes.json"
SYSTEM_ARTEFACTS_FILE = "system_artefacts.json"


def _load_json(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}", e) from e


def load_manifest_config(path: Path) -> ManifestConfig:
    data = _load_json(path)
    try:
        config = ManifestConfig.from_dict(data)
        _ = config.core_manifest  # exactly one core library
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid manifest config {path}: {e}", e) from e
    return config


def load_runtime_config(path: Path) -> RuntimeConfig:
    data = _load_json(path)
    try:
        return RuntimeConfig.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Invalid runtime config {path}: {e}", e) from e


def load_system_artefacts(path: Path) -> SystemArtefactsConfig:
    data = _load_json(path)
    try:
        return SystemArtefactsConfig.from_dict(data)
    except (AttributeError, TypeError) as e:
        raise ConfigError(f"Invalid system artefacts config {path}: {e}", e) from e


@dataclass
class BuildConfig:
    manifests: ManifestConfig
    runtimes: RuntimeConfig
    system_artefacts: SystemArtefactsConfig

    @classmethod
    def load(cls, config_dir: Path) -> "BuildConfig":
        logger.debug(f"Loading build config from {config_dir}")
        return cls(
            manifests=load_manifest_config(config_dir / MANIFEST_FILE),
            runtimes=load_runtime_config(config_dir / RUNTIMES_FILE),
            system_artefacts=load_system_artefacts(config_dir / SYSTEM_ARTEFACTS_FILE),
        )


class HarvestPaths:
    """Semantic path construction for the repository, vcpkg and harvest output."""

    def __init__(
        self,
        repo_root: Path,
        vcpkg_root: Path | None = None,
        config_dir: Path | None = None,
        output_dir: Path | None = None,
    ):
        self.repo_root = repo_root

        if vcpkg_root is None and os.environ.get("VCPKG_ROOT"):
            vcpkg_root = Path(os.environ["VCPKG_ROOT"])
            logger.info(f"Using vcpkg directory from VCPKG_ROOT: {vcpkg_root}")
        if vcpkg_root is None:
            vcpkg_root = repo_root / "vcpkg"
            logger.warning(f"vcpkg directory not specified. Assuming {vcpkg_root}")
        self.vcpkg_root = vcpkg_root

        self.config_dir = config_dir or repo_root / "build"
        self.artifacts_dir = repo_root / "artifacts"
        self.harvest_output = output_dir or self.artifacts_dir / "harvest_output"

    @property
    def installed_dir(self) -> Path:
        return self.vcpkg_root / "installed"

    def triplet_dir(self, triplet: str) -> Path:
        return self.installed_dir / triplet

    def triplet_lib_dir(self, triplet: str) -> Path:
        return self.triplet_dir(triplet) / "lib"
