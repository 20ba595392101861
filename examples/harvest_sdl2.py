"""
Example: Harvest SDL2 and SDL2_image for the host runtime.

Usage:
    export VCPKG_ROOT=/path/to/vcpkg
    python examples/harvest_sdl2.py
"""

import asyncio
from pathlib import Path

from native_harvester import NativeHarvester
from native_harvester.core.config import BuildConfig, HarvestPaths
from native_harvester.core.profile import detect_host_rid
from native_harvester.exporters import JSONReportExporter


async def main():
    paths = HarvestPaths(repo_root=Path(".").resolve())
    config = BuildConfig.load(paths.config_dir)

    # Write harvest-<library>-<rid>.json next to the harvested artifacts
    exporter = JSONReportExporter(output_dir=paths.artifacts_dir)
    harvester = NativeHarvester.create(paths, config, detect_host_rid(), exporters=[exporter])

    reports = await harvester.run(libraries=["SDL2", "SDL2_image"])

    for report in reports:
        print(f"{report.library}: {report.status.value}")
    print(f"\nArtifacts written to: {paths.harvest_output}")


if __name__ == "__main__":
    asyncio.run(main())
