"""
Native Harvester CLI: harvest vcpkg-installed native libraries for redistribution.

Usage:
    native-harvester harvest --library SDL2 --library SDL2_image --rid win-x64
    native-harvester harvest --rid linux-x64 --vcpkg-dir ./vcpkg --dry-run
    native-harvester scan ./vcpkg/installed/x64-linux/lib/libSDL2-2.0.so.0 --rid linux-x64
"""

import asyncio
import logging

import click


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@click.group()
@click.version_option(package_name="native-harvester")
def cli():
    """Native Harvester: collect native library closures from vcpkg for packaging."""
    pass


@cli.command()
@click.option(
    "--library",
    "-l",
    "libraries",
    multiple=True,
    help="Library to harvest (repeatable). Defaults to every library in manifest.json.",
)
@click.option("--rid", "-r", type=str, default=None, help="Target runtime identifier (default: host).")
@click.option(
    "--repo-root",
    type=click.Path(file_okay=False),
    default=".",
    help="Repository root.",
)
@click.option(
    "--vcpkg-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="vcpkg root directory (default: $VCPKG_ROOT or <repo-root>/vcpkg).",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory with manifest.json, runtimes.json and system_artefacts.json.",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    default=None,
    help="Harvest output directory (default: <repo-root>/artifacts/harvest_output).",
)
@click.option("--dry-run", is_flag=True, help="Build closures and plans without deploying.")
@click.option("--fail-fast", is_flag=True, help="Abort on the first failed library.")
@click.option("--report/--no-report", default=True, help="Write harvest-<library>-<rid>.json reports.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def harvest(libraries, rid, repo_root, vcpkg_dir, config_dir, output_dir, dry_run, fail_fast, report, verbose):
    """Harvest native binaries and licenses of libraries for one RID."""
    from pathlib import Path

    from native_harvester.core.config import BuildConfig, HarvestPaths
    from native_harvester.core.errors import HarvestError
    from native_harvester.core.harvester import NativeHarvester
    from native_harvester.core.profile import detect_host_rid
    from native_harvester.exporters import get_exporter
    from native_harvester.models.report import HarvestStatus

    _configure_logging(verbose)

    paths = HarvestPaths(
        repo_root=Path(repo_root).resolve(),
        vcpkg_root=Path(vcpkg_dir).resolve() if vcpkg_dir else None,
        config_dir=Path(config_dir) if config_dir else None,
        output_dir=Path(output_dir) if output_dir else None,
    )

    try:
        config = BuildConfig.load(paths.config_dir)
        exporters = [get_exporter("json", str(paths.artifacts_dir))] if report else []
        harvester = NativeHarvester.create(paths, config, rid or detect_host_rid(), exporters=exporters)
        reports = asyncio.run(
            harvester.run(libraries=list(libraries), dry_run=dry_run, fail_fast=fail_fast)
        )
    except HarvestError as e:
        raise click.ClickException(e.message) from e

    if any(r.status is HarvestStatus.FAILED for r in reports):
        raise click.ClickException("One or more libraries failed to harvest. Check logs for details.")


@cli.command()
@click.argument("binary", type=click.Path(exists=True, dir_okay=False))
@click.option("--rid", "-r", type=str, default=None, help="Runtime identifier selecting the scanner (default: host).")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def scan(binary, rid, verbose):
    """Print the runtime dependencies of a single binary."""
    from pathlib import Path

    from native_harvester.core.errors import HarvestError
    from native_harvester.core.profile import detect_host_rid, os_family_for_rid
    from native_harvester.scanners import get_scanner

    _configure_logging(verbose)

    try:
        family = os_family_for_rid(rid or detect_host_rid())
    except HarvestError as e:
        raise click.ClickException(e.message) from e

    scanner = get_scanner(family)
    dependencies = asyncio.run(scanner.scan(Path(binary).resolve()))

    for dependency in sorted(dependencies):
        click.echo(str(dependency))
    click.echo(f"{len(dependencies)} dependencies", err=True)


if __name__ == "__main__":
    cli()
