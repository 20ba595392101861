"""
Native Harvester: batch orchestration of closure, plan and deployment.

For every requested library:

    build_closure -> create_plan -> deploy

A library whose package is not installed is skipped; any other harvesting
error marks the library as failed and the batch continues (unless
``fail_fast`` is set). Results are collected as HarvestReports, handed to the
configured exporters and summarised on the console.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from native_harvester.core.config import BuildConfig, HarvestPaths
from native_harvester.core.deployer import ArtifactDeployer
from native_harvester.core.errors import ClosureNotFound, ConfigError, HarvestError
from native_harvester.core.planner import ArtifactPlanner
from native_harvester.core.process import ProcessRunner, run_process
from native_harvester.core.profile import RuntimeProfile
from native_harvester.core.walker import BinaryClosureWalker
from native_harvester.exporters.base import ReportExporter
from native_harvester.models.manifest import LibraryManifest, ManifestConfig
from native_harvester.models.report import HarvestReport, HarvestStatus
from native_harvester.providers.vcpkg import VcpkgCliProvider
from native_harvester.scanners import get_scanner

logger = logging.getLogger("NativeHarvester")


class NativeHarvester:
    """
    Harvests native binaries of one or more libraries for a single RID.

    Collaborators are injected; ``create`` wires the production ones
    (vcpkg CLI provider, host scanner, tar-based deployer).
    """

    def __init__(
        self,
        walker: BinaryClosureWalker,
        planner: ArtifactPlanner,
        deployer: ArtifactDeployer,
        manifests: ManifestConfig,
        profile: RuntimeProfile,
        output_dir: Path,
        exporters: list[ReportExporter] | None = None,
        console: Console | None = None,
    ):
        self.walker = walker
        self.planner = planner
        self.deployer = deployer
        self.manifests = manifests
        self.profile = profile
        self.output_dir = output_dir
        self.exporters = exporters or []
        self.console = console or Console()

    @classmethod
    def create(
        cls,
        paths: HarvestPaths,
        config: BuildConfig,
        rid: str,
        exporters: list[ReportExporter] | None = None,
        runner: ProcessRunner = run_process,
        console: Console | None = None,
    ) -> "NativeHarvester":
        """Wire the production collaborators for ``rid``."""
        runtime = config.runtimes.find(rid)
        if runtime is None:
            raise ConfigError(f"Runtime {rid} is not configured in runtimes.json")

        core = config.manifests.core_manifest
        profile = RuntimeProfile(runtime, config.system_artefacts, core)
        provider = VcpkgCliProvider(paths.vcpkg_root, paths.installed_dir, runner=runner)

        return cls(
            walker=BinaryClosureWalker(get_scanner(profile.os_family, runner=runner), provider, profile),
            planner=ArtifactPlanner(
                provider,
                profile,
                core_package_name=core.vcpkg_name,
                lib_dir=paths.triplet_lib_dir(profile.triplet),
            ),
            deployer=ArtifactDeployer(runner=runner),
            manifests=config.manifests,
            profile=profile,
            output_dir=paths.harvest_output,
            exporters=exporters,
            console=console,
        )

    # ──────────────────────────────────────────────
    # Single library
    # ──────────────────────────────────────────────

    async def harvest_library(self, manifest: LibraryManifest, dry_run: bool = False) -> HarvestReport:
        """
        Harvest one library.

        Raises:
            HarvestError: any typed harvesting failure (ClosureNotFound included).
        """
        report = HarvestReport(library=manifest.name, rid=self.profile.rid, status=HarvestStatus.IN_PROGRESS)
        logger.info(f"--- Starting harvest for: {manifest.name} ({self.profile.rid}) ---")

        closure = await self.walker.build_closure(manifest)
        report.primary_binaries = [str(p) for p in closure.primary_binaries]

        plan = await self.planner.create_plan(manifest, closure, self.output_dir)
        report.statistics = plan.statistics

        if dry_run:
            logger.info(f"Dry run: skipping deployment of {len(plan.actions)} action(s)")
            report.finish(HarvestStatus.PLANNED)
            return report

        await self.deployer.deploy(plan)
        report.finish(HarvestStatus.COMPLETED)
        logger.info(f"--- Finished harvest for: {manifest.name} ---")
        return report

    # ──────────────────────────────────────────────
    # Batch
    # ──────────────────────────────────────────────

    async def run(
        self,
        libraries: list[str] | None = None,
        dry_run: bool = False,
        fail_fast: bool = False,
    ) -> list[HarvestReport]:
        """
        Harvest the named libraries (all manifests when ``libraries`` is empty).

        Args:
            libraries: Library names from manifest.json.
            dry_run: Build closures and plans but do not deploy.
            fail_fast: Re-raise the first HarvestError instead of continuing.

        Returns:
            One HarvestReport per requested library, in request order.
        """
        names = list(libraries) if libraries else [m.name for m in self.manifests.library_manifests]
        if not names:
            logger.warning("No libraries specified for harvest.")
            return []

        reports: list[HarvestReport] = []
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            task_id = progress.add_task("[green]Harvesting...[/green]", total=len(names))

            for name in names:
                progress.update(task_id, description=f"[green]Harvesting {name}...[/green]")
                try:
                    report = await self._harvest_named(name, dry_run)
                finally:
                    progress.advance(task_id)
                reports.append(report)

                if fail_fast and report.status is HarvestStatus.FAILED:
                    await self._export_reports(reports)
                    raise HarvestError(f"Harvest failed for '{report.library}': {report.error}")

        await self._export_reports(reports)
        self._print_summary(reports)
        return reports

    async def _harvest_named(self, name: str, dry_run: bool) -> HarvestReport:
        manifest = self.manifests.find(name)
        if manifest is None:
            logger.error(f"Library '{name}' not found in manifest. Skipping.")
            report = HarvestReport(library=name, rid=self.profile.rid)
            report.finish(HarvestStatus.FAILED, f"Library '{name}' not found in manifest")
            return report

        try:
            return await self.harvest_library(manifest, dry_run=dry_run)
        except ClosureNotFound as e:
            logger.error(f"Package for '{manifest.name}' is not installed. Skipping. ({e.message})")
            report = HarvestReport(library=manifest.name, rid=self.profile.rid)
            report.finish(HarvestStatus.SKIPPED, e.message)
            return report
        except HarvestError as e:
            logger.error(f"Harvest failed for '{manifest.name}': {e.message}")
            if e.cause is not None:
                logger.debug(f"Details: {e.cause!r}")
            report = HarvestReport(library=manifest.name, rid=self.profile.rid)
            report.finish(HarvestStatus.FAILED, e.message)
            return report

    async def _export_reports(self, reports: list[HarvestReport]) -> None:
        """Send reports to all configured exporters."""
        for exporter in self.exporters:
            try:
                for report in reports:
                    await exporter.export(report)
                await exporter.finalize()
            except Exception as e:
                logger.error(f"Exporter error ({type(exporter).__name__}): {e}")

    def _print_summary(self, reports: list[HarvestReport]) -> None:
        table = Table(title=f"Harvest summary ({self.profile.rid})")
        table.add_column("Library", style="cyan")
        table.add_column("Status")
        table.add_column("Strategy")
        table.add_column("Primary", justify="right")
        table.add_column("Runtime", justify="right")
        table.add_column("License", justify="right")
        table.add_column("Deployed packages")
        table.add_column("Filtered packages", style="dim")

        colors = {
            HarvestStatus.COMPLETED: "green",
            HarvestStatus.PLANNED: "blue",
            HarvestStatus.SKIPPED: "yellow",
            HarvestStatus.FAILED: "red",
        }
        for report in reports:
            status = f"[{colors.get(report.status, 'white')}]{report.status.value}[/]"
            stats = report.statistics
            if stats is None:
                table.add_row(report.library, status, "-", "-", "-", "-", report.error or "", "")
                continue
            table.add_row(
                report.library,
                status,
                stats.strategy.value,
                str(len(stats.primary_files)),
                str(len(stats.runtime_files)),
                str(len(stats.license_files)),
                ", ".join(sorted(stats.deployed_packages)),
                ", ".join(sorted(stats.filtered_packages)),
            )

        self.console.print(table)

        failed = sum(1 for r in reports if r.status is HarvestStatus.FAILED)
        skipped = sum(1 for r in reports if r.status is HarvestStatus.SKIPPED)
        self.console.print(
            f"Total: {len(reports)} | Succeeded: {len(reports) - failed - skipped} | "
            f"Skipped: {skipped} | Failed: {failed}"
        )
