"""
JSON Report Exporter: one ``harvest-<library>-<rid>.json`` per harvested library.
"""

import json
import logging
from pathlib import Path

import aiofiles

from native_harvester.models.report import HarvestReport

logger = logging.getLogger(__name__)


class JSONReportExporter:
    """Writes each HarvestReport as an individual JSON file in ``output_dir``."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.count = 0

    def report_path(self, report: HarvestReport) -> Path:
        return self.output_dir / f"harvest-{report.library}-{report.rid}.json"

    async def export(self, report: HarvestReport) -> None:
        """Export a single report as a JSON file."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.report_path(report)

        async with aiofiles.open(filepath, "w") as f:
            await f.write(json.dumps(report.to_dict(), indent=2))

        self.count += 1
        logger.debug(f"[JSON] Exported report {filepath.name}")

    async def finalize(self) -> None:
        """Log export summary."""
        logger.info(f"[JSON] Export complete: {self.count} reports exported to {self.output_dir}")
