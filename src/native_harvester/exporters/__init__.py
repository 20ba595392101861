"""Export backends for harvest reports."""

from native_harvester.exporters.base import ReportExporter
from native_harvester.exporters.json_export import JSONReportExporter


def get_exporter(format_name: str, output_dir: str) -> ReportExporter:
    """Factory function to create a report exporter by format name."""
    from pathlib import Path

    out = Path(output_dir)
    match format_name:
        case "json":
            return JSONReportExporter(output_dir=out)
        case _:
            raise ValueError(f"Unknown report format: {format_name!r}. Use 'json'.")


__all__ = ["ReportExporter", "JSONReportExporter", "get_exporter"]
