"""
ReportExporter Protocol: base interface for harvest report backends.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from native_harvester.models.report import HarvestReport


@runtime_checkable
class ReportExporter(Protocol):
    """
    Protocol that all report exporters must implement.

    Exporters receive one HarvestReport per harvested library and persist it
    in their respective format.
    """

    async def export(self, report: HarvestReport) -> None:
        """Export a single library report."""
        ...

    async def finalize(self) -> None:
        """Called after all libraries have been harvested. Use for cleanup."""
        ...
