"""
Native Harvester - dependency closure resolver and deployment planner for native libraries.

Walks the packages a vcpkg-installed library depends on, scans the runtime
dependencies of their binaries (dumpbin / ldd / otool) and plans how to
package the resulting closure and its licenses per target runtime.
"""

__version__ = "1.0.0"


def __getattr__(name: str):
    """Lazy import for heavy dependencies."""
    if name == "NativeHarvester":
        from native_harvester.core.harvester import NativeHarvester

        return NativeHarvester
    if name == "BinaryClosureWalker":
        from native_harvester.core.walker import BinaryClosureWalker

        return BinaryClosureWalker
    if name == "ArtifactPlanner":
        from native_harvester.core.planner import ArtifactPlanner

        return ArtifactPlanner
    if name == "ArtifactDeployer":
        from native_harvester.core.deployer import ArtifactDeployer

        return ArtifactDeployer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["NativeHarvester", "BinaryClosureWalker", "ArtifactPlanner", "ArtifactDeployer", "__version__"]
