"""
ldd Output Parser.

Extracts the resolved shared library paths from ``ldd <binary>`` output.
"""

from pathlib import PurePosixPath


def parse_ldd_output(output: str) -> dict[str, str]:
    """
    Parse ldd output into a mapping of library name to resolved path.

    Handles the three line shapes ldd prints:

        libfoo.so.1 => /path/to/libfoo.so.1 (0x00007f...)
        libbar.so.2 => not found
        /lib64/ld-linux-x86-64.so.2 (0x00007f...)

    Args:
        output: Raw stdout of ldd.

    Returns:
        Dictionary of library name -> path. Unresolved libraries are omitted.
    """
    dependencies: dict[str, str] = {}

    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue

        if " => " in line:
            lib_name, _, remaining = line.partition(" => ")
            lib_name = lib_name.strip()
            remaining = remaining.strip()

            if remaining == "not found" or not remaining:
                continue

            lib_path = _strip_address(remaining)
            if lib_path:
                dependencies[lib_name] = lib_path
            continue

        # Direct dependency without redirection (the dynamic loader, vdso)
        address_index = line.rfind(" (0x")
        if address_index > 0:
            lib_path = line[:address_index].strip()
            dependencies[PurePosixPath(lib_path).name] = lib_path

    return dependencies


def _strip_address(value: str) -> str:
    """Remove a trailing ' (0x...)' load address."""
    address_index = value.rfind(" (0x")
    return value[:address_index].strip() if address_index > 0 else value
