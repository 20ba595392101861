"""
dumpbin Output Parser.

Extracts dependent DLL names from ``dumpbin /dependents <dll>`` output.
"""

START_MARKER = "Image has the following dependencies:"
END_MARKER = "Summary"


def parse_dumpbin_dependents(output: str) -> list[str]:
    """
    Return the DLL names listed between the dependencies header and the summary.

    Args:
        output: Raw stdout of dumpbin.

    Returns:
        DLL file names in the order dumpbin lists them.
    """
    dlls: list[str] = []
    in_section = False

    for line in output.splitlines():
        if not in_section:
            if START_MARKER.lower() in line.lower():
                in_section = True
            continue

        if END_MARKER.lower() in line.lower():
            break

        name = line.strip()
        if name and name.lower().endswith(".dll"):
            dlls.append(name)

    return dlls
