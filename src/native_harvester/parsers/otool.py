"""
otool Output Parser.

Extracts load commands for dependent dylibs from ``otool -L <binary>`` output.
"""

import re
from pathlib import PurePosixPath

COMPATIBILITY_LINE = re.compile(r"^\s*(?P<path>.+?)\s+\(compatibility\s+version\s+.+?\)$")
FRAMEWORK_NAME = re.compile(r"(?P<framework>[^/]+\.framework)")


def parse_otool_output(output: str) -> dict[str, str]:
    """
    Parse ``otool -L`` output into a mapping of library name to referenced path.

    The first line names the analyzed file and is skipped. Referenced paths
    are returned verbatim, so relocatable prefixes such as ``@rpath/`` are left
    for the caller to resolve.

    Args:
        output: Raw stdout of otool.

    Returns:
        Dictionary of library (or framework) name -> referenced path.
    """
    dependencies: dict[str, str] = {}
    lines = [line for line in output.splitlines() if line.strip()]

    for line in lines[1:]:
        match = COMPATIBILITY_LINE.match(line)
        if not match:
            continue
        path = match.group("path").strip()
        dependencies[extract_library_name(path)] = path

    return dependencies


def extract_library_name(path: str) -> str:
    """
    '/usr/lib/libSystem.B.dylib' -> 'libSystem.B.dylib'
    '/System/Library/Frameworks/CoreFoundation.framework/Versions/A/CoreFoundation' -> 'CoreFoundation.framework'
    '@rpath/libfoo.dylib' -> 'libfoo.dylib'
    """
    if ".framework/" in path:
        match = FRAMEWORK_NAME.search(path)
        if match:
            return match.group("framework")
    return PurePosixPath(path).name
