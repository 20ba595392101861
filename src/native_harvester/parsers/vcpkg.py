"""
vcpkg Package Info Parser.

Parses the JSON printed by ``vcpkg x-package-info <pkg>:<triplet> --x-installed --x-json``:

    {
      "results": {
        "sdl2:x64-windows": {
          "version-string": "2.32.4",
          "port-version": 0,
          "triplet": "x64-windows",
          "dependencies": ["vcpkg-cmake:x64-windows"],
          "owns": ["x64-windows/bin/SDL2.dll", ...]
        }
      }
    }
"""

import json


def parse_package_info(output: str, package_key: str) -> dict:
    """
    Extract the installed-package entry for ``package_key``.

    Args:
        output: Raw JSON stdout of vcpkg.
        package_key: The "<package>:<triplet>" key that was queried.

    Returns:
        Dictionary with keys: owns, dependencies, version, port_version, triplet.

    Raises:
        ValueError: if the output is not valid JSON or has no entry for the key.
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ValueError(f"vcpkg returned invalid JSON for {package_key}: {e}") from e

    results = data.get("results") if isinstance(data, dict) else None
    if not isinstance(results, dict):
        raise ValueError(f"vcpkg output has no 'results' for {package_key}")

    entry = results.get(package_key)
    if entry is None:
        # Keys are reported in lowercase regardless of how the package was queried.
        entry = next((v for k, v in results.items() if k.lower() == package_key.lower()), None)
    if entry is None:
        raise ValueError(f"Package {package_key} not found in vcpkg output")

    return {
        "owns": list(entry.get("owns", [])),
        "dependencies": list(entry.get("dependencies", [])),
        "version": entry.get("version-string"),
        "port_version": entry.get("port-version", 0),
        "triplet": entry.get("triplet"),
    }
