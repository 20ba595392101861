"""Tests for the CLI entry points."""

import json

from click.testing import CliRunner

from native_harvester.cli.main import cli


class TestCLI:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Native Harvester" in result.output

    def test_harvest_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["harvest", "--help"])
        assert result.exit_code == 0
        assert "--library" in result.output
        assert "--rid" in result.output
        assert "--vcpkg-dir" in result.output
        assert "--dry-run" in result.output
        assert "--fail-fast" in result.output

    def test_scan_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["scan", "--help"])
        assert result.exit_code == 0
        assert "BINARY" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_harvest_missing_config(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["harvest", "--repo-root", str(tmp_path), "--vcpkg-dir", str(tmp_path / "vcpkg"), "--rid", "win-x64"]
        )
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_harvest_unconfigured_rid(self, tmp_path):
        config_dir = tmp_path / "build"
        config_dir.mkdir()
        (config_dir / "manifest.json").write_text(
            json.dumps(
                {
                    "library_manifests": [
                        {
                            "name": "SDL2",
                            "vcpkg_name": "sdl2",
                            "core_lib": True,
                            "primary_binaries": [{"os": "Windows", "patterns": ["SDL2.dll"]}],
                        }
                    ]
                }
            )
        )
        (config_dir / "runtimes.json").write_text(json.dumps({"runtimes": [{"rid": "win-x64", "triplet": "x64-windows"}]}))
        (config_dir / "system_artefacts.json").write_text(json.dumps({}))

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["harvest", "--repo-root", str(tmp_path), "--vcpkg-dir", str(tmp_path / "vcpkg"), "--rid", "linux-arm64"],
        )
        assert result.exit_code == 1
        assert "linux-arm64 is not configured" in result.output

    def test_scan_unsupported_rid(self, tmp_path):
        binary = tmp_path / "libfoo.so"
        binary.write_text("elf")

        runner = CliRunner()
        result = runner.invoke(cli, ["scan", str(binary), "--rid", "freebsd-x64"])
        assert result.exit_code == 1
        assert "Unsupported rid freebsd-x64" in result.output
