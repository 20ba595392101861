"""Tests for the binary closure walker."""

import asyncio
import os
import sys
from pathlib import PurePosixPath

import pytest

from conftest import FakeProvider, FakeScanner, make_manifest, touch
from native_harvester.core.errors import ClosureError, ClosureNotFound
from native_harvester.core.walker import (
    BinaryClosureWalker,
    dependency_package_name,
    infer_package_from_library_name,
    infer_package_name,
    is_binary,
    match_binary_pattern,
)
from native_harvester.models.closure import UNKNOWN_PACKAGE, PackageInfo
from native_harvester.models.manifest import OsFamily


# ═══════════════════════════════════════════
# Pure helper Tests
# ═══════════════════════════════════════════


class TestIsBinary:
    def test_windows_dll(self):
        assert is_binary(PurePosixPath("/v/installed/x64-windows/bin/SDL2.dll"), OsFamily.WINDOWS)
        assert is_binary(PurePosixPath("/v/installed/x64-windows/bin/SDL2.DLL"), OsFamily.WINDOWS)

    def test_windows_rejects_import_libraries(self):
        assert not is_binary(PurePosixPath("/v/installed/x64-windows/lib/SDL2.lib"), OsFamily.WINDOWS)

    def test_debug_tree_excluded(self):
        assert not is_binary(PurePosixPath("/v/installed/x64-windows/debug/bin/SDL2d.dll"), OsFamily.WINDOWS)
        assert not is_binary(PurePosixPath("/v/installed/x64-linux/debug/lib/libSDL2.so"), OsFamily.LINUX)

    def test_linux_shared_objects_under_lib(self):
        assert is_binary(PurePosixPath("/v/installed/x64-linux/lib/libSDL2.so"), OsFamily.LINUX)
        assert is_binary(PurePosixPath("/v/installed/x64-linux/lib/libSDL2-2.0.so.0.3200.4"), OsFamily.LINUX)

    def test_linux_rejects_static_and_other_dirs(self):
        assert not is_binary(PurePosixPath("/v/installed/x64-linux/lib/libSDL2.a"), OsFamily.LINUX)
        assert not is_binary(PurePosixPath("/v/installed/x64-linux/lib/pkgconfig/sdl2.pc"), OsFamily.LINUX)
        assert not is_binary(PurePosixPath("/v/installed/x64-linux/share/sdl2/libfake.so"), OsFamily.LINUX)

    def test_osx_dylib(self):
        assert is_binary(PurePosixPath("/v/installed/arm64-osx/lib/libSDL2-2.0.0.dylib"), OsFamily.OSX)
        assert not is_binary(PurePosixPath("/v/installed/arm64-osx/lib/libSDL2.a"), OsFamily.OSX)


class TestMatchBinaryPattern:
    def test_exact_is_case_insensitive(self):
        assert match_binary_pattern("SDL2.dll", "sdl2.DLL")
        assert not match_binary_pattern("SDL2main.dll", "SDL2.dll")

    def test_prefix_wildcard(self):
        assert match_binary_pattern("libSDL2-2.0.so.0.3200.4", "libSDL2*")
        assert match_binary_pattern("libSDL2.so", "libSDL2*")
        assert not match_binary_pattern("libSDL3.so", "libSDL2*")

    def test_prefix_and_suffix(self):
        assert match_binary_pattern("libSDL2-2.0.0.dylib", "libSDL2*.dylib")
        assert not match_binary_pattern("libSDL2-2.0.0.so", "libSDL2*.dylib")

    def test_only_first_star_is_wildcard(self):
        assert match_binary_pattern("libfoo-x.so", "libfoo*.so*")
        assert not match_binary_pattern("libfoo.so.1", "libfoo*.so*")


class TestDependencyPackageName:
    def test_strips_triplet(self):
        assert dependency_package_name("sdl2:x64-windows") == "sdl2"

    def test_tooling_ports_skipped(self):
        assert dependency_package_name("vcpkg-cmake:x64-windows") is None
        assert dependency_package_name("VCPKG-cmake-config:x64-windows") is None

    def test_malformed_keys(self):
        assert dependency_package_name("sdl2") is None
        assert dependency_package_name(":x64-windows") is None


class TestInferPackageName:
    def test_from_library_name(self):
        assert infer_package_from_library_name("libSDL2-2.0.so.0.3200.4") == "sdl2"
        assert infer_package_from_library_name("libSDL2_image-2.0.so.0") == "sdl2-image"
        assert infer_package_from_library_name("libwebp.so.7.1.10") == "libwebp"
        assert infer_package_from_library_name("libz.so.1") == "zlib"
        assert infer_package_from_library_name("SDL2.dll") == UNKNOWN_PACKAGE

    def test_unix_flat_lib_dir(self):
        path = PurePosixPath("/v/installed/x64-linux-dynamic/lib/libSDL2_mixer-2.0.so.0")
        assert infer_package_name(path, OsFamily.LINUX) == "sdl2-mixer"

    def test_osx_dylib(self):
        path = PurePosixPath("/v/installed/arm64-osx-dynamic/lib/libSDL2-2.0.0.dylib")
        assert infer_package_name(path, OsFamily.OSX) == "sdl2"

    def test_package_directory_segment(self):
        path = PurePosixPath("/v/installed/x64-windows/bin/sdl2-image/plugin.dll")
        assert infer_package_name(path, OsFamily.WINDOWS) == "sdl2-image"

    def test_windows_flat_bin_uses_stem(self):
        path = PurePosixPath("/v/installed/x64-windows/bin/SDL2_ttf.dll")
        assert infer_package_name(path, OsFamily.WINDOWS) == "sdl2-ttf"

    def test_windows_outside_installed_tree(self):
        assert infer_package_name(PurePosixPath("/opt/tools/helper.dll"), OsFamily.WINDOWS) == UNKNOWN_PACKAGE

    def test_unix_outside_installed_tree_uses_file_name(self):
        assert infer_package_name(PurePosixPath("/opt/local/lib/libogg.so.0"), OsFamily.LINUX) == "libogg"

    def test_vcpkg_installed_marker(self):
        path = PurePosixPath("/repo/vcpkg_installed/x64-windows/bin/freetype/ft.dll")
        assert infer_package_name(path, OsFamily.WINDOWS) == "freetype"


# ═══════════════════════════════════════════
# Closure Walker Tests
# ═══════════════════════════════════════════


def _info(name, triplet, files, deps=()):
    return PackageInfo(package_name=name, triplet=triplet, owned_files=list(files), declared_dependencies=list(deps))


class TestWindowsClosure:
    @pytest.mark.asyncio
    async def test_core_library_single_binary(self, installed, windows_profile):
        dll = touch(installed / "x64-windows" / "bin" / "SDL2.dll")
        provider = FakeProvider([_info("sdl2", "x64-windows", [dll, installed / "x64-windows" / "lib" / "SDL2.lib"])])
        walker = BinaryClosureWalker(FakeScanner(), provider, windows_profile)

        closure = await walker.build_closure(make_manifest("SDL2", "sdl2", is_core=True, windows=["SDL2.dll"]))

        assert closure.primary_binary == dll
        assert closure.all_binaries() == [dll]
        assert closure.nodes[0].owner_package == "sdl2"
        assert closure.nodes[0].origin_package == "sdl2"
        assert closure.packages == {"sdl2"}

    @pytest.mark.asyncio
    async def test_origin_is_declaring_package(self, installed, windows_profile):
        bin_dir = installed / "x64-windows" / "bin"
        image = touch(bin_dir / "SDL2_image.dll")
        sdl2 = touch(bin_dir / "SDL2.dll")
        webp = touch(bin_dir / "libwebp.dll")
        sharpyuv = touch(bin_dir / "libsharpyuv.dll")

        provider = FakeProvider(
            [
                _info(
                    "sdl2-image",
                    "x64-windows",
                    [image],
                    ["sdl2:x64-windows", "libwebp:x64-windows", "vcpkg-cmake:x64-windows"],
                ),
                _info("sdl2", "x64-windows", [sdl2]),
                _info("libwebp", "x64-windows", [webp], ["libsharpyuv:x64-windows"]),
                _info("libsharpyuv", "x64-windows", [sharpyuv]),
            ]
        )
        walker = BinaryClosureWalker(FakeScanner(), provider, windows_profile)

        closure = await walker.build_closure(make_manifest("SDL2_image", "sdl2-image", windows=["SDL2_image.dll"]))
        nodes = {n.path: n for n in closure.nodes}

        assert nodes[image].origin_package == "sdl2-image"
        assert nodes[sdl2].owner_package == "sdl2"
        assert nodes[sdl2].origin_package == "sdl2-image"
        assert nodes[webp].origin_package == "sdl2-image"
        assert nodes[sharpyuv].owner_package == "libsharpyuv"
        assert nodes[sharpyuv].origin_package == "libwebp"
        assert "vcpkg-cmake" not in provider.calls

    @pytest.mark.asyncio
    async def test_each_package_queried_once(self, installed, windows_profile):
        bin_dir = installed / "x64-windows" / "bin"
        provider = FakeProvider(
            [
                _info("root", "x64-windows", [touch(bin_dir / "root.dll")], ["a:x64-windows", "b:x64-windows"]),
                _info("a", "x64-windows", [touch(bin_dir / "a.dll")], ["zlib:x64-windows"]),
                _info("b", "x64-windows", [touch(bin_dir / "b.dll")], ["ZLIB:x64-windows"]),
                _info("zlib", "x64-windows", [touch(bin_dir / "zlib1.dll")]),
            ]
        )
        walker = BinaryClosureWalker(FakeScanner(), provider, windows_profile)

        closure = await walker.build_closure(make_manifest("Root", "root", windows=["root.dll"]))

        assert [c.lower() for c in provider.calls].count("zlib") == 1
        assert provider.calls.count("root") == 1
        assert len(closure.nodes) == 4
        assert len(closure.all_binaries()) == len(set(closure.all_binaries()))

    @pytest.mark.asyncio
    async def test_runtime_scan_adds_undeclared_dependencies(self, installed, windows_profile):
        bin_dir = installed / "x64-windows" / "bin"
        primary = touch(bin_dir / "SDL2_ttf.dll")
        freetype = touch(bin_dir / "freetype.dll")
        zlib = touch(bin_dir / "zlib1.dll")
        kernel = touch(installed.parent / "system" / "kernel32.dll")
        crt = touch(installed.parent / "system" / "api-ms-win-crt-runtime-l1-1-0.dll")

        scanner = FakeScanner(
            {
                primary: {freetype, kernel, crt},
                freetype: {zlib, primary},
            }
        )
        provider = FakeProvider([_info("sdl2-ttf", "x64-windows", [primary])])
        walker = BinaryClosureWalker(scanner, provider, windows_profile)

        closure = await walker.build_closure(make_manifest("SDL2_ttf", "sdl2-ttf", windows=["SDL2_ttf.dll"]))
        nodes = {n.path: n for n in closure.nodes}

        assert set(nodes) == {primary, freetype, zlib}
        assert nodes[freetype].owner_package == "freetype"
        assert nodes[freetype].origin_package == "sdl2-ttf"
        assert nodes[zlib].owner_package == "zlib1"
        assert nodes[zlib].origin_package == "sdl2-ttf"
        assert zlib in scanner.scanned
        assert kernel not in scanner.scanned

    @pytest.mark.asyncio
    async def test_walk_is_deterministic(self, installed, windows_profile):
        bin_dir = installed / "x64-windows" / "bin"
        primary = touch(bin_dir / "SDL2_mixer.dll")
        deps = {touch(bin_dir / f"dep{i}.dll") for i in range(5)}
        provider = FakeProvider([_info("sdl2-mixer", "x64-windows", [primary])])
        manifest = make_manifest("SDL2_mixer", "sdl2-mixer", windows=["SDL2_mixer.dll"])

        first = await BinaryClosureWalker(FakeScanner({primary: deps}), provider, windows_profile).build_closure(manifest)
        second = await BinaryClosureWalker(FakeScanner({primary: deps}), provider, windows_profile).build_closure(manifest)

        assert first.nodes == second.nodes


class TestClosureErrors:
    @pytest.mark.asyncio
    async def test_missing_root_package(self, windows_profile):
        walker = BinaryClosureWalker(FakeScanner(), FakeProvider(), windows_profile)

        with pytest.raises(ClosureNotFound):
            await walker.build_closure(make_manifest("SDL2_net", "sdl2-net", windows=["SDL2_net.dll"]))

    @pytest.mark.asyncio
    async def test_no_primary_binary(self, installed, windows_profile):
        provider = FakeProvider([_info("sdl2-gfx", "x64-windows", [touch(installed / "x64-windows" / "bin" / "other.dll")])])
        walker = BinaryClosureWalker(FakeScanner(), provider, windows_profile)

        with pytest.raises(ClosureError) as exc_info:
            await walker.build_closure(make_manifest("SDL2_gfx", "sdl2-gfx", windows=["SDL2_gfx.dll"]))
        assert not isinstance(exc_info.value, ClosureNotFound)
        assert "Primary binary" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_primary_must_exist_on_disk(self, installed, windows_profile):
        missing = installed / "x64-windows" / "bin" / "SDL2.dll"
        provider = FakeProvider([_info("sdl2", "x64-windows", [missing])])
        walker = BinaryClosureWalker(FakeScanner(), provider, windows_profile)

        with pytest.raises(ClosureError):
            await walker.build_closure(make_manifest("SDL2", "sdl2", is_core=True, windows=["SDL2.dll"]))

    @pytest.mark.asyncio
    async def test_broken_dependency_is_skipped(self, installed, windows_profile):
        bin_dir = installed / "x64-windows" / "bin"
        primary = touch(bin_dir / "SDL2_image.dll")
        provider = FakeProvider(
            [_info("sdl2-image", "x64-windows", [primary], ["libavif:x64-windows", "missing:x64-windows"])],
            broken={"libavif"},
        )
        walker = BinaryClosureWalker(FakeScanner(), provider, windows_profile)

        closure = await walker.build_closure(make_manifest("SDL2_image", "sdl2-image", windows=["SDL2_image.dll"]))

        assert closure.all_binaries() == [primary]
        assert "libavif" in provider.calls
        assert "missing" in provider.calls

    @pytest.mark.asyncio
    async def test_scanner_failure_is_wrapped(self, installed, windows_profile):
        primary = touch(installed / "x64-windows" / "bin" / "SDL2.dll")

        class ExplodingScanner:
            async def scan(self, binary):
                raise RuntimeError("scanner crashed")

        walker = BinaryClosureWalker(ExplodingScanner(), FakeProvider([_info("sdl2", "x64-windows", [primary])]), windows_profile)

        with pytest.raises(ClosureError) as exc_info:
            await walker.build_closure(make_manifest("SDL2", "sdl2", is_core=True, windows=["SDL2.dll"]))
        assert "scanner crashed" in exc_info.value.message
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, installed, windows_profile):
        primary = touch(installed / "x64-windows" / "bin" / "SDL2.dll")

        class CancelledScanner:
            async def scan(self, binary):
                raise asyncio.CancelledError()

        walker = BinaryClosureWalker(CancelledScanner(), FakeProvider([_info("sdl2", "x64-windows", [primary])]), windows_profile)

        with pytest.raises(asyncio.CancelledError):
            await walker.build_closure(make_manifest("SDL2", "sdl2", is_core=True, windows=["SDL2.dll"]))


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
class TestUnixClosure:
    @pytest.mark.asyncio
    async def test_linux_binary_filtering(self, installed, linux_profile):
        triplet = installed / "x64-linux-dynamic"
        real = touch(triplet / "lib" / "libSDL2-2.0.so.0.3200.4")
        files = [
            real,
            touch(triplet / "lib" / "libSDL2main.a"),
            touch(triplet / "lib" / "pkgconfig" / "sdl2.pc"),
            touch(triplet / "debug" / "lib" / "libSDL2-2.0.so.0.3200.4"),
            touch(triplet / "share" / "sdl2" / "copyright"),
        ]
        provider = FakeProvider([_info("sdl2", "x64-linux-dynamic", files)])
        walker = BinaryClosureWalker(FakeScanner(), provider, linux_profile)

        closure = await walker.build_closure(make_manifest("SDL2", "sdl2", is_core=True, linux=["libSDL2*"]))

        assert closure.all_binaries() == [real]

    @pytest.mark.asyncio
    async def test_primary_resolves_real_file_of_symlink_chain(self, installed, linux_profile):
        lib = installed / "x64-linux-dynamic" / "lib"
        real = touch(lib / "libSDL2-2.0.so.0.3200.4")
        soname = lib / "libSDL2-2.0.so.0"
        dev = lib / "libSDL2.so"
        os.symlink(real.name, soname)
        os.symlink(soname.name, dev)

        provider = FakeProvider([_info("sdl2", "x64-linux-dynamic", [dev, soname, real])])
        walker = BinaryClosureWalker(FakeScanner(), provider, linux_profile)

        closure = await walker.build_closure(make_manifest("SDL2", "sdl2", is_core=True, linux=["libSDL2*"]))

        assert closure.primary_binary == real
        assert set(closure.all_binaries()) == {dev, soname, real}

    @pytest.mark.asyncio
    async def test_system_libraries_excluded(self, installed, linux_profile):
        lib = installed / "x64-linux-dynamic" / "lib"
        primary = touch(lib / "libSDL2_image-2.0.so.0.800.8")
        png = touch(lib / "libpng16.so.16")
        libc = touch(installed.parent / "sysroot" / "libc.so.6")
        libstdcpp = touch(installed.parent / "sysroot" / "libstdc++.so.6")

        scanner = FakeScanner({primary: {png, libc, libstdcpp}})
        provider = FakeProvider([_info("sdl2-image", "x64-linux-dynamic", [primary])])
        walker = BinaryClosureWalker(scanner, provider, linux_profile)

        closure = await walker.build_closure(make_manifest("SDL2_image", "sdl2-image", linux=["libSDL2_image*"]))
        nodes = {n.path: n for n in closure.nodes}

        assert set(nodes) == {primary, png}
        assert nodes[png].owner_package == "libpng"
        assert nodes[png].origin_package == "sdl2-image"
