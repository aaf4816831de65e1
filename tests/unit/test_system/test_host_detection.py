"""
Unit tests for host platform detection and compiler discovery.
"""

from unittest.mock import patch

import pytest

from buildmatrix.system import (
    HostCompiler,
    classify_compiler,
    discover_host_compilers,
    find_gnumake,
    host_tags,
    preprocess,
    toolchain_family,
)
from buildmatrix.validation import ConfigurationError

MODULE = "buildmatrix.system.host"


def fake_preprocessor(table):
    """run_command stand-in answering (cc, macro) lookups from ``table``."""

    def run(command, input_text=None, cwd=None):
        cc = command[0]
        value = table.get((cc, input_text), input_text)
        return 0, f"# 1 \"<stdin>\"\n{value}\n", ""

    return run


@pytest.mark.unit
class TestHostTags:
    def test_linux_x86_64(self):
        with patch(f"{MODULE}.sys") as fake_sys, patch(f"{MODULE}.host_arch", return_value="x86_64"):
            fake_sys.platform = "linux"
            assert host_tags() == ["linux-x86_64", "linux-x86"]

    def test_darwin(self):
        with patch(f"{MODULE}.sys") as fake_sys, patch(f"{MODULE}.host_arch", return_value="x86_64"):
            fake_sys.platform = "darwin"
            assert host_tags()[0] == "darwin-x86_64"

    def test_unknown_platform(self):
        with patch(f"{MODULE}.sys") as fake_sys, patch(f"{MODULE}.IS_WINDOWS", False):
            fake_sys.platform = "sunos5"
            with pytest.raises(ConfigurationError, match="Unknown host platform"):
                host_tags()

    def test_find_gnumake(self, fake_ndk):
        assert find_gnumake(fake_ndk).name == "make"

    def test_find_gnumake_missing(self, temp_dir):
        with pytest.raises(ConfigurationError, match="Can't find 'make'"):
            find_gnumake(temp_dir)


@pytest.mark.unit
class TestCompilerClassification:
    def test_preprocess_strips_line_markers(self):
        with patch(f"{MODULE}.run_command", side_effect=fake_preprocessor({("gcc", "__GNUC__"): "9"})):
            assert preprocess("gcc", "__GNUC__") == "9"

    def test_preprocess_failure(self):
        with patch(f"{MODULE}.run_command", return_value=(1, "", "boom")):
            with pytest.raises(ConfigurationError, match="Can't preprocess"):
                preprocess("cc", "__GNUC__")

    def test_clang(self):
        table = {("clang", "__clang__"): "1", ("clang", "__clang_version__"): '"14.0.0"'}
        with patch(f"{MODULE}.run_command", side_effect=fake_preprocessor(table)):
            assert classify_compiler("clang") == HostCompiler("clang", "clang", '"14.0.0"')

    def test_gcc(self):
        table = {("gcc", "__GNUC__"): "9", ("gcc", "__VERSION__"): '"9.4.0"'}
        with patch(f"{MODULE}.run_command", side_effect=fake_preprocessor(table)):
            assert classify_compiler("gcc") == HostCompiler("gcc", "gcc", '"9.4.0"')

    def test_unknown_compiler(self):
        with patch(f"{MODULE}.run_command", side_effect=fake_preprocessor({})):
            with pytest.raises(ConfigurationError, match="Can't detect type of tcc"):
                classify_compiler("tcc")


@pytest.mark.unit
class TestCompilerDiscovery:
    TABLE = {
        ("cc", "__GNUC__"): "9", ("cc", "__VERSION__"): '"9.4.0"',
        ("gcc", "__GNUC__"): "9", ("gcc", "__VERSION__"): '"9.4.0"',
        ("clang", "__clang__"): "1", ("clang", "__clang_version__"): '"14.0.0"',
    }

    def discover(self, toolchain=None, installed=("cc", "gcc", "clang")):
        which = lambda cc, path=None: f"/usr/bin/{cc}" if cc in installed else None
        with patch(f"{MODULE}.shutil.which", side_effect=which), \
                patch(f"{MODULE}.run_command", side_effect=fake_preprocessor(self.TABLE)):
            return discover_host_compilers(toolchain)

    def test_deduplicates_by_type_and_version(self):
        assert [c.exe for c in self.discover()] == ["cc", "clang"]

    def test_filters_by_toolchain_family(self):
        assert [c.exe for c in self.discover("clang3.6")] == ["clang"]
        assert [c.exe for c in self.discover("4.9")] == ["cc"]

    def test_falls_back_to_cc(self):
        assert self.discover(installed=()) == [HostCompiler("cc")]

    def test_toolchain_family(self):
        assert toolchain_family(None) is None
        assert toolchain_family("clang-3.8") == "clang"
        assert toolchain_family("5") == "gcc"
