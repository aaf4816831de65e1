"""
Unit tests for build-variant and ABI enumeration.
"""

import pytest

from buildmatrix.models.runtime import BuildVariant
from buildmatrix.orchestration import VariantMatrix, abi_allowed, enumerate_abis, enumerate_pie_flags


@pytest.mark.unit
class TestPieFlags:
    """Test cases for enumerate_pie_flags."""

    def test_device_default_builds_both(self):
        assert enumerate_pie_flags(None, None, "device") == [False, True]

    def test_other_types_build_pie_only(self):
        assert enumerate_pie_flags(None, None, "build") == [True]
        assert enumerate_pie_flags("4.9", None, "samples") == [True]

    def test_explicit_request_wins(self):
        assert enumerate_pie_flags("4.9", False, "device") == [False]
        assert enumerate_pie_flags(None, True, "device") == [True]

    @pytest.mark.parametrize("toolchain", ["clang", "clang3.6", "clang-3.8"])
    def test_clang_never_builds_non_pie(self, toolchain):
        assert enumerate_pie_flags(toolchain, None, "device") == [True]

    def test_clang_with_explicit_non_pie_falls_back_to_pie(self):
        assert enumerate_pie_flags("clang-3.8", False, "device") == [True]


@pytest.mark.unit
class TestAbiRules:
    """Test cases for per-ABI exclusion rules."""

    @pytest.mark.parametrize("abi", ["arm64-v8a", "x86_64", "mips64"])
    @pytest.mark.parametrize("toolchain", [None, "4.9", "clang3.6"])
    def test_64_bit_abis_need_pie(self, abi, toolchain):
        assert abi_allowed(abi, False, toolchain) is False
        assert abi_allowed(abi, True, toolchain) is True

    def test_armeabi_excluded_for_clang(self):
        assert abi_allowed("armeabi", True, "clang3.6") is False
        assert abi_allowed("armeabi", True, "4.9") is True
        assert abi_allowed("armeabi-v7a", True, "clang3.6") is True

    def test_allow_list(self):
        assert abi_allowed("x86", True, None, ["x86"]) is True
        assert abi_allowed("mips", True, None, ["x86"]) is False

    def test_enumerate_sorts_and_filters(self):
        abis = ["x86_64", "armeabi", "x86", "arm64-v8a", "armeabi-v7a"]

        assert enumerate_abis(abis, False, None) == ["armeabi", "armeabi-v7a", "x86"]
        assert enumerate_abis(abis, True, "clang3.6") == ["arm64-v8a", "armeabi-v7a", "x86", "x86_64"]


@pytest.mark.unit
class TestVariantMatrix:
    """Test cases for the VariantMatrix facade."""

    def test_variants(self):
        matrix = VariantMatrix(toolchain="4.9", project_type="device")

        assert matrix.variants() == [BuildVariant("4.9", False), BuildVariant("4.9", True)]

    def test_device_targets_only_for_present_directories(self, temp_dir):
        variant_dir = temp_dir / "target+PIE"
        for abi in ("x86", "arm64-v8a", "armeabi"):
            (variant_dir / "libs" / abi).mkdir(parents=True)
        (variant_dir / "libs" / "README").write_text("not an ABI")
        matrix = VariantMatrix(toolchain="clang3.6", project_type="device")

        targets = matrix.device_targets(BuildVariant("clang3.6", True), variant_dir)

        assert [t.abi for t in targets] == ["arm64-v8a", "x86"]
        assert targets[0].libs_dir == variant_dir / "libs" / "arm64-v8a"

    def test_device_targets_respect_allow_list(self, temp_dir):
        variant_dir = temp_dir / "target"
        for abi in ("x86", "mips"):
            (variant_dir / "libs" / abi).mkdir(parents=True)
        matrix = VariantMatrix(project_type="device", allowed_abis=["mips"])

        targets = matrix.device_targets(BuildVariant(None, False), variant_dir)

        assert [t.abi for t in targets] == ["mips"]

    def test_no_libs_directory(self, temp_dir):
        matrix = VariantMatrix(project_type="device")

        assert matrix.device_targets(BuildVariant(None, True), temp_dir / "missing") == []


@pytest.mark.unit
def test_variant_naming():
    assert BuildVariant(None, True).dirname == "target+PIE"
    assert BuildVariant(None, False).dirname == "target"
    assert BuildVariant("clang3.6", True).describe() == " clang3.6 +PIE"
    assert BuildVariant(None, False).describe() == ""
