"""
Enumeration of build variants and device targets.

A project is built once per PIE mode and, for device projects, tested once
per ABI the build produced. Some combinations are excluded because the
toolchain or the ABI cannot support them.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ..models.runtime import BuildVariant, DeviceTarget

logger = logging.getLogger(__name__)

DEVICE_PROJECT_TYPE = "device"

# ABIs built by generated CMake build scripts, in build order.
KNOWN_ABIS = [
    "armeabi",
    "armeabi-v7a",
    "armeabi-v7a-hard",
    "x86",
    "mips",
    "arm64-v8a",
    "x86_64",
    "mips64",
]

# 64-bit targets only run position-independent executables.
SIXTY_FOUR_BIT_ABIS = frozenset({"arm64-v8a", "x86_64", "mips64"})

# 32-bit ARM soft-float ABI, unsupported by clang toolchains.
SOFT_FLOAT_ARM_ABI = "armeabi"


def is_clang_toolchain(toolchain: Optional[str]) -> bool:
    return toolchain is not None and str(toolchain).startswith("clang")


def enumerate_pie_flags(toolchain: Optional[str], explicit_pie: Optional[bool],
                        project_type: str) -> List[bool]:
    """
    Ordered PIE flags to build a project with.

    An explicit request wins. Otherwise device projects build both non-PIE
    and PIE (in that order) and every other project builds PIE only; clang
    toolchains never build non-PIE.
    """
    if explicit_pie is not None:
        flags = [explicit_pie]
    else:
        flags = []
        if project_type == DEVICE_PROJECT_TYPE:
            flags.append(False)
        flags.append(True)

    if is_clang_toolchain(toolchain):
        flags = [pie for pie in flags if pie]
    if not flags:
        flags = [True]
    return flags


def abi_allowed(abi: str, pie: bool, toolchain: Optional[str],
                allowed_abis: Optional[Iterable[str]] = None) -> bool:
    """Whether device tests for ``abi`` may run for the given variant."""
    if allowed_abis is not None and abi not in allowed_abis:
        return False
    if not pie and abi in SIXTY_FOUR_BIT_ABIS:
        return False
    if abi == SOFT_FLOAT_ARM_ABI and is_clang_toolchain(toolchain):
        return False
    return True


def enumerate_abis(abis: Iterable[str], pie: bool, toolchain: Optional[str],
                   allowed_abis: Optional[Iterable[str]] = None) -> List[str]:
    """Filter and sort candidate ABIs for one variant."""
    allowed = list(allowed_abis) if allowed_abis is not None else None
    return [abi for abi in sorted(abis) if abi_allowed(abi, pie, toolchain, allowed)]


class VariantMatrix:
    """
    The variant matrix of one project run.

    Args:
        toolchain: Active toolchain version, None for the default toolchain
        explicit_pie: Explicit PIE request, None to let the matrix decide
        project_type: Project category label
        allowed_abis: Explicit ABI allow-list, None for no restriction
    """

    def __init__(self, toolchain: Optional[str] = None, explicit_pie: Optional[bool] = None,
                 project_type: str = "unknown", allowed_abis: Optional[List[str]] = None):
        self.toolchain = toolchain
        self.explicit_pie = explicit_pie
        self.project_type = project_type
        self.allowed_abis = allowed_abis

    def pie_flags(self) -> List[bool]:
        return enumerate_pie_flags(self.toolchain, self.explicit_pie, self.project_type)

    def variants(self) -> List[BuildVariant]:
        return [BuildVariant(self.toolchain, pie) for pie in self.pie_flags()]

    def abis(self, available: Iterable[str], pie: bool) -> List[str]:
        return enumerate_abis(available, pie, self.toolchain, self.allowed_abis)

    def device_targets(self, variant: BuildVariant, variant_dir: Path) -> List[DeviceTarget]:
        """
        Device targets for ABIs actually present under ``<variant_dir>/libs``.

        The existence of an ABI directory is the signal that binaries for it
        were produced; a failed or skipped build simply yields none.
        """
        libs = variant_dir / "libs"
        if not libs.is_dir():
            return []
        present = [entry.name for entry in libs.iterdir() if entry.is_dir()]
        selected = self.abis(present, variant.pie)
        excluded = sorted(set(present) - set(selected))
        if excluded:
            logger.debug(f"Excluded ABIs for{variant.describe() or ' default variant'}: {', '.join(excluded)}")
        return [DeviceTarget(abi, variant, libs / abi) for abi in selected]
