"""
Host environment detection.

Determines the host platform tag used to locate the NDK's prebuilt make tool,
and discovers and classifies the C compilers available for on-host
verification.
"""

import logging
import platform
import re
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..validation import ConfigurationError
from .commands import run_command

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform.startswith(("win32", "cygwin", "msys"))

# Candidate compiler executables, probed in order.
HOST_COMPILER_CANDIDATES = [
    "cc",
    "gcc",
    "gcc-4.9",
    "gcc-5",
    "gcc-6",
    "clang",
    "clang-3.6",
    "clang-3.7",
    "clang-3.8",
]


@dataclass(frozen=True)
class HostCompiler:
    exe: str
    type: Optional[str] = None
    version: Optional[str] = None


def host_os_tag() -> str:
    """
    Return ``linux``, ``darwin`` or ``windows``.

    Raises:
        ConfigurationError: On any other host platform
    """
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "darwin":
        return "darwin"
    if IS_WINDOWS:
        return "windows"
    raise ConfigurationError(f"Unknown host platform: {sys.platform}")


def host_arch() -> str:
    """Normalized host CPU architecture (``x86_64``, ``x86`` or the raw machine name)."""
    machine = platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        # A 64-bit kernel may still run a 32-bit userland.
        if platform.architecture()[0] == "32bit":
            return "x86"
        return "x86_64"
    if re.match(r"^i\d86$", machine):
        return "x86"
    return machine


def host_tags() -> List[str]:
    """Prebuilt directory names to probe, most specific first."""
    os_tag = host_os_tag()
    arch = host_arch()
    archs = [arch]
    if arch == "x86_64":
        archs.append("x86")
    tags = []
    for a in archs:
        if os_tag == "windows" and a == "x86":
            tags.append("windows")
        else:
            tags.append(f"{os_tag}-{a}")
    return tags


def find_gnumake(ndk: Path) -> Path:
    """
    Locate the NDK's prebuilt GNU make.

    Raises:
        ConfigurationError: If no prebuilt make exists for this host
    """
    exe = "make.exe" if IS_WINDOWS else "make"
    for tag in host_tags():
        candidate = ndk / "prebuilt" / tag / "bin" / exe
        if candidate.exists():
            return candidate
    raise ConfigurationError(f"Can't find 'make' in {ndk}")


def supports_onhost_testing() -> bool:
    return sys.platform.startswith("linux") or sys.platform == "darwin"


def preprocess(cc: str, source: str) -> str:
    """
    Run ``source`` through the C preprocessor of ``cc``.

    Returns the output without line markers.

    Raises:
        ConfigurationError: If the compiler fails
    """
    rc, out, err = run_command([cc, "-x", "c", "-E", "-"], input_text=source)
    if rc != 0:
        raise ConfigurationError(f"Can't preprocess '{source}' with {cc}: {err}")
    return "\n".join(line for line in out.split("\n") if not line.startswith("#")).strip()


def classify_compiler(cc: str) -> HostCompiler:
    """
    Determine whether ``cc`` is clang or gcc, and its version string.

    Raises:
        ConfigurationError: If the compiler is neither
    """
    if preprocess(cc, "__clang__") != "__clang__":
        return HostCompiler(cc, "clang", preprocess(cc, "__clang_version__"))
    if preprocess(cc, "__GNUC__") != "__GNUC__":
        return HostCompiler(cc, "gcc", preprocess(cc, "__VERSION__"))
    raise ConfigurationError(f"Can't detect type of {cc}")


def toolchain_family(toolchain_version: Optional[str]) -> Optional[str]:
    """``clang`` for clang toolchain versions, ``gcc`` otherwise, None when unset."""
    if toolchain_version is None:
        return None
    return "clang" if toolchain_version.startswith("clang") else "gcc"


def discover_host_compilers(
    toolchain_version: Optional[str] = None,
    candidates: Optional[List[str]] = None,
    search_path: Optional[str] = None,
) -> List[HostCompiler]:
    """
    Find distinct host compilers on PATH.

    Compilers are de-duplicated by (type, version) and, when a toolchain is
    active, restricted to its family. Falls back to plain ``cc``.
    """
    found: List[HostCompiler] = []
    for cc in candidates or HOST_COMPILER_CANDIDATES:
        if shutil.which(cc, path=search_path) is None:
            continue
        compiler = classify_compiler(cc)
        if any(c.type == compiler.type and c.version == compiler.version for c in found):
            continue
        found.append(compiler)

    family = toolchain_family(toolchain_version)
    if family is not None:
        found = [c for c in found if c.type == family]

    if not found:
        found = [HostCompiler("cc")]
    logger.debug(f"Host compilers: {', '.join(c.exe for c in found)}")
    return found
