"""
System interaction utilities.

Host platform detection, NDK make-tool lookup, host compiler discovery and
short-lived probe command execution.
"""

from .commands import run_command
from .host import (
    HOST_COMPILER_CANDIDATES,
    IS_WINDOWS,
    HostCompiler,
    classify_compiler,
    discover_host_compilers,
    find_gnumake,
    host_arch,
    host_os_tag,
    host_tags,
    preprocess,
    supports_onhost_testing,
    toolchain_family,
)

__all__ = [
    "run_command",
    "HOST_COMPILER_CANDIDATES",
    "IS_WINDOWS",
    "HostCompiler",
    "classify_compiler",
    "discover_host_compilers",
    "find_gnumake",
    "host_arch",
    "host_os_tag",
    "host_tags",
    "preprocess",
    "supports_onhost_testing",
    "toolchain_family",
]
