"""
Generation of the shell scripts and CMake additions that drive builds.

Projects that only ship a ``CMakeLists.txt`` get a generated per-ABI
``build.sh``; on-host verification always runs through a generated
``run.sh``. Each generated script echoes ``## COMMAND:`` before every step
so the supervised output shows what ran.
"""

import re
import shlex
from pathlib import Path
from typing import Iterable, List, Optional

from .variant_matrix import KNOWN_ABIS

CMAKE_MINIMUM_VERSION = "3.2"

_SCRIPT_HEADER = [
    "#!/bin/sh",
    "run()",
    "{",
    '    echo "## COMMAND: $@"',
    '    "$@"',
    "}",
]

_MINIMUM_REQUIRED = re.compile(r"^\s*cmake_minimum_required\s*\(", re.IGNORECASE)
_ENABLE_TESTING = re.compile(r"^\s*enable_testing\s*\(", re.IGNORECASE)
_SET_TARGET = re.compile(r"^\s*set\s*\(\s*TARGET\b", re.IGNORECASE)
_BLANK_OR_COMMENT = re.compile(r"^\s*(#|$)")


def _q(value: object) -> str:
    return shlex.quote(str(value))


def _has_line(text: str, pattern: re.Pattern) -> bool:
    return any(pattern.match(line) for line in text.split("\n"))


def host_cmakelists(original: str) -> str:
    """
    CMakeLists.txt used for on-host verification: adds a minimum version and
    a test named after ``${TARGET}`` when the project declares neither.
    """
    lines: List[str] = []
    if not _has_line(original, _MINIMUM_REQUIRED):
        lines += [f"cmake_minimum_required(VERSION {CMAKE_MINIMUM_VERSION} FATAL_ERROR)", ""]
    text = "\n".join(lines) + ("\n" if lines else "") + original
    if not _has_line(original, _ENABLE_TESTING):
        if not text.endswith("\n"):
            text += "\n"
        text += "\nenable_testing()\nadd_test(NAME ${TARGET} COMMAND $<TARGET_FILE:${TARGET}>)\n"
    return text


def target_cmakelists(original: str) -> str:
    """
    CMakeLists.txt used for target builds: adds a minimum version and, when
    the first statement sets ``TARGET``, install rules for the target and its
    prebuilt libraries.
    """
    text = ""
    if not _has_line(original, _MINIMUM_REQUIRED):
        text += f"cmake_minimum_required(VERSION {CMAKE_MINIMUM_VERSION} FATAL_ERROR)\n"
    text += "\n" + original

    statements = [line for line in original.split("\n") if not _BLANK_OR_COMMENT.match(line)]
    if statements and _SET_TARGET.match(statements[0]):
        if not text.endswith("\n"):
            text += "\n"
        text += "\n".join([
            "",
            "install(TARGETS ${TARGET}",
            "        RUNTIME DESTINATION ${CMAKE_INSTALL_PREFIX}/bin",
            "        LIBRARY DESTINATION ${CMAKE_INSTALL_PREFIX}/lib",
            ")",
            "foreach(__extLibrary ${ANDROID_PREBUILT_LIBRARIES})",
            "    install(FILES ${__extLibrary} DESTINATION ${CMAKE_INSTALL_PREFIX}/lib)",
            "endforeach()",
            "",
        ])
    return text


def host_run_script(workdir: Path, cc: str, gnumake: Path, jobs: int,
                    use_cmake: bool, use_host_makefile: bool) -> str:
    """
    ``run.sh`` that builds and runs the on-host test with compiler ``cc``.

    Raises:
        ValueError: If the project has neither a CMake nor a host makefile setup
    """
    lines = list(_SCRIPT_HEADER[:1])
    lines += [f"export GNUMAKE={_q(gnumake)}", f"export JOBS={jobs}"]
    lines += _SCRIPT_HEADER[1:]
    if use_cmake:
        build_dir = workdir / "cmake-build"
        lines += [
            f"run rm -Rf {_q(build_dir)} || exit 1",
            f"run mkdir -p {_q(build_dir)} || exit 1",
            f"run cd {_q(build_dir)} || exit 1",
            f"run cmake -DCMAKE_C_COMPILER={_q(cc)} -DCMAKE_CXX_COMPILER={_q(cc)} {_q(workdir)} || exit 1",
            f"run {_q(gnumake)} -j{jobs} VERBOSE=1 || exit 1",
            f"run {_q(gnumake)} test VERBOSE=1 || exit 1",
        ]
    elif use_host_makefile:
        lines.append(f"run {_q(gnumake)} -C {_q(workdir / 'host')} -B -j{jobs} test CC={_q(cc)} || exit 1")
    else:
        raise ValueError("Don't know how to run on-host testing for this test!")
    lines.append("exit 0")
    return "\n".join(lines) + "\n"


def target_build_script(dstdir: Path, ndk: Path, gnumake: Path, jobs: int,
                        toolchain_version: Optional[str], pie: Optional[bool],
                        abis: Iterable[str] = KNOWN_ABIS, cmake: str = "cmake") -> str:
    """
    ``build.sh`` that configures, builds and installs a CMake project for
    every ABI, collecting executables and shared libraries under
    ``libs/<abi>``.
    """
    args = [f"-DCMAKE_TOOLCHAIN_FILE={ndk / 'cmake' / 'toolchain.cmake'}"]
    if toolchain_version is not None:
        args.append(f"-DANDROID_TOOLCHAIN_VERSION={toolchain_version}")
    if pie is not None:
        args.append(f"-DANDROID_APP_PIE={'true' if pie else 'false'}")

    lines = list(_SCRIPT_HEADER)
    for abi in abis:
        build_dir = dstdir / "cmake-build" / abi
        install_tmp = dstdir / "cmake-install" / abi
        install_dir = dstdir / "libs" / abi
        abi_args = args + [f"-DCMAKE_INSTALL_PREFIX={install_tmp}", f"-DANDROID_ABI={abi}"]
        lines += [
            f"run rm -Rf {_q(build_dir)} {_q(install_tmp)} {_q(install_dir)} || exit 1",
            f"run mkdir -p {_q(build_dir)} || exit 1",
            f"run cd {_q(build_dir)} || exit 1",
            f"run {cmake} {' '.join(_q(a) for a in abi_args)} {_q(dstdir)} || exit 1",
            f"run {_q(gnumake)} -j{jobs} VERBOSE=1 || exit 1",
            f"run {_q(gnumake)} install VERBOSE=1 || exit 1",
            f"for f in {_q(install_tmp)}/bin/* {_q(install_tmp)}/lib/lib*.so; do",
            "    [ -f \"$f\" ] || continue",
            f"    mkdir -p {_q(install_dir)} || exit 1",
            f"    run cp \"$f\" {_q(install_dir)}/ || exit 1",
            "done",
        ]
    lines.append("exit 0")
    return "\n".join(lines) + "\n"


def write_script(path: Path, content: str) -> Path:
    """Write an executable script."""
    path.write_text(content, encoding="utf-8")
    path.chmod(0o755)
    return path
