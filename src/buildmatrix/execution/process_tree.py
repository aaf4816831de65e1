"""
Termination of a supervised command together with its children.
"""

import logging
from typing import List

import psutil

logger = logging.getLogger(__name__)

TERMINATION_GRACEFUL_TIMEOUT = 3.0
TERMINATION_FORCE_TIMEOUT = 2.0


def terminate_process_tree(pid: int, name: str = "process") -> None:
    """
    Terminate a process and all its descendants.

    Sends SIGTERM to the whole tree, waits briefly, then kills whatever is
    still alive.

    Args:
        pid: PID of the tree's root
        name: Human readable name for log lines
    """
    if pid <= 0:
        logger.warning(f"Invalid PID {pid} for {name}, skipping termination")
        return

    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        logger.info(f"Process {name} (PID: {pid}) already terminated")
        return

    processes: List[psutil.Process] = [parent] + children
    logger.info(f"Terminating {name} (PID: {pid}) and {len(children)} children")

    for proc in processes:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied terminating PID {proc.pid}")

    _, alive = psutil.wait_procs(processes, timeout=TERMINATION_GRACEFUL_TIMEOUT)
    if not alive:
        return

    logger.warning(f"{len(alive)} processes of {name} still alive, killing")
    for proc in alive:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied killing PID {proc.pid}")
    psutil.wait_procs(alive, timeout=TERMINATION_FORCE_TIMEOUT)
