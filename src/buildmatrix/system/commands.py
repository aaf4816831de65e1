"""
Short-lived helper command execution.

Used for quick probes (compiler preprocessing) whose output is needed as a
value rather than streamed to the log.
"""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


def run_command(
    command: Union[str, Sequence[str]],
    cwd: Optional[Path] = None,
    input_text: Optional[str] = None,
) -> Tuple[int, str, str]:
    """Execute a command and capture its output.

    Args:
        command: Argument vector, or a string split with shlex.
        cwd: Working directory path for command execution.
        input_text: Text written to the command's standard input.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 if the command could not be started.
    """
    argv = shlex.split(command) if isinstance(command, str) else list(command)
    logger.debug(f"Executing command: '{' '.join(argv)}' in '{cwd}'")
    try:
        process = subprocess.run(
            argv,
            cwd=cwd,
            input=input_text,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        logger.debug(f"Command not found: {argv[0]}: {e}")
        return -1, "", f"Error: Command not found '{argv[0]}'"
    except OSError as e:
        logger.error(f"Unexpected error while running command '{argv[0]}': {type(e).__name__}: {e}")
        return -1, "", f"An unexpected error occurred: {e}"
