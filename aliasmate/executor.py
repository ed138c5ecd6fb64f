"""Run stored commands through the system shell"""

import logging
import os
import re
import subprocess
import sys
from typing import Callable, List, Optional

from aliasmate.errors import ExecutionFailure, ValidationError

logger = logging.getLogger(__name__)

INTERRUPTED_EXIT_CODE = 130

_LINE_BREAK = re.compile(r"\r?\n")


def split_command_lines(command: str) -> List[str]:
    """Split a command into its non-blank lines, in order"""
    return [line for line in _LINE_BREAK.split(command) if line.strip()]


def shell_invocation(line: str, platform: str = sys.platform) -> List[str]:
    """Argument list that hands one line to the platform shell"""
    if platform == "win32":
        return ["cmd.exe", "/c", line]
    return ["/bin/sh", "-c", line]


class ShellExecutor:
    """Execute a command line by line, stopping at the first failure.

    Every line gets its own shell process started in the same working
    directory, so a ``cd`` on one line does not carry over to the next.
    The child shares this process's stdin, stdout and stderr.
    """

    def __init__(self, cwd: Optional[str] = None, platform: str = sys.platform):
        self.cwd = cwd
        self.platform = platform

    def run(self, command: str, before_line: Optional[Callable[[str], None]] = None) -> List[str]:
        """Run every line of command, return the lines that were executed"""
        lines = split_command_lines(command)
        if not lines:
            raise ValidationError("Command cannot be empty")

        cwd = self.cwd or os.getcwd()
        executed = []
        for line in lines:
            if before_line is not None:
                before_line(line)
            self._run_line(line, cwd)
            executed.append(line)
        return executed

    def _run_line(self, line: str, cwd: str) -> None:
        argv = shell_invocation(line, self.platform)
        logger.debug("Spawning %s in %s", argv, cwd)
        try:
            result = subprocess.run(argv, cwd=cwd)
        except KeyboardInterrupt:
            raise ExecutionFailure(INTERRUPTED_EXIT_CODE, line, "Command interrupted")
        except OSError as e:
            raise ExecutionFailure(None, line, f"Failed to execute command: {e}") from e

        if result.returncode != 0:
            logger.debug("Line %r exited with %s", line, result.returncode)
            raise ExecutionFailure(result.returncode, line)
