"""Shell detection and configuration file handling"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


class ShellType(Enum):
    """Supported shell types"""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"
    SH = "sh"
    UNKNOWN = "unknown"


class ShellDetector:
    """Detect shell type and its startup file"""

    CONFIG_FILES = {
        ShellType.BASH: ".bashrc",
        ShellType.ZSH: ".zshrc",
        ShellType.FISH: ".config/fish/config.fish",
        ShellType.SH: ".profile",
    }

    def __init__(self, home_dir: Optional[Path] = None):
        """Initialize detector with home directory"""
        self.home_dir = home_dir or Path.home()

    @staticmethod
    def _match(value: str) -> ShellType:
        name = os.path.basename(value.strip().lower()).lstrip("-")
        for shell_type in (ShellType.ZSH, ShellType.BASH, ShellType.FISH, ShellType.SH):
            if name == shell_type.value:
                return shell_type
        return ShellType.UNKNOWN

    def detect_current_shell(self) -> ShellType:
        """Detect the current shell from $SHELL, then from the parent process"""
        shell_env = os.environ.get("SHELL", "")
        if shell_env:
            shell_type = self._match(shell_env)
            if shell_type is not ShellType.UNKNOWN:
                return shell_type

        try:
            parent_name = psutil.Process(os.getppid()).name()
        except (psutil.Error, OSError) as e:
            logger.debug("Could not inspect parent process: %s", e)
            return ShellType.UNKNOWN
        return self._match(parent_name)

    def get_config_file(self, shell_type: ShellType) -> Path:
        """Startup file for a shell, bash's when the shell is unknown"""
        relative = self.CONFIG_FILES.get(shell_type, self.CONFIG_FILES[ShellType.BASH])
        return self.home_dir / relative
