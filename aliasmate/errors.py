"""Exceptions raised by the aliasmate core"""

from typing import Optional


class AliasMateError(Exception):
    """Base class for alias related errors."""


class ValidationError(AliasMateError):
    """Raised when input is rejected before any mutation happens."""


class DuplicateNameError(ValidationError):
    """Raised when an alias with the same name is already stored."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Alias '{name}' already exists. Use update command to modify it.")


class ImportFormatError(ValidationError):
    """Raised when an import payload is not shaped like { aliases: [...] }."""


class StorageError(AliasMateError):
    """Raised when the alias file cannot be read or written."""


class ExecutionFailure(AliasMateError):
    """Raised when a command line exits non-zero or cannot be spawned."""

    def __init__(self, exit_code: Optional[int], line: str, message: Optional[str] = None):
        self.exit_code = exit_code
        self.line = line
        if message is None:
            message = f"Command exited with code {exit_code}"
        super().__init__(message)
