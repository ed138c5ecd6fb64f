"""Data models for aliases"""

import time
from dataclasses import dataclass, field, replace
from typing import Optional, List, Any

from aliasmate.errors import ValidationError


class _Unset:
    """Marker for an option that was not given"""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def now_ms() -> int:
    """Current time in milliseconds since the epoch"""
    return int(time.time() * 1000)


def parse_tags(raw: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated tag string, dropping blanks"""
    if not raw:
        return None
    tags = [tag.strip() for tag in raw.split(",") if tag.strip()]
    return tags or None


@dataclass
class Alias:
    """Represents a stored shell command"""
    name: str
    command: str
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: int = field(default_factory=now_ms)
    updated_at: int = 0

    def __post_init__(self):
        # updated_at never precedes created_at
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def is_multiline(self) -> bool:
        return len(self.command.splitlines()) > 1

    def to_dict(self) -> dict:
        """Convert alias to dictionary for storage"""
        data = {"name": self.name, "command": self.command}
        if self.description:
            data["description"] = self.description
        if self.tags:
            data["tags"] = list(self.tags)
        data["createdAt"] = self.created_at
        data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Alias":
        """Create alias from dictionary, validating the stored shape"""
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid alias record: {data!r}")

        name = data.get("name")
        command = data.get("command")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Alias name cannot be empty")
        if not isinstance(command, str) or not command.strip():
            raise ValidationError(f"Command for alias '{name}' cannot be empty")

        tags = data.get("tags")
        if tags is not None:
            if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
                raise ValidationError(f"Tags for alias '{name}' must be a list of strings")
            tags = [t for t in tags if t] or None

        created_at = data.get("createdAt")
        if not isinstance(created_at, (int, float)) or isinstance(created_at, bool):
            created_at = now_ms()
        updated_at = data.get("updatedAt")
        if not isinstance(updated_at, (int, float)) or isinstance(updated_at, bool):
            updated_at = created_at

        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ValidationError(f"Description for alias '{name}' must be a string")

        return cls(
            name=name,
            command=command,
            description=description or None,
            tags=tags,
            created_at=int(created_at),
            updated_at=int(updated_at),
        )

    def __str__(self) -> str:
        """String representation for display"""
        return f"{self.name}='{self.command}'"


@dataclass
class AliasUpdate:
    """Fields that may change on an existing alias.

    A field left as UNSET keeps the stored value; an empty description or
    tag list clears it.
    """
    command: Any = UNSET
    description: Any = UNSET
    tags: Any = UNSET

    def is_empty(self) -> bool:
        return all(value is UNSET for value in (self.command, self.description, self.tags))

    def apply_to(self, alias: Alias, timestamp: int) -> Alias:
        """Return a copy of alias with these fields merged in"""
        changes = {}
        if self.command is not UNSET:
            if not self.command or not self.command.strip():
                raise ValidationError("Command cannot be empty")
            changes["command"] = self.command
        if self.description is not UNSET:
            changes["description"] = self.description or None
        if self.tags is not UNSET:
            changes["tags"] = list(self.tags) if self.tags else None
        changes["updated_at"] = max(timestamp, alias.created_at)
        return replace(alias, **changes)
