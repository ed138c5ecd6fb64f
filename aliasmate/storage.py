import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Any, Dict

from rapidfuzz import fuzz

from aliasmate.config import default_home
from aliasmate.errors import DuplicateNameError, StorageError, ValidationError
from aliasmate.models import Alias, AliasUpdate, now_ms

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 60


class ConfigStore:
    """Key-value store persisted as one JSON object.

    Nothing touches the disk until the first get or set. Every get re-reads
    the file and every set rewrites it whole.
    """

    def __init__(self, path: Path, auto_backup: bool = True, max_backups: int = 10):
        self.path = path
        self.backup_dir = path.parent / "backups"
        self.auto_backup = auto_backup
        self.max_backups = max_backups

    def load(self) -> Dict[str, Any]:
        """Read the whole store, starting fresh if the file is corrupted"""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError:
            data = None
        except OSError as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e

        if not isinstance(data, dict):
            # keep the damaged file around instead of overwriting it
            corrupted = self.path.with_suffix('.corrupted')
            logger.warning("Store %s is corrupted, moved to %s", self.path, corrupted)
            try:
                self.path.rename(corrupted)
            except OSError as e:
                raise StorageError(f"Could not move corrupted {self.path}: {e}") from e
            return {}
        return data

    def save(self, data: Dict[str, Any]) -> None:
        """Write the whole store"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.auto_backup:
                self.create_backup()
            with open(self.path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e
        logger.debug("Saved %s", self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self.load()
        data[key] = value
        self.save(data)

    def create_backup(self) -> Optional[Path]:
        """Create timestamped backup of the current file"""
        if not self.path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.backup_dir / f"{self.path.stem}_{timestamp}.json"
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(self.path, backup_path)
        logger.debug("Backed up %s to %s", self.path, backup_path)
        self.cleanup_old_backups(keep=self.max_backups)
        return backup_path

    def cleanup_old_backups(self, keep: int = 10) -> None:
        """Remove old backups, keeping only the most recent ones"""
        backups = sorted(self.backup_dir.glob(f"{self.path.stem}_*.json"))
        if len(backups) > keep:
            for backup in backups[:len(backups) - keep]:
                backup.unlink()


class AliasStorage:
    """Durable, ordered collection of aliases keyed by unique name"""

    KEY = "aliases"

    def __init__(self, store: Optional[ConfigStore] = None, storage_path: Optional[Path] = None):
        if store is None:
            store = ConfigStore(storage_path or default_home() / "aliases.json")
        self.store = store

    @property
    def storage_path(self) -> Path:
        return self.store.path

    def get_all(self) -> List[Alias]:
        """All aliases in stored order"""
        raw = self.store.get(self.KEY, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring '%s' in %s: not a list", self.KEY, self.storage_path)
            return []

        aliases = []
        for record in raw:
            try:
                aliases.append(Alias.from_dict(record))
            except ValidationError as e:
                logger.warning("Skipping unreadable alias record: %s", e)
        return aliases

    def set_all(self, aliases: List[Alias]) -> None:
        """Replace the whole stored collection"""
        self.store.set(self.KEY, [alias.to_dict() for alias in aliases])

    def get_by_name(self, name: str) -> Optional[Alias]:
        """Get an alias by exact name"""
        for alias in self.get_all():
            if alias.name == name:
                return alias
        return None

    def add(self, alias: Alias) -> Alias:
        """Stamp and append a new alias, refusing names already stored"""
        if not alias.name or not alias.name.strip():
            raise ValidationError("Alias name cannot be empty")
        if not alias.command or not alias.command.strip():
            raise ValidationError("Command cannot be empty")

        aliases = self.get_all()
        if any(existing.name == alias.name for existing in aliases):
            raise DuplicateNameError(alias.name)

        now = now_ms()
        new_alias = Alias(
            name=alias.name,
            command=alias.command,
            description=alias.description or None,
            tags=list(alias.tags) if alias.tags else None,
            created_at=now,
            updated_at=now,
        )
        aliases.append(new_alias)
        self.set_all(aliases)
        logger.debug("Added alias %s", new_alias.name)
        return new_alias

    def update(self, name: str, changes: AliasUpdate) -> Optional[Alias]:
        """Merge changes into an existing alias, None if it does not exist"""
        aliases = self.get_all()
        for index, alias in enumerate(aliases):
            if alias.name == name:
                updated = changes.apply_to(alias, now_ms())
                aliases[index] = updated
                self.set_all(aliases)
                logger.debug("Updated alias %s", name)
                return updated
        return None

    def remove(self, name: str) -> bool:
        """Remove an alias, return True if it existed"""
        aliases = self.get_all()
        remaining = [alias for alias in aliases if alias.name != name]
        if len(remaining) == len(aliases):
            return False
        self.set_all(remaining)
        logger.debug("Removed alias %s", name)
        return True

    def search(self, term: str, fuzzy: bool = False) -> List[Alias]:
        """Find aliases whose name, command, description or tags match term"""
        term = term.strip().lower()
        if not term:
            return []

        def fields(alias: Alias) -> List[str]:
            return [alias.name, alias.command, alias.description or ""] + list(alias.tags or [])

        if fuzzy:
            return [
                alias for alias in self.get_all()
                if any(fuzz.partial_ratio(term, value.lower()) >= FUZZY_THRESHOLD for value in fields(alias) if value)
            ]
        return [
            alias for alias in self.get_all()
            if any(term in value.lower() for value in fields(alias))
        ]
