import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

from aliasmate.errors import ValidationError

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "ALIASMATE_HOME"


def default_home() -> Path:
    """Directory holding aliases, settings and backups"""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".aliasmate"


class Config:
    """Manage aliasmate settings"""

    DEFAULT_CONFIG = {
        "confirm_run": True,
        "confirm_delete": True,
        "offer_edit_after_run": True,
        "default_shell": None,
        "auto_backup": True,
        "max_backups": 10,
        "import_mode": "merge",
    }
    CHOICES = {
        "default_shell": ("bash", "zsh", "fish", "sh"),
        "import_mode": ("merge", "overwrite", "append"),
    }

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = config_dir or default_home()
        self.config_path = self.config_dir / "config.json"
        self.config = self.load()

    def load(self) -> Dict[str, Any]:
        """Load configuration from file"""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    user_config = json.load(f)
                if isinstance(user_config, dict):
                    return {**self.DEFAULT_CONFIG, **self._known_good(user_config)}
                logger.warning("Ignoring %s: expected a JSON object", self.config_path)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable config %s: %s", self.config_path, e)
        return self.DEFAULT_CONFIG.copy()

    def _known_good(self, user_config: Dict[str, Any]) -> Dict[str, Any]:
        """Drop stored values that do not fit their setting"""
        kept = {}
        for key, value in user_config.items():
            if key in self.DEFAULT_CONFIG:
                try:
                    self.check(key, value)
                except ValidationError as e:
                    logger.warning("Ignoring %s in %s: %s", key, self.config_path, e)
                    continue
            kept[key] = value
        return kept

    def save(self) -> None:
        """Save configuration to file"""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            json.dump(self.config, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value"""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value"""
        self.config[key] = value
        self.save()

    @staticmethod
    def coerce(raw: str) -> Any:
        """Turn a command-line string into a bool, int, None or str"""
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "on"):
            return True
        if lowered in ("false", "no", "off"):
            return False
        if lowered in ("none", "null", ""):
            return None
        try:
            return int(lowered)
        except ValueError:
            return raw

    @classmethod
    def check(cls, key: str, value: Any) -> Any:
        """Return value if it suits the setting, otherwise raise ValidationError"""
        if key not in cls.DEFAULT_CONFIG:
            raise ValidationError(f"Unknown setting '{key}'")

        default = cls.DEFAULT_CONFIG[key]
        if key in cls.CHOICES:
            allowed = cls.CHOICES[key]
            if value not in allowed and not (value is None and default is None):
                raise ValidationError(f"Invalid value for {key}: {value!r} (expected one of: {', '.join(allowed)})")
        elif isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValidationError(f"Invalid value for {key}: {value!r} (expected true or false)")
        elif isinstance(default, int):
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValidationError(f"Invalid value for {key}: {value!r} (expected a non-negative integer)")
        return value

    @classmethod
    def parse(cls, key: str, raw: str) -> Any:
        """Coerce a command-line string and check it against the setting's type"""
        return cls.check(key, cls.coerce(raw))
