import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple

import yaml

from aliasmate.errors import AliasMateError, ImportFormatError, ValidationError
from aliasmate.models import Alias
from aliasmate.storage import AliasStorage

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class ImportMode(Enum):
    """How imported aliases are combined with the stored ones"""

    MERGE = "merge"
    OVERWRITE = "overwrite"
    APPEND = "append"


def merge_aliases(current: List[Alias], incoming: List[Alias], mode: ImportMode) -> List[Alias]:
    """Combine two collections under an import policy"""
    if mode is ImportMode.MERGE:
        existing_names = {alias.name for alias in current}
        return list(current) + [alias for alias in incoming if alias.name not in existing_names]
    if mode is ImportMode.OVERWRITE:
        return list(incoming)
    # append keeps duplicates on purpose
    return list(current) + list(incoming)


def parse_payload(data: Any) -> List[Alias]:
    """Validate a decoded { aliases: [...] } payload"""
    if not isinstance(data, dict) or not isinstance(data.get("aliases"), list):
        raise ImportFormatError("Invalid file format. Expected { aliases: [...] }")
    try:
        return [Alias.from_dict(record) for record in data["aliases"]]
    except ValidationError as e:
        raise ImportFormatError(f"Invalid alias in import file: {e}") from e


@dataclass
class ImportSummary:
    """Counts describing one import"""
    mode: ImportMode
    incoming: int
    added: int
    skipped: int
    total: int


class AliasPorter:
    """Handle import and export of aliases"""

    def __init__(self, storage: Optional[AliasStorage] = None):
        self.storage = storage or AliasStorage()

    def export_to_dict(self, aliases: Optional[List[Alias]] = None) -> Dict[str, Any]:
        """Export aliases in the stored collection format"""
        if aliases is None:
            aliases = self.storage.get_all()
        return {"aliases": [alias.to_dict() for alias in aliases]}

    def export_to_file(self, filepath: Path, format: Optional[str] = None) -> Tuple[bool, str]:
        """Export aliases to a JSON or YAML file"""
        if format is None:
            format = "yaml" if filepath.suffix in YAML_SUFFIXES else "json"

        try:
            data = self.export_to_dict()
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, "w") as f:
                if format == "yaml":
                    yaml.dump(data, f, default_flow_style=False, sort_keys=False)
                else:
                    json.dump(data, f, indent=2)
                    f.write("\n")
        except (OSError, yaml.YAMLError, AliasMateError) as e:
            return False, f"Export failed: {e}"

        logger.debug("Exported %d aliases to %s", len(data["aliases"]), filepath)
        return True, f"Exported {len(data['aliases'])} aliases to {filepath}"

    def read_file(self, filepath: Path) -> List[Alias]:
        """Load and validate aliases from a JSON or YAML file"""
        with open(filepath, "r") as f:
            if filepath.suffix in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        return parse_payload(data)

    def import_aliases(self, incoming: List[Alias], mode: ImportMode) -> ImportSummary:
        """Reconcile incoming aliases with the stored ones and commit the result"""
        current = self.storage.get_all()
        result = merge_aliases(current, incoming, mode)
        self.storage.set_all(result)

        if mode is ImportMode.MERGE:
            added = len(result) - len(current)
        else:
            added = len(incoming)
        return ImportSummary(
            mode=mode,
            incoming=len(incoming),
            added=added,
            skipped=len(incoming) - added,
            total=len(result),
        )

    def import_from_file(self, filepath: Path, mode: ImportMode = ImportMode.MERGE) -> Tuple[bool, str]:
        """Import aliases from a file"""
        if not filepath.exists():
            return False, f"File not found: {filepath}"

        try:
            incoming = self.read_file(filepath)
        except (OSError, ValueError, yaml.YAMLError, ImportFormatError) as e:
            # json.JSONDecodeError is a ValueError
            return False, f"Import failed: {e}"

        try:
            summary = self.import_aliases(incoming, mode)
        except AliasMateError as e:
            return False, f"Import failed: {e}"

        msg = f"Imported {summary.added} aliases from {filepath} ({mode.value})"
        if summary.skipped > 0:
            msg += f" (skipped {summary.skipped} existing)"
        return True, msg
