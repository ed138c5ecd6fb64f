"""Write aliases into a shell startup file as a managed block"""

import difflib
import logging
from pathlib import Path
from typing import List, Tuple

from aliasmate.models import Alias
from aliasmate.shell_detector import ShellType

logger = logging.getLogger(__name__)

START_MARKER = "# AliasMate managed aliases - DO NOT EDIT BETWEEN THESE MARKERS"
END_MARKER = "# End of AliasMate managed aliases"


def render_alias(alias: Alias, shell_type: ShellType) -> str:
    """One alias statement; fish gets single quotes, other shells double"""
    if shell_type is ShellType.FISH:
        return f"alias {alias.name}='{alias.command}'"
    return f'alias {alias.name}="{alias.command}"'


def render_block(aliases: List[Alias], shell_type: ShellType) -> str:
    """Marker-delimited block, from the start marker through the end marker"""
    lines = [START_MARKER]
    lines.extend(render_alias(alias, shell_type) for alias in aliases)
    lines.append(END_MARKER)
    return "\n".join(lines)


def replace_block(content: str, block: str) -> str:
    """Swap the managed block in content, or append it when there is none"""
    start = content.find(START_MARKER)
    end = content.find(END_MARKER, start + len(START_MARKER)) if start != -1 else -1
    if start != -1 and end != -1:
        end += len(END_MARKER)
        return content[:start] + block + content[end:]
    return content + "\n" + block + "\n"


def diff_text(old: str, new: str, path: Path) -> str:
    """Unified diff between two versions of a file"""
    return "".join(difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=f"{path} (current)",
        tofile=f"{path} (new)",
    ))


class ShellConfigWriter:
    """Render aliases and place them in a shell configuration file"""

    def __init__(self, shell_type: ShellType = ShellType.BASH):
        self.shell_type = shell_type

    def preview(self, target_file: Path, aliases: List[Alias]) -> Tuple[str, str]:
        """Current and resulting content of target_file"""
        old = target_file.read_text() if target_file.exists() else ""
        new = replace_block(old, render_block(aliases, self.shell_type))
        return old, new

    def apply_aliases(self, target_file: Path, aliases: List[Alias]) -> Tuple[bool, str]:
        """Write the managed block into target_file"""
        try:
            _, new = self.preview(target_file, aliases)
            target_file.parent.mkdir(parents=True, exist_ok=True)
            target_file.write_text(new)
        except OSError as e:
            return False, f"Failed to apply aliases: {e}"

        logger.debug("Wrote %d aliases to %s", len(aliases), target_file)
        return True, f"Applied {len(aliases)} aliases to {target_file}"
