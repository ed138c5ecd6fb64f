import functools
import logging
import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from aliasmate import __version__
from aliasmate.config import Config, default_home
from aliasmate.errors import AliasMateError, ExecutionFailure
from aliasmate.executor import ShellExecutor, split_command_lines
from aliasmate.models import Alias, AliasUpdate, UNSET, parse_tags
from aliasmate.porter import AliasPorter, ImportMode
from aliasmate.shell_detector import ShellDetector, ShellType
from aliasmate.shell_writer import ShellConfigWriter, diff_text
from aliasmate.storage import AliasStorage, ConfigStore

console = Console()
SEPARATOR = "-" * 50


class AppContext:
    """Settings and the alias store for one invocation"""

    def __init__(self, home: Optional[Path] = None):
        self.home = home or default_home()
        self.config = Config(self.home)
        self._storage: Optional[AliasStorage] = None

    @property
    def storage(self) -> AliasStorage:
        if self._storage is None:
            store = ConfigStore(
                self.home / "aliases.json",
                auto_backup=bool(self.config.get("auto_backup", True)),
                max_backups=int(self.config.get("max_backups", 10)),
            )
            self._storage = AliasStorage(store)
        return self._storage


def setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("aliasmate")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def fail(message: str) -> None:
    console.print(f"[red]✗[/] {escape(message)}")
    raise SystemExit(1)


def reports_errors(func):
    """Print domain errors instead of a traceback and exit with status 1"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AliasMateError as e:
            fail(str(e))
    return wrapper


def show_alias(alias: Alias) -> None:
    console.print(f"[green]{escape(alias.name)}[/] [dim]→[/]")
    lines = alias.command.splitlines()
    if len(lines) > 1:
        console.print("[dim]Multi-line command:[/]")
        for index, line in enumerate(lines, 1):
            console.print(f"  [blue]{index}:[/] {escape(line)}", highlight=False)
    else:
        console.print(f"  {alias.command}", markup=False, highlight=False)
    if alias.description:
        console.print(f"  [dim]Description:[/] {escape(alias.description)}")
    if alias.tags:
        console.print(f"  [dim]Tags:[/] {escape(', '.join(alias.tags))}")
    console.print(SEPARATOR)


def read_command(multiline: bool, default: str = "") -> str:
    """Ask for a command, in the editor when it spans several lines"""
    if multiline:
        edited = click.edit(default or "")
        command = edited if edited is not None else default
        return command.rstrip("\n")
    return click.prompt("Command", default=default or None)


@click.group(invoke_without_command=True)
@click.option("--home", type=click.Path(file_okay=False, path_type=Path), help="Data directory (default ~/.aliasmate)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.version_option(version=__version__, prog_name="aliasmate")
@click.pass_context
def main(ctx, home, verbose):
    """aliasmate - manage your shell aliases"""
    setup_logging(verbose)
    if ctx.obj is None:
        ctx.obj = AppContext(home)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.option("--name", "-n", prompt="Alias name", help="Alias name")
@click.option("--command", "-c", help="Command to store")
@click.option("--multiline", "-m", is_flag=True, help="Write the command in your editor")
@click.option("--description", "-d", help="Description of the alias")
@click.option("--tags", "-t", help="Comma-separated tags for the alias")
@click.pass_obj
@reports_errors
def add(app, name, command, multiline, description, tags):
    """Add a new alias"""
    name = name.strip()
    if not name:
        fail("Alias name cannot be empty")
    if app.storage.get_by_name(name) is not None:
        fail(f"Alias '{name}' already exists. Use update command to modify it.")

    if command is None:
        command = read_command(multiline)
    if not command.strip():
        fail("Command cannot be empty")

    alias = app.storage.add(Alias(
        name=name,
        command=command,
        description=description or None,
        tags=parse_tags(tags),
    ))
    console.print(f"[green]✔[/] Alias '[cyan]{escape(alias.name)}[/]' added successfully")


@main.command(name="list")
@click.pass_obj
@reports_errors
def list_aliases(app):
    """List all aliases"""
    aliases = app.storage.get_all()
    if not aliases:
        console.print("[yellow]No aliases found.[/] Add some with 'aliasmate add'")
        return

    table = Table(title=f"Your Aliases ({len(aliases)} total)")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Command", style="green")
    table.add_column("Description", style="dim")
    table.add_column("Tags", style="yellow")
    for alias in aliases:
        if alias.is_multiline:
            command = "\n".join(f"{i}: {line}" for i, line in enumerate(alias.command.splitlines(), 1))
        else:
            command = alias.command
        table.add_row(escape(alias.name), escape(command), escape(alias.description or ""), escape(", ".join(alias.tags or [])) or "—")
    console.print(table)


@main.command()
@click.argument("term")
@click.option("--fuzzy", "-z", is_flag=True, help="Tolerate typos when matching")
@click.pass_obj
@reports_errors
def find(app, term, fuzzy):
    """Find aliases by name, command, description or tag"""
    if not term.strip():
        fail("Search term cannot be empty")
    matches = app.storage.search(term, fuzzy=fuzzy)
    if not matches:
        console.print(f"[yellow]No aliases found matching '{escape(term)}'[/]")
        return

    console.print(f"\n[bold]Found {len(matches)} aliases matching '{escape(term)}':[/]")
    console.print(SEPARATOR)
    for alias in matches:
        show_alias(alias)


@main.command()
@click.argument("name")
@click.option("--command", "-c", help="New command")
@click.option("--multiline", "-m", is_flag=True, help="Edit the command in your editor")
@click.option("--description", "-d", help="New description, empty to clear")
@click.option("--tags", "-t", help="New comma-separated tags, empty to clear")
@click.pass_obj
@reports_errors
def update(app, name, command, multiline, description, tags):
    """Update an existing alias"""
    existing = app.storage.get_by_name(name)
    if existing is None:
        fail(f"Could not find alias '{name}'")

    changes = AliasUpdate(
        command=command if command is not None else UNSET,
        description=description if description is not None else UNSET,
        tags=parse_tags(tags) if tags is not None else UNSET,
    )
    if multiline:
        changes.command = read_command(True, existing.command)
    elif changes.is_empty():
        changes.command = read_command(existing.is_multiline, existing.command)
        changes.description = click.prompt(
            "Description (optional)", default=existing.description or "", show_default=False
        )
        changes.tags = parse_tags(click.prompt(
            "Tags (comma-separated, optional)", default=", ".join(existing.tags or []), show_default=False
        ))

    if app.storage.update(name, changes) is None:
        fail(f"Failed to update alias '{name}'")
    console.print(f"[green]✔[/] Alias '[cyan]{escape(name)}[/]' updated successfully")


@main.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
@reports_errors
def remove(app, name, yes):
    """Remove an alias"""
    if app.storage.get_by_name(name) is None:
        fail(f"Could not find alias '{name}'")

    if not yes and app.config.get("confirm_delete", True):
        if not click.confirm(f"Are you sure you want to remove alias '{name}'?", default=False):
            console.print("[yellow]Operation cancelled.[/]")
            return

    if app.storage.remove(name):
        console.print(f"[green]✔[/] Alias '[cyan]{escape(name)}[/]' removed successfully")
    else:
        fail(f"Could not find alias '{name}'")


@main.command()
@click.argument("name", required=False)
@click.option("--yes", "-y", is_flag=True, help="Run without asking for confirmation")
@click.option("--no-edit", is_flag=True, help="Do not offer to edit the command afterwards")
@click.pass_obj
@reports_errors
def run(app, name, yes, no_edit):
    """Run an alias command"""
    if not name:
        name = click.prompt("Enter the name of the alias to run")
    alias = app.storage.get_by_name(name)
    if alias is None:
        fail(f"Alias '{name}' not found")

    cwd = os.getcwd()
    console.print(f"[dim]Current directory: {escape(cwd)}[/]")
    console.print("\n[bold]Command to execute:[/]")
    console.print(alias.command, style="cyan", markup=False, highlight=False)
    console.print(SEPARATOR)

    if not yes and app.config.get("confirm_run", True):
        if not click.confirm("Do you want to execute this command?", default=True):
            console.print("[yellow]Command execution cancelled.[/]")
            return

    console.print("[green]Executing command...[/]")
    executor = ShellExecutor(cwd=cwd)
    try:
        executor.run(alias.command, before_line=lambda line: console.print(f"> {line}", style="dim", markup=False))
    except ExecutionFailure as e:
        console.print(f"[red]✗[/] {escape(str(e))}")
        raise SystemExit(e.exit_code if e.exit_code and e.exit_code > 0 else 1)
    console.print("[green]✔[/] Command executed successfully")

    if no_edit or not app.config.get("offer_edit_after_run", True):
        return
    if click.confirm("Do you want to update this command?", default=False):
        edited = click.edit(alias.command)
        if edited is None or edited.rstrip("\n") == alias.command:
            console.print("[yellow]No changes made.[/]")
            return
        if not split_command_lines(edited):
            fail("Command cannot be empty")
        if app.storage.update(name, AliasUpdate(command=edited.rstrip("\n"))) is None:
            fail(f"Failed to update alias '{name}'")
        console.print(f"[green]✔[/] Alias '[cyan]{escape(name)}[/]' updated successfully")


@main.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path), default="aliases.json")
@click.option("--format", "fmt", type=click.Choice(["json", "yaml"]), help="Export format (default from file suffix)")
@click.pass_obj
@reports_errors
def export(app, file, fmt):
    """Export aliases to a file"""
    if not app.storage.get_all():
        console.print("[yellow]No aliases found to export.[/]")
        return

    porter = AliasPorter(app.storage)
    success, message = porter.export_to_file(file.resolve(), format=fmt)
    if not success:
        fail(message)
    console.print(f"[green]✔[/] {escape(message)}")


@main.command(name="import")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--mode",
    type=click.Choice([mode.value for mode in ImportMode]),
    help="merge: add new, skip existing; overwrite: replace all; append: add all, may duplicate",
)
@click.pass_obj
@reports_errors
def import_aliases(app, file, mode):
    """Import aliases from a file"""
    mode = ImportMode(mode or app.config.get("import_mode", ImportMode.MERGE.value))
    porter = AliasPorter(app.storage)
    success, message = porter.import_from_file(file.resolve(), mode)
    if not success:
        fail(message)
    console.print(f"[green]✔[/] {escape(message)}")


@main.command()
@click.option("--shell", "-s", type=click.Choice(["bash", "zsh", "fish", "sh"]), help="Target shell (auto-detect if not specified)")
@click.option("--file", "-f", type=click.Path(dir_okay=False, path_type=Path), help="Custom config file path")
@click.option("--dry-run", is_flag=True, help="Show the changes without writing them")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
@reports_errors
def apply(app, shell, file, dry_run, yes):
    """Apply all aliases to your shell configuration"""
    aliases = app.storage.get_all()
    if not aliases:
        console.print("[yellow]No aliases found to apply.[/]")
        return

    detector = ShellDetector()
    shell = shell or app.config.get("default_shell")
    shell_type = ShellType(shell) if shell else detector.detect_current_shell()
    if shell_type is ShellType.UNKNOWN:
        shell_type = ShellType.BASH
    target_file = file.expanduser().resolve() if file else detector.get_config_file(shell_type)

    writer = ShellConfigWriter(shell_type)
    if dry_run:
        old, new = writer.preview(target_file, aliases)
        console.print(Syntax(diff_text(old, new, target_file), "diff"))
        return

    if not target_file.exists():
        console.print(f"[yellow]Config file not found: {escape(str(target_file))}[/]")
        if not yes and not click.confirm("File does not exist. Create it?", default=True):
            console.print("[yellow]Operation cancelled.[/]")
            return
    elif not yes and not click.confirm(f"Apply {len(aliases)} aliases to {target_file}?", default=True):
        console.print("[yellow]Operation cancelled.[/]")
        return

    success, message = writer.apply_aliases(target_file, aliases)
    if not success:
        fail(message)
    console.print(f"[green]✔[/] {escape(message)}")
    console.print(f"[yellow]Note: You may need to restart your shell or run \"source {escape(str(target_file))}\" to apply changes[/]")


@main.command(name="config")
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.pass_obj
@reports_errors
def config_command(app, key, value):
    """Show settings, or set KEY to VALUE"""
    if key is None:
        table = Table(title="aliasmate settings")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for name in sorted(app.config.config):
            table.add_row(escape(name), escape(repr(app.config.get(name))))
        console.print(table)
        console.print(f"[dim]{escape(str(app.config.config_path))}[/]")
        return

    if key not in Config.DEFAULT_CONFIG:
        fail(f"Unknown setting '{key}'")
    if value is None:
        console.print(repr(app.config.get(key)), markup=False)
        return

    parsed = Config.parse(key, value)
    try:
        app.config.set(key, parsed)
    except OSError as e:
        fail(f"Could not save settings: {e}")
    console.print(f"[green]✔[/] {key} = {escape(repr(parsed))}")


if __name__ == "__main__":
    main()
