"""
Command line interface for tagtree using Click.

Indexes a markdown vault and prints the configured hierarchy views.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, get_args

import click
from pydantic import ValidationError

from . import __version__
from .config import AppConfig, load_config
from .config.schema import SortMode
from .host import MarkdownVaultHost
from .indexer import LabelIndexer
from .logging import configure_logging
from .tree import TreeBuilder, format_tree, natural_key

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 3

_CONFIG_ERRORS = (FileNotFoundError, ValidationError, ValueError)


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that loads the configuration."""
    func = click.option(
        "--quiet",
        is_flag=True,
        help="Silence console logging",
    )(func)
    func = click.option(
        "-v",
        "--verbose",
        count=True,
        help="Increase log verbosity (-v INFO, -vv DEBUG)",
    )(func)
    func = click.option(
        "-c",
        "--config",
        type=click.Path(exists=True, path_type=Path),
        help="Path to the YAML configuration file",
    )(func)
    return func


def _load_app_config(
    config: Path | None,
    verbose: int,
    quiet: bool,
    vault: Path | None = None,
) -> AppConfig:
    """Load the configuration and set up logging; exit 3 on invalid config."""
    cli_args = {"vault": vault, "verbose": verbose or None}
    try:
        app_config = load_config(config_path=config, cli_args=cli_args)
    except _CONFIG_ERRORS as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(app_config.logging, quiet=quiet)
    return app_config


def _open_index(app_config: AppConfig) -> LabelIndexer:
    """Scan the vault and return a ready indexer."""
    vault_root = Path(app_config.vault.root)
    if not vault_root.is_dir():
        raise FileNotFoundError(f"Vault directory not found: {vault_root}")

    host = MarkdownVaultHost(vault_root, exclude_dirs=app_config.vault.exclude_dirs)
    indexer = LabelIndexer(host)
    asyncio.run(indexer.initialize())
    return indexer


@click.group()
@click.version_option(version=__version__, prog_name="tagtree")
def main() -> None:
    """tagtree - hierarchical label trees for markdown vaults.

    tagtree indexes the tags and frontmatter properties of a folder of
    markdown notes and prints them as configurable multi-level trees.
    """
    pass


@main.command()
@click.option("--view", "view_name", help="View to render (defaults to default_view)")
@click.option(
    "--vault",
    type=click.Path(file_okay=False, path_type=Path),
    help="Vault directory (overrides vault.root)",
)
@click.option("--depth", type=click.IntRange(min=1), help="Deepest tree level to print")
@click.option("--files/--no-files", "show_files", default=None, help="List documents under their groups")
@click.option(
    "--sort",
    "sort_mode",
    type=click.Choice(get_args(SortMode)),
    help="Node sort mode (levels with their own sort_by keep it)",
)
@_common_options
def tree(
    view_name: str | None,
    vault: Path | None,
    depth: int | None,
    show_files: bool | None,
    sort_mode: str | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
) -> None:
    """Print the tree for a hierarchy view."""
    app_config = _load_app_config(config, verbose, quiet, vault=vault)

    try:
        view = app_config.get_view(view_name)
    except KeyError:
        names = ", ".join(v.name for v in app_config.views)
        click.echo(f"Unknown view '{view_name}'. Available: {names}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    if sort_mode:
        view = view.model_copy(update={"default_node_sort_mode": sort_mode})
    view_state = app_config.get_view_state(view.name)
    if show_files is None:
        show_files = view_state.show_files

    try:
        indexer = _open_index(app_config)
        root = TreeBuilder(indexer).build_from_hierarchy(view, view_state)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILED)

    root.name = view.name
    click.echo(format_tree(root, max_depth=depth, show_files=show_files))


@main.command()
@click.option("--under", "under", help="Only labels equal to or nested under this label")
@click.option(
    "--vault",
    type=click.Path(file_okay=False, path_type=Path),
    help="Vault directory (overrides vault.root)",
)
@_common_options
def labels(
    under: str | None,
    vault: Path | None,
    config: Path | None,
    verbose: int,
    quiet: bool,
) -> None:
    """List indexed labels with their document counts."""
    app_config = _load_app_config(config, verbose, quiet, vault=vault)

    try:
        indexer = _open_index(app_config)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILED)

    found = indexer.get_labels_under(under) if under else indexer.get_all_labels()
    if not found:
        click.echo("No labels found.")
        return

    for label in sorted(found, key=natural_key):
        count = len(indexer.get_documents_for_label(label))
        click.echo(f"  {label:<40s} {count:>5d}")


@main.command()
@_common_options
def views(config: Path | None, verbose: int, quiet: bool) -> None:
    """List configured hierarchy views."""
    app_config = _load_app_config(config, verbose, quiet)

    click.echo(f"Views ({len(app_config.views)}):\n")
    for view in app_config.views:
        marker = " *" if view.name == app_config.default_view else ""
        levels = " > ".join(
            f"{level.type}:{level.key or '*'}" for level in view.levels
        )
        root = f"  [#{view.root_tag}]" if view.root_tag else ""
        click.echo(f"  {view.name}{marker}{root}")
        click.echo(f"      {levels}")

    click.echo("\n* default view")


@main.command("validate-config")
@_common_options
def validate_config(config: Path | None, verbose: int, quiet: bool) -> None:
    """Validate a YAML configuration file."""
    app_config = _load_app_config(config, verbose, quiet)
    click.echo("Valid configuration")
    click.echo(f"  Vault: {app_config.vault.root}")
    click.echo(f"  Views defined: {len(app_config.views)}")
    click.echo(f"  Default view: {app_config.default_view}")


if __name__ == "__main__":
    main()
