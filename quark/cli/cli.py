"""Quark CLI - manage the extensions of an installation.

Usage:
    quark -a bundles:reload [-l]                 - Rescan the extensions directory
    quark -a extensions:list                     - Show known extensions
    quark -a extensions:enable -t sqlite.driver  - Enable an extension
    quark -a extensions:disable -t sqlite.driver - Disable an extension
"""

import sys
from pathlib import Path
from typing import Callable, Optional

import click

from quark import __version__
from quark.config import Config
from quark.core.errors import QuarkError, SupplierError, format_exception_chain
from quark.core.logging import setup_logging
from quark.extensions import Extensions, PopulateMode
from quark.extensions.suppliers import CachingSupplier
from quark.models import ExtensionState


class Context:
    """Options shared by every action."""

    def __init__(self, extensions: Extensions, verbose: bool, silent: bool, listing: bool, target: Optional[str]):
        self.extensions = extensions
        self.verbose = verbose
        self.silent = silent
        self.listing = listing
        self.target = target

    def echo(self, message: str = "") -> None:
        if not self.silent:
            click.echo(message)

    def debug(self, message: str) -> None:
        if self.verbose:
            click.echo(message)


def _print_list(ctx: Context) -> None:
    if len(ctx.extensions) == 0:
        ctx.echo("No extensions found.")
        return

    ctx.echo("\nExtensions:")
    for descriptor in ctx.extensions:
        ctx.echo(f"  - {descriptor.to_display_string()}")
        if ctx.verbose:
            if descriptor.description:
                click.echo(f"    {descriptor.description}")
            click.echo(f"    Path: {descriptor.path}")
            if descriptor.extension_dependencies:
                click.echo(f"    Depends on: {', '.join(descriptor.extension_dependencies)}")


def _require_target(ctx: Context) -> str:
    if not ctx.target:
        raise click.UsageError("This action needs an extension id (--target)")
    return ctx.target


def reload_bundles(ctx: Context) -> None:
    """Rescan the extensions directory and rewrite the cache."""
    extensions = ctx.extensions

    # previous states survive the rescan
    if any(isinstance(s, CachingSupplier) and s.available() for s in extensions.suppliers):
        try:
            extensions.populate(PopulateMode.CACHED)
        except SupplierError as e:
            click.echo(f"Warning: ignoring the extension cache: {e.message}", err=True)

    ctx.debug("Scanning for extensions...")
    if not extensions.scan(keep_states=True):
        click.echo("Could not scan the extensions directory.", err=True)
        sys.exit(1)

    for name, reason in sorted(extensions.rejected.items()):
        ctx.debug(f"Skipped {name}: {reason}")

    ctx.debug("Writing the extension cache...")
    if not extensions.cache():
        click.echo("Warning: the extension cache could not be written.", err=True)

    ctx.echo(f"Reloaded {len(extensions)} extension(s).")
    if ctx.listing:
        _print_list(ctx)


def list_extensions(ctx: Context) -> None:
    """Show every known extension with its state."""
    ctx.extensions.populate(PopulateMode.AUTO)
    _print_list(ctx)


def _change_state(ctx: Context, state: ExtensionState) -> None:
    name = _require_target(ctx)
    ctx.extensions.populate(PopulateMode.AUTO)
    ctx.extensions.set(name, "state", state)
    ctx.extensions.cache()
    ctx.echo(f"Extension {name} is now {ctx.extensions.get(name).state.value}.")


def enable_extension(ctx: Context) -> None:
    _change_state(ctx, ExtensionState.ENABLED)


def disable_extension(ctx: Context) -> None:
    _change_state(ctx, ExtensionState.DISABLED)


ACTIONS: dict[str, Callable[[Context], None]] = {
    "bundles:reload": reload_bundles,
    "extensions:list": list_extensions,
    "extensions:enable": enable_extension,
    "extensions:disable": disable_extension,
}


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="Quark")
@click.option("--action", "-a", help="Action to run: " + ", ".join(ACTIONS))
@click.option("--verbose", "-v", is_flag=True, help="Show more output")
@click.option("--silent", "-s", is_flag=True, help="Show no output except errors")
@click.option("--list", "-l", "listing", is_flag=True, help="List the extensions after reloading")
@click.option("--target", "-t", help="Extension id for the enable/disable actions")
@click.option("--directory", "-d", type=click.Path(file_okay=False), help="Extensions directory to use")
def cli(action: Optional[str], verbose: bool, silent: bool, listing: bool, target: Optional[str], directory: Optional[str]):
    """Quark - manage framework extensions.

    Examples:
        quark -a bundles:reload -l
        quark -a extensions:enable -t sqlite.driver
    """
    if verbose and silent:
        raise click.UsageError("--verbose and --silent cannot be used together")
    if not action:
        raise click.UsageError("No action given (use --action)")
    if action not in ACTIONS:
        click.echo(f"Unknown action '{action}'. Available: {', '.join(ACTIONS)}", err=True)
        sys.exit(1)

    config = Config()
    if directory:
        config.paths.extensions_dir = Path(directory)

    setup_logging(
        level="DEBUG" if verbose else config.log.level,
        format_type=config.log.format,
        log_dir=config.paths.logs_dir,
        file_enabled=config.log.file_enabled,
        console_enabled=config.log.console_enabled and not silent,
        force=True
    )

    extensions = Extensions(config=config)
    extensions.set_default_suppliers()

    try:
        ACTIONS[action](Context(extensions, verbose, silent, listing, target))
    except QuarkError as e:
        click.echo(format_exception_chain(e) if verbose else e.format_user_friendly(), err=True)
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
