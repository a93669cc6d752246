"""Bundlekit CLI - Main Entry Point.

Commands:
    list      - Configured bundles and their source counts
    includes  - Flattened source references of a bundle
    build     - Materialize a bundle
    resolve   - URL to include for a single source
    check     - Validate the bundle configuration
"""

import logging
from typing import Optional, Tuple

import click

from . import __version__, __cli_name__
from .colors import bullet, error, info, kv, section, success, warning
from ..config import ConfigLoader
from ..faults import Fault
from ..manager import CSS_BUNDLES, SCRIPT_BUNDLES, BundleManager
from ..scripts import DynamicScriptManager

KINDS = {"css": CSS_BUNDLES, "script": SCRIPT_BUNDLES}


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--config', '-c', 'config_paths', multiple=True,
              help='Config file (JSON or YAML, glob allowed). Repeatable.')
@click.option('--env-file', type=click.Path(dir_okay=False), help='.env file to load')
@click.option('--section', default='bundling', show_default=True,
              help='Config section holding the bundling options')
@click.option('--kind', type=click.Choice(sorted(KINDS)), default='css', show_default=True)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, config_paths: Tuple[str, ...], env_file: Optional[str], section: str,
        kind: str, verbose: bool):
    """Resolve, inspect and build asset bundles.

    \b
    Quick start:
      bundlekit -c bundles.yaml check
      bundlekit -c bundles.yaml build Site -o site.css
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['config_paths'] = list(config_paths)
    ctx.obj['env_file'] = env_file
    ctx.obj['section'] = section
    ctx.obj['kind'] = KINDS[kind]


def _load_manager(ctx, *, force_enabled: bool = False) -> BundleManager:
    """Build a manager from the group options, exiting on faults."""
    try:
        loader = ConfigLoader.load(
            paths=ctx.obj['config_paths'],
            env_file=ctx.obj['env_file'],
        )
        config = loader.get_bundling_config(ctx.obj['section'])
        if force_enabled:
            config.enabled = True
        return BundleManager(config, DynamicScriptManager(), kind=ctx.obj['kind'])
    except Fault as fault:
        error(str(fault))
        ctx.exit(1)


@cli.command('list')
@click.pass_context
def list_bundles(ctx):
    """List configured bundles."""
    manager = _load_manager(ctx)
    keys = list(manager.config.bundles)
    if not keys:
        warning("No bundles configured")
        return

    section(f"{manager.kind.name} bundles")
    for key in keys:
        count = len(manager.get_includes(key))
        kv(key, f"{count} source{'s' if count != 1 else ''}")

    if not manager.is_enabled():
        info("Bundling is disabled; sources are served individually")


@cli.command()
@click.argument('bundle_key')
@click.pass_context
def includes(ctx, bundle_key: str):
    """Show the flattened sources of BUNDLE_KEY."""
    manager = _load_manager(ctx)
    sources = manager.get_includes(bundle_key)
    if not sources:
        warning(f"Bundle '{bundle_key}' has no sources")
        ctx.exit(1)

    for source in sources:
        bullet(source)


@cli.command()
@click.argument('bundle_key')
@click.option('--output', '-o', type=click.File('w', encoding='utf-8'), help='Write to file')
@click.pass_context
def build(ctx, bundle_key: str, output):
    """Materialize BUNDLE_KEY (bundling is forced on)."""
    manager = _load_manager(ctx, force_enabled=True)
    try:
        text = manager.materialize(bundle_key)
    except Fault as fault:
        error(str(fault))
        ctx.exit(1)

    if output is not None:
        output.write(text)
        success(f"Wrote bundle '{bundle_key}' ({len(text)} chars)")
    else:
        click.echo(text)


@cli.command()
@click.argument('source')
@click.pass_context
def resolve(ctx, source: str):
    """Show the URL to include for SOURCE."""
    manager = _load_manager(ctx)
    click.echo(manager.resolve(source))


@cli.command()
@click.pass_context
def check(ctx):
    """Validate bundle definitions (cycles, nesting depth, options)."""
    manager = _load_manager(ctx)
    configured = len(manager.config.bundles)
    registered = len(manager.bundle_keys())
    success(f"{configured} bundle(s) configured, {registered} registered")


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
