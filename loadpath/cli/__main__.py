"""loadpath CLI - Main Entry Point.

Commands:
    scan    - List the resources a scan accepts
    types   - List the typed resources and their decomposition
    tagged  - List the resolved objects carrying a tag
"""

import inspect
import logging
import sys
from typing import List, Optional, Tuple

import click

from .. import __version__
from . import __cli_name__
from ..config import ConfigLoader, ScanConfig
from ..context import ImportContext
from ..faults import Fault
from ..filters import ManifestFilter, PackageFilter, TagFilter, TagMode
from ..reflection import Reflection
from ..scanner import PathScanner
from .utils.colors import (
    success, error, warning, dim, bold,
    banner, section, kv, bullet, table,
    _CHECK, _CROSS,
)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str) -> None:
    """Route ``loadpath.*`` loggers to stderr at ``level``."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
    )


def _load_config(ctx: click.Context) -> ScanConfig:
    paths = [ctx.obj['config']] if ctx.obj.get('config') else None
    config = ConfigLoader.load(paths=paths).scan_config()
    configure_logging("debug" if ctx.obj['verbose'] else config.log_level)
    return config


def _context(config: ScanConfig, origins: Tuple[str, ...]) -> ImportContext:
    if origins:
        return ImportContext(origins, name="cli")
    return config.context()


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output (debug logging)')
@click.option('--quiet', '-q', is_flag=True, help='Minimal output')
@click.option('--config', '-c', 'config_path', type=click.Path(), default=None,
              help='Config file (YAML or JSON)')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, config_path: Optional[str]):
    """Discover the resources and types reachable from a set of origins.

    \b
    Quick start:
      loadpath scan ./src --package myapp --subpackages
      loadpath types ./src --package myapp --recursive
      loadpath tagged component ./src --package myapp
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet
    ctx.obj['config'] = config_path


# ============================================================================
# Commands
# ============================================================================

@cli.command('scan')
@click.argument('origins', nargs=-1)
@click.option('--package', '-p', default=None, help='Only keep resources of this package')
@click.option('--subpackages', is_flag=True, help='Also keep resources of subpackages')
@click.option('--tag', '-t', 'tags', multiple=True, help='Only keep types carrying this tag')
@click.option('--all-tags', is_flag=True, help='Require every --tag instead of any')
@click.option('--include-manifest', is_flag=True, help='Keep archive manifests')
@click.pass_context
def scan(ctx, origins, package, subpackages, tags, all_tags, include_manifest):
    """
    List the resources accepted by a scan.

    Examples:
      loadpath scan ./build/app.zip
      loadpath scan ./src -p myapp --subpackages -t component
    """
    try:
        config = _load_config(ctx)
        scanner = PathScanner.of(_context(config, origins))

        for f in _filters(config, package, subpackages, tags, all_tags, include_manifest):
            scanner.filter(f)

        records = scanner.resources()
    except Fault as e:
        error(f"  {_CROSS} Scan failed: {e}")
        sys.exit(1)

    for record in records:
        click.echo(record.name)

    if ctx.obj['quiet']:
        return

    stats = scanner.stats
    click.echo()
    section("Summary")
    kv("Accepted", str(stats.resources_accepted))
    kv("Rejected", str(stats.resources_rejected))
    kv("Directories", str(stats.directories_scanned))
    kv("Archives", str(stats.archives_scanned))
    kv("Scan time", f"{stats.scan_time:.3f}s")

    if scanner.faults:
        warning(f"  {len(scanner.faults)} origin(s) could not be read")
        if ctx.obj['verbose']:
            for fault in scanner.faults:
                bullet(str(fault), fg="yellow")


def _filters(
    config: ScanConfig,
    package: Optional[str],
    subpackages: bool,
    tags: Tuple[str, ...],
    all_tags: bool,
    include_manifest: bool,
) -> List:
    """Command-line options override their config counterparts."""
    if package is None and not subpackages and not tags and not all_tags and not include_manifest:
        return config.filters()

    filters = [] if include_manifest else [ManifestFilter()]

    package = package if package is not None else config.package
    if package is not None:
        recursive = subpackages or config.subpackages
        filters.append(PackageFilter.with_subpackages(package) if recursive else PackageFilter.of(package))

    tags = tags or tuple(config.tags)
    if tags:
        mode = TagMode.ALL if (all_tags or config.require_all_tags) else TagMode.ANY
        filters.append(TagFilter(*tags, mode=mode))

    return filters


@cli.command('types')
@click.argument('origins', nargs=-1)
@click.option('--package', '-p', default=None, help='Package to list')
@click.option('--recursive', '-r', is_flag=True, help='Include subpackages')
@click.option('--top-level', is_flag=True, help='Skip nested types')
@click.pass_context
def types(ctx, origins, package, recursive, top_level):
    """
    List the typed resources of a scan.

    Examples:
      loadpath types ./src -p myapp -r
    """
    try:
        config = _load_config(ctx)
        reflection = Reflection.of(_context(config, origins)).filter(ManifestFilter()).scan()
    except Fault as e:
        error(f"  {_CROSS} Scan failed: {e}")
        sys.exit(1)

    if package is None:
        records = reflection.top_level_types() if top_level else reflection.types()
    elif recursive:
        records = (
            reflection.top_level_types_recursively(package)
            if top_level
            else reflection.types_recursively(package)
        )
    else:
        records = reflection.top_level_types(package) if top_level else reflection.types(package)

    if ctx.obj['quiet']:
        for record in records:
            click.echo(record.type_name)
        return

    if not records:
        dim("  No types found")
        return

    table(
        headers=["Type", "Package", "Simple name"],
        rows=[(r.type_name, r.package_name or "(root)", r.simple_name) for r in records],
    )


@cli.command('tagged')
@click.argument('tag')
@click.argument('origins', nargs=-1)
@click.option('--package', '-p', default="", help='Package prefix (default: every package)')
@click.pass_context
def tagged(ctx, tag, origins, package):
    """
    List the resolved objects carrying TAG.

    Every typed resource under the package prefix is imported.

    Examples:
      loadpath tagged component ./src -p myapp
    """
    try:
        config = _load_config(ctx)
        reflection = Reflection.of(_context(config, origins)).filter(ManifestFilter()).scan()
        targets = reflection.annotated_types_recursively(tag, package)
    except Fault as e:
        error(f"  {_CROSS} Scan failed: {e}")
        sys.exit(1)

    names = sorted(_qualified_name(target) for target in targets)

    if not ctx.obj['quiet']:
        banner("Tagged objects", subtitle=f"tag: {tag}")

    for name in names:
        click.echo(name)

    if not ctx.obj['quiet']:
        click.echo()
        success(f"  {_CHECK} {len(names)} object(s) tagged {bold(tag)}")


def _qualified_name(target) -> str:
    if inspect.ismodule(target):
        return target.__name__
    module = getattr(target, "__module__", None)
    name = getattr(target, "__qualname__", None) or getattr(target, "__name__", repr(target))
    return f"{module}.{name}" if module else name


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == '__main__':
    main()
