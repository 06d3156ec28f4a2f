"""depinject CLI - Main Entry Point.

Commands:
    check    - Static validation of a service registry
    tree     - Show dependency tree
    graph    - Export dependency graph as Graphviz DOT
    resolve  - Build one service and print it
"""

import importlib
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

import click

from .. import __version__
from ..config import ConfigLoader, ConfigError, InjectorConfig
from ..core import Injector
from ..errors import DIError
from ..graph import DependencyGraph
from . import __cli_name__
from .output import success, error, info, kv, bullet, _CHECK, _CROSS


def load_registry(target: str) -> Mapping:
    """
    Import a registry from ``module.path:attribute``.

    Raises:
        click.BadParameter: If the target is malformed or not a mapping
    """
    if ":" not in target:
        raise click.BadParameter(f"expected 'module:attribute', got {target!r}")

    module_path, attr = target.split(":", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_path!r}: {exc}") from exc

    try:
        registry = getattr(module, attr)
    except AttributeError as exc:
        raise click.BadParameter(f"{module_path!r} has no attribute {attr!r}") from exc

    if not isinstance(registry, Mapping):
        raise click.BadParameter(f"{target!r} is not a mapping of service factories")
    return registry


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Minimal output')
@click.option('--env-file', type=click.Path(dir_okay=False), default=".env",
              show_default=True, help='.env file with DEPINJECT_* settings')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, env_file: str):
    """Inspect and exercise dependency-injection registries.

    \b
    TARGET is an importable registry, e.g. myapp.services:REGISTRY
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet
    ctx.obj['env_file'] = env_file


# ============================================================================
# Commands
# ============================================================================

@cli.command('check')
@click.argument('target')
@click.pass_context
def check(ctx, target: str):
    """
    Validate a registry without building any service.

    Examples:
      depinject check myapp.services:REGISTRY
    """
    registry = load_registry(target)

    try:
        graph = DependencyGraph.from_factories(registry)
        graph.validate()
    except DIError as e:
        error(f"  {_CROSS} Validation failed")
        error(str(e))
        sys.exit(1)

    if not ctx.obj['quiet']:
        success(f"  {_CHECK} Registry is valid")
        kv("Services", str(len(graph.adj_list)))
        kv("Eager", str(len(graph.eager)))
        if ctx.obj['verbose']:
            for name in graph.resolution_order():
                bullet(name)


@cli.command('tree')
@click.argument('target')
@click.option('--root', type=str, help='Service to start the tree from')
@click.option('--out', type=click.Path(dir_okay=False), help='Output file path')
@click.pass_context
def tree(ctx, target: str, root: Optional[str], out: Optional[str]):
    """Show the dependency tree of a registry."""
    registry = load_registry(target)

    try:
        text = DependencyGraph.from_factories(registry).tree(root=root)
    except DIError as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)

    click.echo(text)

    if out:
        Path(out).write_text(text + "\n")
        if not ctx.obj['quiet']:
            info(f"Saved to {out}")


@cli.command('graph')
@click.argument('target')
@click.option('--out', type=click.Path(dir_okay=False), required=True, help='Output DOT file path')
@click.pass_context
def graph(ctx, target: str, out: str):
    """
    Export the dependency graph as Graphviz DOT.

    Visualize with: dot -Tpng services.dot -o services.png
    """
    registry = load_registry(target)

    try:
        dot = DependencyGraph.from_factories(registry).export_dot()
    except DIError as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)

    Path(out).write_text(dot)

    if not ctx.obj['quiet']:
        success(f"  {_CHECK} Graph exported to {out}")


@cli.command('resolve')
@click.argument('target')
@click.argument('name')
@click.pass_context
def resolve(ctx, target: str, name: str):
    """Build NAME (and its dependencies) and print the result."""
    registry = load_registry(target)

    try:
        config = ConfigLoader.load(env_file=ctx.obj['env_file']).build(InjectorConfig)
        value = Injector(registry, config=config).get(name)
    except (DIError, ConfigError) as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)

    click.echo(repr(value))


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
