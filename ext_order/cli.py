"""Click CLI with sort, bundle, and deps subcommands."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path

import click

from ext_order import __version__
from ext_order.errors import OrderError
from ext_order.extractor import STRATEGIES
from ext_order.models import OrderConfig
from ext_order.pipeline import run_bundle, run_order

_DIR = click.Path(file_okay=False, path_type=Path)

_EXAMPLES = """
\b
Examples:
  ext-order sort -r /path/to/my/ext/app
  ext-order bundle -r /path/to/my/ext/app --minify -o app.min.js
  ext-order bundle -r /path/to/my/ext/app -e /path/to/my/ext/app/extra -o app.all.js
"""


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def source_options(func):
    """Options shared by every subcommand that reads sources."""
    @click.option("--include", "-i", multiple=True, type=_DIR, help="Source files directory to include.")
    @click.option("--include-recursive", "-r", multiple=True, type=_DIR,
                  help="Source files directory to include (with subdirectories).")
    @click.option("--exclude", "-e", multiple=True, type=_DIR, help="Exclude directory path.")
    @click.option("--pattern", "-p", default="*.js", show_default=True, help="Search pattern.")
    @click.option("--strategy", type=click.Choice(STRATEGIES), default="auto", show_default=True,
                  help="Declaration extraction strategy.")
    @click.option("--strict-parse", is_flag=True, help="Fail on files that cannot be parsed.")
    @click.option("--strict", "strict_unresolved", is_flag=True,
                  help="Fail when a dependency is not declared by any file.")
    @click.option("--framework-ns", multiple=True, default=("Ext",), show_default=True,
                  help="Root namespace supplied externally; unresolved names under it are ignored.")
    @click.option("--verbose", "-v", count=True, help="Log progress (-vv for debug output).")
    @functools.wraps(func)
    def wrapper(include, include_recursive, exclude, pattern, strategy, strict_parse,
                strict_unresolved, framework_ns, verbose, **kwargs):
        _configure_logging(verbose)
        if not include and not include_recursive:
            raise click.UsageError("Specify at least one --include or --include-recursive directory")
        config = OrderConfig(
            include=list(include),
            include_recursive=list(include_recursive),
            exclude=list(exclude),
            pattern=pattern,
            strategy=strategy,
            strict_parse=strict_parse,
            strict_unresolved=strict_unresolved,
            framework_namespaces=list(framework_ns),
        )
        return func(config=config, **kwargs)
    return wrapper


def _run(func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except (OrderError, OSError, ValueError) as e:
        raise click.ClickException(str(e))


def _echo_unresolved(unresolved: dict[str, list[str]]) -> None:
    if not unresolved:
        return
    click.echo(click.style("Unresolved dependencies:", fg="yellow"), err=True)
    for label, names in unresolved.items():
        click.echo(f"  {label}: {', '.join(names)}", err=True)


@click.group(epilog=_EXAMPLES)
@click.version_option(version=__version__)
def cli():
    """ext-order: Order Ext JS class files so every file follows its dependencies."""


@cli.command()
@source_options
@click.option("--json", "as_json", is_flag=True, help="Print the ordered file list as JSON.")
def sort(config: OrderConfig, as_json: bool):
    """Show sorted source file names."""
    result = _run(run_order, config)

    labels = [unit.label for unit in result.units]
    if as_json:
        click.echo(json.dumps(labels, indent=2))
    else:
        for label in labels:
            click.echo(label)
    _echo_unresolved(result.unresolved)


@cli.command()
@source_options
@click.option("-o", "--out", "output", type=click.Path(dir_okay=False, path_type=Path), required=True,
              help="File output path.")
@click.option("--minify", "-m", is_flag=True, help="Minify the concatenated output.")
@click.option("--separator", default="\n", help="Text placed between concatenated files.")
def bundle(config: OrderConfig, output: Path, minify: bool, separator: str):
    """Concatenate (and optionally minify) sorted files into one output file."""
    config.output = output
    config.separator = separator
    result = _run(run_bundle, config, minify=minify)

    click.echo(
        f"Successfully wrote file in {result.elapsed_ms}ms: "
        f"{result.output_path} ({result.byte_count} bytes)"
    )


@cli.command()
@source_options
@click.option("--json", "as_json", is_flag=True, help="Print declarations as JSON.")
def deps(config: OrderConfig, as_json: bool):
    """List declared classes and dependencies per file, in load order."""
    result = _run(run_order, config)

    if as_json:
        payload = {
            "files": [
                {
                    "path": unit.label,
                    "declarations": [d.to_dict() for d in unit.declarations],
                    "depends_on": [dep.label for dep in unit.dependencies or ()],
                }
                for unit in result.units
            ],
            "unresolved": result.unresolved,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    for unit in result.units:
        click.echo(click.style(unit.label, fg="cyan"))
        if not unit.declarations:
            click.echo(click.style("  (no declarations)", dim=True))
        for decl in unit.declarations:
            color = "magenta" if decl.is_application else "yellow"
            click.echo(f"  {click.style(decl.kind.value, fg=color):>20}  {decl.display_name}")
            for name in decl.dependency_names:
                click.echo(f"    -> {name}")
        click.echo()

    _echo_unresolved(result.unresolved)


if __name__ == "__main__":
    cli()
