"""Command-line interface for gql-schemagen."""

import json
import logging
from pathlib import Path

import click

from .core.config import CompilerConfig
from .core.errors import ExtractionError, SchemaCompileError
from .core.extractor import extract, load_unit
from .core.hooks import HookRunner, SelectDeclarationsHook
from .core.pipeline import analyze, compile_units
from .core.type_graph import render


def load_json(path: Path) -> dict:
    """Read a JSON document, reporting malformed input as ExtractionError."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ExtractionError(f"{path.name} is not valid JSON: {e}", declaration=path.stem) from e


def load_config(path: str | None) -> CompilerConfig:
    if not path:
        return CompilerConfig()
    return CompilerConfig.from_dict(load_json(Path(path)))


@click.group()
@click.version_option(package_name="gql-schemagen")
def main():
    """Compile annotated declarations into GraphQL schema modules.

    Input files are the JSON declaration metadata produced by the host
    type checker, one compilation unit per file.
    """
    pass


@main.command("compile")
@click.option(
    "--input",
    "-i",
    "inputs",
    required=True,
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Declaration metadata file (JSON). Repeat for several units.",
)
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(),
    help="Output file for a single unit, or output directory.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Compiler configuration file (JSON).",
)
@click.option(
    "--header",
    default=None,
    help="Header line to prepend to each generated module.",
)
@click.option(
    "--include",
    multiple=True,
    help="Only compile declarations matching this shell-style pattern. Repeatable.",
)
@click.option(
    "--exclude",
    multiple=True,
    help="Skip declarations matching this shell-style pattern. Repeatable.",
)
@click.option(
    "--workers",
    "-w",
    default=None,
    type=int,
    help="Parallel extraction workers (default: Python's choice).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def compile_command(inputs, output, config_path, header, include, exclude, workers, verbose):
    """Compile declaration metadata into graphql-core schema modules.

    Examples:

        gql-schemagen compile -i users.json -o ./schema/users.py

        gql-schemagen compile -i users.json -i billing.json -o ./schema
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(config_path)
    if header:
        config.header = header
    hooks = HookRunner()
    if include or exclude:
        hooks.add_pre_hook(SelectDeclarationsHook(include=include, exclude=exclude))

    units = []
    failures = 0
    for path in inputs:
        try:
            units.append(load_json(Path(path)))
        except SchemaCompileError as e:
            click.echo(f"FAILED {path}: {e}", err=True)
            failures += 1

    click.echo(f"Compiling {len(units)} unit(s)...")
    result = compile_units(units, config, hooks, max_workers=workers)

    output_path = Path(output).resolve()
    single_file = len(inputs) == 1 and output_path.suffix == ".py"
    for unit_result in result.results:
        if not unit_result.ok:
            failures += 1
            click.echo(f"FAILED {unit_result.unit}: {unit_result.error}", err=True)
            continue

        schema = unit_result.schema
        target = output_path if single_file else output_path / schema.filename
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            f.write(schema.content)
        if verbose:
            click.echo(f"  {schema.unit}: {len(schema.type_names)} types")
        click.echo(f"Wrote {target}")

    if failures:
        raise SystemExit(1)
    click.echo("Done!")


@main.command("inspect")
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Declaration metadata file (JSON).",
)
def inspect_command(input_path):
    """Print resolved types and resolver bindings without emitting code."""
    try:
        model = extract(load_unit(load_json(Path(input_path))))
        compiled = analyze(model)
    except SchemaCompileError as e:
        click.echo(f"FAILED: {e}", err=True)
        raise SystemExit(1)

    for node in compiled.graph.named_types():
        if getattr(node, "builtin", False):
            continue
        kind = type(node).__name__
        click.echo(f"{kind} {node.name}")
        for graph_field in getattr(node, "fields", []):
            binding = compiled.bindings.get(node.name, graph_field.name)
            click.echo(f"  {graph_field.name}: {render(graph_field.type)}  -> {binding.expression}")
    for template in compiled.graph.generics.values():
        click.echo(f"Generic {template.name}<{', '.join(template.params)}>")
        for graph_field in template.fields:
            binding = compiled.bindings.get(template.name, graph_field.name)
            click.echo(f"  {graph_field.name}: {render(graph_field.type)}  -> {binding.expression}")


if __name__ == "__main__":
    main()
