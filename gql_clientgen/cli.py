"""Command-line interface for gql-clientgen."""

import logging
import shutil
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path

import click

from .core.codegen import CodeGen
from .core.config import CodeGenConfig
from .core.errors import CodeGenError
from .core.generator import CodeGenerator
from .core.parser import SchemaParser

ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz")


def extract_archive(archive_path: Path) -> str:
    """Extract archive to temp directory. Returns path to extracted content."""
    temp_dir = tempfile.mkdtemp()
    if archive_path.suffix == ".zip":
        with zipfile.ZipFile(archive_path, "r") as zip_ref:
            zip_ref.extractall(temp_dir)
    elif archive_path.name.endswith((".tar.gz", ".tgz")):
        with tarfile.open(archive_path, "r:gz") as tar_ref:
            tar_ref.extractall(temp_dir, filter="data")
    else:
        shutil.rmtree(temp_dir)
        raise ValueError(f"Unsupported archive format: {archive_path.suffix}")
    return temp_dir


@contextmanager
def schema_source(schema: str, verbose: bool):
    """Yield a schema file or directory, extracting archives first."""
    schema_path = Path(schema).resolve()
    temp_dir = None
    try:
        # Handle archives
        if schema_path.is_file() and schema_path.name.lower().endswith(ARCHIVE_SUFFIXES):
            click.echo(f"Extracting archive {schema_path.name}...")
            temp_dir = extract_archive(schema_path)
            schema_path = Path(temp_dir)
            if verbose:
                click.echo(f"  Extracted to: {temp_dir}")
        yield schema_path
    finally:
        # Clean up temp directory
        if temp_dir:
            shutil.rmtree(temp_dir)


def parse_type_mapping(ctx, param, values) -> dict[str, str]:
    """Turn repeated 'Scalar=module.Type' options into a dict."""
    mapping = {}
    for value in values:
        scalar, sep, dotted = value.partition("=")
        if not sep or not scalar.strip() or not dotted.strip():
            raise click.BadParameter(f"expected Scalar=module.Type, got {value!r}")
        mapping[scalar.strip()] = dotted.strip()
    return mapping


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(package_name="gql-clientgen")
def main():
    """GraphQL client API generator for Python.

    Generate query carriers, projections and typed data models from GraphQL
    schemas.
    """
    pass


@main.command()
@click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True),
    help="Path to GraphQL schema file, directory, or archive (.zip, .tar.gz, .tgz).",
)
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(),
    help="Output directory for generated code.",
)
@click.option(
    "--max-projection-depth",
    type=int,
    default=None,
    help="Stop expanding projections below this depth (default: unlimited).",
)
@click.option(
    "--short-projection-names",
    is_flag=True,
    help="Abbreviate projection class names to two characters per path segment.",
)
@click.option(
    "--include-query",
    multiple=True,
    help="Generate only these queries (repeatable; default: all).",
)
@click.option(
    "--include-mutation",
    multiple=True,
    help="Generate only these mutations (repeatable; default: all).",
)
@click.option(
    "--include-subscription",
    multiple=True,
    help="Generate only these subscriptions (repeatable; default: all).",
)
@click.option(
    "--data-types/--no-data-types",
    default=True,
    help="Emit every data type, or only the input/enum types the operations need.",
)
@click.option(
    "--type-mapping",
    multiple=True,
    callback=parse_type_mapping,
    help="Map a scalar to a Python type, e.g. Long=int or Money=decimal.Decimal (repeatable).",
)
@click.option(
    "--template-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Directory with Jinja2 templates overriding the built-in ones.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def generate(
    schema: str,
    output: str,
    max_projection_depth: int | None,
    short_projection_names: bool,
    include_query: tuple[str, ...],
    include_mutation: tuple[str, ...],
    include_subscription: tuple[str, ...],
    data_types: bool,
    type_mapping: dict[str, str],
    template_dir: str | None,
    verbose: bool,
):
    """Generate a Python client API from a GraphQL schema.

    Examples:

        gql-clientgen generate --schema ./schema --output ./generated

        gql-clientgen generate -s ./schema.graphqls -o ./client --max-projection-depth 3

        gql-clientgen generate -s ./schema.tgz -o ./client --include-query movies
    """
    configure_logging(verbose)
    output_path = Path(output).resolve()
    config = CodeGenConfig(
        max_projection_depth=max_projection_depth,
        short_projection_names=short_projection_names,
        generate_data_types=data_types,
        include_queries=set(include_query),
        include_mutations=set(include_mutation),
        include_subscriptions=set(include_subscription),
        type_mapping=type_mapping,
        package_name=output_path.name,
    )

    with schema_source(schema, verbose) as schema_path:
        if verbose:
            click.echo(f"Schema: {schema_path}")
            click.echo(f"Output: {output_path}")

        try:
            # Parse schema
            click.echo("Parsing schema...")
            model = SchemaParser(str(schema_path)).parse_all()

            if verbose:
                click.echo(f"  Types: {len(model.types)}")
                click.echo(f"  Queries: {len(model.queries)}")
                click.echo(f"  Mutations: {len(model.mutations)}")
                click.echo(f"  Subscriptions: {len(model.subscriptions)}")

            # Build the generation model
            click.echo("Building projections...")
            result = CodeGen(model, config).generate()

            if verbose:
                click.echo(f"  Operations: {len(result.operations)}")
                click.echo(f"  Projections: {len(result.client_projections)}")
                click.echo(f"  Data types: {len(result.data_types)}")
                click.echo(f"  Enums: {len(result.enum_types)}")
        except CodeGenError as e:
            raise click.ClickException(str(e)) from e

        # Generate code
        click.echo("Generating code...")
        generator = CodeGenerator(result, model, str(output_path), template_dir, config)
        written = generator.generate()

    click.echo(f"Done! Generated {len(written)} files in {output_path}")


@main.command()
@click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True),
    help="Path to GraphQL schema file, directory, or archive (.zip, .tar.gz, .tgz).",
)
@click.option(
    "--max-projection-depth",
    type=int,
    default=None,
    help="Stop expanding projections below this depth (default: unlimited).",
)
@click.option(
    "--short-projection-names",
    is_flag=True,
    help="Abbreviate projection class names to two characters per path segment.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def projections(schema: str, max_projection_depth: int | None, short_projection_names: bool, verbose: bool):
    """List the carrier and projection classes each operation would get.

    Examples:

        gql-clientgen projections -s ./schema.graphqls --max-projection-depth 2
    """
    configure_logging(verbose)
    config = CodeGenConfig(
        max_projection_depth=max_projection_depth,
        short_projection_names=short_projection_names,
    )

    with schema_source(schema, verbose) as schema_path:
        try:
            model = SchemaParser(str(schema_path)).parse_all()
            result = CodeGen(model, config).generate()
        except CodeGenError as e:
            raise click.ClickException(str(e)) from e

    for binding in result.operations:
        click.echo(f"{binding.operation.operation_type} {binding.operation.name}: {binding.name}")
        tree = result.projection_for(binding.operation.name, binding.operation.operation_type)
        for node in tree or ():
            marker = " (back-reference)" if node.back_reference else ""
            click.echo(f"  {'  ' * node.depth}{node.name}{marker}")


if __name__ == "__main__":
    main()
