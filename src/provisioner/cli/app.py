"""
Root Typer application for the schema-provisioner CLI.

All commands work offline: they read a provisioning spec and build or
inspect bundles without contacting a database. Provisioning itself is done
by the application through :class:`~provisioner.schema.SchemaBuilder`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer
from typer import Typer

from provisioner.cli.utils import console, fail, output_data, resolve_path
from provisioner.core.errors import ProvisionerError
from provisioner.core.logging import configure_logging
from provisioner.core.settings import ProvisionerSettings
from provisioner.core.spec import load_spec
from provisioner.packaging.bundle import BundlePackager
from provisioner.packaging.resolver import ResourceResolver
from provisioner.schema.assembler import BundleAssembler
from provisioner.schema.extractor import extract_procedure_classes

app = Typer(
    name="schema-provisioner",
    help="schema-provisioner: build and inspect schema bundles.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@dataclass
class _ReferenceRow:
    class_name: str
    entry_path: str


@dataclass
class _BundleRow:
    path: str
    size_bytes: int
    limit_bytes: float
    entries: list[str]


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("schema-provisioner")
        except PackageNotFoundError:
            from provisioner import __version__ as v
        typer.echo(f"schema-provisioner {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level."),
) -> None:
    """schema-provisioner CLI: extract procedure classes, package and inspect bundles."""
    configure_logging(level=log_level, json_format=False, to_stderr=True, cache_loggers=False)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def extract(
    spec_file: str = typer.Argument(..., help="Provisioning spec (YAML)"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List the procedure classes referenced by FROM CLASS statements."""
    try:
        spec = load_spec(resolve_path(spec_file))
    except (ProvisionerError, OSError) as exc:
        fail(exc)

    rows = [
        _ReferenceRow(class_name=ref.class_name, entry_path=ref.entry_path(spec.namespace))
        for ref in extract_procedure_classes(spec.procedure_statements)
    ]
    output_data(rows, as_json=json_out, title="Procedure Classes")


@app.command()
def package(
    spec_file: str = typer.Argument(..., help="Provisioning spec (YAML)"),
    root: str = typer.Option(..., "--root", "-r", help="Directory holding the class files and archives"),
    output: str = typer.Option(".", "--output", "-o", help="Directory to write the bundle into"),
    max_message_length: int | None = typer.Option(
        None, "--max-message-length", min=1, help="Transport maximum message size in bytes"
    ),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Build and size-check a bundle without contacting a database."""
    overrides = {} if max_message_length is None else {"max_message_length": max_message_length}
    settings = ProvisionerSettings(**overrides)

    out_dir = resolve_path(output)
    try:
        spec = load_spec(resolve_path(spec_file))
        out_dir.mkdir(parents=True, exist_ok=True)
        assembler = BundleAssembler(spec, ResourceResolver(resolve_path(root)), settings=settings)
        bundle = assembler.build(out_dir)
    except (ProvisionerError, OSError) as exc:
        fail(exc)

    row = _BundleRow(
        path=str(bundle.path),
        size_bytes=bundle.size,
        limit_bytes=settings.bundle_size_limit,
        entries=bundle.entries,
    )
    output_data(row, as_json=json_out, title="Bundle")


@app.command()
def inspect(
    bundle_file: str = typer.Argument(..., help="Bundle archive to inspect"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the manifest version and entries of a bundle."""
    try:
        info = BundlePackager().inspect(resolve_path(bundle_file))
    except (OSError, ValueError) as exc:
        fail(exc)

    if not json_out and info.manifest_version is None:
        console.print("[yellow]Warning:[/yellow] bundle has no manifest")
    output_data(info, as_json=json_out, title=Path(bundle_file).name)


if __name__ == "__main__":
    app()
