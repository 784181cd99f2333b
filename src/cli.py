"""CLI interface for contentkit."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from contentkit.config import ContentkitConfig, load_config, merge_cli_overrides
from contentkit.content.index import ContentIndex
from contentkit.content.models import ContentType
from contentkit.errors import ConfigError, RegistryError
from contentkit.images.models import ScanResult
from contentkit.images.scanner import ImageRegistryScanner
from contentkit.redirects.export import export_redirect_map
from contentkit.redirects.models import ValidationResult
from contentkit.redirects.validator import validate_content

app = typer.Typer(
    name="contentkit",
    help="Validate marketing content, redirects and the image registry.",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from contentkit import __version__

        console.print(f"contentkit {__version__}")
        raise typer.Exit()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    root: Annotated[
        Optional[Path],
        typer.Option("--root", "-r", help="Project root containing marketing-content/."),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .contentkit.toml file."),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging verbosity (DEBUG, INFO, WARNING...)."),
    ] = None,
) -> None:
    """contentkit - content index and validation tooling."""
    try:
        config = merge_cli_overrides(load_config(config_path), root=root, log_level=log_level)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] Invalid configuration: {escape(str(exc))}")
        raise typer.Exit(2)
    _configure_logging(config.logging.level)
    ctx.obj = config


def _config(ctx: typer.Context) -> ContentkitConfig:
    return ctx.obj if isinstance(ctx.obj, ContentkitConfig) else load_config()


# ── validate-content ─────────────────────────────────────────────


def _print_validation(result: ValidationResult) -> None:
    console.print()
    console.print("[bold]=== Content Validation Results ===[/bold]")
    console.print()
    console.print(f"Total content files: {len(result.content_files)}")
    console.print(f"Total redirects: {len(result.redirect_map)}")

    if result.warnings:
        console.print()
        console.print(f"[yellow]Warnings ({len(result.warnings)}):[/yellow]")
        for warning in result.warnings:
            console.print(f"  - {escape(warning.render())}")

    if result.errors:
        console.print()
        console.print(f"[red]Errors ({len(result.errors)}):[/red]")
        for error in result.errors:
            console.print(f"  - {escape(error.render())}")
        console.print()
        console.print("[bold red]Validation FAILED[/bold red]")
        return

    console.print()
    console.print("[bold green]Validation PASSED[/bold green]")


@app.command(name="validate-content")
def validate_content_cmd(ctx: typer.Context) -> None:
    """Validate content meta, schema references and redirects.

    Writes dist/redirects.json only when validation passes. Exits 1 on any
    error; warnings alone do not fail.
    """
    config = _config(ctx)
    index = ContentIndex.from_config(config)
    result = validate_content(index, config)
    _print_validation(result)

    if not result.passed:
        raise typer.Exit(1)

    output = export_redirect_map(result, config.dist_root)
    if output is not None:
        console.print(f"Redirect map exported to: {output}")


# ── validate-image-registry ──────────────────────────────────────


def _print_scan(result: ScanResult) -> None:
    console.print("[bold]\\[Image Registry] Scanning...[/bold]")
    console.print()
    console.print(f"  Registered images: {result.registered_count}")
    console.print(f"  Scanned image files: {result.scanned_images_count}")
    console.print()

    if result.broken_references:
        console.print(f"[bold red]✗ {len(result.broken_references)} broken reference(s) found:[/bold red]")
        for ref in result.broken_references:
            console.print(f"[red]  - {escape(ref.yaml_file)} → {escape(ref.missing_src)}[/red]")
            console.print(f"    field: {escape(ref.field)}")
        console.print()

    if result.updated_images:
        console.print(
            f"[bold yellow]⚠ {len(result.updated_images)} image(s) with changed extensions:[/bold yellow]"
        )
        for image in result.updated_images:
            console.print(
                f"[yellow]  - {escape(image.id)}: {escape(image.old_src)} → {escape(image.new_src)}[/yellow]"
            )
        console.print()

    if result.new_images:
        console.print(
            f"[bold yellow]⚠ {len(result.new_images)} unregistered image(s) in attached_assets/:[/bold yellow]"
        )
        for image in result.new_images:
            console.print(f"[yellow]  - {escape(image.filename)} (would be id: {escape(image.id)})[/yellow]")
        console.print()

    if result.is_clean:
        console.print("[bold green]✓ All image references are valid[/bold green]")
        console.print()


@app.command(name="validate-image-registry")
def validate_image_registry_cmd(
    ctx: typer.Context,
    apply: Annotated[
        bool,
        typer.Option("--apply", help="Register new images and repoint updated ones after scanning."),
    ] = False,
) -> None:
    """Reconcile image-registry.json against attached_assets/ and YAML content.

    Exits 1 only when YAML content references missing files.
    """
    scanner = ImageRegistryScanner(_config(ctx))
    result = scanner.scan()
    _print_scan(result)

    if apply and (result.new_images or result.updated_images):
        try:
            applied = scanner.apply(result)
        except RegistryError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            raise typer.Exit(1)
        console.print(
            f"[green]Applied: {applied.added} added, {applied.updated} updated[/green]"
        )
        for path in applied.yaml_files_updated:
            console.print(f"  - rewrote {escape(path)}")

    if result.has_broken_references:
        console.print(
            f"[bold red]ERROR: Image registry validation failed "
            f"({len(result.broken_references)} broken reference(s))[/bold red]"
        )
        raise typer.Exit(1)

    if not apply and (result.new_images or result.updated_images):
        console.print(
            "[yellow]WARNING: Run with --apply, POST /api/image-registry/apply, "
            "or update image-registry.json manually[/yellow]"
        )


# ── index / image-usage ──────────────────────────────────────────


@app.command(name="index")
def index_cmd(
    ctx: typer.Context,
    content_type: Annotated[
        Optional[ContentType],
        typer.Option("--type", "-t", help="List the entries of one content type."),
    ] = None,
) -> None:
    """Show content index statistics."""
    index = ContentIndex.from_config(_config(ctx))
    stats = index.get_stats()

    console.print(f"[bold]Content entries:[/bold] {stats['total']}")
    for name, count in sorted(stats["by_type"].items()):
        console.print(f"  - {name}: {count}")

    if content_type is None:
        return

    table = Table(title=f"{content_type.value} entries")
    table.add_column("Slug")
    table.add_column("Locales")
    table.add_column("Title")
    table.add_column("Folder")
    for entry in index.find_by_type(content_type):
        table.add_row(entry.slug, ", ".join(entry.locales), entry.title or "", entry.folder)
    console.print(table)


@app.command(name="image-usage")
def image_usage_cmd(
    ctx: typer.Context,
    image: Annotated[str, typer.Argument(help="Registry image id or src path.")],
) -> None:
    """List the content files that reference an image."""
    index = ContentIndex.from_config(_config(ctx))
    files = index.get_image_usage(image, image if image.startswith("/") else None)
    if not files:
        console.print(f"[yellow]No content references {escape(image)}[/yellow]")
        return
    console.print(f"[green]{len(files)} file(s) reference {escape(image)}:[/green]")
    for path in files:
        console.print(f"  - {escape(path)}")


_GROUP_VALUE_OPTIONS = ("--root", "-r", "--config", "-c", "--log-level")
_GROUP_FLAGS = ("--version", "-v")


def _shortcut_args(command: str, argv: list[str]) -> list[str]:
    """Build the argv for a shortcut script.

    Group options such as ``--root`` go before the command name, everything
    else after it.
    """
    group: list[str] = []
    rest: list[str] = []
    args = iter(argv)
    for arg in args:
        name, has_value, _ = arg.partition("=")
        if arg in _GROUP_FLAGS or (has_value and name in _GROUP_VALUE_OPTIONS):
            group.append(arg)
        elif arg in _GROUP_VALUE_OPTIONS:
            group.append(arg)
            value = next(args, None)
            if value is not None:
                group.append(value)
        else:
            rest.append(arg)
    return [*group, command, *rest]


def validate_content_entry() -> None:
    """Console script for ``validate-content``."""
    app(_shortcut_args("validate-content", sys.argv[1:]), prog_name="validate-content")


def validate_image_registry_entry() -> None:
    """Console script for ``validate-image-registry``."""
    app(_shortcut_args("validate-image-registry", sys.argv[1:]), prog_name="validate-image-registry")


if __name__ == "__main__":
    app()
