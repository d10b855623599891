"""docgen command line interface."""

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import click
import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docgen_core import __version__
from docgen_core.config import TEMPLATE_ROOT_ENV, ConfigLoader, DocgenConfig
from docgen_core.engine import DocumentEngine, GenerationResult
from docgen_core.errors import DocgenError
from docgen_core.logging import DocgenLogger, LogConfig
from docgen_core.store import ANY_PLATFORM, CUSTOM_TECH_STACK
from docgen_core.template import TemplateValidator
from docgen_core.types import LogLevel, Strictness

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_GENERATION_FAILED = 2

app = typer.Typer(
    name="docgen",
    help="Resolve and render documentation templates",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    """Global options shared by every command."""

    templates: str | None = None
    config_path: Path | None = None
    verbose: bool = False


def _load_config(state: CliState) -> DocgenConfig:
    config = ConfigLoader().load(state.config_path, use_defaults=state.config_path is None)
    if state.templates:
        config.templates.root = state.templates
    return config


def _build_engine(state: CliState) -> DocumentEngine:
    """Load config and templates.

    Exits with 1 on configuration problems and 2 on template load errors.
    """
    try:
        config = _load_config(state)
    except DocgenError as e:
        _print_error(e)
        raise typer.Exit(code=EXIT_USAGE) from e

    logger = DocgenLogger(
        LogConfig(
            level=LogLevel.DEBUG if state.verbose else LogLevel.WARN,
            format=config.logging.format,
            components=dict(config.logging.components),
        )
    )
    engine = DocumentEngine(config=config, logger=logger)
    try:
        engine.load()
    except DocgenError as e:
        _print_error(e)
        code = EXIT_USAGE if e.code == "CONFIG_INVALID" else EXIT_GENERATION_FAILED
        raise typer.Exit(code=code) from e
    return engine


def _print_error(error: DocgenError) -> None:
    err_console.print(
        f"[bold red]Error[/bold red] {escape(f'[{error.code}]')}: {escape(error.message)}",
        highlight=False,
    )
    location = [
        f"{label}: {value}"
        for label, value in (
            ("template", error.template_id),
            ("file", error.file),
            ("line", error.line),
            ("path", error.path),
            ("block", error.block),
        )
        if value is not None
    ]
    if location:
        err_console.print("  " + ", ".join(location), markup=False, highlight=False)
    if error.fallback_path:
        err_console.print(
            "  fallback path: " + " -> ".join(error.fallback_path), markup=False, highlight=False
        )
    if error.detail:
        err_console.print(f"  {error.detail}", markup=False, highlight=False)
    if error.suggestion:
        err_console.print(f"  hint: {error.suggestion}", markup=False, highlight=False)


def _read_context(path: Path | None) -> dict[str, Any]:
    """Read a YAML or JSON context file (JSON is valid YAML)."""
    if path is None:
        return {}
    if not path.exists():
        raise click.UsageError(f"Context file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise click.UsageError(f"Context file is not valid YAML/JSON: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise click.UsageError("Context file must contain a mapping at the top level")
    return data


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj if isinstance(ctx.obj, CliState) else CliState()


@app.callback()
def main_callback(
    ctx: typer.Context,
    templates: Optional[str] = typer.Option(
        None,
        "--templates",
        "-t",
        envvar=TEMPLATE_ROOT_ENV,
        help="Template root directory",
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Resolve and render documentation templates."""
    ctx.obj = CliState(templates=templates, config_path=config, verbose=verbose)


@app.command("generate")
def generate_command(
    ctx: typer.Context,
    platform: str = typer.Argument(..., help="Target platform, e.g. jira"),
    document_type: str = typer.Argument(..., help="Document type, e.g. component"),
    tech_stack: str = typer.Argument(..., help="Tech stack, e.g. react"),
    context: Optional[Path] = typer.Option(
        None, "--context", "-C", help="YAML or JSON file with the render context"
    ),
    strict: bool = typer.Option(False, "--strict", help="Fail on unresolved variables"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write document to file"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
) -> None:
    """Render a document for PLATFORM DOCUMENT_TYPE TECH_STACK."""
    data = _read_context(context)
    engine = _build_engine(_state(ctx))
    request = engine.request(
        platform, document_type, tech_stack, Strictness.STRICT if strict else None
    )
    result = engine.generate(request, data)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        _report_generation(result, output)

    if not result.success:
        raise typer.Exit(code=EXIT_GENERATION_FAILED)


def _report_generation(result: GenerationResult, output: Path | None) -> None:
    for warning in result.warnings:
        err_console.print(f"warning: {warning}", style="yellow", markup=False, highlight=False)

    if result.error is not None:
        _print_error(result.error)
        if result.degraded_text is not None:
            err_console.print("Showing built-in default document instead", style="yellow")
            typer.echo(result.degraded_text)
        return

    text = result.rendered_text or ""
    if output is not None:
        output.write_text(text + "\n", encoding="utf-8")
        err_console.print(f"Wrote {output} ({result.template_id})", markup=False, highlight=False)
    else:
        typer.echo(text)


@app.command("list")
def list_command(
    ctx: typer.Context,
    plain: bool = typer.Option(False, "--plain", help="One platform/documentType/techStack per line"),
) -> None:
    """List every resolvable (platform, documentType, techStack) tuple."""
    engine = _build_engine(_state(ctx))
    keys = engine.list_resolvable()

    if plain:
        for key in keys:
            typer.echo(key.label)
        return

    table = Table(title=f"Templates ({len(keys)})")
    table.add_column("Platform", style="cyan")
    table.add_column("Document type", style="green")
    table.add_column("Tech stack", style="magenta")
    table.add_column("Kind")
    for key in keys:
        if key.platform == ANY_PLATFORM:
            kind = "tech-stack default"
        elif key.tech_stack == CUSTOM_TECH_STACK:
            kind = "platform default"
        else:
            kind = "exact"
        table.add_row(key.platform, key.document_type, key.tech_stack, kind)
    console.print(table)

    broken = engine.broken_templates
    for template_id, error in broken.items():
        err_console.print(f"unusable: {template_id}: {error}", style="red", markup=False)


@app.command("validate")
def validate_command(
    path: Path = typer.Argument(..., help="Template file or directory"),
) -> None:
    """Schema-check every template file under PATH."""
    try:
        results = TemplateValidator().validate_path(path)
    except DocgenError as e:
        _print_error(e)
        raise typer.Exit(code=EXIT_USAGE) from e

    invalid = 0
    for file, result in results.items():
        for issue in result.errors:
            typer.echo(f"{issue.format(file)}")
        for issue in result.warnings:
            typer.echo(f"{issue.format(file)} (warning)")
        if not result.valid:
            invalid += 1

    typer.echo(f"{len(results)} files checked, {invalid} invalid")
    if invalid:
        raise typer.Exit(code=EXIT_USAGE)


@app.command("resolve")
def resolve_command(
    ctx: typer.Context,
    platform: str = typer.Argument(...),
    document_type: str = typer.Argument(...),
    tech_stack: str = typer.Argument(...),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
) -> None:
    """Show which template a request selects, without rendering."""
    engine = _build_engine(_state(ctx))
    request = engine.request(platform, document_type, tech_stack)
    try:
        resolution = engine.resolve(request)
    except DocgenError as e:
        _print_error(e)
        raise typer.Exit(code=EXIT_GENERATION_FAILED) from e

    template = resolution.template
    if as_json:
        payload = {
            "template_id": template.template_id,
            "fallback_path": list(resolution.fallback_path),
            "sections": template.section_names,
            "variables": sorted(template.variables),
            "lineage": list(template.lineage),
            "source_path": str(template.source_path) if template.source_path else None,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"template: {template.template_id}")
    typer.echo(f"fallback path: {' -> '.join(resolution.fallback_path)}")
    typer.echo(f"sections: {', '.join(template.section_names)}")
    if template.lineage:
        typer.echo(f"inherits: {', '.join(template.lineage)}")
    if template.source_path:
        typer.echo(f"file: {template.source_path}")


@app.command("version")
def version_command() -> None:
    """Display version information."""
    typer.echo(f"docgen {__version__}")


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit code.

    Args:
        argv: Arguments (defaults to sys.argv[1:])

    Returns:
        0 on success, 1 on usage/config/validation errors, 2 on
        resolution or render errors
    """
    args = sys.argv[1:] if argv is None else argv
    try:
        rv = app(args=args, prog_name="docgen", standalone_mode=False)
    except click.exceptions.Abort:
        err_console.print("Aborted")
        return EXIT_USAGE
    except click.ClickException as e:
        e.show()
        return EXIT_USAGE
    return rv if isinstance(rv, int) else EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
