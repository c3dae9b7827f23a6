"""Command-line interface: ``mdoc html|help|ir|build``."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from mdoc.errors import MdocError, SourceNotFoundError
from mdoc.logging import get_logger, setup_logging, with_fields
from mdoc.models import dump_unit
from mdoc.plaintext import format_help
from mdoc.render import PageRenderer
from mdoc.settings import MdocSettings, load_settings
from mdoc.site import build_site, load_unit

__all__ = ["app", "resolve_target"]

LOGGER = get_logger(__name__)

app = typer.Typer(
    help="Render MATLAB help comments as HTML reference pages.",
    no_args_is_help=True,
    add_completion=False,
)


def resolve_target(target: str, cwd: Path | None = None) -> Path:
    """Resolve a command-line target to a source file.

    ``target`` is tried as a path, then as ``<target>.m`` in ``cwd``.

    Raises
    ------
    SourceNotFoundError
        If neither exists.
    """
    base = cwd if cwd is not None else Path.cwd()
    candidate = Path(target)
    if not candidate.is_absolute():
        candidate = base / candidate
    if candidate.is_file():
        return candidate
    named = base / f"{target}.m"
    if named.is_file():
        return named
    raise SourceNotFoundError(target)


def _settings(ctx: typer.Context) -> MdocSettings:
    settings = ctx.obj
    if not isinstance(settings, MdocSettings):
        settings = load_settings()
    return settings


def _fail(exc: MdocError, command: str) -> typer.Exit:
    with_fields(LOGGER, operation=command).log(
        exc.log_level, str(exc), extra={"error": exc.to_dict()}
    )
    typer.echo(f"Error: {exc.message}", err=True)
    return typer.Exit(code=1)


@app.callback()
def main(ctx: typer.Context) -> None:
    """Load configuration and install logging handlers."""
    try:
        settings = load_settings()
    except MdocError as exc:
        setup_logging()
        raise _fail(exc, "settings") from exc
    setup_logging(
        settings.observability.log_level,
        json_format=settings.observability.log_json,
    )
    ctx.obj = settings


@app.command()
def html(
    ctx: typer.Context,
    target: Annotated[str, typer.Argument(help="Source file or function name.")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the page here instead of stdout."),
    ] = None,
) -> None:
    """Render one file as an HTML page."""
    settings = _settings(ctx)
    try:
        unit = load_unit(resolve_target(target))
        document = PageRenderer(settings.render).render(unit)
        if output is None:
            typer.echo(document, nl=False)
            return
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(document, encoding="utf-8")
    except MdocError as exc:
        raise _fail(exc, "html") from exc
    typer.echo(f"Wrote {output}", err=True)


@app.command(name="help")
def help_(
    target: Annotated[str, typer.Argument(help="Source file or function name.")],
) -> None:
    """Print plain-text help for one file."""
    try:
        unit = load_unit(resolve_target(target))
    except MdocError as exc:
        raise _fail(exc, "help") from exc
    typer.echo(format_help(unit), nl=False)


@app.command()
def ir(
    target: Annotated[str, typer.Argument(help="Source file or function name.")],
    indent: Annotated[int, typer.Option(help="JSON indentation.", min=0)] = 2,
) -> None:
    """Print the parsed intermediate representation as JSON."""
    try:
        unit = load_unit(resolve_target(target))
    except MdocError as exc:
        raise _fail(exc, "ir") from exc
    typer.echo(dump_unit(unit, indent=indent))


@app.command()
def build(
    ctx: typer.Context,
    source: Annotated[
        Path,
        typer.Argument(help="Folder to document.", exists=True, file_okay=False),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Destination folder (default SOURCE/doc)."),
    ] = None,
) -> None:
    """Build a documentation site for a folder."""
    settings = _settings(ctx)
    try:
        report = build_site(source, output, settings)
    except MdocError as exc:
        raise _fail(exc, "build") from exc
    for skipped in report.skipped:
        typer.echo(f"Skipped (no declaration): {skipped}", err=True)
    typer.echo(
        f"Wrote {len(report.pages)} pages and {len(report.indexes)} index pages "
        f"to {report.output}"
    )


if __name__ == "__main__":
    app()
