"""CLI entry point for spotpatch.

Commands:
- spotpatch apply [DOCUMENT | - | --url URL] [--output PATH]
- spotpatch init [PATH | -]
- spotpatch check [DOCUMENT | -]

Compiled bytes go to stdout untouched; messages and logs go to stderr.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from spotpatch import __version__
from spotpatch.config import DEFAULT_DOCUMENT, Settings
from spotpatch.document.parser import FORMATS, load_document, parse_document_bytes
from spotpatch.document.template import STARTER_DOCUMENT
from spotpatch.errors import CompileError
from spotpatch.run import compile_path, compile_text, compile_url

if TYPE_CHECKING:
    import httpx

console = Console(stderr=True)
report_console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _fail(error: CompileError) -> None:
    console.print(
        f"[red]Error \\[{error.kind}]: {escape(str(error))}[/red]", soft_wrap=True
    )
    sys.exit(1)


def _transport() -> "httpx.BaseTransport | None":
    """httpx transport for every fetch; None selects the default network one."""
    return None


def _read_stdin() -> bytes:
    return click.get_binary_stream("stdin").read()


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log resolution details")
def cli(verbose: bool):
    """spotpatch - insert bytes at offsets of an unchanging original."""
    _configure_logging(verbose)


@cli.command()
@click.argument("document", required=False)
@click.option("--url", "-u", help="Fetch the patch document from a URL")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Write the result to a file instead of stdout",
)
@click.option(
    "--format", "fmt", type=click.Choice(FORMATS), help="Document format"
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    help="Resolve up to N payloads concurrently",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="HTTP timeout in seconds",
)
@click.pass_context
def apply(
    ctx: click.Context,
    document: str | None,
    url: str | None,
    output: str | None,
    fmt: str | None,
    jobs: int | None,
    timeout: float | None,
):
    """Compile a patch document and write the patched bytes.

    DOCUMENT is a path, or - for stdin. Without DOCUMENT or --url,
    ./spotpatch.toml is used if present, else piped stdin.

    Example: spotpatch apply spotpatch.toml -o patched.txt
    """
    if document and url:
        console.print("[red]Error: pass either DOCUMENT or --url, not both[/red]")
        sys.exit(2)

    try:
        settings = Settings.from_env().with_overrides(
            max_workers=jobs, http_timeout=timeout
        )

        if url:
            result = compile_url(
                url, fmt=fmt, settings=settings, transport=_transport()
            )
        elif document == "-":
            result = compile_text(
                _read_stdin(),
                fmt=fmt or "toml",
                settings=settings,
                transport=_transport(),
            )
        elif document:
            result = compile_path(
                document, fmt=fmt, settings=settings, transport=_transport()
            )
        elif Path(settings.default_document).is_file():
            logging.getLogger(__name__).info(
                f"{settings.default_document} found, compiling it"
            )
            result = compile_path(
                settings.default_document,
                fmt=fmt,
                settings=settings,
                transport=_transport(),
            )
        else:
            data = b"" if sys.stdin.isatty() else _read_stdin()
            if not data.strip():
                click.echo(ctx.get_help(), err=True)
                sys.exit(1)
            result = compile_text(
                data, fmt=fmt or "toml", settings=settings, transport=_transport()
            )
    except CompileError as e:
        _fail(e)

    if output:
        try:
            Path(output).write_bytes(result.output)
        except OSError as e:
            console.print(f"[red]Error: cannot write {escape(output)}: {e.strerror}[/red]")
            sys.exit(1)
        console.print(
            f"[green]✓ Wrote {len(result.output)} bytes to {escape(output)}[/green] "
            f"[dim]({result.patches_applied} patches, "
            f"{result.inserted_bytes} bytes inserted)[/dim]"
        )
    else:
        stdout = click.get_binary_stream("stdout")
        stdout.write(result.output)
        stdout.flush()


@cli.command()
@click.argument("path", default=DEFAULT_DOCUMENT)
def init(path: str):
    """Create a starter patch document (PATH of - prints it)."""
    if path == "-":
        click.echo(STARTER_DOCUMENT, nl=False)
        return

    try:
        with open(path, "x", encoding="utf-8") as f:
            f.write(STARTER_DOCUMENT)
    except FileExistsError:
        console.print(f"[red]Error: '{escape(path)}' already exists[/red]")
        sys.exit(1)
    except OSError as e:
        console.print(f"[red]Error: cannot create {escape(path)}: {e.strerror}[/red]")
        sys.exit(1)

    console.print(f"Created '{escape(path)}'.")


@cli.command()
@click.argument("document", default=DEFAULT_DOCUMENT)
@click.option(
    "--format", "fmt", type=click.Choice(FORMATS), help="Document format"
)
def check(document: str, fmt: str | None):
    """Validate a patch document without resolving any source."""
    label = "<stdin>" if document == "-" else document
    try:
        if document == "-":
            doc = parse_document_bytes(_read_stdin(), fmt=fmt or "toml", origin="<stdin>")
        else:
            doc = load_document(document, fmt=fmt)
    except CompileError as e:
        _fail(e)

    report_console.print(
        f"[green]✓ {escape(label)} is valid[/green] "
        f"[dim](root: {escape(doc.source.describe())})[/dim]"
    )
    if not doc.patches:
        report_console.print("[dim]No patches.[/dim]")
        return

    table = Table(title="Patches")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Way", style="cyan")
    table.add_column("Spot", justify="right", style="magenta")
    table.add_column("Source", style="green")

    for index, patch in enumerate(doc.patches):
        table.add_row(
            str(index),
            patch.anchor.value,
            str(patch.spot),
            escape(patch.payload.describe()),
        )

    report_console.print(table)


if __name__ == "__main__":
    cli()
