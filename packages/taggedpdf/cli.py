"""
Command-line interface for taggedpdf.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .compiler import CompileOptions, DocumentCompiler, convert_pdf_to_html
from .compiler.metadata import metadata_from_mapping
from .core.reader import PypdfDocumentSource
from .core.utils import get_logger, set_log_level
from .core.validator import ValidationError
from .exceptions import TaggedPdfError, UntaggedDocument
from .ir import SemanticNode

console = Console()

EXIT_ERROR = 1
EXIT_UNTAGGED = 2


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    taggedpdf - Turn tagged PDFs into semantic, accessible HTML.
    """
    pass


@cli.command(name="convert")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_html", required=False, type=click.Path(dir_okay=False))
@click.option("--start", "-s", default=1, show_default=True, help="First page to compile (1-indexed)", type=int)
@click.option("--end", "-e", default=None, help="Last page to compile (1-indexed, inclusive)", type=int)
@click.option("--no-images", is_flag=True, help="Do not embed figure images as data URIs")
@click.option("--fragment", is_flag=True, help="Write page markup only, without <html> and <head>")
@click.option("--verbose", "-v", is_flag=True, help="Log per-page progress and role details")
def convert(input_pdf, output_html, start, end, no_images, fragment, verbose):
    """
    Convert a tagged PDF into HTML.

    Examples:

        taggedpdf convert report.pdf

        taggedpdf convert report.pdf out/report.html --start 2 --end 5
    """
    _configure_logging(verbose)
    options = CompileOptions(start_page=start, end_page=end, embed_images=not no_images)

    try:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Compiling pages", total=None)

            def update_progress(current, total):
                progress.update(task, completed=current, total=total)

            result = convert_pdf_to_html(
                input_pdf,
                output_html,
                options=options,
                standalone=not fragment,
                progress_callback=update_progress,
            )
    except (TaggedPdfError, ValidationError, OSError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(EXIT_ERROR)

    if not result.tagged_pdf:
        console.print(f"\n[bold yellow]! {UntaggedDocument()}[/bold yellow]")
        console.print(f"[dim]Notice written to {result.output_path}[/dim]")
        sys.exit(EXIT_UNTAGGED)

    table = Table(title="Conversion Summary", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Output", str(result.output_path))
    table.add_row("Pages", str(result.page_count))
    table.add_row("Images", str(result.image_count))
    table.add_row("Diagnostics", str(result.diagnostic_count))
    if result.skipped_pages:
        table.add_row("Skipped pages", ", ".join(str(page) for page in result.skipped_pages))
    console.print(table)

    if verbose:
        for message in result.log:
            console.print(f"  • {message}")

    console.print(f"\n[bold green]✓ Wrote {result.output_path}[/bold green]")


@cli.command(name="info")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
def show_info(input_pdf):
    """
    Display metadata and tagging status of a PDF file.
    """
    try:
        source = PypdfDocumentSource(input_pdf)
        metadata = metadata_from_mapping(source.get_document_metadata())
        untagged = [
            page for page in range(1, source.page_count + 1) if source.get_structure_tree(page) is None
        ]
    except (TaggedPdfError, ValidationError, OSError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(EXIT_ERROR)

    table = Table(title=f"PDF Information: {Path(input_pdf).name}")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("File Path", str(Path(input_pdf).resolve()))
    table.add_row("Number of Pages", str(source.page_count))
    table.add_row("Tagged", "No" if untagged else "Yes")
    if untagged and len(untagged) < source.page_count:
        table.add_row("Untagged pages", ", ".join(str(page) for page in untagged))
    if metadata.title:
        table.add_row("Title", metadata.title)
    if metadata.author:
        table.add_row("Author", metadata.author)
    if metadata.subject:
        table.add_row("Subject", metadata.subject)
    if metadata.keywords:
        table.add_row("Keywords", ", ".join(metadata.keywords))
    if metadata.language:
        table.add_row("Language", metadata.language)

    console.print()
    console.print(table)
    console.print()


@cli.command(name="outline")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.option("--page", "-p", default=None, help="Only show this page (1-indexed)", type=int)
@click.option("--verbose", "-v", is_flag=True, help="Log role details while compiling")
def outline(input_pdf, page, verbose):
    """
    Print the compiled semantic tree of a tagged PDF.
    """
    _configure_logging(verbose)
    try:
        compiler = DocumentCompiler(PypdfDocumentSource(input_pdf))
        if page is None:
            document = compiler.compile()
        else:
            document = compiler.compile(page, page)
    except UntaggedDocument as e:
        console.print(f"[bold yellow]! {e}[/bold yellow]")
        sys.exit(EXIT_UNTAGGED)
    except (TaggedPdfError, ValidationError, OSError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(EXIT_ERROR)

    root = Tree(f"[bold]{Path(input_pdf).name}[/bold]")
    for result in document.pages:
        branch = root.add(f"[cyan]Page {result.page_number}[/cyan]")
        for child in result.root.children:
            _add_branch(branch, child)
    for skipped in document.skipped_pages:
        root.add(f"[yellow]Page {skipped} (untagged, skipped)[/yellow]")
    console.print(root)


def _add_branch(tree: Tree, node: SemanticNode) -> None:
    label = f"[magenta]{node.kind}[/magenta]"
    if node.role:
        label += f" [dim]{escape(node.role)}[/dim]"
    if node.level is not None:
        label += f" level={node.level}"
    if node.image is not None:
        label += f" [green]{node.image.id} {node.image.width}x{node.image.height}[/green]"
    if node.text:
        text = node.text if len(node.text) <= 60 else node.text[:57] + "..."
        label += f": {escape(repr(text))}"
    branch = tree.add(label)
    for child in node.children:
        _add_branch(branch, child)


def _configure_logging(verbose: bool) -> None:
    get_logger("taggedpdf")
    set_log_level(logging.DEBUG if verbose else logging.WARNING)


if __name__ == "__main__":
    cli()
