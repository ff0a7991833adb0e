"""CLI entry point for mtg_dividers."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from mtg_dividers.catalog import MAX_SUGGESTIONS, ScryfallClient, search_sets, set_type_choices
from mtg_dividers.config import DEFAULT_FILENAME, DEFAULT_ICON_CONCURRENCY, DEFAULT_PROXY_BASE, ExportConfig
from mtg_dividers.divider_card import build_document, format_full_date, print_area, set_type_label
from mtg_dividers.errors import CatalogError, DividerCardsError, DuplicateSetError, EmptyExportError
from mtg_dividers.exporter import PdfExporter
from mtg_dividers.icons import IconNormalizer
from mtg_dividers.layout import compute_grid_layout
from mtg_dividers.pdf_generator import get_file_size_str, paginate
from mtg_dividers.set_list import SORT_OPTIONS, SetList, default_state_file, load_set_list, save_set_list

console = Console()
logger = logging.getLogger("mtg_dividers")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MTG Divider Cards – Generate printable set divider cards (63x99 mm) as A4 PDF"
    )
    parser.add_argument(
        "--state-file",
        type=str,
        default=None,
        help="Path to the saved set list (default: ~/.mtg-divider-cards/sets.json).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging of the export pipeline.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_cmd = subparsers.add_parser("add", help="Look up sets on Scryfall and add them to the list")
    add_cmd.add_argument("codes", nargs="+", help="Set codes, e.g. MH3 BLB OTJ")

    remove_cmd = subparsers.add_parser("remove", help="Remove a set from the list")
    remove_cmd.add_argument("code", help="Set code to remove")

    subparsers.add_parser("list", help="Show the current set list")

    sort_cmd = subparsers.add_parser("sort", help="Change the order of the cards")
    sort_cmd.add_argument("option", choices=SORT_OPTIONS)

    search_cmd = subparsers.add_parser("search", help="Search the Scryfall set catalog")
    search_cmd.add_argument("query", help="Part of a set code, name or release date")
    search_cmd.add_argument(
        "--type",
        dest="set_type",
        default="all",
        help="Only show sets of this type (e.g. expansion, core, commander).",
    )
    search_cmd.add_argument(
        "--limit",
        type=int,
        default=MAX_SUGGESTIONS,
        help=f"Maximum number of matches (default: {MAX_SUGGESTIONS}).",
    )
    search_cmd.add_argument(
        "--add",
        action="store_true",
        help="Add every match to the list (sets already present are skipped).",
    )

    subparsers.add_parser("types", help="List the set types usable with search --type")

    export_cmd = subparsers.add_parser("export", help="Generate the printable PDF")
    export_cmd.add_argument(
        "--output",
        type=str,
        default=DEFAULT_FILENAME,
        help=f"Path to output file (default: {DEFAULT_FILENAME}).",
    )
    export_cmd.add_argument(
        "--proxy-base",
        type=str,
        default=DEFAULT_PROXY_BASE,
        help=f"Proxy prefix used to fetch set icons (default: {DEFAULT_PROXY_BASE}).",
    )
    export_cmd.add_argument(
        "--icon-concurrency",
        type=int,
        default=DEFAULT_ICON_CONCURRENCY,
        help="How many icons to convert at once (default: 1).",
    )

    subparsers.add_parser("print", help="Send the card grid to the system printer (lpr)")

    return parser


def print_sets_table(records: list, title: str) -> None:
    table = Table(title=title, box=box.ROUNDED, border_style="cyan")
    table.add_column("Code", style="bold cyan")
    table.add_column("Name", style="white")
    table.add_column("Released", style="dim")
    table.add_column("Type", style="magenta")
    table.add_column("Cards", justify="right")
    for record in records:
        table.add_row(
            record.code,
            record.name,
            format_full_date(record.released_at) if record.released_at else "",
            set_type_label(record.set_type),
            str(record.card_count),
        )
    console.print(table)


async def run_add(set_list: SetList, codes: list) -> None:
    async with ScryfallClient() as client:
        for code in codes:
            try:
                record = await client.get_set_by_code(code)
                set_list.add(record)
            except (CatalogError, DuplicateSetError) as e:
                console.print(f"[yellow]⚠[/yellow] [bold]{code.upper()}[/bold]: {e}")
                continue
            console.print(f"[green]✔[/green] Added [bold]{record.code}[/bold] – {record.name}")


async def run_search(set_list: SetList, query: str, set_type: str, limit: int, add: bool) -> bool:
    """Show the matches, or add them all; returns whether the list changed."""
    async with ScryfallClient() as client:
        sets = await client.get_all_sets()
    matches = search_sets(sets, query, set_type=set_type, limit=limit)
    if not matches:
        console.print(f"[yellow]No sets match[/yellow] [bold]{query}[/bold]")
        return False
    if not add:
        print_sets_table(matches, title=f"Sets matching “{query}”")
        return False

    added, skipped = set_list.add_many(matches)
    for record in added:
        console.print(f"[green]✔[/green] Added [bold]{record.code}[/bold] – {record.name}")
    message = f"{len(added)} set(s) added"
    if skipped:
        message += f", {len(skipped)} already present"
    console.print(f"[bold]{message}.[/bold]")
    return bool(added)


async def run_types() -> None:
    async with ScryfallClient() as client:
        sets = await client.get_all_sets()
    table = Table(title="Set types", box=box.ROUNDED, border_style="cyan")
    table.add_column("Type", style="bold cyan")
    table.add_column("Label", style="white")
    for value, label in set_type_choices(sets):
        table.add_row(value, label)
    console.print(table)


async def run_export(set_list: SetList, output_path: Path, config: ExportConfig) -> Path:
    console.print()
    console.print(Panel.fit(
        "[bold magenta]📋 MTG Divider Cards[/bold magenta]\n"
        "[dim]Creating printable divider card sheets[/dim]",
        border_style="magenta",
    ))
    console.print()

    document = build_document(set_list.sorted())
    async with httpx.AsyncClient(timeout=config.icon_timeout, follow_redirects=True) as client:
        exporter = PdfExporter(IconNormalizer.from_config(client, config), config=config)
        with console.status("[green]Rendering cards..."):
            path = await exporter.generate_pdf(
                print_area(document),
                output_dir=output_path.parent,
                filename=output_path.name,
            )

    layout = compute_grid_layout(len(set_list), config)
    pages = paginate(layout.target_width_mm, layout.target_height_mm).page_count

    table = Table(box=box.ROUNDED, border_style="green")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("🃏 Cards", f"[bold]{len(set_list)}[/bold]")
    table.add_row("📐 Grid", f"[bold]{layout.columns} x {layout.rows}[/bold]")
    table.add_row("📄 Pages created", f"[bold]{pages}[/bold]")
    table.add_row("💾 Output file", f"[bold]{path}[/bold]")
    table.add_row("📊 File size", f"[bold]{get_file_size_str(path)}[/bold]")
    console.print(table)

    console.print()
    console.print("[green]✔[/green] [bold green]Done![/bold green] Your divider cards are ready to print.")
    console.print()
    return path


async def run_print(set_list: SetList) -> None:
    document = build_document(set_list.sorted())
    await PdfExporter().print_cards(print_area(document))
    console.print("[green]✔[/green] Sent to printer.")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    # Default to 'list' if no command specified
    if args.command is None:
        args.command = "list"

    state_file = Path(args.state_file).expanduser() if args.state_file else default_state_file()

    try:
        set_list = load_set_list(state_file)
        if args.command == "add":
            asyncio.run(run_add(set_list, args.codes))
            save_set_list(set_list, state_file)
        elif args.command == "remove":
            try:
                removed = set_list.remove(args.code)
            except KeyError:
                console.print(f"[yellow]⚠[/yellow] Set [bold]{args.code.upper()}[/bold] is not in the list.")
                raise SystemExit(1)
            save_set_list(set_list, state_file)
            console.print(f"[green]✔[/green] Removed [bold]{removed.code}[/bold] – {removed.name}")
        elif args.command == "sort":
            set_list.sort = args.option
            save_set_list(set_list, state_file)
            console.print(f"[green]✔[/green] Sorting by [bold]{args.option}[/bold]")
        elif args.command == "list":
            if not len(set_list):
                console.print("[dim]No sets added yet. Use[/dim] [bold]add CODE[/bold]")
                return
            print_sets_table(set_list.sorted(), title=f"{len(set_list)} sets (sorted by {set_list.sort})")
        elif args.command == "search":
            if asyncio.run(run_search(set_list, args.query, args.set_type, args.limit, args.add)):
                save_set_list(set_list, state_file)
        elif args.command == "types":
            asyncio.run(run_types())
        elif args.command == "export":
            config = ExportConfig(proxy_base=args.proxy_base, icon_concurrency=args.icon_concurrency)
            asyncio.run(run_export(set_list, Path(args.output).resolve(), config))
        elif args.command == "print":
            asyncio.run(run_print(set_list))
    except EmptyExportError:
        console.print("[yellow]⚠[/yellow] No sets in the list – add some before exporting.")
        raise SystemExit(1)
    except (DividerCardsError, httpx.HTTPError) as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]✘[/red] {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
