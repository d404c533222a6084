"""chainstatus CLI runner.

Decodes a getblockchaininfo response and renders it as terminal tables
using Rich. The response comes either from a saved JSON file or straight
from a node over RPC.

Usage:
    python cli.py fixtures/getblockchaininfo_main.json
    python cli.py --rpc
    python cli.py --rpc --lenient-pruning

Exit status is 0 on success, 1 when the response fails to decode, and 2
when the file or the node cannot be read.
"""

import argparse
import asyncio
import logging
import logging.handlers
import os
import pathlib
import sys

import httpx
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import load_settings
from decoding.decoder import decode
from rpc.client import RpcClient
from schemas.chain_status import ChainStatusDocument
from schemas.errors import DecodeError
from schemas.softforks import ActivatedAtHeight, HeightTriggered, InProgress

console = Console()

LOG_FILE = pathlib.Path(__file__).parent / "chainstatus.log"
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)

_file_handler: logging.handlers.RotatingFileHandler | None = None


def _configure_logging(verbose: bool) -> None:
    """Attach the CLI's single file handler to the root logger.

    Repeated calls reuse the installed handler. If LOG_FILE has changed
    since, the old handler is removed and closed first.
    """
    global _file_handler

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    if _file_handler is not None:
        if _file_handler.baseFilename == os.path.abspath(LOG_FILE):
            return
        root.removeHandler(_file_handler)
        _file_handler.close()

    _file_handler = logging.handlers.RotatingFileHandler(
        LOG_FILE, maxBytes=1_000_000, backupCount=3, encoding="utf-8",
    )
    _file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(_file_handler)


# ── Rendering ─────────────────────────────────────────────────────────────────

def _print_summary(doc: ChainStatusDocument) -> None:
    table = Table(title="Chain Status", show_header=False, border_style="bright_black")
    table.add_column("Field", style="dim")
    table.add_column("Value", style="bold")

    synced = doc.blocks == doc.headers and not doc.initialblockdownload
    sync_color = "green" if synced else "yellow"

    table.add_row("chain", f"[cyan]{doc.chain.value}[/cyan]")
    table.add_row("blocks / headers", f"[{sync_color}]{doc.blocks} / {doc.headers}[/{sync_color}]")
    table.add_row("best block", doc.bestblockhash)
    table.add_row("difficulty", f"{doc.difficulty:,.2f}")
    table.add_row("median time", str(doc.mediantime))
    table.add_row("verification", f"{doc.verificationprogress:.4%}")
    table.add_row("initial download", str(doc.initialblockdownload).lower())
    table.add_row("chainwork", doc.chainwork)
    table.add_row("size on disk", f"{doc.size_on_disk:,} bytes")
    table.add_row("pruned", str(doc.pruned).lower())
    if doc.pruning is not None:
        for name, value in doc.pruning.model_dump(exclude_none=True).items():
            table.add_row(f"  {name}", str(value))

    warnings = doc.warnings if isinstance(doc.warnings, list) else [doc.warnings]
    warnings = [w for w in warnings if w]
    if warnings:
        table.add_row("warnings", "[yellow]" + escape("\n".join(warnings)) + "[/yellow]")

    console.print(table)


def _print_softforks(doc: ChainStatusDocument) -> None:
    if not len(doc.softforks):
        console.print("\n[yellow]No soft forks reported.[/yellow]")
        return

    table = Table(title="Soft Forks", show_lines=True, border_style="bright_black")
    table.add_column("Name",    style="bold",  min_width=10)
    table.add_column("Type",    width=7,       justify="center")
    table.add_column("Status",  width=10,      justify="center")
    table.add_column("Active",  width=7,       justify="center")
    table.add_column("Details", style="dim",   min_width=24)

    for name, record in doc.softforks.items():
        active = "[green]yes[/green]" if record.active else "[red]no[/red]"
        if isinstance(record, HeightTriggered):
            table.add_row(name.value, record.kind.value, "-", active, f"height {record.height}")
            continue

        payload = record.payload
        if isinstance(payload, InProgress):
            stats = payload.statistics
            details = (
                f"bit {payload.bit.value}, {stats.count}/{stats.threshold} "
                f"of {stats.elapsed}/{stats.period} blocks"
                + ("" if stats.possible else ", [red]not possible[/red]")
            )
        elif isinstance(payload, ActivatedAtHeight):
            details = f"height {payload.height}"
        else:
            details = f"since {payload.since}"
        table.add_row(name.value, record.kind.value, payload.status.value, active, details)

    console.print()
    console.print(table)


def _print_error(exc: DecodeError) -> None:
    console.print(f"[bold red]✗  Decode failed[/bold red]  [dim]{exc.kind}[/dim]")
    if exc.path:
        console.print(f"   at [cyan]{exc.path}[/cyan]")
    console.print(f"   {escape(exc.message)}")


# ── Entry point ───────────────────────────────────────────────────────────────

def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="chainstatus", description="Decode and display a node's chain status.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("file", nargs="?", type=pathlib.Path, help="saved getblockchaininfo response")
    source.add_argument("--rpc", action="store_true", help="query the configured node")
    parser.add_argument(
        "--lenient-pruning", action="store_true",
        help="accept a pruned flag that disagrees with the pruning fields",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)
    settings = load_settings()
    strict = settings.strict_pruning and not args.lenient_pruning

    try:
        if args.rpc:
            raw = asyncio.run(RpcClient(settings).fetch_blockchain_info())
        else:
            raw = args.file.read_bytes()
    except (httpx.HTTPError, OSError) as exc:
        logger.error("Could not read chain status: %s", exc)
        console.print(f"[bold red]✗  Could not read chain status:[/bold red] {exc}")
        return 2

    try:
        doc = decode(raw, strict_pruning=strict)
    except DecodeError as exc:
        logger.error("Decode failed: %s", exc)
        _print_error(exc)
        return 1

    console.rule("[bold]chainstatus[/bold]")
    _print_summary(doc)
    _print_softforks(doc)
    return 0


if __name__ == "__main__":
    sys.exit(main())
