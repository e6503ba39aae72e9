from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
import typer

from orderledger.adapters.db.store import SqlOrderRecordStore
from orderledger.core.config import ReconcileConfig, load_reconcile_config_from_env
from orderledger.reconcile.consolidator import TransactionConsolidator
from orderledger.reconcile.matcher import TransactionMatcher
from orderledger.reconcile.money import format_dollars
from orderledger.reconcile.processor import OrderProcessor
from orderledger.reconcile.protocols import (
    ItemCategorizer,
    LedgerClient,
    OrderRecordStore,
)
from orderledger.reconcile.run import ReconciliationRun, RunSummary
from orderledger.reconcile.splitter import CategorySplitter
from orderledger.tools.categorize.cache import CachingCategorizer
from orderledger.tools.categorize.categorizer_tool import OpenAICategorizer
from orderledger.ui.snapshot import SnapshotLedger, load_snapshot

# Load environment variables from .env
load_dotenv()

app = typer.Typer(
    help="orderledger: reconcile retailer orders against ledger transactions.",
    no_args_is_help=True,
)


@app.callback()
def main_callback() -> None:
    """Keep subcommands explicit, e.g. `orderledger preview snapshot.json`."""


def build_reconciliation_run(
    config: ReconcileConfig,
    ledger: LedgerClient,
    categorizer: ItemCategorizer,
    store: OrderRecordStore,
) -> ReconciliationRun:
    """Wire the reconciliation pipeline from config and collaborators."""
    processor = OrderProcessor(
        matcher=TransactionMatcher(config.matcher_config()),
        consolidator=TransactionConsolidator(ledger),
        splitter=CategorySplitter(
            categorizer,
            distribute_tip_and_fees=config.distribute_tip_and_fees,
        ),
        ledger=ledger,
    )
    return ReconciliationRun(processor, store)


def render_summary(summary: RunSummary, console: Console) -> None:
    """Print run outcomes with a Rich table."""
    table = Table(title="Reconciliation Preview", show_lines=True)
    table.add_column("Order", style="cyan")
    table.add_column("Outcome")
    table.add_column("Transaction")
    table.add_column("Amount", justify="right")
    table.add_column("Detail", style="white")

    for result in summary.results:
        transaction_id = ""
        amount = ""
        if result.transaction is not None:
            transaction_id = result.transaction.transaction_id
            amount = format_dollars(result.transaction.amount_cents)

        if result.processed:
            outcome = "[green]applied[/green]"
            if result.splits:
                detail = "\n".join(
                    f"{format_dollars(split.amount_cents)} {split.notes}"
                    for split in result.splits
                )
            else:
                detail = result.notes
        else:
            style = "yellow" if result.retryable else "red"
            reason = result.skip_reason.value if result.skip_reason else "skipped"
            outcome = f"[{style}]{reason}[/{style}]"
            detail = result.message

        table.add_row(result.order_id, outcome, transaction_id, amount, detail)

    for error in summary.errors:
        table.add_row(error.order_id, "[red]failed[/red]", "", "", str(error.error))

    console.print(table)
    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Processed: {summary.processed_count}")
    console.print(f"  Skipped: {summary.skipped_count}")
    console.print(f"  Failed: {summary.failed_count}")


@app.command("preview")
def preview(
    snapshot: Path = typer.Argument(  # noqa: B008
        ..., exists=True, dir_okay=False, help="JSON snapshot of orders and ledger"
    ),
    model: str | None = typer.Option(
        None, help="OpenAI model for categorization (default from env)"
    ),
    force: bool = typer.Option(
        False, help="Include orders already processed in earlier runs"
    ),
) -> None:
    """Dry-run reconciliation of a snapshot and print the would-be changes."""
    config = load_reconcile_config_from_env()
    data = load_snapshot(snapshot)

    categorizer = CachingCategorizer(
        OpenAICategorizer(model=model or config.categorizer_model)
    )
    run = build_reconciliation_run(
        config,
        SnapshotLedger(),
        categorizer,
        SqlOrderRecordStore(config.database_url),
    )
    summary = run.run(
        data.orders,
        data.transactions,
        data.categories,
        data.categories,
        dry_run=True,
        force=force or config.force,
    )
    render_summary(summary, Console())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
