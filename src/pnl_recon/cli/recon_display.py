"""Display module for closed-PnL reconciliation results with rich terminal output."""

from typing import Dict, List, Optional, Sequence, Tuple
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from ..matchers.base_matcher import RuleInfo
from ..models import LocalTrade, ReconciliationOutcome, ReconStatus


class ReconDisplay:
    """Handles all display output for the closed-PnL reconciliation system."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize display with Rich console."""
        self.console = console or Console()

    def show_header(self) -> None:
        """Display the reconciliation system header."""
        header_text = Text("💹 CLOSED PnL RECONCILIATION", style="bold blue")

        panel = Panel(
            "Links locally recorded trades to exchange-reported closed positions\n\n"
            "🎯 Rules: order id → symbol → closing side → quantity → time\n"
            "🔁 Fetch: bounded retry with exponential backoff and jitter",
            title=header_text,
            border_style="blue",
            padding=(1, 2),
        )

        self.console.print()
        self.console.print(panel)
        self.console.print()

    def show_loading_summary(self, trade_count: int, record_count: int) -> None:
        """Display summary of loaded inputs.

        Args:
            trade_count: Number of local trades loaded
            record_count: Number of closed-PnL records loaded (0 in live mode)
        """
        summary = Panel(
            f"📁 Local Trades: {trade_count:,}\n"
            f"📁 Closed-PnL Records: {record_count:,}",
            title="[bold green]Data Loaded Successfully[/bold green]",
            border_style="green",
        )

        self.console.print(summary)
        self.console.print()

    def show_results(self, outcomes: Sequence[ReconciliationOutcome]) -> None:
        """Display reconciliation statistics and the matched trades.

        Args:
            outcomes: One outcome per reconciled trade
        """
        matched = [o for o in outcomes if o.status == ReconStatus.MATCHED]
        without_pnl = [o for o in outcomes if o.status == ReconStatus.CLOSED_WITHOUT_PNL]
        already_closed = [o for o in outcomes if o.status == ReconStatus.ALREADY_CLOSED]
        considered = len(matched) + len(without_pnl)
        match_rate = len(matched) / considered * 100 if considered else 0.0

        stats_panel = Panel(
            f"✅ Matched: {len(matched)}\n"
            f"⚠️  Closed Without PnL: {len(without_pnl)}\n"
            f"⏭️  Already Closed: {len(already_closed)}\n"
            f"📊 Match Rate: {match_rate:.1f}%",
            title="[bold yellow]Reconciliation Results[/bold yellow]",
            border_style="yellow",
        )

        self.console.print(stats_panel)
        self.console.print()

        if matched:
            self._show_matched(matched)

    def _show_matched(self, outcomes: List[ReconciliationOutcome]) -> None:
        self.console.print("[bold cyan]Matched Trades:[/bold cyan]")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Trade ID", style="dim", width=12)
        table.add_column("Order ID", width=14)
        table.add_column("Symbol", width=12)
        table.add_column("Close Side", width=6)
        table.add_column("Qty", justify="right", width=10)
        table.add_column("PnL", justify="right", width=12)
        table.add_column("R", justify="right", width=7)
        table.add_column("Rule", width=22)

        for outcome in outcomes[:20]:  # Show first 20 matches
            result = outcome.match_result
            record = result.match
            update = outcome.update
            pnl_style = "green" if record.closed_pnl >= 0 else "red"
            table.add_row(
                outcome.trade_id or "-",
                record.order_id[-14:],
                record.symbol,
                record.side,
                str(record.quantity),
                f"[{pnl_style}]{record.closed_pnl}[/{pnl_style}]",
                f"{update.finish_r:.2f}" if update and update.finish_r is not None else "-",
                f"{result.rule_order} ({result.match_type.value})",
            )

        self.console.print(table)

        if len(outcomes) > 20:
            self.console.print(f"[dim]... and {len(outcomes) - 20} more matched trades[/dim]")

        self.console.print()

    def show_unmatched_trades(
        self, results: Sequence[Tuple[LocalTrade, ReconciliationOutcome]]
    ) -> None:
        """Display trades that were closed without a closed-PnL record.

        Args:
            results: (trade, outcome) pairs from a batch run
        """
        unmatched = [
            (trade, outcome)
            for trade, outcome in results
            if outcome.status == ReconStatus.CLOSED_WITHOUT_PNL
        ]
        if not unmatched:
            return

        self.console.print(
            f"[bold red]Trades Closed Without PnL ({len(unmatched)}):[/bold red]"
        )

        table = Table(show_header=True, header_style="bold red")
        table.add_column("Trade ID", width=12)
        table.add_column("Symbol", width=14)
        table.add_column("Side", width=5)
        table.add_column("Qty", justify="right", width=10)
        table.add_column("Entry", width=20)
        table.add_column("Reason", width=18)
        table.add_column("Candidates", justify="right", width=10)

        # Show first 10 unmatched trades
        for trade, outcome in unmatched[:10]:
            table.add_row(
                trade.display_id,
                trade.symbol,
                trade.side.value,
                str(trade.quantity) if trade.quantity is not None else "-",
                trade.entry_timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                outcome.match_type.value if outcome.match_type else "-",
                str(outcome.candidate_count),
            )

        self.console.print(table)

        if len(unmatched) > 10:
            self.console.print(f"[dim]... and {len(unmatched) - 10} more unmatched trades[/dim]")

        self.console.print()

    def show_error(self, message: str) -> None:
        """Display an error message.

        Args:
            message: Error message to display
        """
        error_panel = Panel(
            f"❌ {message}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        )
        self.console.print(error_panel)

    def show_rule_info(self, rule_info: RuleInfo) -> None:
        """Display information about a matching rule.

        Args:
            rule_info: Dictionary with rule metadata
        """
        rule_text = (
            f"📋 Rule {rule_info['rule_number']}: {rule_info['name']}\n"
            f"📝 {rule_info['description']}\n"
            f"🔍 Matched Fields: {', '.join(rule_info['matched_fields'])}\n"
            f"🎯 Outcomes: {', '.join(rule_info['outcomes'])}"
        )

        if "notes" in rule_info:
            rule_text += f"\n💡 Notes: {rule_info['notes']}"

        panel = Panel(
            rule_text,
            title=f"[bold blue]Rule {rule_info['rule_number']} Information[/bold blue]",
            border_style="blue",
        )

        self.console.print(panel)
        self.console.print()

    def show_config_summary(self, settings: Dict[str, str]) -> None:
        """Display the active tolerance and retry settings."""
        table = Table(show_header=False, box=None)
        table.add_column("Setting", style="bold")
        table.add_column("Value")
        for key, value in settings.items():
            table.add_row(key, value)

        self.console.print(
            Panel(table, title="[bold blue]Active Configuration[/bold blue]", border_style="blue")
        )
        self.console.print()
