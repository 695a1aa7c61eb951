"""Main entry point for closed-PnL reconciliation."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
import argparse
import sys
import pandas as pd

from .cli import ReconDisplay
from .config import ReconConfigManager
from .core import ClosedPnlSource, ClosedPositionMatcher, ReconciliationFetcher, ReconciliationService
from .exceptions import MalformedCandidateError, ReconciliationFetchError
from .exchange import BybitClosedPnlClient, ExchangeCredentials
from .loaders import ClosedPnlJSONLoader, SavedClosedPnlSource, TradeCSVLoader
from .models import EventLevel, LocalTrade, ReconciliationOutcome, ReconEvent, ReconStatus
from .normalizers import ClosedPnlNormalizer
from .utils.dataframe_output import create_outcome_dataframe, save_dataframe_to_json

# Default file paths
DEFAULT_DATA_DIR = Path(__file__).parent / "data"
DEFAULT_TRADES_FILE = "trades.csv"
DEFAULT_CLOSED_PNL_FILE = "closed_pnl.json"

API_KEY_ENV = "BYBIT_API_KEY"
API_SECRET_ENV = "BYBIT_API_SECRET"

TradeOutcome = Tuple[LocalTrade, ReconciliationOutcome]

logger = logging.getLogger(__name__)

_EVENT_LOG_LEVELS = {
    EventLevel.INFO: logging.INFO,
    EventLevel.WARNING: logging.WARNING,
    EventLevel.ERROR: logging.ERROR,
}


def log_event(event: ReconEvent) -> None:
    """Event sink that writes reconciliation events to the log."""
    logger.log(
        _EVENT_LOG_LEVELS[event.level],
        f"[trade {event.trade_id}] {event.message}: {event.details}",
    )


def get_statistics(outcomes: Sequence[ReconciliationOutcome]) -> Dict[str, Any]:
    """Count outcomes per status and compute the match rate."""
    counts = {status.value: 0 for status in ReconStatus}
    for outcome in outcomes:
        counts[outcome.status.value] += 1

    considered = counts[ReconStatus.MATCHED.value] + counts[ReconStatus.CLOSED_WITHOUT_PNL.value]
    counts["total"] = len(outcomes)
    counts["match_rate"] = (
        counts[ReconStatus.MATCHED.value] / considered * 100 if considered else 0.0
    )
    return counts


class PnlReconEngine:
    """Batch closed-PnL reconciliation engine."""

    config_manager: ReconConfigManager
    normalizer: ClosedPnlNormalizer
    matcher: ClosedPositionMatcher
    display: ReconDisplay

    def __init__(self, config_manager: Optional[ReconConfigManager] = None):
        """Initialize the reconciliation engine.

        Args:
            config_manager: Optional config manager. Creates default if None.
        """
        self.config_manager = config_manager or ReconConfigManager()
        self.normalizer = ClosedPnlNormalizer(self.config_manager)
        self.matcher = ClosedPositionMatcher(self.config_manager, self.normalizer)
        self.display = ReconDisplay()
        self.trade_loader = TradeCSVLoader()
        self.closed_pnl_loader = ClosedPnlJSONLoader()

        logger.info(
            f"Initialized reconciliation engine with rules {self.matcher.processing_order}"
        )

    async def reconcile_batch(
        self, trades: Sequence[LocalTrade], source: ClosedPnlSource
    ) -> List[TradeOutcome]:
        """Reconcile trades one after another against a closed-PnL source.

        A trade whose fetch is exhausted, or whose response holds a malformed
        record under the fail policy, is logged and left out of the result;
        the rest of the batch continues.

        Args:
            trades: Local trades to reconcile
            source: Exchange client or saved-response source

        Returns:
            (trade, outcome) pairs for every trade that could be fetched
        """
        fetcher = ReconciliationFetcher(source, self.config_manager, self.normalizer)
        service = ReconciliationService(
            fetcher, self.matcher, self.config_manager, event_sink=log_event
        )

        results: List[TradeOutcome] = []
        for trade in trades:
            try:
                outcome = await service.reconcile(trade)
            except (ReconciliationFetchError, MalformedCandidateError) as e:
                logger.error(f"Reconciliation deferred for trade {trade.display_id}: {e}")
                continue
            results.append((trade, outcome))

        return results

    def run_matching(
        self,
        trades_csv_path: Path,
        closed_pnl_json_path: Path,
        show_unmatched: bool = True,
    ) -> List[TradeOutcome]:
        """Run reconciliation against a saved closed-PnL response.

        Args:
            trades_csv_path: Path to local trades CSV file
            closed_pnl_json_path: Path to saved closed-PnL JSON
            show_unmatched: Whether to display trades closed without PnL

        Returns:
            (trade, outcome) pairs
        """
        self.display.show_header()

        try:
            logger.info("Loading trade and closed-PnL data...")
            trades = self.trade_loader.load_trades(trades_csv_path)
            raw_records = self.closed_pnl_loader.load_raw_records(closed_pnl_json_path)

            self.display.show_loading_summary(len(trades), len(raw_records))

            results = asyncio.run(
                self.reconcile_batch(trades, SavedClosedPnlSource(raw_records))
            )
            self._show_results(results, show_unmatched)
            return results

        except Exception as e:
            logger.error(f"Error in reconciliation process: {e}")
            self.display.show_error(f"{e!s}")
            return []

    def run_live(
        self,
        trades_csv_path: Path,
        credentials: ExchangeCredentials,
        show_unmatched: bool = True,
    ) -> List[TradeOutcome]:
        """Run reconciliation against the live exchange API.

        Args:
            trades_csv_path: Path to local trades CSV file
            credentials: API key pair and network selection
            show_unmatched: Whether to display trades closed without PnL

        Returns:
            (trade, outcome) pairs
        """
        self.display.show_header()

        try:
            trades = self.trade_loader.load_trades(trades_csv_path)
            self.display.show_loading_summary(len(trades), 0)

            results = asyncio.run(self._reconcile_live(trades, credentials))
            self._show_results(results, show_unmatched)
            return results

        except Exception as e:
            logger.error(f"Error in live reconciliation process: {e}")
            self.display.show_error(f"{e!s}")
            return []

    async def _reconcile_live(
        self, trades: Sequence[LocalTrade], credentials: ExchangeCredentials
    ) -> List[TradeOutcome]:
        async with BybitClosedPnlClient(self.config_manager.exchange, credentials) as client:
            return await self.reconcile_batch(trades, client)

    def _show_results(self, results: List[TradeOutcome], show_unmatched: bool) -> None:
        self.display.show_results([outcome for _, outcome in results])
        if show_unmatched:
            self.display.show_unmatched_trades(results)

    def run_matching_from_dataframes(
        self, trades_df: pd.DataFrame, raw_records: List[dict[str, Any]]
    ) -> Tuple[List[ReconciliationOutcome], Dict[str, Any]]:
        """Run reconciliation directly from a DataFrame without files.

        Args:
            trades_df: DataFrame containing local trades
            raw_records: Raw closed-PnL entries

        Returns:
            Tuple of (outcomes, statistics)
        """
        try:
            logger.info("Creating trades from DataFrame...")
            trades = self.trade_loader.from_dataframe(trades_df)

            results = asyncio.run(
                self.reconcile_batch(trades, SavedClosedPnlSource(raw_records))
            )
            outcomes = [outcome for _, outcome in results]
            return outcomes, get_statistics(outcomes)

        except Exception as e:
            logger.error(f"Error in reconciliation from DataFrame: {e}")
            raise

    def show_rules(self) -> None:
        """Display information about all matching rules in processing order."""
        self.display.show_header()

        matching = self.config_manager.matching
        retry = self.config_manager.retry_policy
        self.display.show_config_summary(
            {
                "Quantity tolerance": f"< {matching.quantity_tolerance}",
                "Perpetual suffixes": ", ".join(matching.perpetual_suffixes),
                "Exchange profile": matching.exchange_profile,
                "Malformed records": matching.malformed_record_policy.value,
                "Fetch attempts": str(retry.max_attempts),
                "Backoff": (
                    f"min({retry.base_delay_ms}ms * 2^n, {retry.max_delay_ms}ms) "
                    f"+ jitter {retry.jitter_ms}ms"
                ),
            }
        )

        for rule_info in self.matcher.get_rules_info():
            self.display.show_rule_info(rule_info)


def load_credentials_from_env(testnet: bool = False) -> ExchangeCredentials:
    """Read the exchange API key pair from the environment.

    Raises:
        ValueError: If either variable is unset
    """
    api_key = os.environ.get(API_KEY_ENV)
    api_secret = os.environ.get(API_SECRET_ENV)
    if not api_key or not api_secret:
        raise ValueError(f"{API_KEY_ENV} and {API_SECRET_ENV} must be set for live mode")
    return ExchangeCredentials(api_key=api_key, api_secret=api_secret, testnet=testnet)


def setup_logging(log_level: str = "NONE") -> None:
    """Set up logging configuration for reconciliation.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, NONE)
    """
    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_level.upper() == "NONE":
        logging.getLogger().setLevel(logging.CRITICAL + 1)  # Higher than CRITICAL
        return

    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def main() -> None:
    """Main entry point for closed-PnL reconciliation."""
    parser = argparse.ArgumentParser(description="Closed PnL Reconciliation")
    parser.add_argument("--trades-file", type=Path, help="Path to local trades CSV file")
    parser.add_argument(
        "--closed-pnl-file", type=Path, help="Path to saved closed-PnL JSON response"
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DEFAULT_DATA_DIR,
        help=f"Data directory containing input files (default: {DEFAULT_DATA_DIR})",
    )
    parser.add_argument(
        "--live",
        action="store_true",
        help=f"Fetch closed PnL from the exchange (needs {API_KEY_ENV}/{API_SECRET_ENV})",
    )
    parser.add_argument("--testnet", action="store_true", help="Use the exchange testnet")
    parser.add_argument(
        "--no-unmatched",
        action="store_true",
        help="Hide trades closed without PnL after processing",
    )
    parser.add_argument(
        "--show-rules",
        action="store_true",
        help="Display information about matching rules and exit",
    )
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Write results as JSON records to the output directory",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("json_output"),
        help="Directory for --json-output files (default: json_output)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        help="Directory containing recon_config.json (default: bundled config)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "NONE"],
        default="NONE",
        help="Set logging level",
    )

    args = parser.parse_args()

    setup_logging(args.log_level)

    try:
        engine = PnlReconEngine(ReconConfigManager(args.config_dir))

        if args.show_rules:
            engine.show_rules()
            return

        trades_path = args.trades_file or args.data_dir / DEFAULT_TRADES_FILE
        if not trades_path.exists():
            logger.error(
                f"Trades file not found at '{trades_path}'. Please check the file path and try again."
            )
            sys.exit(1)

        if args.live:
            results = engine.run_live(
                trades_path,
                load_credentials_from_env(args.testnet),
                show_unmatched=not args.no_unmatched,
            )
        else:
            closed_pnl_path = args.closed_pnl_file or args.data_dir / DEFAULT_CLOSED_PNL_FILE
            if not closed_pnl_path.exists():
                logger.error(
                    f"Closed-PnL file not found at '{closed_pnl_path}'. "
                    "Please check the file path and try again."
                )
                sys.exit(1)
            results = engine.run_matching(
                trades_path, closed_pnl_path, show_unmatched=not args.no_unmatched
            )

        if args.json_output:
            df = create_outcome_dataframe([outcome for _, outcome in results])
            output_file = save_dataframe_to_json(df, args.output_dir)
            engine.display.console.print(f"💾 Results written to {output_file}")

        logger.info(f"Reconciliation completed. Trades reconciled: {len(results)}")

    except KeyboardInterrupt:
        logger.info("Reconciliation interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(
            f"Fatal error during reconciliation: {e}. Please check the input data and try again."
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
