import argparse
from typing import List, Optional


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the market simulation."""
    parser = argparse.ArgumentParser(
        description="Simulate a stock market with news-driven sentiment and a trading ledger."
    )

    # Input/Output options
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML or JSON simulation config (default: built-in defaults)",
    )

    parser.add_argument(
        "--snapshot-file",
        type=str,
        default="snapshot.json",
        help="Where to write the final session snapshot (default: snapshot.json)",
    )

    parser.add_argument(
        "--resume",
        type=str,
        default=None,
        help="Restore the session from a previously written snapshot file",
    )

    parser.add_argument(
        "--history-file",
        type=str,
        default="price_history.csv",
        help="Where to write per-instrument price history as CSV (default: price_history.csv)",
    )

    parser.add_argument(
        "--data-source",
        type=str,
        choices=["synthetic", "yahoo"],
        default=None,
        help="Seed instruments synthetically or from Yahoo Finance (overrides config)",
    )

    # Simulation parameters
    parser.add_argument(
        "--steps",
        type=int,
        default=100,
        help="Number of price ticks to simulate in headless mode (default: 100)",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility (overrides config)",
    )

    parser.add_argument(
        "--realtime",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Run on wall-clock timers until interrupted (default: False)",
    )

    # Logging options
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    return parser.parse_args(argv)


#example
# python -m stock_market_sim.sim --config config/simulation.yaml --steps 500 --seed 7
