import logging
from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from stock_market_sim.market.Instrument import Instrument
from stock_market_sim.models import SnapshotRecord

logger = logging.getLogger(__name__)


def save_snapshot(snapshot: SnapshotRecord, path: Union[str, Path]):
    """Write a session snapshot as JSON."""
    path = Path(path)
    path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"Snapshot saved to {path}")


def load_snapshot(path: Union[str, Path]) -> SnapshotRecord:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")
    snapshot = SnapshotRecord.model_validate_json(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded snapshot with {len(snapshot.instruments)} instruments from {path}")
    return snapshot


def price_history_frame(instruments: Iterable[Instrument]) -> pd.DataFrame:
    """
    One column per symbol, one row per step counted back from the latest price.
    Shorter histories are padded with NaN at the start.
    """
    series = {
        i.symbol: pd.Series(list(i.price_history), dtype="float64")
        for i in instruments
    }
    if not series:
        return pd.DataFrame()
    length = max(len(s) for s in series.values())
    aligned = {
        symbol: s.set_axis(range(length - len(s), length)) for symbol, s in series.items()
    }
    df = pd.DataFrame(aligned, index=range(length))
    df.index.name = "step"
    return df


def save_price_history(instruments: Iterable[Instrument], csv_file: Union[str, Path]):
    df = price_history_frame(instruments)
    df.to_csv(csv_file, index=True, encoding="utf-8")
    logger.info(f"Price history for {len(df.columns)} symbols saved to {csv_file}")
