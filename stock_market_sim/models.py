from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any, List, Literal


class MagnitudeBand(BaseModel):
    """Absolute range a news impact is drawn from; the sign is drawn separately."""
    low: float = Field(ge=0.0)
    high: float = Field(ge=0.0)

    @model_validator(mode="after")
    def _check_order(self) -> "MagnitudeBand":
        if self.low > self.high:
            raise ValueError(f"band low {self.low} is above band high {self.high}")
        return self


class ScopeBands(BaseModel):
    instrument: MagnitudeBand
    sector: MagnitudeBand
    market: MagnitudeBand


class PriceModelConfig(BaseModel):
    sentiment_weight: float = Field(default=0.01, ge=0.0, le=0.05)
    default_volatility: float = Field(default=0.015, ge=0.0)
    history_limit: int = Field(default=100, gt=0)
    price_floor: float = Field(default=0.01, ge=0.01)
    # half-width of the per-instrument drift used when backfilling history
    trend_bias_band: float = Field(default=0.003, ge=0.0)
    history_days: int = Field(default=30, gt=0)


class SentimentConfig(BaseModel):
    decay_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    lower: float = Field(default=-1.0, ge=-1.0, le=1.0)
    upper: float = Field(default=1.0, ge=-1.0, le=1.0)


class EventEngineConfig(BaseModel):
    events_enabled: bool = True
    event_probability: float = Field(default=0.05, ge=0.0, le=1.0)
    cooldown_seconds: float = Field(default=30.0, ge=0.0)
    market_dampening: float = Field(default=0.8, ge=0.0, le=1.0)
    history_limit: int = Field(default=50, gt=0)
    event_bands: ScopeBands = ScopeBands(
        instrument=MagnitudeBand(low=0.05, high=0.20),
        sector=MagnitudeBand(low=0.03, high=0.13),
        market=MagnitudeBand(low=0.02, high=0.10),
    )
    news_bands: ScopeBands = ScopeBands(
        instrument=MagnitudeBand(low=0.02, high=0.09),
        sector=MagnitudeBand(low=0.01, high=0.05),
        market=MagnitudeBand(low=0.005, high=0.03),
    )


class LedgerConfig(BaseModel):
    starting_cash: float = Field(default=10000.0, ge=0.0)
    max_order_quantity: Optional[int] = Field(default=None, gt=0)


class SchedulerConfig(BaseModel):
    """Cadences, in seconds, used by the realtime runner."""
    tick_interval: float = Field(default=1.0, gt=0.0)
    event_check_interval: float = Field(default=10.0, gt=0.0)
    news_interval: float = Field(default=20.0, gt=0.0)


class InstrumentConfig(BaseModel):
    symbol: str
    company_name: Optional[str] = None
    sector: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0.0)
    volatility: Optional[float] = Field(default=None, ge=0.0)
    sentiment: Optional[float] = Field(default=None, ge=-1.0, le=1.0)


class AppConfig(BaseModel):
    """Complete simulation configuration"""
    user_id: str = "local"
    seed: Optional[int] = None
    data_source: Literal["synthetic", "yahoo"] = "synthetic"
    price_model: PriceModelConfig = PriceModelConfig()
    sentiment: SentimentConfig = SentimentConfig()
    events: EventEngineConfig = EventEngineConfig()
    ledger: LedgerConfig = LedgerConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    instruments: List[InstrumentConfig] = Field(default_factory=list)


class Quote(BaseModel):
    """Seed quote from a market data provider."""
    symbol: str
    company_name: str
    last_price: float = Field(gt=0.0)
    open_price: Optional[float] = None
    previous_close: Optional[float] = None
    volume: Optional[int] = None
    sector: Optional[str] = None
    history: List[float] = Field(default_factory=list)


# Plain records exchanged with persistence and UI collaborators.

class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class InstrumentRecord(BaseModel):
    symbol: str
    company_name: str
    sector: str
    market_price: float = Field(ge=0.01)
    open_price: float = Field(ge=0.0)
    previous_close_price: float = Field(ge=0.0)
    volatility: float = Field(ge=0.0)
    sentiment: float = Field(ge=-1.0, le=1.0)
    price_history: List[float]
    volume: int = Field(default=0, ge=0)
    high_price: Optional[float] = None
    low_price: Optional[float] = None
    is_synthetic: bool = False


class HoldingRecord(BaseModel):
    symbol: str
    quantity: int = Field(gt=0)
    average_cost_basis: float = Field(ge=0.0)


class TransactionRecord(BaseModel):
    transaction_id: str
    type: TradeSide
    symbol: str
    quantity: int = Field(gt=0)
    price_per_share: float = Field(gt=0.0)
    total_value: float = Field(gt=0.0)
    timestamp: str


class LedgerRecord(BaseModel):
    user_id: str
    cash: float = Field(ge=0.0)
    starting_cash: float = Field(ge=0.0)
    holdings: List[HoldingRecord] = Field(default_factory=list)
    transactions: List[TransactionRecord] = Field(default_factory=list)


class NewsItemRecord(BaseModel):
    headline: str
    scope: Literal["instrument", "sector", "market"]
    target_ref: Optional[str] = None
    magnitude: float
    created_at: str
    is_event: bool
    polarity: Literal["positive", "negative"]
    affected_symbols: List[str] = Field(default_factory=list)


class SnapshotRecord(BaseModel):
    instruments: List[InstrumentRecord]
    ledger: LedgerRecord
    news_history: List[NewsItemRecord] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
