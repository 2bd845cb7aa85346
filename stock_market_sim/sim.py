import asyncio
import logging
from typing import List, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from stock_market_sim.config.logging_config import setup_logging
from stock_market_sim.config.sim_arg_parser import parse_arguments
from stock_market_sim.data_provider.QuoteProviderFactory import QuoteProviderFactory
from stock_market_sim.etl.snapshot_etl import load_snapshot, save_price_history, save_snapshot
from stock_market_sim.factories.ConfigFactory import ConfigFactory
from stock_market_sim.models import AppConfig
from stock_market_sim.simulation.SimulationRunner import SimulationRunner
from stock_market_sim.simulation.SimulationSession import SimulationSession

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ["AAPL", "MSFT", "JPM", "XOM", "PFE"]


def build_config(args) -> AppConfig:
    config = ConfigFactory.load_config(args.config) if args.config else AppConfig()
    overrides = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.data_source is not None:
        overrides["data_source"] = args.data_source
    if not config.instruments and not args.resume:
        overrides["instruments"] = [{"symbol": s} for s in DEFAULT_SYMBOLS]
    if overrides:
        # round-trip through validation so nested overrides are parsed
        config = AppConfig.model_validate({**config.model_dump(), **overrides})
    return config


def build_session(args, config: AppConfig) -> SimulationSession:
    provider = QuoteProviderFactory().create(config.data_source)
    if args.resume:
        return SimulationSession.from_snapshot(load_snapshot(args.resume), config=config, provider=provider)
    return SimulationSession(config=config, provider=provider)


def run_headless(session: SimulationSession, steps: int):
    """
    Advance the session `steps` ticks as fast as possible. Event checks and
    routine news fire on the tick multiples implied by the scheduler intervals.
    """
    scheduler = session.config.scheduler
    event_every = max(1, round(scheduler.event_check_interval / scheduler.tick_interval))
    news_every = max(1, round(scheduler.news_interval / scheduler.tick_interval))

    with logging_redirect_tqdm():
        for step in tqdm(range(1, steps + 1), total=steps, desc="Simulating"):
            session.tick()
            if step % event_every == 0:
                session.check_for_event()
            if step % news_every == 0:
                session.generate_routine_news()


async def run_realtime(session: SimulationSession):
    runner = SimulationRunner(session)

    def log_update(kind, payload):
        if kind == "news":
            logger.info(f"NEWS: {payload.headline}")

    runner.subscribe(log_update)
    await runner.start()
    try:
        while runner.running:
            await asyncio.sleep(1)
    finally:
        await runner.stop()


def log_summary(session: SimulationSession):
    for symbol in session.symbols():
        instrument = session.instruments[symbol]
        change = instrument.day_change()
        logger.info(
            f"{symbol:<6} ${instrument.market_price:>10.2f} ({change['percent']:+.2f}%) "
            f"sentiment {session.sentiment_store.get(instrument):+.3f}"
        )
    summary = session.summary()
    logger.info(
        f"Cash ${summary['cash']:.2f}, total assets ${summary['total_assets']:.2f}, "
        f"P/L {summary['percent_change']:+.2f}%"
    )


async def main(argv: Optional[List[str]] = None):
    args = parse_arguments(argv)
    setup_logging(args.log_level, args.log_file)
    logging.info("Starting simulation...")

    config = build_config(args)
    session = build_session(args, config)

    try:
        if args.realtime:
            await run_realtime(session)
        else:
            run_headless(session, args.steps)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Simulation interrupted.")
    finally:
        log_summary(session)
        save_snapshot(session.snapshot(), args.snapshot_file)
        save_price_history(session.instruments.values(), args.history_file)


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
