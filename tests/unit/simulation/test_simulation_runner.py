"""
Unit tests for stock_market_sim.simulation.SimulationRunner
"""
import asyncio

import pytest

from conftest import wait_for
from stock_market_sim.models import EventEngineConfig, SchedulerConfig
from stock_market_sim.simulation.SimulationRunner import SimulationRunner
from stock_market_sim.simulation.SimulationSession import SimulationSession

FAST = SchedulerConfig(tick_interval=0.01, event_check_interval=0.02, news_interval=0.03)


@pytest.fixture
def session(app_config):
    config = app_config.model_copy(update={
        "scheduler": FAST,
        "events": EventEngineConfig(event_probability=1.0, cooldown_seconds=0.0),
    })
    return SimulationSession(config)


@pytest.mark.asyncio
async def test_runner_drives_ticks_and_news(session):
    runner = SimulationRunner(session)
    received = []
    runner.subscribe(lambda kind, payload: received.append(kind))

    await runner.start()
    assert runner.running
    try:
        await wait_for(lambda: session.tick_count >= 5
                       and any(n.is_event for n in session.news_history)
                       and any(not n.is_event for n in session.news_history))
    finally:
        await runner.stop()

    assert not runner.running
    assert received.count("price_update") >= 5
    assert any(item.is_event for item in session.news_history)
    assert any(not item.is_event for item in session.news_history)


@pytest.mark.asyncio
async def test_async_listener_and_failing_listener(session):
    runner = SimulationRunner(session)
    prices = []

    async def record(kind, payload):
        if kind == "price_update":
            prices.append(payload)

    def broken(kind, payload):
        raise RuntimeError("listener bug")

    runner.subscribe(broken)
    runner.subscribe(record)

    await runner.start()
    try:
        await wait_for(lambda: len(prices) >= 3)
    finally:
        await runner.stop()

    # a failing listener neither stops the loop nor starves later listeners
    assert set(prices[-1]) == {"AAPL", "MSFT", "XOM"}


@pytest.mark.asyncio
async def test_stop_halts_ticking(session):
    runner = SimulationRunner(session)
    await runner.start()
    await wait_for(lambda: session.tick_count >= 2)
    await runner.stop()

    ticks = session.tick_count
    await asyncio.sleep(0.05)
    assert session.tick_count == ticks
    assert not runner.running


@pytest.mark.asyncio
async def test_restart_replaces_tasks(session):
    runner = SimulationRunner(session)
    await runner.start()
    await runner.start()
    try:
        assert len(runner._tasks) == 3
    finally:
        await runner.stop()
