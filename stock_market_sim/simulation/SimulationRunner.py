import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Union

from stock_market_sim.models import SchedulerConfig
from stock_market_sim.simulation.SimulationSession import SimulationSession

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], Union[None, Awaitable[None]]]


class SimulationRunner:
    """
    Drives a SimulationSession in real time with three asyncio tasks:
    price ticks, event checks and routine news, each on its own interval.

    The session is only ever touched from the event loop, so every callback
    finishes before the next one starts. Listeners receive ("price_update",
    prices) and ("news", NewsItem) notifications and may be sync or async.
    """

    def __init__(self, session: SimulationSession, config: Optional[SchedulerConfig] = None):
        self.session = session
        self.config = config or session.config.scheduler
        self._listeners: List[Listener] = []
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def start(self):
        if self.running:
            logger.debug("Runner already started, restarting.")
            await self.stop()

        logger.info(
            f"Starting simulation for {self.session.user_id}: tick {self.config.tick_interval}s, "
            f"events {self.config.event_check_interval}s, news {self.config.news_interval}s"
        )
        self._tasks = [
            asyncio.create_task(self._loop(self.config.tick_interval, self._on_tick), name="price_tick"),
            asyncio.create_task(self._loop(self.config.event_check_interval, self._on_event_check), name="event_check"),
            asyncio.create_task(self._loop(self.config.news_interval, self._on_news), name="routine_news"),
        ]

    async def stop(self):
        """Cancel all timers and wait for them to wind down."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                logger.debug(f"{task.get_name()} task cancelled.")
            except Exception as e:
                logger.warning(f"{task.get_name()} task had already failed: {e}")
        logger.info(f"Simulation for {self.session.user_id} stopped.")

    async def _loop(self, interval: float, step: Callable[[], Awaitable[None]]):
        try:
            while True:
                await asyncio.sleep(interval)
                await step()
        except Exception:
            logger.exception("Error in simulation task")
            raise

    async def _on_tick(self):
        prices = self.session.tick()
        await self._notify("price_update", prices)

    async def _on_event_check(self):
        item = self.session.check_for_event()
        if item is not None:
            await self._notify("news", item)

    async def _on_news(self):
        item = self.session.generate_routine_news()
        await self._notify("news", item)

    async def _notify(self, kind: str, payload: Any):
        for listener in self._listeners:
            try:
                result = listener(kind, payload)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("Error in simulation listener")
