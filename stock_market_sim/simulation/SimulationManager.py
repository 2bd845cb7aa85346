import logging
import time
from typing import Callable, Dict, List, Optional

from stock_market_sim.data_provider.QuoteProvider import QuoteProvider
from stock_market_sim.models import AppConfig, SnapshotRecord
from stock_market_sim.simulation.SimulationRunner import Listener, SimulationRunner
from stock_market_sim.simulation.SimulationSession import SimulationSession

logger = logging.getLogger(__name__)


class SimulationManager:
    """
    Registry of per-user simulations and the runners driving them.

    Each user id maps to at most one session. A session can be opened fresh
    from the shared config or restored from a snapshot, in which case it is
    keyed on the snapshot's ledger owner. Closing a user stops their runner
    first and hands back a final snapshot for the persistence layer.
    """

    def __init__(
        self,
        app_config: AppConfig,
        provider: Optional[QuoteProvider] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.app_config = app_config
        self._provider = provider
        self._clock = clock
        self._sessions: Dict[str, SimulationSession] = {}
        self._runners: Dict[str, SimulationRunner] = {}

    def open(self, user_id: str) -> SimulationSession:
        session = self._sessions.get(user_id)
        if session is not None:
            logger.debug(f"Reusing simulation for {user_id}")
            return session

        session = SimulationSession(self.app_config, provider=self._provider, clock=self._clock, user_id=user_id)
        self._sessions[user_id] = session
        logger.info(f"Opened simulation for {user_id} with {len(session.instruments)} instruments")
        return session

    def restore(self, snapshot: SnapshotRecord) -> SimulationSession:
        """Rebuild a session from `snapshot`; the owner must not already have one open."""
        user_id = snapshot.ledger.user_id
        if user_id in self._sessions:
            raise ValueError(f"{user_id} already has an open simulation")

        session = SimulationSession.from_snapshot(
            snapshot, config=self.app_config, provider=self._provider, clock=self._clock
        )
        self._sessions[user_id] = session
        logger.info(f"Restored simulation for {user_id} at tick {session.tick_count}")
        return session

    def get(self, user_id: str) -> Optional[SimulationSession]:
        return self._sessions.get(user_id)

    def runner(self, user_id: str) -> Optional[SimulationRunner]:
        return self._runners.get(user_id)

    def users(self) -> List[str]:
        return list(self._sessions)

    async def start(self, user_id: str, listener: Optional[Listener] = None) -> SimulationRunner:
        """Drive the user's session on its scheduler, opening the session if needed."""
        session = self.open(user_id)
        runner = self._runners.get(user_id)
        if runner is None:
            runner = SimulationRunner(session)
            self._runners[user_id] = runner
        if listener is not None:
            runner.subscribe(listener)
        if not runner.running:
            await runner.start()
        return runner

    async def close(self, user_id: str) -> Optional[SnapshotRecord]:
        """Stop and forget the user's simulation; returns its final snapshot, or None if unknown."""
        runner = self._runners.pop(user_id, None)
        if runner is not None:
            await runner.stop()

        session = self._sessions.pop(user_id, None)
        if session is None:
            logger.warning(f"No open simulation for {user_id}")
            return None
        logger.info(f"Closed simulation for {user_id} after {session.tick_count} ticks")
        return session.snapshot()

    async def close_all(self) -> Dict[str, SnapshotRecord]:
        return {user_id: await self.close(user_id) for user_id in self.users()}

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
