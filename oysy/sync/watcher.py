"""
Background balance refresh.

BalanceWatcher runs silent reconciliation passes on a daemon thread every
`interval` seconds and skips the pass while the client is offline.
"""

import asyncio
import logging
import threading
from typing import Optional

from oysy.config import Config
from oysy.state.app_state import AppState
from oysy.sync.reconcile import ReconciliationEngine

logger = logging.getLogger(__name__)


def run_pass(engine: ReconciliationEngine, state: AppState, silent: bool = True,
             preferred_url: Optional[str] = None):
    """One blocking reconciliation pass, against the user's preferred gateway by default"""
    url = preferred_url or state.preferred_url()
    return asyncio.run(engine.reconcile(silent=silent, preferred_url=url))


def reconcile_in_background(engine: ReconciliationEngine, state: AppState,
                            silent: bool = False) -> threading.Thread:
    """Fire-and-forget pass on a daemon thread"""

    def _work():
        try:
            run_pass(engine, state, silent=silent)
        except Exception as e:  # keep the thread from dying noisily
            logger.exception("Background reconcile failed: %s", e)

    thread = threading.Thread(target=_work, daemon=True, name="oysy-reconcile")
    thread.start()
    return thread


class BalanceWatcher:
    """Periodically reconciles balances in the background"""

    def __init__(self, engine: ReconciliationEngine, state: AppState, interval: float = None):
        self.engine = engine
        self.state = state
        self.interval = Config.REFRESH_INTERVAL if interval is None else interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="oysy-watcher")
        self._thread.start()
        logger.info("Balance watcher started (every %ss)", self.interval)

    def stop(self, timeout: float = 5):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
        self._thread = None

    def tick(self):
        """Run one pass unless offline. Returns the report or None."""
        if self.state.offline:
            logger.debug("Offline, skipping balance refresh")
            return None
        return run_pass(self.engine, self.state, silent=True)

    def _loop(self):
        while True:
            try:
                self.tick()
            except Exception as e:
                logger.exception("Balance refresh failed: %s", e)
            if self._stop.wait(self.interval):
                break
