"""
Balance reconciliation.

One reconcile() pass snapshots the tracked addresses, queries every address
on every configured source concurrently, and writes each answer back into
the registry. A failed query only loses that one answer.

The ledger node results are written as they arrive and never hold up the
pass. The gateway is the source of record for completion: once it has
answered for every address the registry timestamp is refreshed and the
pass reports (balances changed, query complete), unless the caller asked
for a silent pass. If the gateway fails for every address the pass reports
a connection failure instead and leaves balances and timestamp alone.

Every pass gets a sequence number and every write carries it, so an answer
from an older pass that arrives late cannot overwrite a newer one.

Reconciliation does not look at the offline flag: do not call it while
offline.
"""

import asyncio
import logging
import threading
from typing import Dict, List, Optional

from oysy.config import Config
from oysy.network.sources import SourceError
from oysy.state.app_state import ACCOUNTS_VIEW, AppState
from oysy.sync.notify import (
    EVENT_BALANCES_CHANGED, EVENT_CONNECTION_FAILED, EVENT_QUERY_COMPLETE,
)

logger = logging.getLogger(__name__)

MESSAGES = {
    EVENT_BALANCES_CHANGED: "An account balance has changed.",
    EVENT_QUERY_COMPLETE: "Account balances are up to date.",
    EVENT_CONNECTION_FAILED: "Could not connect to the balance service.",
}


class ReconcileReport:
    """What one reconciliation pass did"""

    def __init__(self, sequence: int, addresses: List[str]):
        self.sequence = sequence
        self.addresses = addresses
        self.mutated = False
        self.written: Dict[str, Dict[str, object]] = {}
        self.failures: List[SourceError] = []
        self.gateway_failed = False
        self.gateway_completed = False

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "addresses": self.addresses,
            "mutated": self.mutated,
            "written": self.written,
            "failures": [str(e) for e in self.failures],
            "gateway_failed": self.gateway_failed,
            "gateway_completed": self.gateway_completed,
        }


class ReconciliationEngine:
    """Keeps tracked balances in sync with the ledger node and the gateway"""

    def __init__(self, state: AppState, ledger=None, gateway=None, dispatcher=None):
        self.state = state
        self.ledger = ledger
        self.gateway = gateway
        self.dispatcher = dispatcher
        self._sequence = 0
        self._sequence_lock = threading.Lock()

    def _next_sequence(self) -> int:
        with self._sequence_lock:
            self._sequence += 1
            return self._sequence

    async def reconcile(self, silent: bool = False, preferred_url: Optional[str] = None) -> ReconcileReport:
        """
        Run one reconciliation pass.

        Args:
            silent: Suppress in-app events (background refreshes)
            preferred_url: Gateway base URL to use instead of the default
        """
        addresses = self.state.registry.addresses()
        report = ReconcileReport(self._next_sequence(), addresses)
        if not addresses:
            return report

        logger.debug("Reconcile pass %d over %d accounts", report.sequence, len(addresses))
        work = []
        if self.ledger is not None:
            work.append(self._reconcile_ledger(addresses, report))
        if self.gateway is not None:
            gateway = self.gateway.for_url(preferred_url) if preferred_url else self.gateway
            work.append(self._reconcile_gateway(gateway, addresses, report, silent))
        await asyncio.gather(*work)
        return report

    # ------------------------------------------------------------------
    # Per source
    # ------------------------------------------------------------------

    async def _reconcile_ledger(self, addresses: List[str], report: ReconcileReport):
        await asyncio.gather(*(self._query(self.ledger, a, report) for a in addresses))

    async def _reconcile_gateway(self, gateway, addresses: List[str], report: ReconcileReport,
                                 silent: bool):
        answered = await asyncio.gather(*(self._query(gateway, a, report) for a in addresses))

        if not any(answered):
            report.gateway_failed = True
            logger.warning("Gateway failed for all %d accounts", len(addresses))
            self._emit(EVENT_CONNECTION_FAILED, silent)
            return

        self.state.registry.touch_updated_timestamp()
        report.gateway_completed = True
        if report.mutated:
            self._emit(EVENT_BALANCES_CHANGED, silent)
            self._notify_system()
        self._emit(EVENT_QUERY_COMPLETE, silent)

    async def _query(self, source, address: str, report: ReconcileReport) -> bool:
        try:
            result = await source.fetch_balance(address)
        except SourceError as e:
            logger.warning("%s", e)
            report.failures.append(e)
            return False
        except Exception as e:  # adapter bug or unexpected transport error: isolate it
            error = SourceError(getattr(source, 'name', 'source'), address, repr(e))
            logger.warning("%s", error)
            report.failures.append(error)
            return False

        self._write(source, address, result.balance, report)
        return True

    def _write(self, source, address: str, balance, report: ReconcileReport):
        registry = self.state.registry
        previous = registry.balance_of(address)
        if not registry.set_balance(address, balance, sequence=report.sequence):
            return
        current = registry.balance_of(address)
        report.written.setdefault(address, {})[getattr(source, 'name', 'source')] = current
        if previous != current:
            report.mutated = True

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _emit(self, kind: str, silent: bool):
        if silent or self.dispatcher is None:
            return
        self.dispatcher.emit(kind, MESSAGES[kind], Config.EVENT_DURATION_MS)

    def _notify_system(self):
        """OS notification when the user is not looking at the accounts"""
        if self.dispatcher is None or self.state.view.showing(ACCOUNTS_VIEW):
            return
        if not self.dispatcher.supports_system_notifications():
            return
        self.dispatcher.system_notify(
            Config.APP_TITLE,
            MESSAGES[EVENT_BALANCES_CHANGED],
            on_activate=self.state.focus_accounts,
        )
