"""
Ledger node balance source (JSON-RPC over HTTP).

Talks to a rippled node: `account_info` on the last validated ledger,
balance reported in drops.
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests

from oysy.config import Config
from oysy.network.sources import BalanceResult, SourceError, build_session
from oysy.state.registry import normalize_balance

logger = logging.getLogger(__name__)

DROPS_PER_UNIT = Decimal(1_000_000)
ONE_DROP = Decimal("0.000001")


class LedgerRPCSource:
    """Balance source backed by a ledger node's JSON-RPC interface"""

    name = "ledger"

    def __init__(self, url: str = None, session: Optional[requests.Session] = None,
                 timeout: float = None):
        self.url = url or Config.LEDGER_RPC_URL
        self.session = session or build_session()
        self.timeout = timeout or Config.HTTP_TIMEOUT

    def _call(self, method: str, params: dict, address: str) -> dict:
        """Make a JSON-RPC call, returning the `result` object"""
        payload = {"method": method, "params": [params]}
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceError(self.name, address, str(e)) from e

        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise SourceError(self.name, address, "malformed RPC response")
        if result.get("status") == "error" or result.get("error"):
            message = result.get("error_message") or result.get("error") or "RPC error"
            raise SourceError(self.name, address, message)
        return result

    def get_balance(self, address: str):
        """Blocking balance lookup, in whole units"""
        result = self._call(
            "account_info",
            {"account": address, "ledger_index": "validated", "strict": True},
            address,
        )
        drops = (result.get("account_data") or {}).get("Balance")
        if drops is None:
            raise SourceError(self.name, address, "no balance in account data")
        try:
            amount = Decimal(str(drops)) / DROPS_PER_UNIT
        except InvalidOperation as e:
            raise SourceError(self.name, address, f"bad balance {drops!r}") from e
        if not amount.is_finite():
            raise SourceError(self.name, address, f"bad balance {drops!r}")
        # Whole units stay exact ints; fractions never carry more than drop precision
        if amount == amount.to_integral_value():
            return int(amount)
        return normalize_balance(float(amount.quantize(ONE_DROP)))

    async def fetch_balance(self, address: str) -> BalanceResult:
        balance = await asyncio.to_thread(self.get_balance, address)
        logger.debug("Ledger balance for %s: %s", address, balance)
        return BalanceResult(address, balance)
