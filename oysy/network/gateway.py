"""
Account gateway balance source (REST over HTTP).

GET <base>/account/<address> answers {"address": ..., "balance": ...}.
The base URL is the configured gateway unless the user chose a custom host.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import requests

from oysy.config import Config
from oysy.network.sources import BalanceResult, SourceError, build_session
from oysy.state.registry import BALANCE_ERROR, normalize_balance

logger = logging.getLogger(__name__)


class HttpGatewaySource:
    """Balance source backed by the account gateway"""

    name = "gateway"

    def __init__(self, base_url: str = None, session: Optional[requests.Session] = None,
                 timeout: float = None):
        self.base_url = (base_url or Config.GATEWAY_URL).rstrip('/')
        self.session = session or build_session()
        self.timeout = timeout or Config.HTTP_TIMEOUT

    def for_url(self, base_url: Optional[str]) -> "HttpGatewaySource":
        """Same source pointed at another gateway (shares the HTTP session)"""
        if not base_url or base_url.rstrip('/') == self.base_url:
            return self
        return HttpGatewaySource(base_url, session=self.session, timeout=self.timeout)

    def get_account(self, address: str) -> dict:
        url = f"{self.base_url}/account/{quote(address, safe='')}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceError(self.name, address, str(e)) from e
        if not isinstance(body, dict):
            raise SourceError(self.name, address, "malformed gateway response")
        return body

    def get_balance(self, address: str):
        """Blocking balance lookup"""
        body = self.get_account(address)
        reported = body.get("address")
        if reported and reported != address:
            raise SourceError(self.name, address, f"gateway answered for {reported}")
        if body.get("error"):
            return BALANCE_ERROR
        return normalize_balance(body.get("balance"))

    async def fetch_balance(self, address: str) -> BalanceResult:
        balance = await asyncio.to_thread(self.get_balance, address)
        logger.debug("Gateway balance for %s: %s", address, balance)
        return BalanceResult(address, balance)
