"""
Balance source contract.

A balance source answers one question: given an address, what is its
balance right now. Calls are asynchronous and independent; a failure is a
SourceError for that one address.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import requests

from oysy.config import Config
from oysy.state.registry import Balance


@dataclass(frozen=True)
class BalanceResult:
    address: str
    balance: Balance


class SourceError(Exception):
    """A single balance query failed"""
    def __init__(self, source: str, address: str, message: str):
        self.source = source
        self.address = address
        self.message = message
        super().__init__(f"{source} query for {address} failed: {message}")


@runtime_checkable
class BalanceSource(Protocol):
    """Anything that can fetch the balance of one address"""

    name: str

    async def fetch_balance(self, address: str) -> BalanceResult:
        ...


def build_session(user_agent: str = None) -> requests.Session:
    """HTTP session shared by the source adapters (routes through Tor if enabled)"""
    session = requests.Session()
    session.headers['User-Agent'] = user_agent or Config.USER_AGENT
    proxies = Config.tor_proxies()
    if proxies:
        session.proxies.update(proxies)
    return session
