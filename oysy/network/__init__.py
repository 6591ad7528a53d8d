"""
oysy.network - Balance sources.

Re-exports the public API from submodules.
"""

from oysy.network.sources import BalanceResult, BalanceSource, SourceError, build_session
from oysy.network.ledger_rpc import LedgerRPCSource
from oysy.network.gateway import HttpGatewaySource

__all__ = [
    "BalanceResult",
    "BalanceSource",
    "SourceError",
    "build_session",
    "LedgerRPCSource",
    "HttpGatewaySource",
]
