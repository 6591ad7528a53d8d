"""
Tracked account registry.

Owns the list of accounts the wallet follows and the primacy invariant:
when at least one account is tracked, exactly one of them is primary;
when none are, the registry is not configured.

Balances are written only by the reconciliation engine through
set_balance(). Each write may carry the sequence number of the
reconciliation pass that produced it, in which case a write from an older
pass never overwrites a value written by a newer one.
"""

import math
import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from oysy.state.errors import AccountNotFound, ValidationError

logger = logging.getLogger(__name__)

BALANCE_UNCONFIRMED = "unconfirmed"
BALANCE_UNKNOWN = "unknown"
BALANCE_ERROR = "error"
BALANCE_MARKERS = (BALANCE_UNCONFIRMED, BALANCE_UNKNOWN, BALANCE_ERROR)

Balance = Union[int, float, str]


def is_numeric_balance(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_balance(value) -> Balance:
    """
    Coerce a value reported by a source into a stored balance.

    Numbers (and numeric strings) stay numbers, integral values as int.
    The three markers pass through. Anything else is "unknown".
    """
    if isinstance(value, bool) or value is None:
        return BALANCE_UNKNOWN
    if isinstance(value, str):
        if value in BALANCE_MARKERS:
            return value
        try:
            value = float(value.strip())
        except ValueError:
            return BALANCE_UNKNOWN
    if not isinstance(value, (int, float)):
        return BALANCE_UNKNOWN
    if isinstance(value, float):
        if not math.isfinite(value):
            return BALANCE_UNKNOWN
        if value.is_integer():
            return int(value)
    return value


class Account:
    """One tracked wallet account"""

    def __init__(self, address: str, label: str, is_primary: bool = False,
                 balance: Balance = BALANCE_UNCONFIRMED):
        self.address = address
        self.label = label
        self.is_primary = is_primary
        self.balance = balance

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "label": self.label,
            "is_primary": self.is_primary,
            "balance": self.balance,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        return cls(
            address=data["address"],
            label=data.get("label", ""),
            is_primary=bool(data.get("is_primary", False)),
            balance=normalize_balance(data.get("balance", BALANCE_UNCONFIRMED)),
        )

    def copy(self) -> "Account":
        return Account(self.address, self.label, self.is_primary, self.balance)

    def __repr__(self):
        flag = " primary" if self.is_primary else ""
        return f"<Account {self.address} {self.label!r}{flag} balance={self.balance!r}>"


class AccountRegistry:
    """Ordered set of tracked accounts keyed by address"""

    def __init__(self, on_change: Optional[Callable[["AccountRegistry"], None]] = None):
        self._accounts: List[Account] = []
        self._balance_seq: Dict[str, int] = {}
        self._lock = threading.RLock()
        self.configured = False
        self.last_updated: Optional[datetime] = None
        self.on_change = on_change

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self):
        with self._lock:
            return len(self._accounts)

    def __contains__(self, address):
        return self._find(address) is not None

    def _find(self, address: str) -> Optional[Account]:
        with self._lock:
            for account in self._accounts:
                if account.address == address:
                    return account
        return None

    def find(self, address: str) -> Optional[Account]:
        """Return a copy of the account with this address, or None"""
        account = self._find(address)
        return account.copy() if account else None

    def get(self, address: str) -> Account:
        account = self.find(address)
        if account is None:
            raise AccountNotFound(address)
        return account

    def balance_of(self, address: str) -> Optional[Balance]:
        account = self._find(address)
        return account.balance if account else None

    def accounts(self) -> List[Account]:
        with self._lock:
            return [a.copy() for a in self._accounts]

    def addresses(self) -> List[str]:
        """Snapshot of the tracked addresses in registry order"""
        with self._lock:
            return [a.address for a in self._accounts]

    def primary(self) -> Optional[Account]:
        with self._lock:
            for account in self._accounts:
                if account.is_primary:
                    return account.copy()
        return None

    def sum_of_balances(self) -> Union[int, float]:
        """Sum of numeric balances; markers such as "unconfirmed" count as zero"""
        with self._lock:
            return sum(a.balance for a in self._accounts if is_numeric_balance(a.balance))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add(self, address: str, label: str, is_primary: bool = False) -> Account:
        address = (address or "").strip()
        label = (label or "").strip()
        if not address or not label:
            missing = "address" if not address else "label"
            logger.warning("Rejected account without %s", missing)
            raise ValidationError(f"Account {missing} is required", field=missing)

        with self._lock:
            if self._find(address) is not None:
                logger.warning("Rejected duplicate account %s", address)
                raise ValidationError(f"Account {address} is already tracked", field="address")

            if is_primary:
                self._demote_all()
            account = Account(address, label, is_primary=bool(is_primary))
            self._accounts.append(account)
            if not any(a.is_primary for a in self._accounts):
                account.is_primary = True
            self.configured = True
            self._changed()
            return account.copy()

    def delete(self, address: str) -> Account:
        with self._lock:
            account = self._find(address)
            if account is None:
                raise AccountNotFound(address)
            self._accounts.remove(account)
            self._balance_seq.pop(address, None)

            if account.is_primary:
                if self._accounts:
                    self._accounts[0].is_primary = True
            if not self._accounts:
                self.configured = False
            self._changed()
            return account.copy()

    def set_primary(self, address: str) -> Account:
        with self._lock:
            account = self._find(address)
            if account is None:
                raise AccountNotFound(address)
            self._demote_all()
            account.is_primary = True
            self._changed()
            return account.copy()

    def set_balance(self, address: str, value: Balance, sequence: Optional[int] = None) -> bool:
        """
        Overwrite the balance of a tracked account.

        Unknown addresses are ignored. With a sequence number, the write is
        dropped when a newer pass already wrote this address.
        Returns True if the value was stored.
        """
        with self._lock:
            account = self._find(address)
            if account is None:
                return False
            if sequence is not None:
                last = self._balance_seq.get(address)
                if last is not None and sequence < last:
                    logger.debug("Dropped stale balance for %s (pass %d < %d)", address, sequence, last)
                    return False
                self._balance_seq[address] = sequence
            account.balance = normalize_balance(value)
            self._changed()
            return True

    def touch_updated_timestamp(self):
        with self._lock:
            self.last_updated = datetime.now()
            self._changed()

    # ------------------------------------------------------------------
    # Internals & persistence
    # ------------------------------------------------------------------

    def _demote_all(self):
        for account in self._accounts:
            account.is_primary = False

    def _changed(self):
        if self.on_change:
            self.on_change(self)

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "configured": self.configured,
                "accounts": [a.to_dict() for a in self._accounts],
                "updated_balances": self.last_updated.isoformat() if self.last_updated else None,
            }

    @classmethod
    def from_dict(cls, data: dict, on_change=None) -> "AccountRegistry":
        registry = cls()
        for entry in data.get("accounts", []):
            try:
                account = Account.from_dict(entry)
            except (KeyError, TypeError) as e:
                logger.warning("Skipping malformed stored account %r: %s", entry, e)
                continue
            if not account.address or registry._find(account.address):
                continue
            registry._accounts.append(account)

        primaries = [a for a in registry._accounts if a.is_primary]
        if registry._accounts and len(primaries) != 1:
            logger.warning("Stored accounts had %d primaries, repairing", len(primaries))
            registry._demote_all()
            (primaries[0] if primaries else registry._accounts[0]).is_primary = True
        registry.configured = bool(registry._accounts)

        updated = data.get("updated_balances")
        if updated:
            try:
                registry.last_updated = datetime.fromisoformat(updated)
            except (TypeError, ValueError):
                registry.last_updated = None
        registry.on_change = on_change
        return registry
