"""
oysy.sync - Balance reconciliation and notifications.

Re-exports the public API from submodules.
"""

from oysy.sync.notify import (
    EVENT_QUERY_COMPLETE, EVENT_BALANCES_CHANGED, EVENT_CONNECTION_FAILED,
    NotificationDispatcher, DesktopNotifier, NoticeBoard, ConsoleDispatcher,
)
from oysy.sync.reconcile import ReconcileReport, ReconciliationEngine
from oysy.sync.watcher import BalanceWatcher, reconcile_in_background, run_pass

__all__ = [
    "EVENT_QUERY_COMPLETE",
    "EVENT_BALANCES_CHANGED",
    "EVENT_CONNECTION_FAILED",
    "NotificationDispatcher",
    "DesktopNotifier",
    "NoticeBoard",
    "ConsoleDispatcher",
    "ReconcileReport",
    "ReconciliationEngine",
    "BalanceWatcher",
    "reconcile_in_background",
    "run_pass",
]
