"""
Notification dispatchers.

The core never renders anything: it emits typed events with a message and a
display duration, and asks for an OS-level notification when the user is
not looking at the accounts view. The dispatcher decides how those reach
the user (web notice list, console, desktop notifications).
"""

import time
import shutil
import logging
import subprocess
import threading
from collections import deque
from typing import Callable, List, Optional, Protocol, runtime_checkable

from oysy.config import Config

logger = logging.getLogger(__name__)

EVENT_QUERY_COMPLETE = "query-complete"
EVENT_BALANCES_CHANGED = "balances-changed"
EVENT_CONNECTION_FAILED = "connection-failed"


@runtime_checkable
class NotificationDispatcher(Protocol):
    def emit(self, kind: str, message: str, duration_ms: int) -> None:
        ...

    def system_notify(self, title: str, body: str,
                      on_activate: Optional[Callable[[], None]] = None) -> None:
        ...

    def supports_system_notifications(self) -> bool:
        ...


# =========================================================================
#                         DESKTOP NOTIFICATIONS
# =========================================================================

class DesktopNotifier:
    """OS notifications through notify-send (libnotify)"""

    def __init__(self, enabled: bool = None, binary: str = "notify-send", timeout: int = 5):
        self.enabled = Config.SYSTEM_NOTIFICATIONS if enabled is None else enabled
        self.binary = binary
        self.timeout = timeout

    def supports(self) -> bool:
        return bool(self.enabled) and shutil.which(self.binary) is not None

    def notify(self, title: str, body: str, on_activate: Optional[Callable[[], None]] = None):
        cmd = [self.binary, '--app-name', Config.APP_TITLE, title, body]
        if on_activate is None:
            subprocess.run(cmd, capture_output=True, timeout=self.timeout)
            return
        # --wait blocks until the notification is closed, so wait off-thread
        waiter = threading.Thread(
            target=self._wait_for_activation,
            args=(cmd + ['--action=open=Open', '--wait'], on_activate),
            daemon=True,
        )
        waiter.start()

    def _wait_for_activation(self, cmd: List[str], on_activate: Callable[[], None]):
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Desktop notification failed: %s", e)
            return
        if result.stdout.strip() == 'open':
            on_activate()


# =========================================================================
#                         DISPATCHERS
# =========================================================================

class NoticeBoard:
    """Keeps recent events for the web client to poll"""

    def __init__(self, system: Optional[DesktopNotifier] = None, maxlen: int = 100):
        self.system = system
        self._events = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def emit(self, kind: str, message: str, duration_ms: int):
        with self._lock:
            self._events.append({
                'kind': kind,
                'message': message,
                'duration_ms': duration_ms,
                'time': time.time(),
            })

    def peek(self) -> List[dict]:
        with self._lock:
            return list(self._events)

    def drain(self) -> List[dict]:
        with self._lock:
            events = list(self._events)
            self._events.clear()
            return events

    def supports_system_notifications(self) -> bool:
        return self.system is not None and self.system.supports()

    def system_notify(self, title: str, body: str, on_activate=None):
        if self.system is not None:
            self.system.notify(title, body, on_activate)


class ConsoleDispatcher:
    """Prints events (CLI)"""

    def __init__(self, system: Optional[DesktopNotifier] = None):
        self.system = system

    def emit(self, kind: str, message: str, duration_ms: int):
        print(f"[{kind}] {message}")

    def supports_system_notifications(self) -> bool:
        return self.system is not None and self.system.supports()

    def system_notify(self, title: str, body: str, on_activate=None):
        if self.system is not None:
            self.system.notify(title, body, on_activate)
