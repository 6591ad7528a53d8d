"""
Client configuration for the OySy wallet.
"""

import os
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class Config:
    """Wallet client configuration"""
    APP_TITLE = "OySy Wallet"

    # Data directory for the persisted client state and settings
    DATA_DIR = Path(os.environ.get("OYSY_DATA_DIR", str(Path.home() / ".oysy")))

    # Ledger node (JSON-RPC over HTTP)
    LEDGER_RPC_URL = "https://s.altnet.rippletest.net:51234"

    # Account gateway (REST); users may override it with a custom host
    GATEWAY_URL = "https://csg.uzh.ch/bazo/api"

    # Payment URI scheme: bazo:<address>?amount=...
    URI_SCHEME = "bazo"

    # Request timeout in seconds (per balance query)
    HTTP_TIMEOUT = 15
    USER_AGENT = "OySy-Wallet/1.0"

    # Tor Configuration
    # Set TOR_ENABLED=True to route all balance queries through Tor
    TOR_ENABLED = False
    TOR_PROXY = "socks5h://127.0.0.1:9050"  # Standard Tor SOCKS proxy

    # Seconds between background balance reconciliations
    REFRESH_INTERVAL = 60

    # OS-level notifications on balance changes (notify-send)
    SYSTEM_NOTIFICATIONS = True

    # Seconds before a redirected navigation force-clears the loading indicator
    LOADING_CLEANUP_DELAY = 0.1

    # Notice durations (milliseconds)
    NOTICE_DURATION_MS = 6000
    NOT_FOUND_DURATION_MS = 8000
    EVENT_DURATION_MS = 4000

    # Connectivity at startup ("1" = start offline)
    OFFLINE = os.environ.get("OYSY_OFFLINE", "") == "1"

    @classmethod
    def settings_path(cls) -> Path:
        return cls.DATA_DIR / "settings.json"

    @classmethod
    def store_path(cls) -> Path:
        return cls.DATA_DIR / "store.json"

    @classmethod
    def web_secret_path(cls) -> Path:
        return cls.DATA_DIR / "web_secret"

    @classmethod
    def tor_proxies(cls) -> dict:
        """requests-style proxy mapping, empty when Tor is off"""
        if not cls.TOR_ENABLED:
            return {}
        return {'http': cls.TOR_PROXY, 'https': cls.TOR_PROXY}

    @classmethod
    def load_saved_settings(cls):
        """Load client settings from the data directory if present"""
        path = cls.settings_path()
        if not path.exists():
            return
        try:
            settings = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", path, e)
            return

        if 'ledger_rpc_url' in settings:
            cls.LEDGER_RPC_URL = settings['ledger_rpc_url']
        if 'gateway_url' in settings:
            cls.GATEWAY_URL = settings['gateway_url']
        if 'tor_enabled' in settings:
            cls.TOR_ENABLED = bool(settings['tor_enabled'])
        if 'tor_proxy' in settings:
            cls.TOR_PROXY = settings['tor_proxy']
        if 'refresh_interval' in settings:
            cls.REFRESH_INTERVAL = int(settings['refresh_interval'])
        if 'system_notifications' in settings:
            cls.SYSTEM_NOTIFICATIONS = bool(settings['system_notifications'])
        if 'http_timeout' in settings:
            cls.HTTP_TIMEOUT = float(settings['http_timeout'])


# Load saved settings on import
Config.load_saved_settings()
