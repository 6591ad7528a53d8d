"""
CLI command implementations for the OySy wallet.

Each cmd_* function corresponds to a subcommand (e.g. 'add', 'balance',
'uri-encode') and returns the process exit code.
"""

import time
from datetime import datetime

from oysy.config import Config
from oysy.network.gateway import HttpGatewaySource
from oysy.network.ledger_rpc import LedgerRPCSource
from oysy.network.sources import build_session
from oysy.state.app_state import AppState
from oysy.state.errors import AccountNotFound, ValidationError
from oysy.state.store import KeyedStore
from oysy.sync.notify import ConsoleDispatcher, DesktopNotifier
from oysy.sync.reconcile import ReconciliationEngine
from oysy.sync.watcher import run_pass
from oysy.wallet.qr import payment_qr_ascii
from oysy.wallet.uri import URIError, decode_uri, encode_uri


# =========================================================================
#                         SHARED
# =========================================================================

def _load_state(args) -> AppState:
    offline = bool(getattr(args, 'offline', False)) or Config.OFFLINE
    return AppState.restore(KeyedStore(Config.store_path()), offline=offline)


def _build_engine(state: AppState) -> ReconciliationEngine:
    http = build_session()
    return ReconciliationEngine(
        state,
        ledger=LedgerRPCSource(session=http),
        gateway=HttpGatewaySource(session=http),
        dispatcher=ConsoleDispatcher(system=DesktopNotifier()),
    )


def _format_balance(balance) -> str:
    if isinstance(balance, (int, float)) and not isinstance(balance, bool):
        return f"{balance:,}"
    return str(balance)


def _print_accounts(state: AppState):
    accounts = state.registry.accounts()
    if not accounts:
        print("No accounts tracked. Add one with 'add ADDRESS LABEL'.")
        return

    width = max(len(a.label) for a in accounts)
    for account in accounts:
        marker = '*' if account.is_primary else ' '
        print(f" {marker} {account.label:<{width}}  {_format_balance(account.balance):>16}  {account.address}")
    print("")
    print(f"   Total: {_format_balance(state.sum_of_balances)}")
    updated = state.last_balance_updated()
    print(f"   Updated: {updated or 'never'}")


# =========================================================================
#                         ACCOUNTS
# =========================================================================

def cmd_accounts(args):
    """List tracked accounts"""
    state = _load_state(args)
    _print_accounts(state)
    return 0


def cmd_add(args):
    """Track a new account"""
    state = _load_state(args)
    try:
        account = state.add_account(args.address, args.label, is_primary=args.primary)
    except ValidationError as e:
        print(f"[FAIL] {e}")
        return 1
    flag = " (primary)" if account.is_primary else ""
    print(f"[OK] Added {account.label}{flag}: {account.address}")
    return 0


def cmd_delete(args):
    """Stop tracking an account"""
    state = _load_state(args)
    try:
        account = state.delete_account(args.address)
    except AccountNotFound as e:
        print(f"[FAIL] {e}")
        return 1
    print(f"[OK] Deleted {account.label}: {account.address}")
    primary = state.registry.primary()
    if account.is_primary and primary:
        print(f"     {primary.label} is now the primary account")
    return 0


def cmd_primary(args):
    """Make an account the primary one"""
    state = _load_state(args)
    try:
        account = state.set_primary_account(args.address)
    except AccountNotFound as e:
        print(f"[FAIL] {e}")
        return 1
    print(f"[OK] {account.label} is now the primary account")
    return 0


# =========================================================================
#                         BALANCES
# =========================================================================

def cmd_balance(args):
    """Refresh and show balances"""
    state = _load_state(args)
    if state.offline:
        print("[FAIL] Offline. Balances cannot be refreshed.")
        return 1
    if not state.account_configured:
        _print_accounts(state)
        return 0

    # The user is looking at the list: no desktop notification
    state.focus_accounts()
    engine = _build_engine(state)
    print(f"Checking {len(state.registry)} account(s)...")
    print("")
    report = run_pass(engine, state, silent=args.silent, preferred_url=args.url)
    print("")
    _print_accounts(state)
    return 1 if report.gateway_failed else 0


def cmd_watch(args):
    """Keep balances up to date until interrupted"""
    state = _load_state(args)
    if state.offline:
        print("[FAIL] Offline. Balances cannot be refreshed.")
        return 1
    if not state.account_configured:
        _print_accounts(state)
        return 1

    interval = Config.REFRESH_INTERVAL if args.interval is None else args.interval
    engine = _build_engine(state)

    print("")
    print("=" * 60)
    print("WATCHING ACCOUNT BALANCES")
    print("=" * 60)
    print("")
    print(f"Checking every {interval} seconds. Press Ctrl+C to stop.")
    print("")

    passes = 0
    try:
        while True:
            report = run_pass(engine, state, silent=True)
            timestamp = datetime.now().strftime('%H:%M:%S')
            if report.gateway_failed:
                print(f"[{timestamp}] Could not reach the balance service.")
            elif report.mutated:
                print(f"[{timestamp}] Balances changed:")
                _print_accounts(state)
            else:
                print(f"[{timestamp}] No change. Total: {_format_balance(state.sum_of_balances)}")

            passes += 1
            if args.passes and passes >= args.passes:
                return 0
            time.sleep(interval)
    except KeyboardInterrupt:
        print("")
        print("Stopped watching.")
        return 0


# =========================================================================
#                         SESSION
# =========================================================================

def cmd_login(args):
    """Store the token issued by the account service"""
    state = _load_state(args)
    try:
        session = state.login(args.token.strip())
    except ValueError as e:
        print(f"[FAIL] {e}")
        return 1
    print(f"[OK] Logged in (role: {session.role or 'none'})")
    return 0


def cmd_logout(args):
    state = _load_state(args)
    state.logout()
    print("[OK] Logged out")
    return 0


# =========================================================================
#                         PAYMENT URIS
# =========================================================================

def cmd_uri_decode(args):
    """Decode a payment URI and remember it as a payment request"""
    try:
        request = decode_uri(args.uri)
    except URIError as e:
        print(f"[FAIL] {e}")
        return 1

    print(f"Address: {request['address']}")
    for key, value in request['options'].items():
        print(f"{key.capitalize()}: {value}")

    if args.save:
        state = _load_state(args)
        state.add_payment_request(request)
        print("")
        print("[OK] Saved to payment requests")
    return 0


def cmd_uri_encode(args):
    """Build a payment URI"""
    options = {}
    if args.amount is not None:
        options['amount'] = args.amount
    if args.message:
        options['message'] = args.message
    try:
        uri = encode_uri(args.address, options)
    except URIError as e:
        print(f"[FAIL] {e}")
        return 1

    print(uri)
    if args.qr:
        print("")
        print(payment_qr_ascii(uri))
    return 0
