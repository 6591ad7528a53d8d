"""
CLI entry point for the OySy wallet.

Parses command-line arguments and dispatches to the appropriate command handler.
"""

import sys
import argparse
from pathlib import Path

from oysy.config import Config
from oysy.cli.commands import (
    cmd_accounts,
    cmd_add,
    cmd_delete,
    cmd_primary,
    cmd_balance,
    cmd_watch,
    cmd_login,
    cmd_logout,
    cmd_uri_decode,
    cmd_uri_encode,
)

COMMANDS = {
    'accounts': cmd_accounts,
    'add': cmd_add,
    'delete': cmd_delete,
    'primary': cmd_primary,
    'balance': cmd_balance,
    'watch': cmd_watch,
    'login': cmd_login,
    'logout': cmd_logout,
    'uri-decode': cmd_uri_decode,
    'uri-encode': cmd_uri_encode,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='oysy',
        description="OySy Wallet - track account balances and payment requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add ADDRESS "Savings" --primary   Track an account as primary
  %(prog)s accounts                          List tracked accounts
  %(prog)s balance                           Refresh balances
  %(prog)s watch -i 30                       Refresh every 30 seconds
  %(prog)s uri-encode ADDRESS --amount 5     Build a payment URI
  %(prog)s uri-encode ADDRESS --qr           ...with a QR code
  %(prog)s uri-decode "bazo:ADDRESS?amount=5"
        """
    )

    parser.add_argument('--offline', action='store_true', help='Start in offline mode')
    parser.add_argument('--data-dir', type=str, help=f'Data directory (default: {Config.DATA_DIR})')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # accounts
    subparsers.add_parser('accounts', help='List tracked accounts')

    # add
    add_parser = subparsers.add_parser('add', help='Track an account')
    add_parser.add_argument('address', help='Account address')
    add_parser.add_argument('label', help='Display label')
    add_parser.add_argument('--primary', action='store_true', help='Make it the primary account')

    # delete
    delete_parser = subparsers.add_parser('delete', help='Stop tracking an account')
    delete_parser.add_argument('address', help='Account address')

    # primary
    primary_parser = subparsers.add_parser('primary', help='Set the primary account')
    primary_parser.add_argument('address', help='Account address')

    # balance
    bal_parser = subparsers.add_parser('balance', help='Refresh balances')
    bal_parser.add_argument('--silent', action='store_true', help='Do not print events')
    bal_parser.add_argument('--url', type=str, help='Gateway URL for this refresh')

    # watch
    watch_parser = subparsers.add_parser('watch', help='Refresh balances periodically')
    watch_parser.add_argument('-i', '--interval', type=int,
                              help=f'Check interval in seconds (default: {Config.REFRESH_INTERVAL})')
    watch_parser.add_argument('-n', '--passes', type=int, default=0,
                              help='Stop after N passes (default: run until Ctrl+C)')

    # login / logout
    login_parser = subparsers.add_parser('login', help='Log in with an access token')
    login_parser.add_argument('token', help='Token issued by the account service')
    subparsers.add_parser('logout', help='Forget the access token')

    # uri-decode
    dec_parser = subparsers.add_parser('uri-decode', help='Decode a payment URI')
    dec_parser.add_argument('uri', help='bazo:ADDRESS?amount=...')
    dec_parser.add_argument('--save', action='store_true', help='Save it as a payment request')

    # uri-encode
    enc_parser = subparsers.add_parser('uri-encode', help='Build a payment URI')
    enc_parser.add_argument('address', help='Receiving address')
    enc_parser.add_argument('--amount', type=str, help='Requested amount')
    enc_parser.add_argument('--message', type=str, help='Message for the payer')
    enc_parser.add_argument('--qr', action='store_true', help='Show QR code')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.data_dir:
        Config.DATA_DIR = Path(args.data_dir).expanduser()
        Config.load_saved_settings()
    if args.offline:
        Config.OFFLINE = True

    if args.command in COMMANDS:
        sys.exit(COMMANDS[args.command](args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
