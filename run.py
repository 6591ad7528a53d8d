#!/usr/bin/env python3
"""
OySy Web - Development Server Entry Point

Usage:
    python run.py                    # Start on port 5000
    python run.py --port 8080        # Custom port
    python run.py --offline          # Start in offline mode
    python run.py --debug            # Enable debug mode
"""

import argparse
import logging

from oysy.config import Config
from oysy.web import create_app


def main():
    parser = argparse.ArgumentParser(description='OySy Web - Development Server')
    parser.add_argument('--port', type=int, default=5000)
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--offline', action='store_true')
    parser.add_argument('--no-watch', action='store_true', help='Disable background balance refresh')
    parser.add_argument('--debug', action='store_true')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.offline:
        Config.OFFLINE = True

    # The reloader would start a second watcher in the child process
    app = create_app(start_watcher=not args.no_watch)
    app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)


if __name__ == '__main__':
    main()
