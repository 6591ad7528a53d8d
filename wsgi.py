#!/usr/bin/env python3
"""
WSGI Entry Point for OySy Web
Run with: gunicorn -c gunicorn.conf.py wsgi:app
"""

import sys
import logging
from pathlib import Path

# Add application directory to path
APP_DIR = Path(__file__).parent.absolute()
sys.path.insert(0, str(APP_DIR))

from oysy.web import create_app

logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

# Create the Flask application (one worker owns the state and the watcher)
app = create_app(start_watcher=True)

# Production configuration
app.config.update(
    DEBUG=False,
    TESTING=False,
    PROPAGATE_EXCEPTIONS=False,
    JSON_SORT_KEYS=False,
    SEND_FILE_MAX_AGE_DEFAULT=0,
)

if __name__ == "__main__":
    app.run(host="127.0.0.1", port=5000)
