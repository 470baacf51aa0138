#!/usr/bin/env python3
"""
webmock - HTTP double for tests

This is a convenience wrapper that calls the packaged CLI.
The actual implementation is in src/webmock/cli.py

Usage:
    python webmock-serve.py serve tests/fixtures --port 8080
    python webmock-serve.py validate tests/fixtures
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / 'src'))

from webmock.cli import main

if __name__ == '__main__':
    main()
