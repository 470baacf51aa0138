"""
Webmock Command Line

Serve cassettes as a standalone mock server, or validate cassette files.

Commands:
    serve       - Start mock HTTP server from cassettes
    validate    - Check that cassettes load cleanly

Examples:
    # Serve every cassette in a directory on port 8080
    webmock serve tests/fixtures --port 8080

    # Validate cassettes before committing them
    webmock validate tests/fixtures/sample_cassette.yml
"""

import argparse
import logging
import sys
from typing import List, Optional

from .cassette import CassetteLoader
from .errors import CassetteError
from .registry import StubRegistry
from .server import MockServer, ServerConfig


def cmd_serve(args):
    """
    Start mock HTTP server serving stubs from cassettes.

    Args:
        args: Parsed command-line arguments
    """
    config = ServerConfig(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        access_log=args.access_log
    )

    try:
        server = MockServer(config=config)
    except OSError as e:
        print(f"❌ Failed to bind {args.host}:{args.port}: {e}")
        sys.exit(1)

    try:
        for path in args.cassettes:
            count = server.load_cassettes(path)
            print(f"   Loaded {count} stubs from {path}")
    except CassetteError as e:
        print(f"❌ Failed to load cassettes: {e}")
        server.stop()
        sys.exit(1)

    print(f"🎭 webmock serving {len(server.registry)} stubs on {server.url}")
    print()

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\n\n👋 Mock server stopped")
    finally:
        server.stop()


def cmd_validate(args):
    """
    Validate cassettes and report stub counts.

    Exits with status 1 if any path fails to load.

    Args:
        args: Parsed command-line arguments
    """
    loader = CassetteLoader()
    errors = []

    for path in args.cassettes:
        registry = StubRegistry()
        try:
            count = loader.load_into(registry, path)
        except CassetteError as e:
            errors.append(str(e))
            continue

        print(f"✓ {path}: {count} stubs")
        if args.verbose:
            for stub in registry:
                print(f"   • {stub.describe()} -> {stub.response.status}")

    if errors:
        print()
        print("❌ Errors found:")
        for error in errors:
            print(f"   • {error}")
        sys.exit(1)

    print("✅ All cassettes loaded")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='webmock',
        description="webmock - HTTP double serving stubbed responses from cassettes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve cassettes on a fixed port
  %(prog)s serve tests/fixtures --port 8080

  # Validate cassettes
  %(prog)s validate tests/fixtures --verbose
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start mock HTTP server')
    serve_parser.add_argument('cassettes', nargs='+', help='Cassette files or directories')
    serve_parser.add_argument('--host', default='127.0.0.1', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, default=8080, help='Port to bind (default: 8080, 0 = ephemeral)')
    serve_parser.add_argument('--log-level', default='info', choices=['debug', 'info', 'warning', 'error'],
                              help='Log level (default: info)')
    serve_parser.add_argument('--access-log', action='store_true', help='Log every request')

    # --- VALIDATE command ---
    validate_parser = subparsers.add_parser('validate', help='Validate cassettes')
    validate_parser.add_argument('cassettes', nargs='+', help='Cassette files or directories')
    validate_parser.add_argument('-v', '--verbose', action='store_true', help='List every stub')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, getattr(args, 'log_level', 'warning').upper()),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.command == 'serve':
        cmd_serve(args)
    elif args.command == 'validate':
        cmd_validate(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
