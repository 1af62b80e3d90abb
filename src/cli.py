#!/usr/bin/env python3
"""
Royalty Ledger Command Line Interface.

Commands:
    - serve: Start the API server
    - check: Verify installation and configuration
    - info: Display the effective ledger configuration

Usage:
    royalty-ledger serve [--host HOST] [--port PORT] [--debug] [--production]
    royalty-ledger check
    royalty-ledger info [--json]
    royalty-ledger --version
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

__version__ = "0.1.0"


def cmd_serve(args):
    """Start the royalty ledger API server."""
    from api import create_app
    from monitoring import configure_logging

    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = args.port or int(os.getenv("PORT", 5000))
    debug = args.debug or os.getenv("FLASK_DEBUG", "").lower() == "true"

    flask_app = create_app()
    print(f"Starting Royalty Ledger API server on {host}:{port}")

    if args.production:
        try:
            import gunicorn.app.base
        except ImportError:
            print("Error: gunicorn not installed. Install with: pip install royalty-ledger[production]")
            return 1

        class StandaloneApplication(gunicorn.app.base.BaseApplication):
            """Gunicorn wrapper serving the Flask app from a dict of options."""

            def __init__(self, app, options=None):
                self.options = options or {}
                self.application = app
                super().__init__()

            def load_config(self):
                for key, value in self.options.items():
                    if key in self.cfg.settings and value is not None:
                        self.cfg.set(key.lower(), value)

            def load(self):
                return self.application

        # One worker: the ledger is single-writer and lives in process memory
        options = {
            "bind": f"{host}:{port}",
            "workers": 1,
            "worker_class": "sync",
            "timeout": 120,
            "accesslog": "-",
            "errorlog": "-",
        }
        StandaloneApplication(flask_app, options).run()
    else:
        flask_app.run(host=host, port=port, debug=debug)
    return 0


def cmd_check(args):
    """Check installation and configuration."""
    print("Royalty Ledger Installation Check")
    print("=" * 40)

    checks = []

    try:
        from royalty_config import LedgerConfig

        LedgerConfig.from_env()
        checks.append(("Configuration", "OK"))
    except ValueError as e:
        checks.append(("Configuration", f"FAIL: {e}"))

    try:
        import royalty_contract  # noqa: F401

        checks.append(("Ledger core", "OK"))
    except ImportError as e:
        checks.append(("Ledger core", f"FAIL: {e}"))

    try:
        import flask  # noqa: F401

        checks.append(("Flask API", "OK"))
    except ImportError as e:
        checks.append(("Flask API", f"FAIL: {e}"))

    try:
        import gunicorn  # noqa: F401

        checks.append(("Production server", "OK"))
    except ImportError:
        checks.append(("Production server", "SKIP (gunicorn not installed)"))

    print()
    all_ok = True
    for name, status in checks:
        icon = "✓" if status == "OK" else ("○" if "SKIP" in status else "✗")
        print(f"  {icon} {name}: {status}")
        if "FAIL" in status:
            all_ok = False

    print()
    if all_ok:
        print("All checks passed!")
        return 0
    print("Some checks failed. See above for details.")
    return 1


def cmd_info(args):
    """Display the effective configuration."""
    import platform

    from royalty_config import LedgerConfig

    try:
        config = LedgerConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps(config.to_dict(), indent=2))
        return 0

    print("Royalty Ledger System Information")
    print("=" * 40)
    print(f"Version: {__version__}")
    print(f"Python: {platform.python_version()}")
    print()
    print("Ledger configuration:")
    for key, value in config.to_dict().items():
        print(f"  {key}: {value if value is not None else 'not set'}")
    print()
    print("Environment:")
    print(f"  LOG_LEVEL: {os.getenv('LOG_LEVEL', 'INFO (default)')}")
    print(f"  LOG_FORMAT: {os.getenv('LOG_FORMAT', 'console (default)')}")
    print(f"  ROYALTY_REQUIRE_AUTH: {os.getenv('ROYALTY_REQUIRE_AUTH', 'true (default)')}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="royalty-ledger",
        description="Royalty Ledger - per-asset royalty agreements and payouts",
    )
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Port to bind to (default: 5000)")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    serve_parser.add_argument(
        "--production", action="store_true", help="Use gunicorn for production"
    )

    subparsers.add_parser("check", help="Check installation and configuration")

    info_parser = subparsers.add_parser("info", help="Display ledger configuration")
    info_parser.add_argument("--json", action="store_true", help="Print configuration as JSON")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "info":
        return cmd_info(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
