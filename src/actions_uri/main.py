#!/usr/bin/env python
"""Main entry point for the Actions URI server."""
import argparse
import atexit
import logging
import os
import sys
from pathlib import Path

from actions_uri import __version__
from actions_uri.config import config
from actions_uri.exceptions import ActionsUriError
from actions_uri.models.results import outcome_to_json
from actions_uri.observability import configure_logging, metrics
from actions_uri.server.app import ActionsUriApp


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Actions URI server")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--vault-dir",
        help="Vault directory holding the markdown notes",
        type=str,
        default=os.environ.get("ACTIONS_URI_VAULT_DIR")
    )
    parser.add_argument(
        "--port",
        help="Port of the loopback HTTP listener",
        type=int,
        default=None
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.environ.get("ACTIONS_URI_LOG_LEVEL", "INFO")
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Serve actions over HTTP until interrupted")
    call = subparsers.add_parser("call", help="Run a single action URI")
    call.add_argument("uri", help="e.g. obsidian://actions-uri/note/get?file=Foo")
    call.add_argument(
        "--no-open",
        action="store_true",
        help="Print the callback URL instead of opening it"
    )
    return parser.parse_args(argv)


def update_config(args):
    """Update the global config with command line arguments."""
    if args.vault_dir:
        config.vault_dir = Path(args.vault_dir)
    if args.port is not None:
        config.http_port = args.port


def _log_metrics_on_exit():
    """Log a metrics summary on shutdown."""
    summary = metrics.get_summary()
    logging.getLogger(__name__).info(
        f"Handled {summary['total_operations']} actions "
        f"({summary['total_errors']} failed)"
    )


def run_call(app: ActionsUriApp, uri: str) -> int:
    """Run one URI call and print what it produced."""
    try:
        result = app.uri.handle_uri(uri)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    if result.callback_url:
        print(result.callback_url)
    else:
        print(outcome_to_json(result.outcome))
    return 0 if result.outcome.is_success else 1


def main(argv=None):
    """Run the Actions URI server."""
    args = parse_args(argv)
    update_config(args)

    # Configure logging (console + persistent file logging with rotation)
    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    try:
        log_dir = configure_logging(level=log_level, console=True)
    except Exception as e:
        # Fall back to basic console logging if file logging fails
        logging.basicConfig(level=log_level)
        logging.getLogger(__name__).warning(f"Failed to configure file logging: {e}")
        log_dir = None

    logger = logging.getLogger(__name__)
    if log_dir:
        logger.info(f"Persistent logging enabled: {log_dir}")

    atexit.register(_log_metrics_on_exit)

    try:
        opener = None
        if args.command == "call" and args.no_open:
            opener = lambda url: None  # noqa: E731
        app = ActionsUriApp(config=config, opener=opener)
    except ActionsUriError as e:
        logger.error(f"Failed to start: {e}")
        sys.exit(1)

    if args.command == "call":
        sys.exit(run_call(app, args.uri))

    if not config.http_enabled:
        logger.error("HTTP transport is disabled (ACTIONS_URI_HTTP_ENABLED=false)")
        sys.exit(1)

    try:
        logger.info("Starting Actions URI HTTP server")
        app.http.serve_forever()
    except OSError as e:
        logger.error(f"Error running server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
