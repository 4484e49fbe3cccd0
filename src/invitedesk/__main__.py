"""InviteDesk entry point.

Command-line flags are written into the ``INVITEDESK_`` environment before
settings load, so the reloader's worker process sees the same configuration
in ``--dev`` mode.
"""

import argparse
import logging
import os
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

from invitedesk import __version__
from invitedesk.config import get_settings
from invitedesk.logging_setup import setup_logging

setup_logging(level="INFO")
logger = logging.getLogger(__name__)


def _installed_version() -> str:
    try:
        return get_version("invitedesk")
    except PackageNotFoundError:
        return __version__


def _apply_overrides(args: argparse.Namespace) -> None:
    if args.host is not None:
        os.environ["INVITEDESK_HOST"] = args.host
    if args.port is not None:
        os.environ["INVITEDESK_PORT"] = str(args.port)
    if args.demo:
        os.environ["INVITEDESK_DEMO_MODE"] = "true"
    if args.log_level is not None:
        os.environ["INVITEDESK_LOG_LEVEL"] = args.log_level
    get_settings.cache_clear()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="InviteDesk - calendar invitation assistant served over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  invitedesk                         Start the server on 127.0.0.1:8000
  invitedesk --demo                  Serve fixture invites (no Google account needed)
  invitedesk --host 0.0.0.0 -p 9000  Listen on all interfaces
  invitedesk --dev                   Auto-reload on code changes
""",
    )
    parser.add_argument("--host", type=str, default=None, help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port (default: 8000)")
    parser.add_argument("--dev", action="store_true", help="Development mode with auto-reload")
    parser.add_argument(
        "--demo", action="store_true", help="Serve demo invites instead of Google Calendar"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {_installed_version()}",
    )

    args = parser.parse_args()
    _apply_overrides(args)
    settings = get_settings()
    setup_logging(level=settings.log_level)

    from invitedesk.api.serve import run_server

    try:
        run_server(host=settings.host, port=settings.port, dev=args.dev)
    except KeyboardInterrupt:
        logger.info("InviteDesk stopped.")


if __name__ == "__main__":
    main()
