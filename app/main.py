"""
Command-line entry point for Tabs Bot

Starts the bot against a Matrix homeserver:

Usage:
    python app/main.py SERVER USERNAME [NAMESPACE] [--store FILE]

    SERVER      URL of the homeserver to connect to
    USERNAME    Username of the bot
    NAMESPACE   State event type used to store tabs in each room
    --store     Keep tabs in a local JSON file instead of room state

Every argument can also come from the environment (or a .env file):
    TABSBOT_MATRIX_HOMESERVER, TABSBOT_MATRIX_USER, TABSBOT_MATRIX_PASSWORD,
    TABSBOT_STORAGE_NAMESPACE, TABSBOT_STORAGE_BACKEND, TABSBOT_STORAGE_STORE_PATH

The password is prompted for when TABSBOT_MATRIX_PASSWORD is unset.
"""

import argparse
import asyncio
import getpass
import sys
from typing import Optional

from pydantic import ValidationError

from tabsbot import __version__
from tabsbot.activity import configure_logging
from tabsbot.config import (
    AppSettings,
    MatrixSettings,
    StorageBackend,
    StorageSettings,
)
from tabsbot.orchestrator import create_app_components
from tabsbot.services.storage import StateLoadError
from tabsbot.services.transport import TransportError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabsbot",
        description="A simple matrix bot for keeping tabs in a room.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("server", nargs="?", help="URL of the homeserver to connect to")
    parser.add_argument("username", nargs="?", help="Username of the bot")
    parser.add_argument(
        "namespace",
        nargs="?",
        help="Namespace used by the bot to store its state",
    )
    parser.add_argument(
        "--store",
        metavar="FILE",
        help="Store tabs in this JSON file instead of room state",
    )
    return parser


def load_settings(args: argparse.Namespace) -> tuple[MatrixSettings, StorageSettings]:
    """Environment settings, overridden by whatever was given on the command line."""
    matrix_overrides = {}
    if args.server:
        matrix_overrides["homeserver"] = args.server
    if args.username:
        matrix_overrides["user"] = args.username

    storage_overrides = {}
    if args.namespace is not None:
        storage_overrides["namespace"] = args.namespace
    if args.store:
        storage_overrides["backend"] = StorageBackend.FILE
        storage_overrides["store_path"] = args.store

    return MatrixSettings(**matrix_overrides), StorageSettings(**storage_overrides)


def get_password(matrix_settings: MatrixSettings) -> str:
    if matrix_settings.password is not None:
        return matrix_settings.password.get_secret_value()
    print("Type password for the bot (characters won't show up as you type them)")
    return getpass.getpass("password: ")


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    app_settings = AppSettings()
    configure_logging(app_settings.effective_log_level)

    try:
        matrix_settings, storage_settings = load_settings(args)
    except ValidationError as e:
        print(f"ERROR: invalid configuration:\n{e}", file=sys.stderr)
        return 2

    try:
        password = get_password(matrix_settings)
    except (EOFError, KeyboardInterrupt):
        print("\nFATAL: failed to get password", file=sys.stderr)
        return 1

    bot = create_app_components(matrix_settings, storage_settings)
    print(
        f"[+] Connecting to {matrix_settings.homeserver} as {matrix_settings.user} "
        f"(tabs stored in {storage_settings.backend.value})"
    )

    try:
        asyncio.run(bot.run(password))
    except StateLoadError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return 1
    except TransportError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n[+] Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
