#!/usr/bin/env python3
"""
Main entry point for the moose IRC bot
"""

import argparse
import asyncio
import logging
import sys

from moosebot.bot.manager import run_bot
from moosebot.config import BotConfig, load_config, write_example_config
from moosebot.errors import ConfigError, InternalError, log_error
from moosebot.logging_config import LoggerConfigurator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moosebot",
        description=(
            "Relay moose from the moose service to IRC. "
            "Run one instance per IRC network."
        ),
        epilog="e.g. moosebot -c /etc/moose/rizon.json -i /var/lib/moose/rizon-invites.json",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=("run", "init"),
        default="run",
        help="'init' writes an example configuration to the --config path",
    )
    parser.add_argument("-c", "--config", required=True, help="configuration file path")
    parser.add_argument(
        "-i",
        "--invites",
        help="accept invites and persist them to this file (overrides invite-file)",
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="validate the configuration and exit",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> BotConfig:
    config = load_config(args.config)
    if args.invites:
        config = config.model_copy(update={"invite_file": args.invites})
    return config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    LoggerConfigurator().configure()

    if args.command == "init":
        try:
            write_example_config(args.config)
        except ConfigError as e:
            logging.error(f"❌ {e}")
        # Nothing to run yet; the operator has to edit the example first.
        return 1

    try:
        config = resolve_config(args)
    except ConfigError as e:
        log_error("Failed to open configuration", e)
        return 1

    if args.health_check:
        logging.info(f"✅ Health check passed - {config.nick}@{config.host}")
        return 0

    logging.info(f"🚀 Starting moosebot nick={config.nick} host={config.host}")
    try:
        asyncio.run(run_bot(config))
    except KeyboardInterrupt:
        logging.warning("⌨️ Interrupted by user")
    except ConfigError as e:
        log_error("Startup failed", e)
        return 1
    except InternalError as e:
        log_error("Bot stopped", e)
        return 1
    finally:
        logging.info("🏁 Application shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
