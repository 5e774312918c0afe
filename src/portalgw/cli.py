"""Command line entry point for the portal gateway."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence
from typing import Any

from portalgw import __version__
from portalgw._constants import DEFAULT_AUDIO_DIR, DEFAULT_HOME
from portalgw.app import GatewayApp
from portalgw.config import GatewayConfig
from portalgw.exceptions import ConfigError, GatewayError

_logger = logging.getLogger("portalgw")

_LOG_LEVELS: dict[str, int] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "err": logging.ERROR,
    "fatal": logging.CRITICAL,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portalgw",
        description="Drive serial portal controllers and audio from portal status feeds.",
    )
    parser.add_argument(
        "--sources",
        "--tecthulhus",
        dest="sources",
        help="Comma separated status feed URLs (tecthulhu modules or concentrator resources)",
    )
    parser.add_argument(
        "--devices",
        "--arduinos",
        dest="devices",
        help="Comma separated serial devices to drive in addition to discovered ones",
    )
    parser.add_argument("--home", help=f"Portal whose state drives the controllers (default: {DEFAULT_HOME})")
    parser.add_argument("--loglevel", dest="log_level", help="trace, debug, info, warning, error or fatal")
    parser.add_argument("--audio-dir", dest="audio_dir", help=f"Directory of .ogg cue files (default: {DEFAULT_AUDIO_DIR})")
    parser.add_argument(
        "--no-discover",
        dest="auto_discover",
        action="store_false",
        default=None,
        help="Only use the devices given with --devices",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> GatewayConfig:
    overrides: dict[str, Any] = {
        key: value
        for key, value in vars(args).items()
        if value is not None
    }
    return GatewayConfig.from_env(**overrides).validate()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level.strip().lower(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _serve(config: GatewayConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for name in ("SIGHUP", "SIGINT", "SIGTERM", "SIGQUIT"):
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            _logger.debug("signal %s not supported on this platform", name)

    async with GatewayApp(config) as app:
        _logger.info("driving controllers for portal '%s' from %s", config.home, ", ".join(config.sources))
        await app.run(stop)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except ConfigError as exc:
        logging.basicConfig(level=logging.ERROR)
        _logger.critical("%s", exc)
        return 1

    configure_logging(config.log_level)
    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        pass
    except GatewayError as exc:
        _logger.critical("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
