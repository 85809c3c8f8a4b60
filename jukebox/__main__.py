"""
Jukebox Daemon - Entry Point

Run with: python -m jukebox
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from jukebox import __version__
from jukebox.config import ConfigError, DaemonConfig, load_config
from jukebox.core import AdapterError, StartupError
from jukebox.server import JukeboxDaemon


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="jukeboxd",
        description="Jukebox daemon - shared playback session controlled over a local socket",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="TOML file with a [daemon] table (default: $JUKEBOX_CONFIG)",
    )

    parser.add_argument(
        "-s",
        "--socket",
        type=str,
        default=None,
        help="Socket path or host:port (overrides JUKEBOX_DAEMON_SOCKET)",
    )

    parser.add_argument(
        "--adapter",
        type=str,
        default=None,
        help="Force a playback adapter: mpv, system, macos, catalog or noop",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> DaemonConfig:
    """Load the configuration and apply command line overrides."""
    config = load_config(config_path=args.config)
    if args.socket:
        config.socket = args.socket
    if args.adapter:
        config = replace(config, adapter=args.adapter)
    return config


async def run_daemon(config: DaemonConfig) -> None:
    """Start and run the jukebox daemon."""
    daemon = JukeboxDaemon(config)
    await daemon.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)
    logger.info("Starting jukebox daemon...")

    try:
        config = build_config(args)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    try:
        asyncio.run(run_daemon(config))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except (StartupError, AdapterError) as e:
        logger.error("Cannot start: %s", e)
        return 1
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    logger.info("Daemon stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
