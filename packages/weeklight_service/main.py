"""
Weeklight Service Entry Point

Run as:
    python -m weeklight_service
    weeklight (after pip install)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from pydantic import ValidationError

from weeklight_config.loader import load_config_from_file
from weeklight_config.settings import Settings

from .engine import LightControlEngine
from .factory import create_device, create_engine


def setup_logging(debug: bool = False) -> None:
    """Configure logging"""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


async def serve(engine: LightControlEngine, schedule: str | None = None) -> None:
    """Start the engine and run until a shutdown signal arrives."""
    logger = logging.getLogger(__name__)
    loop = asyncio.get_running_loop()

    def request_stop() -> None:
        logger.info("Shutdown signal received")
        loop.create_task(engine.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    await engine.start()
    if schedule is not None:
        result = engine.activate_schedule(schedule)
        if not result.success:
            logger.error(result.message)

    await engine.run()


def main() -> int:
    """Main entry point"""
    settings = Settings()

    parser = argparse.ArgumentParser(
        description="Weeklight - weekly light schedules for networked fixtures"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=settings.config_path,
        help=f"Schedule configuration file (default: {settings.config_path})",
    )
    parser.add_argument(
        "--schedule",
        default=None,
        help="Schedule to activate (default: default_schedule or the first one)",
    )
    parser.add_argument(
        "--device",
        choices=["hue", "log"],
        default=None,
        help=f"Device interface (default: {settings.device})",
    )
    parser.add_argument(
        "--device-log",
        type=Path,
        default=None,
        help="With --device log, write commands to this file",
    )
    parser.add_argument(
        "--list-schedules",
        action="store_true",
        help="List compiled schedules and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    setup_logging(args.debug or settings.debug)
    logger = logging.getLogger(__name__)

    try:
        config = load_config_from_file(args.config)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    device = create_device(config, settings, args.device, args.device_log)
    engine = create_engine(config, settings, device=device)

    # List schedules and exit
    if args.list_schedules:
        for name in engine.list_schedules():
            print(f"  - {name}")
        for name, error in engine.schedule_errors.items():
            print(f"  ! {name}: {error}")
        return 0

    logger.info("Starting Weeklight")
    logger.info(f"  Config: {args.config}")
    logger.info(f"  Device: {device!r}")

    try:
        asyncio.run(serve(engine, args.schedule))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt")

    return 0


if __name__ == "__main__":
    sys.exit(main())
