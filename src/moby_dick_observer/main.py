from __future__ import annotations

import asyncio
import logging
import sys

from .config import ConfigError, load_settings
from .service import WhaleWatchService

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _main() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        configure_logging("INFO")
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)

    configure_logging(settings.log_level)
    logger.info("The Moby Dick Observer is starting up...")
    logger.info(
        "Watching pool %s for swaps >= %d wei (leg %d)",
        settings.pool_address,
        settings.whale_threshold_wei,
        settings.watched_leg,
    )
    service = WhaleWatchService(settings)
    await service.run()


def main() -> None:
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
