"""
Worker process serving image transform requests.

Usage:
    image-resizer
    image-resizer --workers 4
    image-resizer --config conf.json
"""

import argparse
import asyncio
import logging
import signal

from image_resizer.config import Settings, get_settings
from image_resizer.service import ImageResizerService

logger = logging.getLogger(__name__)


async def run(settings: Settings, num_workers: int) -> None:
    """Run the service until a shutdown signal arrives."""
    service = ImageResizerService(settings, num_workers)

    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        service.request_stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await service.start()
        await service.wait()
    except Exception as e:
        logger.error(f"Worker error: {e}")
        raise
    finally:
        await service.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Image Resizer Worker")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of consumers in this process (default: 1)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON config file (default: environment variables)",
    )

    args = parser.parse_args()
    settings = Settings.from_file(args.config) if args.config else get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    asyncio.run(run(settings, args.workers))


if __name__ == "__main__":
    main()
