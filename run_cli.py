"""Standalone CLI entry point.

Connects to the Skald API using SKALD_API_KEY (and optionally
SKALD_BASE_URL / SKALD_TIMEOUT) from the environment or a .env file.
"""

from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

from skald.cli import run_cli  # noqa: E402
from skald.client import SkaldClient  # noqa: E402
from skald.exceptions import InvalidArgumentError  # noqa: E402
from skald.logging_config import log_init  # noqa: E402

log_init()
logger = logging.getLogger(__name__)


async def main() -> None:
    try:
        client = SkaldClient.from_env()
    except InvalidArgumentError as exc:
        logger.error("Cannot start CLI: %s (set SKALD_API_KEY)", exc)
        return

    logger.info("CLI connecting to Skald at %s", client.base_url)
    try:
        await run_cli(client)
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
