"""
Discord REST client - smoke-check entry point

Loads the current user and their guilds through the request pipeline and
logs a short summary. Token comes from DISCORD_TOKEN (or .env).
"""
import asyncio
import logging

from api.client import get_api_client
from config import get_config
from exceptions import ClientException
from services.chat_service import ChatService
from utils.logging import setup_logging

logger = logging.getLogger(f'{__name__}.main')


async def main() -> int:
    """Main entry point."""
    config = get_config()
    setup_logging(config.log_level)

    logger.info(f"Environment: {config.environment}")
    logger.info(f"API base: {config.api_base_url} ({config.requests_per_second:g} req/s)")

    try:
        async with get_api_client() as client:
            service = ChatService(client)
            user, guilds = await asyncio.gather(service.get_current_user(), service.get_guilds())

            logger.info(f"Logged in as {user.display_name} ({user.id})")
            for guild in guilds:
                logger.info(f"Guild: {guild.name} ({guild.id})")
    except ClientException as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
