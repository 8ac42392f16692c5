"""Application entry point.

Initializes and runs the Telegram bot in webhook mode (when a public domain
is configured) or polling mode (local development). Configures logging,
builds the DI container and registers the bot handlers.
"""

import logging

from telegram.ext import Application, CommandHandler, MessageHandler, filters

from .bot.handlers import CONTAINER_KEY, handle_link, start
from .config import config
from .core.container import Container, create_container

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        level=getattr(logging, config.bot.log_level.upper(), logging.INFO),
    )
    # Keep request logs (which include the bot token) out of the output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_application(token: str, container: Container) -> Application:
    """Create the bot application with handlers and lifecycle hooks.

    Args:
        token: Telegram bot API token.
        container: DI container shared by every handler.

    Returns:
        Configured application, not yet running.
    """
    app = Application.builder().token(token).build()
    app.bot_data[CONTAINER_KEY] = container

    async def post_init(application: Application) -> None:
        container.resolved_url_cache().start()
        router = container.scraper_router()
        logger.info(f"Marketplaces: {', '.join(router.get_supported_marketplaces())}")

    async def post_shutdown(application: Application) -> None:
        await container.resolved_url_cache().stop()
        logger.info("Resolved-link cache stopped")

    app.post_init = post_init
    app.post_shutdown = post_shutdown

    app.add_handler(CommandHandler("start", start))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_link))
    return app


def main() -> None:
    """Main application entry point.

    Raises:
        RuntimeError: If BOT_TOKEN environment variable is not set.
    """
    configure_logging()

    if not config.bot.bot_token:
        raise RuntimeError("Set BOT_TOKEN environment variable")

    app = build_application(config.bot.bot_token, create_container())

    # Run in webhook or polling mode
    if config.bot.use_webhook:
        path = f"/{config.bot.bot_token}"
        webhook_url = f"https://{config.bot.webhook_domain}{path}"
        logger.info(f"Starting webhook on port {config.bot.port}")

        app.run_webhook(
            listen=config.bot.listen_host,
            port=config.bot.port,
            url_path=path,
            webhook_url=webhook_url,
        )
    else:
        logger.warning("No public domain found; falling back to long-polling")
        app.run_polling()


if __name__ == "__main__":
    main()
