"""Telegram bot handlers.

Handlers pull their collaborators from the DI container stored in
``application.bot_data`` and delegate to the router, the social dispatcher
and the response formatter.
"""

import asyncio
import logging

from telegram import Message, Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from ..core.container import Container
from ..errors import ScrapingError
from ..models import DownloadStrategy, MediaType, ScrapeOptions
from .messages import ERROR_GENERIC, NO_SUPPORTED_LINKS, START_MESSAGE
from .response_formatter import ResponseFormatter
from .types import ProcessedURLs

logger = logging.getLogger(__name__)

CONTAINER_KEY = "container"


def get_container(context: ContextTypes.DEFAULT_TYPE) -> Container:
    """Fetch the DI container registered at startup."""
    return context.application.bot_data[CONTAINER_KEY]


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command.

    Args:
        update: Telegram update object containing message data.
        context: Bot context for accessing application instance.
    """
    if update.message:
        await update.message.reply_text(START_MESSAGE, disable_web_page_preview=True)


async def handle_link(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle messages containing marketplace or social URLs.

    Marketplace links are scraped concurrently and answered with a product
    card; social links are answered with the extracted media.

    Args:
        update: Telegram update object containing message data.
        context: Bot context for accessing application instance.
    """
    if not update.message:
        return

    container = get_container(context)
    formatter = container.response_formatter()
    url_result: ProcessedURLs = container.url_processor().process_message(update.message.text)

    marketplace_urls = url_result["categorized"]["marketplace"]
    social_urls = url_result["categorized"]["social"]
    if not url_result["urls"]:
        return
    if not marketplace_urls and not social_urls:
        await update.message.reply_text(NO_SUPPORTED_LINKS)
        return

    loading_message = await update.message.reply_text(
        formatter.format_loading_message(marketplace_urls + social_urls)
    )

    try:
        if marketplace_urls:
            await _answer_products(update.message, container, marketplace_urls)
        for url in social_urls:
            await _answer_media(update.message, container, url)
        await loading_message.delete()
    except TelegramError as e:
        logger.error(f"Error processing URLs: {e}")
        await loading_message.edit_text(ERROR_GENERIC)


async def _answer_products(message: Message, container: Container, urls: list[str]) -> None:
    router = container.scraper_router()
    formatter = container.response_formatter()
    user_id = message.from_user.id if message.from_user else None

    results = await asyncio.gather(
        *(
            router.scrape(url, ScrapeOptions(telegram_user_id=user_id, origin="telegram"))
            for url in urls
        )
    )

    for result in results:
        response = formatter.format_product_response(result)
        image_url = result.data.image_url if result.data else None
        if image_url:
            try:
                await message.reply_photo(photo=image_url, caption=response)
                continue
            except TelegramError as e:
                logger.warning(f"Failed to send image, sending text: {e}")
        await message.reply_text(response, disable_web_page_preview=True)


async def _answer_media(message: Message, container: Container, url: str) -> None:
    formatter: ResponseFormatter = container.response_formatter()

    try:
        media = await container.social_dispatcher().scrape(url)
    except ScrapingError as e:
        logger.info(f"Media extraction failed for {url}: {e}")
        await message.reply_text(formatter.format_media_error(e))
        return

    caption = formatter.format_media_caption(media)
    delivered = True
    for item in media.items:
        if item.download_strategy is not DownloadStrategy.DIRECT:
            delivered = False
            continue
        try:
            if item.media_type is MediaType.VIDEO:
                await message.reply_video(video=item.direct_url, caption=caption)
            else:
                await message.reply_photo(photo=item.direct_url, caption=caption)
        except TelegramError as e:
            logger.warning(f"Failed to send media {item.direct_url}: {e}")
            delivered = False
            break

    if not delivered:
        await message.reply_text(
            formatter.format_media_links(media), disable_web_page_preview=True
        )
