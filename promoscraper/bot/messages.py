"""User-facing bot message templates."""

START_MESSAGE = """👋 Send me a product or post link and I will fetch it for you.

🛒 Marketplaces:
• Shopee
• Mercado Livre
• Amazon
• Magalu

🎬 Social media:
• Instagram (post/reel)
• TikTok (video)
• Pinterest (pin)
• YouTube (video link)
• Shopee (video)

You can send several links in one message."""

LOADING_SINGLE = "⏳ Fetching the link..."
LOADING_MULTIPLE = "⏳ Processing {count} links..."

NO_SUPPORTED_LINKS = "🤷 None of these links is supported. Send /start to see the list."

ERROR_PRODUCT_NOT_FOUND = "❌ Could not read this product: {error}"
ERROR_MEDIA_NOT_FOUND = "❌ Could not extract media: {error}"
ERROR_GENERIC = "❌ Something went wrong while processing the link. Try again later."

YOUTUBE_MEDIA = "▶️ YouTube video: {url}"
