"""Promo Scraper Package.

Scrapes product data from Brazilian marketplaces and media from social
platforms behind a small, stable result contract consumed by bots, API
routes and admin tooling.

The package follows a modular architecture with separate concerns for:
- Marketplace scrapers (Shopee, Mercado Livre, Amazon, Magalu)
- URL routing with affiliate-link fast path and bounded retry
- Social media extraction (Instagram, TikTok, Pinterest, YouTube, Shopee video)
- Field selection driven by rendering layout preferences
"""
