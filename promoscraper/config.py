"""Configuration management for the scraping core.

Handles all application configuration including environment variables, YAML
config files, and default settings. Provides structured configuration classes
for the scrapers, the affiliate-link resource and the Telegram bot caller.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

DEFAULT_SOCIAL_HEADERS: dict[str, str] = {
    "Accept-Language": "en-US,en;q=0.9",
}


class ScrapingConfig(BaseSettings):
    """Scraper network and fallback settings.

    Attributes:
        request_timeout: Total timeout for a single page fetch in seconds.
        resolve_timeout: Timeout for short-link resolution in seconds.
        max_redirects: Maximum redirects followed by any fetch.
        enable_headless_browser: Whether plugins may escalate to Playwright.
        browser_timeout_ms: Navigation timeout for the headless browser.
        affiliate_links_path: Override for the curated affiliate-link list.
        browser_state_dir: Directory holding persisted browser storage state.
        resolved_url_ttl: Seconds a resolved short link stays cached.
    """
    request_timeout: float = Field(default=10.0, validation_alias="SCRAPER_REQUEST_TIMEOUT")
    resolve_timeout: float = 10.0
    max_redirects: int = 5
    enable_headless_browser: bool = Field(default=True, validation_alias="ENABLE_HEADLESS_BROWSER")
    browser_timeout_ms: int = 30000
    affiliate_links_path: str | None = Field(default=None, validation_alias="AFFILIATE_LINKS_PATH")
    browser_state_dir: str = Field(default=".cache", validation_alias="BROWSER_STATE_DIR")
    resolved_url_ttl: int = 600


class BotConfig(BaseSettings):
    """Telegram bot caller configuration.

    Attributes:
        bot_token: Telegram bot API token from environment.
        port: Server port for webhook mode.
        webhook_domain: Public domain for webhooks, polling when unset.
        listen_host: Interface the webhook server binds to.
        log_level: Root logging level for the bot process.
    """
    bot_token: str | None = Field(default=None, validation_alias="BOT_TOKEN")
    port: int = Field(default=8000, validation_alias="PORT")
    webhook_domain: str | None = Field(default=None, validation_alias="WEBHOOK_DOMAIN")
    listen_host: str = "0.0.0.0"
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @property
    def use_webhook(self) -> bool:
        """Determine if webhook mode should be used.

        Returns:
            True if webhook domain is configured, False for polling mode.
        """
        return bool(self.webhook_domain)


class Config:
    """Application configuration manager.

    Centralizes loading of environment settings and the YAML file holding the
    request header sets, and resolves the affiliate-link resource location.
    """

    def __init__(self, config_dir: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_dir: Path to configuration directory, defaults to promoscraper/config.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent / "config"

        self.config_dir = Path(config_dir)

        self.scraping = ScrapingConfig()
        self.bot = BotConfig()

        scraping_data = self._load_yaml("scraping.yml")
        headers_data = scraping_data.get("headers", {})

        self.user_agent: str = scraping_data.get("user_agent", DEFAULT_USER_AGENT)
        self.default_headers: dict[str, str] = {
            **DEFAULT_HEADERS,
            **headers_data.get("default", {}),
        }
        self.social_headers: dict[str, str] = {
            **DEFAULT_SOCIAL_HEADERS,
            **headers_data.get("social", {}),
        }

    def _load_yaml(self, filename: str) -> dict[str, Any]:
        """Load a YAML mapping from the configuration directory.

        Args:
            filename: File name inside the configuration directory.

        Returns:
            Parsed mapping, empty when the file does not exist.
        """
        path = self.config_dir / filename
        if not path.exists():
            return {}

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return data or {}

    @property
    def affiliate_links_path(self) -> Path:
        """Get the location of the curated affiliate-link list.

        Returns:
            Path from AFFILIATE_LINKS_PATH, falling back to the bundled list.
        """
        if self.scraping.affiliate_links_path:
            return Path(self.scraping.affiliate_links_path)
        return self.config_dir / "affiliate_links.txt"


# Global configuration instance
config = Config()
