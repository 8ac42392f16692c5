"""Headless browser rendering for marketplace pages.

Marketplaces that assemble product data client-side, or that answer plain
HTTP clients with anti-bot pages, are rendered with Playwright. A render
returns the final HTML, any inline application state the page exposes and,
optionally, the first JSON API response matching a URL predicate.

Key features:
- Chromium launched once per context manager, one page per render
- Heavy resources and trackers blocked to speed up loading
- Optional persisted storage state (cookies) reused across runs
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Response,
    Route,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import config

logger = logging.getLogger(__name__)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font"})
BLOCKED_TRACKERS = (
    "google-analytics",
    "googletagmanager",
    "facebook",
    "doubleclick",
    "adsystem",
    "hotjar",
)

SELECTOR_TIMEOUT_MS = 15000

# Inline state objects exposed by the supported marketplaces, first hit wins.
STATE_SCRIPT = """
() => {
    const candidates = [
        window.__INITIAL_STATE__,
        window.__PRELOADED_STATE__,
        window.__APOLLO_STATE__,
    ];
    for (const candidate of candidates) {
        if (candidate && typeof candidate === 'object') {
            return JSON.parse(JSON.stringify(candidate));
        }
    }
    const nextData = document.getElementById('__NEXT_DATA__');
    if (nextData && nextData.textContent) {
        try {
            return JSON.parse(nextData.textContent);
        } catch (e) {
            return null;
        }
    }
    return null;
}
"""

STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined,
});
Object.defineProperty(navigator, 'languages', {
    get: () => ['pt-BR', 'pt', 'en-US', 'en'],
});
"""


@dataclass(frozen=True)
class RenderedPage:
    """Result of rendering a page in the headless browser.

    Attributes:
        url: Final URL after client-side navigation.
        html: Rendered document HTML.
        state: Inline application state, when the page exposes one.
        api_payload: Body of the first captured JSON API response.
    """

    url: str
    html: str
    state: dict[str, Any] | None = None
    api_payload: dict[str, Any] | None = None


class HeadlessBrowser:
    """Headless Chromium manager used as the scrapers' last resort."""

    def __init__(self, storage_state_path: Path | None = None, timeout_ms: int | None = None):
        self.storage_state_path = storage_state_path
        self.timeout_ms = timeout_ms or config.scraping.browser_timeout_ms
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.playwright: Playwright | None = None

    async def __aenter__(self) -> "HeadlessBrowser":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Launch Chromium and open a context with pt-BR desktop settings."""
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=True,
                args=[
                    "--no-sandbox",
                    "--disable-setuid-sandbox",
                    "--disable-dev-shm-usage",
                    "--disable-blink-features=AutomationControlled",
                ],
            )

            context_options: dict[str, Any] = {
                "user_agent": config.user_agent,
                "viewport": {"width": 1366, "height": 768},
                "locale": "pt-BR",
                "timezone_id": "America/Sao_Paulo",
                "extra_http_headers": {
                    "Accept-Language": config.default_headers.get(
                        "Accept-Language", "pt-BR,pt;q=0.9"
                    ),
                },
            }
            if self.storage_state_path and self.storage_state_path.exists():
                context_options["storage_state"] = str(self.storage_state_path)
                logger.debug(f"Reusing browser storage state from {self.storage_state_path}")

            self.context = await self.browser.new_context(**context_options)
            await self.context.add_init_script(STEALTH_SCRIPT)
            await self.context.route("**/*", self._route_handler)

            logger.info("Headless browser started successfully")

        except PlaywrightError as e:
            logger.error(f"Failed to start headless browser: {e}")
            await self.stop()
            raise

    async def stop(self) -> None:
        """Close context, browser and the Playwright driver."""
        try:
            if self.context:
                await self.context.close()
                self.context = None

            if self.browser:
                await self.browser.close()
                self.browser = None

            if self.playwright:
                await self.playwright.stop()
                self.playwright = None

            logger.debug("Headless browser stopped and cleaned up")

        except PlaywrightError as e:
            logger.warning(f"Error during browser cleanup: {e}")

    async def _route_handler(self, route: Route) -> None:
        """Block heavy media and tracking requests."""
        request = route.request
        if request.resource_type in BLOCKED_RESOURCE_TYPES or any(
            tracker in request.url for tracker in BLOCKED_TRACKERS
        ):
            await route.abort()
        else:
            await route.continue_()

    async def save_storage_state(self) -> None:
        """Persist cookies and local storage for the next run."""
        if self.context is None or self.storage_state_path is None:
            return
        self.storage_state_path.parent.mkdir(parents=True, exist_ok=True)
        await self.context.storage_state(path=str(self.storage_state_path))
        logger.debug(f"Saved browser storage state to {self.storage_state_path}")

    async def render(
        self,
        url: str,
        wait_for: str | None = None,
        capture: Callable[[str], bool] | None = None,
    ) -> RenderedPage:
        """Navigate to a URL and collect everything the scrapers can parse.

        Args:
            url: Page to render.
            wait_for: CSS selector signalling the product has been rendered.
            capture: Predicate on response URLs; the first matching JSON
                response is returned as ``api_payload``.

        Returns:
            RenderedPage with final URL, HTML, inline state and captured payload.

        Raises:
            RuntimeError: If the browser has not been started.
            playwright.async_api.Error: If navigation fails.
        """
        if self.context is None:
            raise RuntimeError("Browser not started. Call start() first.")

        page: Page = await self.context.new_page()
        captured: asyncio.Future[Response] | None = None
        try:
            if capture is not None:
                captured = asyncio.ensure_future(
                    page.wait_for_event(
                        "response",
                        predicate=lambda response: response.ok and capture(response.url),
                        timeout=SELECTOR_TIMEOUT_MS,
                    )
                )

            logger.debug(f"Rendering {url} with headless browser")
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)

            if wait_for:
                try:
                    await page.wait_for_selector(wait_for, timeout=SELECTOR_TIMEOUT_MS)
                except PlaywrightTimeoutError:
                    logger.debug(f"Selector {wait_for} did not appear on {url}")

            api_payload = await self._read_captured(captured) if captured else None
            captured = None

            state = await page.evaluate(STATE_SCRIPT)
            html = await page.content()

            return RenderedPage(
                url=page.url,
                html=html,
                state=state if isinstance(state, dict) else None,
                api_payload=api_payload,
            )
        finally:
            if captured is not None and not captured.done():
                captured.cancel()
            await page.close()

    async def _read_captured(self, captured: "asyncio.Future[Response]") -> dict[str, Any] | None:
        try:
            response = await captured
            payload = await response.json()
        except (PlaywrightError, ValueError) as e:
            logger.debug(f"No API response captured: {e}")
            return None
        return payload if isinstance(payload, dict) else None
