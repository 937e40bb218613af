"""
Browser Session - Playwright page wrapper shared by all detection modules.

This module owns the browser lifecycle (playwright driver, browser, context,
page) and exposes the small page API the detection modules rely on. Event
subscriptions (dialogs, CDP events) are handed out through async context
managers so a listener never outlives the module that registered it.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    CDPSession,
    Dialog,
    ElementHandle,
    Page,
    Response,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)
import structlog

from .config import ScanConfig, ScorpioError


DialogHandler = Callable[[Dialog], Any]
EventHandler = Callable[[dict], Any]


class SessionNotStartedError(ScorpioError):
    """Raised when the session is used before launch()"""
    pass


class ProtocolChannel:
    """
    Low-level DevTools protocol channel bound to one page.

    Thin wrapper over Playwright's CDPSession so modules depend on
    send/on/off/detach only.
    """

    def __init__(self, cdp: CDPSession):
        self._cdp = cdp

    async def send(self, method: str, params: Optional[dict] = None) -> Any:
        return await self._cdp.send(method, params)

    def on(self, event: str, handler: EventHandler):
        self._cdp.on(event, handler)

    def off(self, event: str, handler: EventHandler):
        self._cdp.remove_listener(event, handler)

    async def detach(self):
        await self._cdp.detach()


class BrowserSession:
    """
    Single-page Playwright session.

    Example:
        >>> async with BrowserSession(ScanConfig()) as session:
        ...     await session.navigate("https://example.com")
        ...     inputs = await session.query_all("input")
    """

    def __init__(self, config: Optional[ScanConfig] = None):
        """
        Initialize the session (the browser is not started yet).

        Args:
            config: Scan configuration (uses defaults if None)
        """
        self.config = config or ScanConfig()

        # Playwright instances
        self.playwright = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self.logger = structlog.get_logger(__name__)

    async def __aenter__(self) -> "BrowserSession":
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise SessionNotStartedError("Session not launched. Call launch() first.")
        return self._page

    async def launch(self):
        """Start Playwright, launch Chromium and open one page"""
        self.logger.info("launching_browser", headless=self.config.headless)

        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=self.config.headless)

        context_options = {
            "viewport": {
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            "ignore_https_errors": self.config.ignore_https_errors,
        }
        if self.config.user_agent:
            context_options["user_agent"] = self.config.user_agent

        self.context = await self.browser.new_context(**context_options)
        self._page = await self.context.new_page()
        self._page.set_default_navigation_timeout(self.config.navigation_timeout_ms)

        self.logger.info("browser_launched")

    async def close(self):
        """
        Close page, context, browser and driver, in that order.

        Every step runs even when an earlier one fails, so a crashed page
        never leaks the browser or driver processes.
        """
        steps = []
        if self._page:
            steps.append(("page", self._close_page))
        if self.context:
            steps.append(("context", self.context.close))
        if self.browser:
            steps.append(("browser", self.browser.close))
        if self.playwright:
            steps.append(("playwright", self.playwright.stop))

        for target, step in steps:
            try:
                await step()
            except Exception as e:
                self.logger.error("session_close_failed", target=target, error=str(e))

        self._page = None
        self.context = None
        self.browser = None
        self.playwright = None

        self.logger.info("browser_closed")

    async def _close_page(self):
        try:
            await self._page.unroute_all()
        finally:
            await self._page.close()

    # Navigation

    async def navigate(self, url: str, wait_until: Optional[str] = None):
        """
        Navigate the page to url.

        Args:
            url: Target URL
            wait_until: Load state to wait for (defaults to config.wait_until)
        """
        await self.page.goto(url, wait_until=wait_until or self.config.wait_until)

    @property
    def current_url(self) -> str:
        """URL of the page's current document"""
        return self.page.url

    async def go_back(self):
        """Navigate one step back in the page history"""
        await self.page.go_back()

    # DOM

    async def query_all(self, selector: str) -> List[ElementHandle]:
        """
        Query all elements matching a CSS selector.

        Args:
            selector: CSS selector

        Returns:
            Element handles in document order
        """
        return await self.page.query_selector_all(selector)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Evaluate a JavaScript expression in the page's document"""
        return await self.page.evaluate(expression, arg)

    async def press_key(self, key: str):
        """Press a key on the focused element (e.g. "Enter")"""
        await self.page.keyboard.press(key)

    async def wait_for_timeout(self, timeout_ms: float):
        await self.page.wait_for_timeout(timeout_ms)

    # Events

    def on_dialog(self, handler: DialogHandler):
        """Subscribe handler to alert/confirm/prompt dialogs"""
        self.page.on("dialog", handler)

    def off_dialog(self, handler: DialogHandler):
        self.page.remove_listener("dialog", handler)

    async def wait_for_response(
        self,
        predicate: Callable[[Response], bool],
        timeout_ms: float,
        action: Optional[Callable[[], Awaitable[Any]]] = None,
    ) -> Optional[Response]:
        """
        Wait for the next response matching predicate.

        The waiter is armed before action runs, so a response triggered by
        the action cannot be missed.

        Args:
            predicate: Response filter
            timeout_ms: Maximum wait in milliseconds
            action: Optional coroutine function that triggers the response

        Returns:
            The matching response, or None on timeout
        """
        waiter = asyncio.ensure_future(
            self.page.wait_for_event("response", predicate=predicate, timeout=timeout_ms)
        )
        # Let the waiter register its listener before triggering
        await asyncio.sleep(0)
        try:
            if action is not None:
                await action()
            return await waiter
        except PlaywrightTimeoutError:
            self.logger.debug("response_wait_timeout", timeout_ms=timeout_ms)
            return None
        finally:
            if not waiter.done():
                waiter.cancel()

    async def open_protocol_channel(self) -> ProtocolChannel:
        """
        Open a DevTools protocol channel on the page.

        Returns:
            ProtocolChannel bound to the page (caller detaches it)
        """
        cdp = await self.page.context.new_cdp_session(self.page)
        return ProtocolChannel(cdp)


@asynccontextmanager
async def dialog_listener(session, handler: DialogHandler) -> AsyncIterator[None]:
    """Subscribe handler to page dialogs for the duration of the block"""
    session.on_dialog(handler)
    try:
        yield
    finally:
        session.off_dialog(handler)


@asynccontextmanager
async def protocol_channel(session) -> AsyncIterator[ProtocolChannel]:
    """Open a protocol channel and detach it when the block exits"""
    channel = await session.open_protocol_channel()
    try:
        yield channel
    finally:
        await channel.detach()


@asynccontextmanager
async def channel_listener(channel, event: str, handler: EventHandler) -> AsyncIterator[None]:
    """Subscribe handler to a protocol event for the duration of the block"""
    channel.on(event, handler)
    try:
        yield
    finally:
        channel.off(event, handler)
