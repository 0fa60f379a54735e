"""Session bootstrap through a real browser login.

The Willys login form is only reachable from a full page context (cookie
consent, a client-side dialog, form validation), so the first login drives a
headless Chromium with Playwright and hands the resulting cookies to the
HTTP session. Re-authentication later in the session uses plain HTTP.

Anything that can produce a cookie list can stand in for the browser: see
:class:`SessionBootstrapper`.
"""

from __future__ import annotations

import asyncio
import logging
import re
from http.cookiejar import Cookie
from typing import TYPE_CHECKING, Any, Optional, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from willys.api.errors import AuthenticationError
from willys.core.browser import launch_browser
from willys.core.config import Config, load_config

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)


class SessionBootstrapper(Protocol):
    """Produces the cookies of a logged-in session."""

    async def obtain_cookies(
        self, base_url: str, username: str, password: str
    ) -> list[dict[str, Any]]:
        """Log in and return cookies in Playwright's dict format.

        Raises:
            AuthenticationError: If login fails for any reason
        """
        ...


def domain_matches(cookie_domain: str, host: str) -> bool:
    """Check whether a cookie domain applies to ``host``."""
    domain = cookie_domain.lstrip(".").lower()
    host = host.lower()
    return bool(domain) and (host == domain or host.endswith("." + domain))


def browser_cookie_to_jar_cookie(cookie: dict[str, Any], host: str) -> Optional[Cookie]:
    """Convert a Playwright cookie dict into a cookiejar Cookie for ``host``.

    Path defaults to "/", session cookies (expires -1) get no expiry, and
    SameSite is forced to None since the HTTP client is cross-site from the
    browser's point of view.

    Returns:
        The converted cookie, or None if it belongs to another domain.
    """
    domain = cookie.get("domain") or host
    if not domain_matches(domain, host):
        return None

    expires_raw = cookie.get("expires")
    expires = int(expires_raw) if expires_raw is not None and expires_raw > 0 else None

    rest: dict[str, Any] = {"SameSite": "None"}
    if cookie.get("httpOnly"):
        rest["HttpOnly"] = None

    return Cookie(
        version=0,
        name=cookie["name"],
        value=cookie.get("value", ""),
        port=None,
        port_specified=False,
        domain=domain,
        domain_specified=domain.startswith("."),
        domain_initial_dot=domain.startswith("."),
        path=cookie.get("path") or "/",
        path_specified=True,
        secure=bool(cookie.get("secure", False)),
        expires=expires,
        discard=expires is None,
        comment=None,
        comment_url=None,
        rest=rest,
    )


class BrowserBootstrapper:
    """Logs in through the web shop in a headless browser.

    Each call launches an isolated browser and tears it down (page, context
    and browser) before returning, whether login succeeded or not.
    """

    def __init__(self, config: Optional[Config] = None, headless: bool | None = None):
        self.config = config or load_config()
        self.headless = headless

    async def obtain_cookies(
        self, base_url: str, username: str, password: str
    ) -> list[dict[str, Any]]:
        async with async_playwright() as p:
            try:
                browser = await launch_browser(p, self.config, headless=self.headless)
            except PlaywrightError as exc:
                raise AuthenticationError("failed to launch browser", exc) from exc

            try:
                context = await browser.new_context(user_agent=self.config.browser.user_agent)
                try:
                    page = await context.new_page()
                    try:
                        await self._login(page, base_url, username, password)
                        cookies = await context.cookies()
                    finally:
                        await page.close()
                finally:
                    await context.close()
            except PlaywrightError as exc:
                raise AuthenticationError("browser login failed", exc) from exc
            finally:
                await browser.close()

        logger.info("Browser login succeeded, captured %d cookies", len(cookies))
        return [dict(c) for c in cookies]

    async def _login(self, page: "Page", base_url: str, username: str, password: str) -> None:
        cfg = self.config.browser
        timing = cfg.timing

        try:
            await page.goto(base_url, wait_until="load", timeout=cfg.page_timeout)
        except PlaywrightError as exc:
            raise AuthenticationError("page failed to load", exc) from exc
        await asyncio.sleep(timing.page_settle)

        await self._accept_cookies(page)

        login_link = page.locator("a", has_text=cfg.login_link_text).first
        await self._click(login_link, "login link")
        await asyncio.sleep(timing.dialog_settle)

        dialog = page.locator("dialog, [role='dialog']").first
        try:
            await dialog.wait_for(timeout=cfg.element_timeout)
        except PlaywrightError as exc:
            raise AuthenticationError("failed to find login dialog", exc) from exc

        await self._fill(dialog.locator("input[type='text']").first, username, "username input field")
        await self._fill(dialog.locator("input[type='password']").first, password, "password input field")
        await asyncio.sleep(timing.form_settle)

        login_button = page.locator("button", has_text=re.compile(cfg.login_button_pattern)).first
        await self._click(login_button, "login button")
        await asyncio.sleep(timing.login_response)

        if await self._has_error_marker(page):
            raise AuthenticationError("invalid username or password")

    async def _accept_cookies(self, page: "Page") -> None:
        """Dismiss the cookie consent banner if it shows up."""
        cfg = self.config.browser
        button = page.locator("button", has_text=cfg.consent_button_text).first
        try:
            await button.click(timeout=cfg.consent_timeout)
        except PlaywrightError:
            logger.debug("No cookie consent prompt")
            return
        await asyncio.sleep(cfg.timing.consent_settle)

    async def _click(self, locator: "Locator", what: str) -> None:
        try:
            await locator.click(timeout=self.config.browser.element_timeout)
        except PlaywrightError as exc:
            raise AuthenticationError(f"failed to click {what}", exc) from exc

    async def _fill(self, locator: "Locator", value: str, what: str) -> None:
        try:
            await locator.fill(value, timeout=self.config.browser.element_timeout)
        except PlaywrightError as exc:
            raise AuthenticationError(f"failed to fill {what}", exc) from exc

    async def _has_error_marker(self, page: "Page") -> bool:
        # The site uses both "error" and "Error" in class names
        for marker in self.config.browser.error_class_markers:
            if await page.locator(f"[class*='{marker}']").count() > 0:
                return True
        return False
