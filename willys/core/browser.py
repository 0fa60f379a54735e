"""Browser configuration and creation utilities.

The browser is only used to bootstrap a logged-in session; all settings are
loaded from config.toml via the config module.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Optional

from willys.core.config import Config, load_config

if TYPE_CHECKING:
    from playwright.async_api import Browser, Playwright


def get_launch_args(config: Optional[Config] = None) -> list[str]:
    """Get Chromium launch arguments with the configured user agent.

    Args:
        config: Config instance (uses load_config() if None)

    Returns:
        List of browser arguments
    """
    if config is None:
        config = load_config()

    args = list(config.browser.launch_args)
    args.append(f"--user-agent={config.browser.user_agent}")
    return args


def get_proxy_config() -> Optional[dict]:
    """Get proxy configuration from environment variables.

    Returns:
        dict with server, username, password keys or None if not configured.
    """
    proxy_server = os.environ.get("PROXY_SERVER")
    proxy_username = os.environ.get("PROXY_USERNAME")
    proxy_password = os.environ.get("PROXY_PASSWORD")

    if not all([proxy_server, proxy_username, proxy_password]):
        return None

    return {"server": proxy_server, "username": proxy_username, "password": proxy_password}


async def launch_browser(
    playwright: "Playwright",
    config: Optional[Config] = None,
    headless: bool | None = None,
) -> "Browser":
    """Launch an isolated Chromium instance for the login flow.

    Args:
        playwright: Running Playwright instance
        config: Config instance (uses load_config() if None)
        headless: Override the configured headless mode

    Returns:
        Launched Playwright browser. The caller owns it and must close it.
    """
    if config is None:
        config = load_config()

    if headless is None:
        headless = config.browser.headless

    launch_kwargs = {
        "headless": headless,
        "args": get_launch_args(config),
    }

    proxy_config = get_proxy_config()
    if proxy_config:
        launch_kwargs["proxy"] = proxy_config

    return await playwright.chromium.launch(**launch_kwargs)
