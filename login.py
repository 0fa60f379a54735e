"""Login check for Willys.se.

Runs the headless browser login with the account from the environment and
prints the customer profile, to verify credentials and the login flow.

Usage:
    python login.py            # Headless
    python login.py --headed   # Show the browser window
"""

import asyncio
import sys

from dotenv import load_dotenv

from willys.api.auth import BrowserBootstrapper
from willys.api.client import WillysAPIClient
from willys.api.credentials import PASSWORD_ENV, USERNAME_ENV, WillysCredentials
from willys.api.errors import WillysError
from willys.api.session import WillysSession
from willys.core.config import get_base_url, load_config
from willys.core.log import setup_logging

load_dotenv()


async def login_and_verify(headless: bool = True) -> dict:
    """Log into Willys and fetch the customer profile.

    Args:
        headless: Run browser in headless mode. Default True.

    Returns:
        dict with status and message
    """
    credentials = WillysCredentials.from_env()
    if not credentials.is_valid():
        print(f"Error: {USERNAME_ENV} and {PASSWORD_ENV} must be set")
        return {"status": "failed", "message": "Missing credentials"}

    config = load_config()
    base_url = get_base_url(config)

    print(f"Base URL: {base_url}")
    print(f"Headless: {headless}")

    async with WillysSession(base_url, config=config) as session:
        try:
            await session.login_with_browser(
                credentials.username,
                credentials.password,
                bootstrapper=BrowserBootstrapper(config, headless=headless),
            )
            customer = await WillysAPIClient(session).get_customer_info()
        except WillysError as e:
            print(f"Login failed: {e}")
            return {"status": "failed", "message": str(e)}

        print(f"Login successful! {len(session.get_cookies())} session cookies")
        print(f"Customer: {customer.first_name} {customer.last_name}")
        return {"status": "success", "message": "Login successful"}


if __name__ == "__main__":
    setup_logging(debug="--debug" in sys.argv)
    headless = "--headed" not in sys.argv
    result = asyncio.run(login_and_verify(headless=headless))
    if result.get("status") != "success":
        sys.exit(1)
