"""Core utilities shared by the API client, CLI and login script.

Provides centralized configuration, logging setup and headless browser
creation.
"""

from willys.core.browser import get_launch_args, get_proxy_config, launch_browser
from willys.core.config import Config, get_base_url, get_config, load_config
from willys.core.log import get_logger, setup_logging

__all__ = [
    # Browser utilities
    "get_launch_args",
    "get_proxy_config",
    "launch_browser",
    # Config utilities
    "Config",
    "load_config",
    "get_config",
    "get_base_url",
    # Logging
    "get_logger",
    "setup_logging",
]
