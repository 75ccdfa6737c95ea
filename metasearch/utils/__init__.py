"""
metasearch utilities module.
"""

from metasearch.utils.config import Settings, get_project_root, get_settings, load_settings
from metasearch.utils.logging import (
    LogContext,
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from metasearch.utils.user_agent import random_user_agent

__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "get_project_root",
    "get_logger",
    "configure_logging",
    "bind_context",
    "unbind_context",
    "LogContext",
    "random_user_agent",
]
