"""
Query string and cookie construction shared by the engines.

Both builders keep the caller's pair order: some upstreams check the
position of their preference keys when deciding whether a request is
automated. Values are used as given; URL encoding is the caller's job.
"""

from __future__ import annotations

from collections.abc import Iterable


def build_query(query_params: Iterable[tuple[str, str]]) -> str:
    """Build a query string fragment from key value pairs.

    Args:
        query_params: Ordered (key, value) pairs.

    Returns:
        "&k1=v1&k2=v2..." (no leading "?"), or "" for no pairs.
    """
    return "".join(f"&{key}={value}" for key, value in query_params)


def build_cookie(cookie_params: Iterable[tuple[str, str]]) -> str:
    """Build a Cookie header value from key value pairs.

    Args:
        cookie_params: Ordered (key, value) pairs.

    Returns:
        "k1=v1; k2=v2; " including the trailing separator, or "" for no pairs.
    """
    return "".join(f"{key}={value}; " for key, value in cookie_params)
