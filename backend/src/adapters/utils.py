"""Shared HTTP plumbing for adapters and the URL loader."""

from typing import Optional

import requests

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; notebook-rag/0.1)"


def create_session_with_pooling(
    pool_connections: int = 10,
    pool_maxsize: int = 20,
    max_retries: int = 3,
    user_agent: Optional[str] = None,
) -> requests.Session:
    """Create a requests Session with connection pooling.

    Args:
        pool_connections: Number of connection pools to cache.
        pool_maxsize: Maximum number of connections to save per pool.
        max_retries: Retries for failed connections (not for HTTP errors).
        user_agent: Optional User-Agent header sent with every request.

    Returns:
        Configured requests Session.
    """
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=max_retries,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    if user_agent:
        session.headers["User-Agent"] = user_agent
    return session
