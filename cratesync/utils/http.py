"""
HTTP helpers shared by the remote list sources.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY = 2  # seconds


def create_session(user_agent: str) -> requests.Session:
    """Create a session that identifies itself to upstream servers."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def http_get(
    session: requests.Session,
    url: str,
    timeout: int,
    params: Optional[Dict[str, Any]] = None,
    retry_delay: float = RETRY_DELAY,
) -> requests.Response:
    """
    Send a GET request, retrying timeouts and connection errors.

    HTTP error statuses are not retried.

    Raises:
        requests.exceptions.RequestException: If every attempt fails.
    """
    for attempt in range(1, MAX_RETRIES + 1):
        logger.debug(f"Attempt {attempt} for URL: {url}")
        try:
            response = session.get(url, params=params, timeout=timeout)
            response.raise_for_status()
            return response
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            logger.warning(f"Request to {url} failed ({e}), attempt {attempt}/{MAX_RETRIES}")
            if attempt == MAX_RETRIES:
                raise
            time.sleep(retry_delay)
