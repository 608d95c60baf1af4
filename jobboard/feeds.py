"""Fetch import batches published by external importers as JSON."""

from typing import Any, Dict, List

import requests

from .errors import FeedError
from .logger import get_logger
from .retry import RetryError, exponential_backoff
from .schema import validate_batch

DEFAULT_TIMEOUT = 15


@exponential_backoff(max_retries=3, base_delay=1.0, exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError))
def _fetch_with_retry(url: str, timeout: int):
    """Fetch URL with automatic retry on transient errors."""
    return requests.get(url, timeout=timeout, headers={"Accept": "application/json"})


def fetch_import_batch(url: str, timeout: int = DEFAULT_TIMEOUT) -> List[Dict[str, Any]]:
    """Download an import batch.

    Args:
        url: Feed URL returning a JSON list of import records
        timeout: Per-request timeout in seconds

    Returns:
        The decoded list of records

    Raises:
        FeedError: On HTTP errors, exhausted retries, or a body that is not JSON
        ValidationError: If the JSON is not a non-empty list
    """
    logger = get_logger()
    try:
        resp = _fetch_with_retry(url, timeout)
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.error("Feed request failed", url=url, status=status)
        raise FeedError(f"Feed request failed ({status}): {url}")
    except requests.exceptions.RequestException as e:
        logger.error("Feed request error", url=url, error=str(e))
        raise FeedError(f"Feed request error: {e}")
    except RetryError as e:
        logger.error("Feed unreachable", url=url, error=str(e))
        raise FeedError(f"Feed unreachable: {e}")

    try:
        payload = resp.json()
    except ValueError:
        raise FeedError(f"Feed did not return JSON: {url}")

    validate_batch(payload)

    logger.info("Fetched import batch", url=url, records=len(payload))
    return payload
