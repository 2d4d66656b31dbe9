"""
Document fetcher for the world facts harvester.

Turns URLs into parsed HTML documents or raw bytes. Transport retries are
handled by the shared HTTPClient; any failure that survives them becomes a
FetchError carrying a classification of what went wrong.
"""

from typing import Optional

import requests
from bs4 import BeautifulSoup

from utils.config import ScrapingConfig
from utils.exceptions import FetchError
from utils.http_client import HTTPClient
from utils.logger import get_logger

DEFAULT_TIMEOUT = 30
DEFAULT_RETRIES = 3
DEFAULT_DELAY = 2

logger = get_logger(__name__)

# Module-level HTTP client for connection pooling
_client: Optional[HTTPClient] = None


def configure(scraping: ScrapingConfig) -> HTTPClient:
    """
    Replace the shared HTTP client with one built from configuration.

    Args:
        scraping: Scraping section of the application config

    Returns:
        The new client
    """
    global _client
    if _client is not None:
        _client.close()

    _client = HTTPClient(
        timeout=scraping.request_timeout,
        retry_attempts=scraping.retry_attempts,
        retry_delay=scraping.retry_delay,
        rate_limit_delay=scraping.rate_limit_delay,
        user_agent=scraping.user_agent
    )
    return _client


def _get_client() -> HTTPClient:
    """Get or create the HTTP client."""
    global _client
    if _client is None:
        _client = HTTPClient(
            timeout=DEFAULT_TIMEOUT,
            retry_attempts=DEFAULT_RETRIES,
            retry_delay=DEFAULT_DELAY
        )
    return _client


def normalize_url(url: str) -> str:
    """Protocol-relative URLs (//upload.example.org/...) are fetched over https."""
    if url.startswith("//"):
        return f"https:{url}"
    return url


def classify_error(exception: Exception) -> str:
    """
    Classify a transport failure.

    Args:
        exception: Exception raised by requests

    Returns:
        Error classification string
    """
    if isinstance(exception, requests.exceptions.Timeout):
        return "timeout"
    if isinstance(exception, requests.exceptions.ConnectionError):
        return "network_error"
    if isinstance(exception, requests.exceptions.HTTPError):
        response = exception.response
        if response is not None:
            if response.status_code == 404:
                return "not_found"
            if 500 <= response.status_code <= 599:
                return "server_error"
        return "client_error"
    return "unknown"


def fetch_document(url: str) -> BeautifulSoup:
    """
    Fetch and parse an HTML document.

    Raises:
        FetchError: if the document could not be retrieved
    """
    try:
        html = _get_client().fetch(normalize_url(url))
    except requests.exceptions.RequestException as e:
        raise FetchError(url, classify_error(e), e) from e

    return BeautifulSoup(html, "html.parser")


def fetch_bytes(url: str) -> bytes:
    """
    Fetch a binary resource.

    Raises:
        FetchError: if the resource could not be retrieved
    """
    try:
        return _get_client().fetch_bytes(normalize_url(url))
    except requests.exceptions.RequestException as e:
        raise FetchError(url, classify_error(e), e) from e
