"""
HTTP client utilities with retry logic for the world facts harvester.
"""

import threading
import time
import requests
from typing import Optional, Dict, Any
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "WorldFactsHarvester/1.0"


class HTTPClient:
    """
    HTTP client with transport-level retry, rate limiting and error handling.

    A single instance may be shared by the flag download workers; the rate
    limit bookkeeping is guarded by a lock.
    """

    def __init__(
        self,
        timeout: int = 30,
        retry_attempts: int = 3,
        retry_delay: int = 2,
        rate_limit_delay: float = 1,
        user_agent: str = DEFAULT_USER_AGENT
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            retry_attempts: Number of retry attempts
            retry_delay: Backoff factor between retries in seconds
            rate_limit_delay: Minimum delay between requests in seconds
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.rate_limit_delay = rate_limit_delay
        self.last_request_time = 0.0
        self._lock = threading.Lock()

        retry_strategy = Retry(
            total=retry_attempts,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            backoff_factor=retry_delay,
            raise_on_status=False
        )

        self.session = requests.Session()
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            'User-Agent': user_agent,
            'Accept': 'text/html,application/xhtml+xml,image/png,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
        })

    def _respect_rate_limit(self):
        """Respect rate limiting by waiting if necessary."""
        with self._lock:
            time_since_last_request = time.time() - self.last_request_time

            if time_since_last_request < self.rate_limit_delay:
                sleep_time = self.rate_limit_delay - time_since_last_request
                logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f} seconds")
                time.sleep(sleep_time)

            self.last_request_time = time.time()

    def _get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        self._respect_rate_limit()

        logger.info(f"Fetching URL: {url}")

        request_headers = self.session.headers.copy()
        if headers:
            request_headers.update(headers)

        try:
            response = self.session.get(
                url,
                headers=request_headers,
                params=params,
                timeout=self.timeout
            )

            response.raise_for_status()

            logger.info(f"Successfully fetched {url} ({len(response.content)} bytes)")
            return response

        except requests.exceptions.Timeout:
            logger.error(f"Timeout while fetching {url}")
            raise
        except requests.exceptions.ConnectionError:
            logger.error(f"Connection error while fetching {url}")
            raise
        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error {e.response.status_code} while fetching {url}")
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f"Request exception while fetching {url}: {e}")
            raise

    def fetch(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Fetch a text document.

        Raises:
            requests.RequestException: If request fails after all retries
        """
        return self._get(url, headers=headers, params=params).text

    def fetch_bytes(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None
    ) -> bytes:
        """
        Fetch a binary resource such as a flag image.

        Raises:
            requests.RequestException: If request fails after all retries
        """
        return self._get(url, headers=headers).content

    def close(self):
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
