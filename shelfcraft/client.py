"""HTTP client for the published catalog spreadsheet."""
import time
import random
import requests
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class SheetClient:
    """Downloads a published spreadsheet with timeouts, retries, and backoff."""

    def __init__(
        self,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0
    ):
        """
        Initialize the spreadsheet client.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts
            base_backoff: Base delay for exponential backoff
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()

    def fetch_tsv(self, url: str) -> Optional[str]:
        """
        Download the spreadsheet as tab separated text.

        Args:
            url: Published spreadsheet URL (output=tsv)

        Returns:
            Response body or None if all retries failed
        """
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(url, timeout=self.timeout)

                if response.status_code == 200:
                    logger.info(f"Success: {response.status_code}")
                    response.encoding = response.encoding or "utf-8"
                    return response.text

                elif response.status_code == 429:
                    # Rate limited - must retry with backoff
                    logger.warning(f"Rate limited (429) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue

                elif response.status_code >= 500:
                    logger.warning(f"Server error ({response.status_code}) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue

                elif response.status_code >= 400:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}): {response.text[:200]}")
                    return None

            except requests.exceptions.Timeout:
                logger.warning(f"Timeout on attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except requests.exceptions.RequestException as e:
                logger.error(f"Unexpected error: {e}")
                return None

        logger.error(f"All {self.max_retries} attempts failed")
        return None

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        delay = self.base_backoff * (2 ** attempt)
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def fetch_with_cache(
        self,
        url: str,
        cache_db=None,
        cache_ttl: int = 3600
    ) -> Optional[str]:
        """
        Download with database-backed caching.

        Args:
            url: Spreadsheet URL
            cache_db: Database instance (optional)
            cache_ttl: Cache TTL in seconds

        Returns:
            Spreadsheet text or None
        """
        cache_key = f"sheet:{url}"

        if cache_db:
            cached = cache_db.cache_get(cache_key)
            if cached:
                return cached

        body = self.fetch_tsv(url)

        if body and cache_db:
            cache_db.cache_set(cache_key, body, cache_ttl)

        return body

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
