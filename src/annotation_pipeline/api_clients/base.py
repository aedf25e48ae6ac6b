"""Cached HTTP access to reference databases (KEGG REST, GO OBO downloads)."""

import logging
import time
from pathlib import Path

import requests
import requests_cache
from requests.exceptions import ConnectionError, HTTPError, Timeout
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from annotation_pipeline import __version__
from annotation_pipeline.config.schema import PipelineConfig

logger = logging.getLogger(__name__)

USER_AGENT = f"annotation-pipeline/{__version__}"


def is_transient(exc: BaseException) -> bool:
    """Timeouts, dropped connections, 429 and 5xx responses are worth retrying."""
    if isinstance(exc, (Timeout, ConnectionError)):
        return True
    if isinstance(exc, HTTPError) and exc.response is not None:
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


class CachedAPIClient:
    """
    HTTP client backed by a persistent SQLite response cache.

    Transient failures are retried with exponential backoff; other HTTP
    errors (e.g. 404 for an unknown KEGG organism) are raised immediately.
    Responses served from the cache skip the rate-limit pause.
    """

    def __init__(
        self,
        cache_dir: Path,
        rate_limit: int = 3,
        max_retries: int = 5,
        cache_ttl: int = 86400,
        timeout: int = 60,
    ):
        """
        Args:
            cache_dir: Directory holding the SQLite cache (created if missing)
            rate_limit: Maximum uncached requests per second
            max_retries: Attempts per request, first one included
            cache_ttl: Seconds a cached response stays valid (0 = forever)
            timeout: Per-request timeout in seconds
        """
        self.cache_dir = Path(cache_dir)
        self.rate_limit = rate_limit
        self.max_retries = max_retries
        self.timeout = timeout

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.session = requests_cache.CachedSession(
            cache_name=str(self.cache_dir / "api_cache"),
            backend="sqlite",
            expire_after=cache_ttl if cache_ttl > 0 else None,
        )
        self.session.headers["User-Agent"] = USER_AGENT

        self._send = retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=60),
            retry=retry_if_exception(is_transient),
            reraise=True,
        )(self._send_once)

    def _send_once(self, url: str, params: dict | None) -> requests.Response:
        response = self.session.get(url, params=params, timeout=self.timeout)
        if response.status_code == 429:
            logger.warning(f"Rate limited (429) by {url}, backing off")
        response.raise_for_status()
        return response

    def get(self, url: str, params: dict | None = None) -> requests.Response:
        """
        GET a URL through the cache.

        Raises:
            HTTPError: Non-transient status, or transient status after all attempts
            Timeout: Still timing out after all attempts
            ConnectionError: Still unreachable after all attempts
        """
        response = self._send(url, params)

        if not getattr(response, "from_cache", False):
            time.sleep(1 / self.rate_limit)
        else:
            logger.debug(f"Cache hit: {url}")

        return response

    def get_text(self, url: str, params: dict | None = None) -> str:
        """GET a URL and return the decoded body (KEGG REST flat files)."""
        return self.get(url, params=params).text

    def download(self, url: str, destination: Path) -> Path:
        """Fetch a URL and write the raw body to ``destination``."""
        response = self.get(url)
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)
        logger.info(f"Downloaded {url} to {destination} ({len(response.content)} bytes)")
        return destination

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "CachedAPIClient":
        """Client using the cache directory and ``api`` section of a PipelineConfig."""
        return cls(
            cache_dir=config.cache_dir,
            rate_limit=config.api.rate_limit_per_second,
            max_retries=config.api.max_retries,
            cache_ttl=config.api.cache_ttl_seconds,
            timeout=config.api.timeout_seconds,
        )
