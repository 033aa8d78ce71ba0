import logging
import threading
import time
from functools import wraps

import requests

from pickem.utils.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports/football/nfl"


def rate_limit_decorator(max_retries=None, base_delay=None, backoff_factor=2.0):
    """
    Decorator to retry API requests with exponential backoff

    Retries rate limiting (429), server errors (5xx) and connection failures.
    Other client errors are raised immediately. When max_retries/base_delay
    are not given, the client's own settings are used.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            retries = max(1, max_retries or getattr(self, "max_retries", 3))
            delay_base = (
                base_delay if base_delay is not None else getattr(self, "retry_delay", 1.0)
            )

            for attempt in range(retries):
                try:
                    return func(self, *args, **kwargs)

                except requests.exceptions.HTTPError as e:
                    status = e.response.status_code if e.response is not None else 0
                    if status != 429 and status < 500:
                        raise
                    if attempt >= retries - 1:
                        raise

                    delay = delay_base * (backoff_factor**attempt)
                    if status == 429 and e.response is not None:
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = int(retry_after)
                    logger.warning(
                        f"HTTP {status}. Waiting {delay}s before retry {attempt + 1}/{retries}"
                    )
                    time.sleep(delay)

                except requests.exceptions.RequestException as e:
                    if attempt >= retries - 1:
                        raise
                    delay = delay_base * (backoff_factor**attempt)
                    logger.warning(
                        f"Request failed: {e}. Waiting {delay}s before retry {attempt + 1}/{retries}"
                    )
                    time.sleep(delay)

            raise UpstreamUnavailable(f"Max retries ({retries}) exceeded")

        return wrapper

    return decorator


class EspnClient:
    """
    Read-only client for ESPN's public NFL site API

    Every failure (network, timeout, non-2xx, invalid JSON) surfaces as
    UpstreamUnavailable so callers only deal with one error type. Safe to
    share between the worker threads of a fan-out.
    """

    def __init__(
        self,
        api_base_url=None,
        timeout=30,
        max_retries=2,
        retry_delay=1.0,
        min_request_interval=0.05,
        max_requests_per_minute=120,
    ):
        self.api_base_url = (api_base_url or DEFAULT_API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        self.session = requests.Session()
        self.session.headers.update(
            {"User-Agent": "NFL-Team-Pool/1.0", "Accept": "application/json"}
        )

        # Rate limiting configuration
        self.request_count = 0
        self.last_request_time = 0
        self.min_request_interval = min_request_interval
        self.max_requests_per_minute = max_requests_per_minute
        self.request_timestamps = []
        self._lock = threading.Lock()

    def _enforce_rate_limit(self):
        """Enforce rate limiting before making requests"""
        with self._lock:
            current_time = time.time()

            # Remove timestamps older than 1 minute
            self.request_timestamps = [
                ts for ts in self.request_timestamps if current_time - ts < 60
            ]

            if len(self.request_timestamps) >= self.max_requests_per_minute:
                sleep_time = 60 - (current_time - self.request_timestamps[0])
                if sleep_time > 0:
                    logger.info(f"Rate limit reached. Sleeping for {sleep_time:.1f}s")
                    time.sleep(sleep_time)
                    self.request_timestamps = []

            time_since_last = current_time - self.last_request_time
            if time_since_last < self.min_request_interval:
                time.sleep(self.min_request_interval - time_since_last)

            self.last_request_time = time.time()
            self.request_timestamps.append(self.last_request_time)
            self.request_count += 1

    @rate_limit_decorator()
    def _make_api_request(self, url, params=None):
        """Make API request with rate limiting and retry logic"""
        self._enforce_rate_limit()

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response

        except requests.exceptions.Timeout:
            logger.warning(f"Request timeout for {url}")
            raise
        except requests.exceptions.ConnectionError:
            logger.warning(f"Connection error for {url}")
            raise
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.warning(f"HTTP error {status}: {url}")
            raise

    def get_json(self, url, params=None):
        """
        GET a URL and decode its JSON body

        Args:
            url: Absolute URL, or a path relative to the API base URL
            params: Optional query parameters

        Returns:
            dict: Decoded JSON payload

        Raises:
            UpstreamUnavailable: On any transport, status or decoding failure
        """
        if not url.startswith("http"):
            url = f"{self.api_base_url}/{url.lstrip('/')}"

        try:
            response = self._make_api_request(url, params=params)
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(f"Request failed for {url}: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Invalid JSON from {url}") from e

        if not isinstance(payload, dict):
            raise UpstreamUnavailable(f"Unexpected JSON document from {url}")
        return payload

    def get_standings(self, params=None):
        return self.get_json("standings", params=params)

    def get_teams(self):
        return self.get_json("teams")

    def get_team(self, team_id):
        return self.get_json(f"teams/{team_id}")

    def get_scoreboard(self, params=None):
        return self.get_json("scoreboard", params=params)

    def get_schedule(self, params=None):
        return self.get_json("schedule", params=params)

    def follow_ref(self, ref_url):
        """Fetch an absolute $ref link found inside another payload"""
        return self.get_json(ref_url)

    def get_rate_limit_status(self):
        """Get current rate limit status"""
        current_time = time.time()
        with self._lock:
            self.request_timestamps = [
                ts for ts in self.request_timestamps if current_time - ts < 60
            ]
            recent = len(self.request_timestamps)

        return {
            "total_requests": self.request_count,
            "requests_last_minute": recent,
            "max_requests_per_minute": self.max_requests_per_minute,
            "time_since_last_request": (
                current_time - self.last_request_time if self.last_request_time else 0
            ),
            "min_request_interval": self.min_request_interval,
        }
