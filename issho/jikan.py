"""
Client for the Jikan API (unofficial MyAnimeList API).

Documentation: https://docs.api.jikan.moe/
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from . import config
from .log import JikanError

logger = logging.getLogger(__name__)

SEASONS = ("winter", "spring", "summer", "fall")


class JikanClient:
    """Thin rate-limited wrapper around the Jikan v4 endpoints we use."""

    def __init__(
        self,
        base_url: str = config.JIKAN_BASE_URL,
        delay: float = config.JIKAN_RATE_LIMIT_DELAY,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.delay = delay
        self.session = session or requests.Session()
        self._last_request = 0.0

    def _rate_limit(self) -> None:
        elapsed = time.monotonic() - self._last_request
        if self._last_request and elapsed < self.delay:
            time.sleep(self.delay - elapsed)
        self._last_request = time.monotonic()

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._rate_limit()
        url = f"{self.base_url}{endpoint}"
        logger.info(f"GET {url} {params or ''}")
        try:
            resp = self.session.get(url, params=params, timeout=config.JIKAN_TIMEOUT)
        except requests.RequestException as e:
            logger.warning(f"Jikan request failed for {endpoint}: {e}")
            raise JikanError(f"Jikan API error: {e}") from e

        if not resp.ok:
            logger.warning(f"Jikan returned {resp.status_code} for {endpoint}")
            raise JikanError(f"Jikan API error: {resp.status_code} {resp.reason}")
        return resp.json()

    def search_anime(self, query: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Search anime by title. Returns the raw response (``data`` + ``pagination``)."""
        params = {
            "q": query,
            "page": page,
            "limit": min(limit, config.JIKAN_MAX_LIMIT),
            "order_by": "popularity",
            "sort": "asc",
            "sfw": "true",
        }
        return self._get("/anime", params)

    def get_anime_by_id(self, mal_id: int) -> Dict[str, Any]:
        return self._get(f"/anime/{mal_id}")["data"]

    def get_seasonal_anime(self, year: int, season: str) -> Dict[str, Any]:
        if season not in SEASONS:
            raise ValueError(f"season must be one of {', '.join(SEASONS)}")
        return self._get(f"/seasons/{year}/{season}")

    def get_top_anime(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        params = {"page": page, "limit": min(limit, config.JIKAN_MAX_LIMIT)}
        return self._get("/top/anime", params)
