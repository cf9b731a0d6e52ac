"""
Upstream Service for the legacy CRT results API.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import requests

from crt_reports.config.settings import Config
from crt_reports.exceptions.base import UpstreamError
from crt_reports.utils.error_handling import correlation_context

logger = logging.getLogger(__name__)

RESULTS_PREFIX = "results_sync/"

PAYLOAD_OK = "ok"
PAYLOAD_EMPTY = "empty"
PAYLOAD_MALFORMED = "malformed"


@dataclass(frozen=True)
class UpstreamResult:
    """Decoded upstream body, tagged with how it was obtained.

    ``empty`` and ``malformed`` results always carry an empty list so callers
    that only render rows can ignore the tag.
    """
    payload: Any
    payload_status: str = PAYLOAD_OK

    @property
    def degraded(self) -> bool:
        return self.payload_status != PAYLOAD_OK


class UpstreamService:
    """Service to interact with the legacy results API."""

    NO_CACHE_HEADERS = {
        'Accept': 'application/json',
        'Cache-Control': 'no-cache',
        'Pragma': 'no-cache',
    }

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 http: Optional[requests.Session] = None):
        base = base_url if base_url is not None else Config.upstream_base_url()
        self.base_url = base.rstrip("/") + "/"
        self.timeout = timeout or Config.UPSTREAM_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def build_url(self, page: str, params: Dict[str, str]) -> str:
        """Build ``<base>/results_sync/<page>.aspx?...`` with RFC 3986 escaping."""
        query = urlencode(params, quote_via=quote, safe="")
        return f"{self.base_url}{RESULTS_PREFIX}{page}.aspx?{query}"

    def fetch(self, page: str, params: Dict[str, str]) -> UpstreamResult:
        """
        GET a legacy page and decode its JSON body.

        Raises:
            UpstreamError: upstream answered with a non-success status
            requests.RequestException: transport failure (connection, timeout)
        """
        correlation_id = correlation_context.get_correlation_id()
        url = self.build_url(page, params)

        api_start = time.time()
        response = self.http.get(url, headers=self.NO_CACHE_HEADERS, timeout=self.timeout)
        api_time = time.time() - api_start

        logger.info(f"[{correlation_id}] Upstream {page} responded {response.status_code} in {api_time:.2f}s")

        if not response.ok:
            logger.error(f"[{correlation_id}] Upstream {page} failed with status {response.status_code}: {response.text[:200]}")
            raise UpstreamError(f"Upstream request to {page} failed", upstream_status=response.status_code)

        return self.decode(response.text, page)

    @staticmethod
    def decode(text: Optional[str], page: str = "upstream") -> UpstreamResult:
        """Decode a body, degrading blank or invalid JSON to an empty list."""
        if not text or not text.strip():
            logger.info(f"Upstream {page} returned a blank body")
            return UpstreamResult([], PAYLOAD_EMPTY)

        try:
            return UpstreamResult(json.loads(text), PAYLOAD_OK)
        except ValueError as e:
            logger.warning(f"Upstream {page} returned invalid JSON ({e}): {text[:200]}")
            return UpstreamResult([], PAYLOAD_MALFORMED)

    def cleanup(self):
        """Close pooled connections."""
        self.http.close()
