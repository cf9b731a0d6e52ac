"""
Client for the proxy endpoints.

One method per endpoint; identifiers always come from the ``Session``
argument.
"""
import logging
from typing import Any, Optional

import requests

from crt_reports.client.session import Session
from crt_reports.config.settings import Config
from crt_reports.exceptions.base import ProxyRequestError
from crt_reports.utils.error_handling import correlation_context, log_errors

logger = logging.getLogger(__name__)


class DashboardClient:
    """Service to call the CRT Reports proxy API."""

    def __init__(self, base_url: Optional[str] = None, http=None, timeout: Optional[float] = None):
        self.base_url = (base_url or Config.DASHBOARD_API_URL).rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout or Config.DASHBOARD_API_TIMEOUT_SECONDS

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint}"

    def _decode(self, response, endpoint: str) -> Any:
        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = {"error": response.text[:200]}
            message = payload.get("error") if isinstance(payload, dict) else None
            logger.warning(f"Proxy {endpoint} answered {response.status_code}: {message}")
            raise ProxyRequestError(
                message or f"Failed to fetch {endpoint}", response.status_code,
                payload if isinstance(payload, dict) else None,
            )
        try:
            return response.json()
        except ValueError:
            raise ProxyRequestError(f"Invalid JSON from {endpoint}", response.status_code)

    @log_errors
    def _get(self, endpoint: str, headers: dict, params: Optional[dict] = None) -> Any:
        headers = dict(headers)
        headers["X-Correlation-ID"] = correlation_context.get_correlation_id()
        response = self.http.get(self._url(endpoint), headers=headers, params=params, timeout=self.timeout)
        return self._decode(response, endpoint)

    @log_errors
    def login(self, username: str, password: str) -> dict:
        response = self.http.post(
            self._url("login"), json={"username": username, "password": password}, timeout=self.timeout
        )
        return self._decode(response, "login")

    def get_batches(self, session: Session) -> Any:
        return self._get("batches", session.headers())

    def get_batch_details(self, session: Session, batch_id: str) -> Any:
        return self._get("batchwise-details", session.headers(), {"batchId": batch_id})

    def get_students(self, session: Session) -> Any:
        return self._get("studentwise", session.headers())

    def get_student_details(self, session: Session, student_id: str) -> Any:
        return self._get("studentwise-details", session.headers("course"), {"studentId": student_id})

    def get_tests(self, session: Session) -> Any:
        return self._get("testwise", session.headers("course"))

    def get_test_details(self, session: Session, testno: str) -> Any:
        return self._get("testwise-details", session.headers("course"), {"testno": testno})

    def get_test_missing(self, session: Session, testno: str) -> Any:
        return self._get("testwise-missing-details", session.headers("course"), {"testno": testno})

    def get_test_average(self, session: Session, testno: str) -> Any:
        return self._get("testwise-avg-details", session.headers("course"), {"testno": testno})

    def get_test_attempted_missed(self, session: Session, testno: str) -> Any:
        return self._get("testwise-attempted-missed", session.headers("course"), {"testno": testno})

    def get_dashboard(self, session: Session) -> Any:
        return self._get("dashboard", session.headers("course"))

    def get_areas(self, session: Session) -> Any:
        return self._get("areas", session.headers("course"))

    def cleanup(self):
        close = getattr(self.http, "close", None)
        if close:
            close()
