"""
Response utility functions for standardized API responses.
"""
from typing import Tuple, Dict, Any, Optional


def error_response(message: str, status_code: int = 500, error_details: Any = None,
                   upstream_status: Optional[int] = None) -> Tuple[Dict[str, Any], int]:
    """
    Standard Error Response.

    Body is always ``{"error": message}`` plus ``details`` and ``status``
    when they are known.
    """
    response: Dict[str, Any] = {"error": message}
    if error_details is not None:
        response["details"] = str(error_details)
    if upstream_status is not None:
        response["status"] = upstream_status

    return response, status_code


def relay_response(payload: Any, payload_status: str = "ok") -> Tuple[Any, int, Dict[str, str]]:
    """
    Relay an upstream JSON payload verbatim.
    """
    return payload, 200, {"X-Upstream-Payload": payload_status}
