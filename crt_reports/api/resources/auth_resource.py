"""
Login API Resource.
"""
import logging
from typing import Optional

from flask import request
from flask_restful import Resource
from pydantic import ValidationError as PydanticValidationError

from crt_reports.exceptions.base import UpstreamError
from crt_reports.schemas.models import LoginRequest
from crt_reports.services.upstream_service import UpstreamService
from crt_reports.utils.response_utils import error_response

logger = logging.getLogger(__name__)

LOGIN_PAGE = "get_crt_login"


def match_login_record(payload, username: str, password: str) -> Optional[dict]:
    """Return the first record when it echoes the submitted credentials."""
    if not isinstance(payload, list) or not payload:
        return None
    record = payload[0]
    if not isinstance(record, dict):
        return None
    if record.get("Username") == username and record.get("Password") == password:
        return record
    return None


class LoginResource(Resource):
    """Validate credentials against the results service."""

    def __init__(self, upstream: Optional[UpstreamService] = None):
        self.upstream = upstream or UpstreamService()

    def post(self):
        try:
            data = request.get_json(silent=True) or {}
            try:
                credentials = LoginRequest.model_validate(data)
            except PydanticValidationError:
                return error_response("Missing username or password", 400)

            result = self.upstream.fetch(
                LOGIN_PAGE, {"username": credentials.username, "pwd": credentials.password}
            )

            record = match_login_record(result.payload, credentials.username, credentials.password)
            if record is None:
                logger.warning(f"Login rejected for {credentials.username}")
                return {"success": False}, 401

            user = {key: value for key, value in record.items() if key != "Password"}
            logger.info(f"Login accepted for {credentials.username} ({user.get('Usertype')})")
            return {"success": True, "user": user}, 200

        except UpstreamError as e:
            return error_response("Failed to validate credentials", 500, upstream_status=e.upstream_status)
        except Exception as e:
            logger.error(f"Unexpected error during login: {e}")
            return error_response("Unexpected error during login", 500, error_details=e)
