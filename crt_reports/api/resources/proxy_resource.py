"""
Base proxy resource.

Every proxy endpoint validates its identifying inputs, forwards them to one
legacy results page and relays the JSON body.
"""
import logging
from typing import Dict, Optional, Tuple

from flask import request
from flask_restful import Resource

from crt_reports.exceptions.base import ValidationError, UpstreamError
from crt_reports.services.upstream_service import UpstreamService
from crt_reports.utils.error_handling import correlation_context
from crt_reports.utils.response_utils import error_response, relay_response

logger = logging.getLogger(__name__)

HEADER_PREFIX = "x-"


class ProxyResource(Resource):
    """Resource that relays one legacy results page.

    Subclasses declare:
        upstream_page: legacy page name without ``.aspx``
        required_headers: session identifiers read from ``x-<name>`` headers
        required_query: per-entity ids read from the query string
        upstream_params: ordered (local field, upstream parameter) pairs
        description: human name used in error messages
    """

    upstream_page: str = ""
    required_headers: Tuple[str, ...] = ("course",)
    required_query: Tuple[str, ...] = ()
    upstream_params: Tuple[Tuple[str, str], ...] = (("course", "course"),)
    description: str = "data"

    def __init__(self, upstream: Optional[UpstreamService] = None):
        self.upstream = upstream or UpstreamService()

    def get(self):
        correlation_id = correlation_context.get_correlation_id()
        try:
            fields = self.collect_fields()
            result = self.upstream.fetch(self.upstream_page, self.build_params(fields))
            return relay_response(result.payload, result.payload_status)
        except ValidationError as e:
            logger.warning(f"[{correlation_id}] {self.__class__.__name__}: {e.message}")
            return error_response(e.message, 400)
        except UpstreamError as e:
            return error_response(f"Failed to fetch {self.description}", 500, upstream_status=e.upstream_status)
        except Exception as e:
            logger.error(f"[{correlation_id}] Unexpected error while fetching {self.description}: {e}")
            return error_response(f"Unexpected error while fetching {self.description}", 500, error_details=e)

    def collect_fields(self) -> Dict[str, str]:
        """Read every required header and query field, rejecting blanks."""
        fields = {}
        missing = []

        for name in self.required_headers:
            value = (request.headers.get(HEADER_PREFIX + name) or "").strip()
            if value:
                fields[name] = value
            else:
                missing.append(HEADER_PREFIX + name)

        for name in self.required_query:
            value = (request.args.get(name) or "").strip()
            if value:
                fields[name] = value
            else:
                missing.append(name)

        if missing:
            raise ValidationError(f"Missing {', '.join(missing)}", details={"missing": missing})
        return fields

    def build_params(self, fields: Dict[str, str]) -> Dict[str, str]:
        return {upstream_name: fields[local_name] for local_name, upstream_name in self.upstream_params}
