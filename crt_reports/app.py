"""
Main Application Factory for the CRT Reports proxy.
"""
import logging
from typing import Optional

from flask import Flask
from flask_restful import Api

from crt_reports.config.settings import Config
from crt_reports.api.resources.auth_resource import LoginResource
from crt_reports.api.resources.batch_resource import BatchResource, BatchDetailsResource
from crt_reports.api.resources.dashboard_resource import AreaResource, DashboardResource, HealthResource
from crt_reports.api.resources.student_resource import StudentListResource, StudentDetailsResource
from crt_reports.api.resources.testwise_resource import (
    TestAttemptedMissedResource,
    TestAverageResource,
    TestDetailsResource,
    TestListResource,
    TestMissingResource,
)
from crt_reports.middleware.error_handler import handle_errors, log_requests
from crt_reports.services.upstream_service import UpstreamService

logger = logging.getLogger(__name__)

PROXY_ROUTES = (
    (BatchResource, '/api/batches'),
    (BatchDetailsResource, '/api/batchwise-details'),
    (StudentListResource, '/api/studentwise'),
    (StudentDetailsResource, '/api/studentwise-details'),
    (TestListResource, '/api/testwise'),
    (TestDetailsResource, '/api/testwise-details'),
    (TestMissingResource, '/api/testwise-missing-details'),
    (TestAverageResource, '/api/testwise-avg-details'),
    (TestAttemptedMissedResource, '/api/testwise-attempted-missed'),
    (DashboardResource, '/api/dashboard'),
    (AreaResource, '/api/areas'),
    (LoginResource, '/api/login'),
)


def create_app(upstream: Optional[UpstreamService] = None, validate_config: bool = True) -> Flask:
    """
    Create and configure Flask application.

    Args:
        upstream: shared upstream service; one is built from Config when omitted
        validate_config: run Config.validate() before wiring routes
    """
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(Config)

    if validate_config:
        try:
            Config.validate()
        except ValueError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    # Set up error handling and logging middleware
    handle_errors(app)
    log_requests(app)

    # Set security headers
    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Cache-Control'] = 'no-store'
        return response

    upstream = upstream or UpstreamService()
    api = Api(app)

    # Register Resources
    for resource, route in PROXY_ROUTES:
        api.add_resource(resource, route, resource_class_kwargs={'upstream': upstream})

    api.add_resource(HealthResource, '/health')

    logger.info(f"Proxy ready with {len(PROXY_ROUTES)} routes forwarding to {upstream.base_url}")
    return app
