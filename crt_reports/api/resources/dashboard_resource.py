"""
Dashboard API Resources.
"""
from flask_restful import Resource

from crt_reports.api.resources.proxy_resource import ProxyResource


class DashboardResource(ProxyResource):
    """Course-wide totals: students, tests, attendees, average score."""

    upstream_page = "get_crt_dashboard"
    description = "dashboard data"


class AreaResource(ProxyResource):
    upstream_page = "get_crt_areawise"
    description = "areas"


class HealthResource(Resource):
    def get(self):
        return {"status": "healthy"}, 200
