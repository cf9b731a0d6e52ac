"""
Testwise API Resources.
"""
from crt_reports.api.resources.proxy_resource import ProxyResource

TEST_PARAMS = (("course", "course"), ("testno", "testno"))


class TestListResource(ProxyResource):
    """Tests conducted for a course."""

    upstream_page = "get_crt_testwise"
    description = "testwise data"


class TestDetailsResource(ProxyResource):
    """Students who attempted a test."""

    upstream_page = "get_crt_testwise_detail"
    required_query = ("testno",)
    upstream_params = TEST_PARAMS
    description = "testwise detail data"


class TestMissingResource(ProxyResource):
    """Students who did not attempt a test."""

    upstream_page = "get_crt_studentwise_not"
    required_query = ("testno",)
    upstream_params = TEST_PARAMS
    description = "missed students data"


class TestAverageResource(ProxyResource):
    """Attendance and average score of a test, followed by participant rows."""

    upstream_page = "get_crt_testwise_avg"
    required_query = ("testno",)
    upstream_params = TEST_PARAMS
    description = "test average data"


class TestAttemptedMissedResource(ProxyResource):
    """Attempted and missed students of a test in one roster."""

    upstream_page = "get_crt_testwise_all"
    required_query = ("testno",)
    upstream_params = TEST_PARAMS
    description = "attempted and missed students data"
