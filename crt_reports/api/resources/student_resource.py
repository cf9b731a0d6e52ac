"""
Student API Resources.
"""
from crt_reports.api.resources.proxy_resource import ProxyResource
from crt_reports.api.resources.batch_resource import USER_SCOPE, USER_SCOPE_PARAMS


class StudentListResource(ProxyResource):
    """Full student roster for a usertype/city/course scope."""

    upstream_page = "get_crt_studwise_detail_all"
    required_headers = USER_SCOPE
    upstream_params = USER_SCOPE_PARAMS
    description = "studentwise data"


class StudentDetailsResource(ProxyResource):
    """Every test record of one student."""

    upstream_page = "get_crt_studwise_detail"
    required_query = ("studentId",)
    upstream_params = (("course", "course"), ("studentId", "userid"))
    description = "student details"
