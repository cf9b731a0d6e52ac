"""
Batch API Resources.
"""
from crt_reports.api.resources.proxy_resource import ProxyResource

USER_SCOPE = ("usertype", "city", "course")
USER_SCOPE_PARAMS = (("usertype", "usertype"), ("city", "city"), ("course", "course"))


class BatchResource(ProxyResource):
    """Batches visible to a usertype/city/course scope."""

    upstream_page = "get_crt_batch"
    required_headers = USER_SCOPE
    upstream_params = USER_SCOPE_PARAMS
    description = "batches"


class BatchDetailsResource(ProxyResource):
    """Students enrolled in one batch."""

    upstream_page = "get_crt_batch_data"
    required_headers = USER_SCOPE
    required_query = ("batchId",)
    upstream_params = USER_SCOPE_PARAMS + (("batchId", "batch"),)
    description = "batch data"
