"""
Batch report pages.
"""
import logging
from typing import Tuple

from crt_reports.client.fanout import CancelToken, fetch_one, settle_map
from crt_reports.client.session import Session
from crt_reports.pages.base_page import USER_SCOPE, PageResult, ReportPage, as_list
from crt_reports.schemas.models import BatchRow

logger = logging.getLogger(__name__)

NO_DETAILS: Tuple[int, str] = (0, "")


class BatchReportsPage(ReportPage):
    """Batches of the session scope, each enriched with its student count."""

    title = "Batch Reports"
    required_session = USER_SCOPE
    search_field = "batchname"
    export_columns = {
        "Batch ID": "batchcode",
        "Batch Name": "batchname",
        "Students Count": "studentCount",
    }
    sheet_name = "Batches"

    def batch_details(self, session: Session, batchcode: str) -> Tuple[int, str]:
        """(student count, batch name) for one batch; (0, "") when there are no students."""
        students = self.client.get_batch_details(session, batchcode)
        if isinstance(students, list) and students:
            first = students[0] if isinstance(students[0], dict) else {}
            return len(students), str(first.get("Batchname") or "")
        return NO_DETAILS

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        batches = [b for b in as_list(
            await fetch_one(self.client.get_batches, session, executor=self.executor, token=token)
        ) if isinstance(b, dict)]

        details = await settle_map(
            batches,
            lambda batch: self.batch_details(session, str(batch.get("batchcode", ""))),
            default=NO_DETAILS,
            executor=self.executor,
            token=token,
        )

        rows = []
        for batch, (count, name) in zip(batches, details):
            rows.append(BatchRow(
                batchcode=str(batch.get("batchcode", "")),
                batchname=name or str(batch.get("batchname") or ""),
                studentCount=count,
            ).model_dump())

        logger.info(f"Loaded {len(rows)} batches for {session.course}/{session.city}")
        return PageResult(rows=rows, summary={"batches": len(rows)})

    def export_filename(self) -> str:
        return "batch-list.xlsx"


class BatchStudentsPage(ReportPage):
    """Students enrolled in one batch."""

    title = "Batch Students"
    required_session = USER_SCOPE
    search_field = "Studname"
    export_columns = {
        "Student ID": "idcardno",
        "Student Name": "Studname",
        "Email ID": "Emailid",
    }
    sheet_name = "Students"

    def __init__(self, client, batch_id: str, executor=None):
        super().__init__(client, executor)
        self.batch_id = batch_id

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        students = as_list(await fetch_one(
            self.client.get_batch_details, session, self.batch_id, executor=self.executor, token=token
        ))
        return PageResult(rows=students, summary={"batchId": self.batch_id, "students": len(students)})

    def export_filename(self) -> str:
        return f"batch-{self.batch_id}-students.xlsx"
