"""
Test report pages.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from crt_reports.client.export import export_rows, format_day_first
from crt_reports.client.fanout import CancelToken, fetch_one, settle_map
from crt_reports.client.session import Session
from crt_reports.exceptions.base import NotFoundError
from crt_reports.pages.base_page import PageResult, ReportPage, as_list
from crt_reports.schemas.models import Participant, TestRow, TestSummary, is_number

logger = logging.getLogger(__name__)

ALL_STUDENTS_COLUMNS = {
    "Student ID": "idcardno",
    "Student Name": "studname",
    "Student Email": "Emailid",
    "Status": lambda row: "Attempted" if row.get("score") is not None else "Missed",
    "Score": lambda row: row.get("score") if row.get("score") is not None else "",
}


def split_average_details(details: Any) -> Tuple[Optional[TestSummary], List[Dict[str, Any]]]:
    """
    Separate the leading summary record from participant rows.

    The first entry is a summary only when both ``NoofAttendes`` and
    ``Total_Avg`` are numbers; otherwise every entry is a participant.
    """
    entries = [d for d in as_list(details) if isinstance(d, dict)]
    if not entries:
        return None, []

    head = entries[0]
    if is_number(head.get("NoofAttendes")) and is_number(head.get("Total_Avg")):
        summary = TestSummary(participants=int(head["NoofAttendes"]), avgScore=float(head["Total_Avg"]))
        return summary, entries[1:]
    return None, entries


def attempt_statistics(summary: Optional[TestSummary], participants: List[Participant]) -> Dict[str, Any]:
    """Headline numbers for one test, preferring the upstream summary."""
    count = summary.participants if summary else len(participants)
    if summary:
        avg_score = summary.avgScore
    else:
        avg_score = sum(p.Total_Score for p in participants) / (len(participants) or 1)

    attempted = sum(p.TotalNoOfCorrects + p.TotalNoOfWrongs for p in participants)
    skipped = sum(p.TotalNoOfSkipped for p in participants)
    return {
        "participants": count,
        "avgScore": round(avg_score, 2),
        "totalAttempted": attempted,
        "totalSkipped": skipped,
        "avgAttempted": round(attempted / (count or 1), 2),
        "avgSkipped": round(skipped / (count or 1), 2),
    }


class TestReportsPage(ReportPage):
    """Tests of the course, each enriched with its missed-participant count."""

    __test__ = False

    title = "Test Reports"
    search_field = "testno"
    export_columns = {
        "Test No.": "testno",
        "Participants": "total",
        "Missed Participants": "missed",
    }
    sheet_name = "Tests"

    def missed_count(self, session: Session, testno: str) -> int:
        missed = self.client.get_test_missing(session, testno)
        return len(missed) if isinstance(missed, list) else 0

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        tests = [t for t in as_list(
            await fetch_one(self.client.get_tests, session, executor=self.executor, token=token)
        ) if isinstance(t, dict)]

        missed = await settle_map(
            tests,
            lambda test: self.missed_count(session, str(test.get("testno", ""))),
            default=0,
            executor=self.executor,
            token=token,
        )

        rows = []
        for test, count in zip(tests, missed):
            row = dict(test)
            row.update(TestRow(testno=str(test.get("testno", "")), total=test.get("total", 0), missed=count).model_dump())
            rows.append(row)

        logger.info(f"Loaded {len(rows)} tests for course {session.course}")
        return PageResult(rows=rows, summary={"tests": len(rows)})

    def export_filename(self) -> str:
        return "test-reports.xlsx"

    def export_all_students(self, session: Session, testno: str, export_dir: Optional[str] = None) -> Path:
        """Attempted and missed students of one test, fetched on demand."""
        students = as_list(self.client.get_test_attempted_missed(session, testno))
        students = [s for s in students if isinstance(s, dict)]
        return export_rows(
            students, ALL_STUDENTS_COLUMNS, f"all-students-for-{testno}.xlsx",
            f"Test_{testno}_All_Students", export_dir,
        )


class TestReportPage(ReportPage):
    """One test: headline statistics, participants and attempted students."""

    __test__ = False

    title = "Test Report"
    search_field = "studname"
    export_columns = {
        "Student ID": "studentid",
        "Student Name": "studname",
        "Student Email": "emailid",
        "Total Correct": "section1cor",
        "Total Wrong": "section1wro",
        "Total Score": "section1sco",
        "Test Date": lambda row: format_day_first(row.get("testdate") or row.get("Testdate")),
    }
    sheet_name = "Attempted Students"

    def __init__(self, client, test_id: str, executor=None):
        super().__init__(client, executor)
        self.test_id = test_id

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        tests = as_list(await fetch_one(self.client.get_tests, session, executor=self.executor, token=token))
        test = next((t for t in tests if isinstance(t, dict) and str(t.get("testno")) == self.test_id), None)
        if test is None:
            raise NotFoundError(f"Test not found: {self.test_id}")

        details, students = await settle_map(
            [self.client.get_test_average, self.client.get_test_details],
            lambda fetch: fetch(session, self.test_id),
            default=None,
            executor=self.executor,
            token=token,
        )

        summary, entries = split_average_details(details)
        participants = [Participant.from_upstream(e) for e in entries]
        attempted = [s for s in as_list(students) if isinstance(s, dict) and s.get("studname") and s.get("studentid")]

        stats = attempt_statistics(summary, participants)
        stats.update({"testno": self.test_id, "test": test, "summaryFromUpstream": summary is not None})

        return PageResult(
            rows=attempted,
            summary=stats,
            charts={"attemptPattern": [
                {"name": "Attempted", "value": stats["totalAttempted"]},
                {"name": "Skipped", "value": stats["totalSkipped"]},
            ]},
            tables={"participants": [p.model_dump() for p in participants]},
        )

    def export_filename(self) -> str:
        return f"attempted-students-{self.test_id}.xlsx"


class MissedStudentsPage(ReportPage):
    """Students who did not attempt one test."""

    title = "Missed Students"
    search_field = "studname"
    export_columns = {
        "Student ID": "idcardno",
        "Student Name": "studname",
        "Student Email": "Emailid",
    }
    sheet_name = "Missed Students"

    def __init__(self, client, test_id: str, executor=None):
        super().__init__(client, executor)
        self.test_id = test_id

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        students = as_list(await fetch_one(
            self.client.get_test_missing, session, self.test_id, executor=self.executor, token=token
        ))
        return PageResult(rows=students, summary={"testno": self.test_id, "missed": len(students)})

    def export_filename(self) -> str:
        return f"missed-students-{self.test_id}.xlsx"
