"""
Student report pages.
"""
import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from crt_reports.client.fanout import CancelToken, fetch_one, settle_map
from crt_reports.client.session import Session
from crt_reports.exceptions.base import NotFoundError
from crt_reports.pages.base_page import USER_SCOPE, PageResult, ReportPage, as_list
from crt_reports.schemas.models import TestRecord, is_number

logger = logging.getLogger(__name__)

RECENT_TESTS = 10


def normalize_student(record: Dict[str, Any]) -> Dict[str, Any]:
    """Drop the password and settle on ``Batchname`` as the batch name key."""
    row = {key: value for key, value in record.items() if key not in ("Password", "BatchName", "Batchname")}
    row["Batchname"] = record.get("Batchname") or record.get("BatchName") or ""
    return row


def dashboard_total_students(payload: Any) -> Optional[int]:
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return payload[0].get("Total_Students")
    if isinstance(payload, dict):
        return payload.get("Total_Students") or None
    return None


def build_test_records(items: List[Dict[str, Any]]) -> List[TestRecord]:
    """Normalize student detail rows and order them by test date, undated last."""
    records = [TestRecord.from_upstream(item, index) for index, item in enumerate(items)]
    return sorted(records, key=lambda r: (r.TestDate is None, r.TestDate or date.min))


def student_summary(records: List[TestRecord]) -> Dict[str, float]:
    if not records:
        return {"overallAccuracy": 0.0, "avgScore": 0.0, "topScore": 0.0, "testsTaken": 0}
    accuracy = sum(r.accuracy for r in records) / len(records) * 100
    return {
        "overallAccuracy": round(accuracy, 2),
        "avgScore": round(sum(r.Total_Score for r in records) / len(records), 2),
        "topScore": max(r.Total_Score for r in records),
        "testsTaken": len(records),
    }


def student_charts(records: List[TestRecord], averages: Dict[str, float]) -> Dict[str, Any]:
    score_comparison = [
        {"name": f"Test {r.TestNo}", "Your Score": r.Total_Score, "Test Average": averages.get(r.ExamId, 0)}
        for r in records
    ]
    correct_percentage = [
        {"name": f"Test {r.TestNo}", "Correct %": round(r.accuracy * 100, 2)}
        for r in records
    ]

    recent = records[-RECENT_TESTS:]
    low = min((r.Total_Score for r in recent), default=0)
    high = max((r.Total_Score for r in recent), default=100)
    domain = [0, high or 100] if low == high else [low, high]
    recent_scores = [
        {"subject": f"Test {r.TestNo}", "score": r.Total_Score, "fullMark": high}
        for r in recent
    ]

    return {
        "scoreComparison": score_comparison,
        "correctPercentage": correct_percentage,
        "recentScores": {"data": recent_scores, "domain": domain},
    }


class StudentReportsPage(ReportPage):
    """Full student roster with the course-wide student total."""

    title = "Student Reports"
    required_session = USER_SCOPE
    search_field = "Idcardno"
    export_columns = {
        "Student ID": "Idcardno",
        "Name": "studname",
        "Email": "emailid",
        "Batch": "batchcode",
        "BatchName": "Batchname",
    }
    sheet_name = "Students"

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        students, (dashboard,) = await asyncio.gather(
            fetch_one(self.client.get_students, session, executor=self.executor, token=token),
            settle_map([session], self.client.get_dashboard, default=None, executor=self.executor, token=token),
        )
        rows = [normalize_student(s) for s in as_list(students) if isinstance(s, dict)]
        total = dashboard_total_students(dashboard)
        return PageResult(rows=rows, summary={"students": len(rows), "totalStudents": total})

    def view(self, result: PageResult, search: Optional[str] = None, email: Optional[str] = None, **options):
        if email:
            options["emailid"] = email
        return super().view(result, search, **options)

    def export_filename(self) -> str:
        return "student-list.xlsx"


class StudentReportPage(ReportPage):
    """Every test one student took, with per-test class averages."""

    title = "Student Report"
    required_session = USER_SCOPE
    export_columns = {
        "Test No.": "TestNo",
        "Exam ID": "ExamId",
        "Date": lambda row: row["TestDate"].isoformat() if row.get("TestDate") else "",
        "Score": "Total_Score",
        "Correct": "TotalNoOfCorrects",
        "Wrong": "TotalNoOfWrongs",
        "Skipped": "TotalNoOfSkipped",
    }
    sheet_name = "Tests"

    def __init__(self, client, student_id: str, executor=None):
        super().__init__(client, executor)
        self.student_id = student_id

    def test_average(self, session: Session, exam_id: str) -> Optional[float]:
        details = self.client.get_test_average(session, exam_id)
        if isinstance(details, list) and details and isinstance(details[0], dict):
            average = details[0].get("Total_Avg")
            if is_number(average):
                return round(float(average), 2)
        return None

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        data = await fetch_one(
            self.client.get_student_details, session, self.student_id, executor=self.executor, token=token
        )
        items = [item for item in as_list(data) if isinstance(item, dict)]
        if not items:
            raise NotFoundError(f"No report found for student ID: {self.student_id}")

        records = build_test_records(items)

        exam_ids = list(dict.fromkeys(r.ExamId for r in records if r.ExamId))
        results = await settle_map(
            exam_ids,
            lambda exam_id: self.test_average(session, exam_id),
            default=None,
            executor=self.executor,
            token=token,
        )
        averages = {exam_id: avg for exam_id, avg in zip(exam_ids, results) if avg is not None}

        summary = student_summary(records)
        name = next((item["studname"] for item in items if item.get("studname")), "")
        summary.update({"studentId": self.student_id, "studentName": name})

        return PageResult(
            rows=[r.model_dump() for r in records],
            summary=summary,
            charts=student_charts(records, averages),
        )

    def export_filename(self) -> str:
        return f"tests-taken-{self.student_id}.xlsx"
