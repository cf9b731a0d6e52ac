"""
Tests for the student pages.
"""
from datetime import date

import pandas as pd
import pytest

from crt_reports.pages.student_pages import (
    StudentReportPage,
    StudentReportsPage,
    build_test_records,
    normalize_student,
    student_summary,
)

STUDENT_TESTS = [
    {"testno": "T2", "Testdate": "2024-02-10T00:00:00", "Total_Score": 60, "TotalNoofCorrects": 6, "TotalNoofWrongs": 4},
    {"testno": "T1", "Testdate": "2024-01-05T00:00:00", "section1sco": 80, "section1cor": 8, "section1wro": 2, "studname": "Asha"},
    {"Testdate": "not a date", "section1sco": 0, "section1cor": 0, "section1wro": 0},
]


def averages(params):
    if params["testno"] == "T2":
        return (500, "error")
    return [{"NoofAttendes": 12, "Total_Avg": 55.456}]


@pytest.fixture
def student_upstream(upstream_http):
    upstream_http.pages["get_crt_studwise_detail"] = STUDENT_TESTS
    upstream_http.pages["get_crt_testwise_avg"] = averages
    upstream_http.pages["get_crt_studwise_detail_all"] = [
        {"Idcardno": "S1", "studname": "Asha", "emailid": "asha@example.com", "batchcode": "B1",
         "BatchName": "Morning", "Password": "secret"},
        {"Idcardno": "S2", "studname": "Ravi", "emailid": "ravi@other.org", "batchcode": "B1",
         "Batchname": "Morning"},
    ]
    upstream_http.pages["get_crt_dashboard"] = [{"Total_Students": 120}]
    return upstream_http


def test_student_report(dashboard_client, session, executor, student_upstream):
    page = StudentReportPage(dashboard_client, "S1", executor=executor)

    result = page.run(session)

    assert result.ok
    first = result.rows[0]
    assert first["TestNo"] == "T1"
    assert first["Total_Score"] == 80
    assert first["TestDate"] == date(2024, 1, 5)
    assert [row["TestNo"] for row in result.rows] == ["T1", "T2", "Test-3"]
    assert result.rows[-1]["TestDate"] is None
    assert result.summary["studentName"] == "Asha"
    assert result.summary["topScore"] == 80
    assert student_upstream.pages_called("get_crt_studwise_detail")[0]["params"] == {"course": "CRT1", "userid": "S1"}


def test_student_report_averages_skip_failures(dashboard_client, session, executor, student_upstream):
    result = StudentReportPage(dashboard_client, "S1", executor=executor).run(session)

    comparison = {row["name"]: row["Test Average"] for row in result.charts["scoreComparison"]}
    assert comparison["Test T1"] == 55.46
    assert comparison["Test T2"] == 0
    assert len(student_upstream.pages_called("get_crt_testwise_avg")) == 3


def test_student_without_tests(dashboard_client, session, executor, upstream_http):
    upstream_http.pages["get_crt_studwise_detail"] = ""

    result = StudentReportPage(dashboard_client, "S9", executor=executor).run(session)

    assert result.error == "No report found for student ID: S9"


def test_student_report_export(dashboard_client, session, executor, student_upstream, tmp_path):
    page = StudentReportPage(dashboard_client, "S1", executor=executor)
    result = page.run(session)

    path = page.export(result.rows, str(tmp_path))

    assert path.name == "tests-taken-S1.xlsx"
    exported = pd.read_excel(path, sheet_name="Tests", dtype=str, keep_default_na=False)
    assert list(exported.columns) == ["Test No.", "Exam ID", "Date", "Score", "Correct", "Wrong", "Skipped"]
    assert exported["Date"].tolist() == ["2024-01-05", "2024-02-10", ""]


def test_student_list(dashboard_client, session, executor, student_upstream, tmp_path):
    page = StudentReportsPage(dashboard_client, executor=executor)

    result = page.run(session)

    assert result.summary == {"students": 2, "totalStudents": 120}
    assert all("Password" not in row for row in result.rows)
    assert {row["Batchname"] for row in result.rows} == {"Morning"}

    view = page.view(result, email="EXAMPLE.com")
    assert [row["Idcardno"] for row in view.rows] == ["S1"]

    path = page.export(view.rows, str(tmp_path))
    exported = pd.read_excel(path)
    assert path.name == "student-list.xlsx"
    assert list(exported.columns) == ["Student ID", "Name", "Email", "Batch", "BatchName"]
    assert len(exported) == view.matched


def test_student_list_survives_dashboard_failure(dashboard_client, session, executor, student_upstream):
    student_upstream.pages["get_crt_dashboard"] = (500, "down")

    result = StudentReportsPage(dashboard_client, executor=executor).run(session)

    assert result.ok
    assert result.summary["totalStudents"] is None
    assert len(result.rows) == 2


def test_summary_helpers():
    records = build_test_records(STUDENT_TESTS)
    summary = student_summary(records)

    # (0.8 + 0.6 + 0) / 3
    assert summary["overallAccuracy"] == pytest.approx(46.67)
    assert summary["avgScore"] == pytest.approx(46.67)
    assert student_summary([])["testsTaken"] == 0


def test_normalize_student():
    row = normalize_student({"Idcardno": "S1", "BatchName": "Evening", "Password": "x"})
    assert row == {"Idcardno": "S1", "Batchname": "Evening"}


def test_blank_scores_do_not_fail_the_report(dashboard_client, session, executor, student_upstream):
    student_upstream.pages["get_crt_studwise_detail"] = [
        STUDENT_TESTS[1],
        {"testno": "T4", "Testdate": "2024-03-01", "Total_Score": "", "section1sco": "",
         "TotalNoofCorrects": " 7 ", "TotalNoofWrongs": "n/a"},
    ]

    result = StudentReportPage(dashboard_client, "S1", executor=executor).run(session)

    assert result.ok
    blank = result.rows[-1]
    assert blank["TestNo"] == "T4"
    assert blank["Total_Score"] == 0
    assert blank["TotalNoOfCorrects"] == 7
    assert blank["TotalNoOfWrongs"] == 0


def test_student_list_sorted_and_paged_with_email_filter(dashboard_client, session, executor, student_upstream):
    page = StudentReportsPage(dashboard_client, executor=executor)
    result = page.run(session)

    view = page.view(result, email="@", sort="studname", descending=True, page_size=1)

    assert view.matched == 2
    assert view.pages == 2
    assert [row["Idcardno"] for row in view.visible] == ["S2"]
