"""
Tests for the dashboard pages, export helpers and the command line runner.
"""
import json

import pandas as pd
import pytest

import main
from crt_reports.client.export import export_rows, format_day_first, safe_sheet_name, to_records
from crt_reports.pages.dashboard_page import AreasPage, DashboardPage, dashboard_summary


@pytest.mark.parametrize("payload", [
    [{"Total_Students": 120, "Total_Tests": 8, "Total_Attendes": 90, "Total_tests_Avg_Score": 61.2}],
    {"Total_Students": 120, "Total_Tests": 8, "Total_Attendes": 90, "Total_tests_Avg_Score": 61.2},
])
def test_dashboard_accepts_array_or_object(dashboard_client, session, executor, upstream_http, payload):
    upstream_http.pages["get_crt_dashboard"] = payload

    result = DashboardPage(dashboard_client, executor=executor).run(session)

    assert result.ok
    assert result.summary["Total_Students"] == 120
    assert result.summary["Total_tests_Avg_Score"] == 61.2
    assert result.rows == []


def test_dashboard_without_data(dashboard_client, session, executor, upstream_http):
    upstream_http.pages["get_crt_dashboard"] = ""

    result = DashboardPage(dashboard_client, executor=executor).run(session)

    assert result.ok
    assert result.summary == {}
    assert dashboard_summary([]) is None


def test_areas_export_uses_upstream_columns(dashboard_client, session, executor, upstream_http, tmp_path):
    upstream_http.pages["get_crt_areawise"] = [
        {"Area": "Aptitude", "Avg": 61},
        {"Area": "Reasoning", "Avg": 58, "Rank": 2},
    ]
    page = AreasPage(dashboard_client, executor=executor)

    result = page.run(session)
    path = page.export(result.rows, str(tmp_path))

    exported = pd.read_excel(path, sheet_name="Areas")
    assert path.name == "areas.xlsx"
    assert list(exported.columns) == ["Area", "Avg", "Rank"]
    assert len(exported) == 2


class TestExportHelpers:
    def test_to_records_supports_callables_and_missing_fields(self):
        records = to_records(
            [{"a": 1, "b": None}],
            {"A": "a", "B": "b", "C": "missing", "D": lambda row: row["a"] * 2},
        )
        assert records == [{"A": 1, "B": "", "C": "", "D": 2}]

    def test_empty_export_keeps_headers(self, tmp_path):
        path = export_rows([], {"Test No.": "testno"}, "empty.xlsx", export_dir=str(tmp_path))

        exported = pd.read_excel(path)
        assert list(exported.columns) == ["Test No."]
        assert exported.empty

    @pytest.mark.parametrize("value, expected", [
        ("2024-01-05T00:00:00", "05-01-2024"),
        ("2024-12-31", "31-12-2024"),
        ("", ""),
        (None, ""),
        ("someday", "someday"),
    ])
    def test_format_day_first(self, value, expected):
        assert format_day_first(value) == expected

    def test_safe_sheet_name(self):
        assert safe_sheet_name("Test_a/b_All_Students") == "Test_a_b_All_Students"
        assert len(safe_sheet_name("x" * 40)) == 31


class TestRunner:
    @pytest.fixture
    def wired(self, monkeypatch, storage, dashboard_client, upstream_http):
        monkeypatch.setattr(main, "ClientStorage", lambda: storage)
        monkeypatch.setattr(main, "DashboardClient", lambda: dashboard_client)
        monkeypatch.setattr(main, "setup_logging", lambda *args: None)
        return upstream_http

    def test_login_then_report(self, wired, capsys):
        wired.pages["get_crt_testwise"] = [{"testno": "T1", "total": 3}]
        wired.pages["get_crt_studentwise_not"] = []

        assert main.main(["login", "admin", "pass123"]) == 0
        assert main.main(["report", "tests"]) == 0

        out = capsys.readouterr().out
        assert "Logged in as admin" in out
        assert "Showing 1 of 1 rows" in out

    def test_report_without_login_reports_missing_session(self, wired, capsys):
        assert main.main(["report", "batches"]) == 1
        assert "User info missing" in capsys.readouterr().err

    def test_detail_pages_need_an_id(self, wired, capsys):
        assert main.main(["report", "student"]) == 2

    def test_bad_login(self, wired, capsys):
        assert main.main(["login", "admin", "nope"]) == 1
        assert "Invalid username or password." in capsys.readouterr().err

    def test_settings(self, wired, capsys):
        assert main.main(["settings", "set", "companyName=Acme Training"]) == 0
        saved = json.loads(capsys.readouterr().out)
        assert saved["companyName"] == "Acme Training"

        assert main.main(["settings", "set", "contactDetails=nobody"]) == 1

    def test_report_sorts_and_pages(self, wired, capsys):
        wired.pages["get_crt_testwise"] = [{"testno": "T1", "total": 3}, {"testno": "T2", "total": 9},
                                           {"testno": "T3", "total": 5}]
        wired.pages["get_crt_studentwise_not"] = []
        assert main.main(["login", "admin", "pass123"]) == 0
        capsys.readouterr()

        assert main.main(["report", "tests", "--sort", "total", "--desc", "--page", "2", "--page-size", "2"]) == 0

        out = capsys.readouterr().out
        assert "Showing 3 of 3 rows" in out
        assert "Page 2 of 2" in out
        assert "T1" in out
        assert "T2" not in out
        assert "T3" not in out

    @pytest.mark.parametrize("argv", [
        ["report", "batches", "--email", "asha@example.com"],
        ["report", "batches", "--all-students", "T1"],
        ["report", "students", "--page-size", "-1"],
    ])
    def test_invalid_report_options_are_rejected(self, wired, argv):
        with pytest.raises(SystemExit) as excinfo:
            main.main(argv)

        assert excinfo.value.code == 2
        assert wired.calls == []
