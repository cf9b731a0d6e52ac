"""
Course dashboard and area pages.
"""
import logging
from typing import Any, Optional

from crt_reports.client.fanout import CancelToken, fetch_one
from crt_reports.client.session import Session
from crt_reports.pages.base_page import PageResult, ReportPage, as_list
from crt_reports.schemas.models import DashboardSummary

logger = logging.getLogger(__name__)


def dashboard_summary(payload: Any) -> Optional[DashboardSummary]:
    """The dashboard arrives either as a one-element array or a bare object."""
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if not isinstance(payload, dict):
        return None
    return DashboardSummary.model_validate(payload)


class DashboardPage(ReportPage):
    """Course-wide totals."""

    title = "Dashboard"

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        payload = await fetch_one(self.client.get_dashboard, session, executor=self.executor, token=token)
        summary = dashboard_summary(payload)
        if summary is None:
            logger.warning(f"No dashboard data for course {session.course}")
            return PageResult(summary={})
        return PageResult(summary=summary.model_dump())


class AreasPage(ReportPage):
    """Areas of the course; columns follow whatever the upstream sends."""

    title = "Areas"
    sheet_name = "Areas"

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        areas = [a for a in as_list(
            await fetch_one(self.client.get_areas, session, executor=self.executor, token=token)
        ) if isinstance(a, dict)]
        return PageResult(rows=areas, summary={"areas": len(areas)})

    def export_filename(self) -> str:
        return "areas.xlsx"
