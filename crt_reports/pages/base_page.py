"""
Base class for report pages.

A page loads once per session snapshot: it checks the identifiers it needs,
fetches its master list, fans out dependent fetches and returns a
``PageResult``. Filtering and export work on that result only.
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from crt_reports.client.export import ColumnSpec, export_rows
from crt_reports.client.fanout import CancelToken
from crt_reports.client.session import Session
from crt_reports.client.table import filter_rows, page_count, paginate, sort_rows
from crt_reports.config.settings import Config
from crt_reports.exceptions.base import AppError, MissingSessionError, PageCancelled

logger = logging.getLogger(__name__)

USER_SCOPE = ("usertype", "city", "course")


@dataclass
class PageResult:
    rows: List[Any] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    charts: Dict[str, Any] = field(default_factory=dict)
    tables: Dict[str, List[Any]] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PageView:
    """Filtered and sorted rows; ``visible`` is the current page of them."""
    rows: List[Any]
    total: int
    page_index: int = 0
    page_size: int = 0

    @property
    def matched(self) -> int:
        return len(self.rows)

    @property
    def pages(self) -> int:
        return page_count(self.matched, self.page_size)

    @property
    def visible(self) -> List[Any]:
        return paginate(self.rows, self.page_index, self.page_size)


class ReportPage:
    title: str = "Report"
    required_session: Tuple[str, ...] = ("course",)
    search_field: Optional[str] = None
    export_columns: Optional[ColumnSpec] = None
    sheet_name: str = "Sheet1"

    def __init__(self, client, executor: Optional[ThreadPoolExecutor] = None):
        self.client = client
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=Config.FANOUT_MAX_WORKERS, thread_name_prefix="ReportPage"
        )

    async def load(self, session: Session, token: Optional[CancelToken] = None) -> PageResult:
        """Load the page for one session snapshot. Never raises except on cancellation."""
        token = token or CancelToken()
        try:
            session.require(*self.required_session)
        except MissingSessionError as e:
            logger.warning(f"{self.title}: missing session identifiers {e.missing}")
            return PageResult(error=e.message)

        try:
            return await self.fetch(session, token)
        except PageCancelled:
            logger.info(f"{self.title}: load cancelled")
            raise
        except AppError as e:
            logger.error(f"{self.title}: {e.message} ({e.status_code})")
            return PageResult(error=e.message)
        except Exception as e:
            logger.error(f"{self.title}: unexpected error: {e}", exc_info=True)
            return PageResult(error=str(e) or "Unexpected error")

    async def fetch(self, session: Session, token: CancelToken) -> PageResult:
        raise NotImplementedError

    def run(self, session: Session, token: Optional[CancelToken] = None) -> PageResult:
        """Blocking wrapper around ``load``."""
        return asyncio.run(self.load(session, token))

    def view(self, result: PageResult, search: Optional[str] = None, sort: Optional[str] = None,
             descending: bool = False, page: int = 0, page_size: int = 0, **criteria: str) -> PageView:
        """
        Filter rows by the page's search field and/or explicit field criteria,
        then sort them. ``page`` is zero-based; a ``page_size`` of 0 shows everything.
        """
        if search and self.search_field:
            criteria = {self.search_field: search, **criteria}
        rows = filter_rows(result.rows, criteria)
        if sort:
            rows = sort_rows(rows, sort, descending)
        return PageView(rows=rows, total=len(result.rows), page_index=page, page_size=page_size)

    def export_filename(self) -> str:
        raise NotImplementedError

    def export(self, rows: List[Any], export_dir: Optional[str] = None) -> Path:
        """Write the given (already filtered) rows; performs no fetch."""
        columns = self.export_columns or _columns_from_rows(rows)
        return export_rows(rows, columns, self.export_filename(), self.sheet_name, export_dir)

    def cleanup(self):
        if self._owns_executor:
            self.executor.shutdown(wait=False)


def _columns_from_rows(rows: List[Any]) -> ColumnSpec:
    columns: ColumnSpec = {}
    for row in rows:
        if isinstance(row, dict):
            for key in row:
                columns.setdefault(key, key)
    return columns


def as_list(payload: Any) -> List[Any]:
    return payload if isinstance(payload, list) else []
