"""
Spreadsheet export of page rows.
"""
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pandas as pd

from crt_reports.client.table import cell
from crt_reports.config.settings import Config

logger = logging.getLogger(__name__)

# header -> row field name, or a callable producing the cell from the row
ColumnSpec = Dict[str, Union[str, Callable[[Any], Any]]]

MAX_SHEET_NAME = 31


def safe_sheet_name(name: str) -> str:
    """Excel rejects []:*?/\\ in sheet names and more than 31 characters."""
    cleaned = re.sub(r"[\[\]:*?/\\]", "_", name).strip() or "Sheet1"
    return cleaned[:MAX_SHEET_NAME]


def to_records(rows: List[Any], columns: ColumnSpec) -> List[Dict[str, Any]]:
    """Flatten rows into header-keyed records."""
    records = []
    for row in rows:
        record = {}
        for header, source in columns.items():
            value = source(row) if callable(source) else cell(row, source)
            record[header] = "" if value is None else value
        records.append(record)
    return records


def export_rows(rows: List[Any], columns: ColumnSpec, filename: str,
                sheet_name: str = "Sheet1", export_dir: Optional[str] = None) -> Path:
    """
    Write exactly ``rows`` to ``<export_dir>/<filename>`` and return the path.
    """
    target_dir = Path(export_dir or Config.EXPORT_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / filename

    df = pd.DataFrame(to_records(rows, columns), columns=list(columns))
    df.to_excel(path, sheet_name=safe_sheet_name(sheet_name), index=False, engine="openpyxl")

    logger.info(f"Exported {len(df)} rows to {path}")
    return path


def format_day_first(value: Any) -> str:
    """``2024-01-05T00:00:00`` -> ``05-01-2024``."""
    if not value:
        return ""
    parts = str(value).split("T")[0].split("-")
    if len(parts) != 3:
        return str(value)
    year, month, day = parts
    return f"{day}-{month}-{year}"
