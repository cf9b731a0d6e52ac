"""
In-memory table operations used by the report pages.
"""
from typing import Any, Dict, List, Optional


def cell(row: Any, field: str, default: Any = None) -> Any:
    if isinstance(row, dict):
        return row.get(field, default)
    return getattr(row, field, default)


def filter_rows(rows: List[Any], criteria: Optional[Dict[str, str]] = None) -> List[Any]:
    """
    Keep rows whose every criteria field contains its text, ignoring case.

    Blank criteria are ignored; a row missing a filtered field never matches.
    """
    active = {field: text.lower() for field, text in (criteria or {}).items() if text}
    if not active:
        return list(rows)

    matched = []
    for row in rows:
        keep = True
        for field, needle in active.items():
            value = cell(row, field)
            if value is None or needle not in str(value).lower():
                keep = False
                break
        if keep:
            matched.append(row)
    return matched


def sort_rows(rows: List[Any], field: str, descending: bool = False) -> List[Any]:
    """Stable sort by ``field``; rows without a value go last either way."""
    present = [row for row in rows if cell(row, field) is not None]
    absent = [row for row in rows if cell(row, field) is None]
    try:
        ordered = sorted(present, key=lambda row: cell(row, field), reverse=descending)
    except TypeError:
        ordered = sorted(present, key=lambda row: str(cell(row, field)), reverse=descending)
    return ordered + absent


def paginate(rows: List[Any], page_index: int = 0, page_size: int = 10) -> List[Any]:
    if page_size <= 0:
        return list(rows)
    start = max(page_index, 0) * page_size
    return rows[start:start + page_size]


def page_count(total: int, page_size: int = 10) -> int:
    if page_size <= 0 or total == 0:
        return 1
    return (total + page_size - 1) // page_size
