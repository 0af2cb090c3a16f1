"""
Column helpers shared by the inquiry list, the settings page and exports.

Sorting treats two kinds of columns with one key:
  - fixed inquiry attributes ("client_name", "inquiry_date", ...)
  - custom field ids (an int, or its decimal string form)

Custom field values are stored as text; the referenced field's type decides
how a value is compared (number, date or case-insensitive text).
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

STANDARD_COLUMNS = ["id", "client_name", "client_email", "client_phone", "status", "inquiry_date", "actions"]
SORTABLE_STANDARD_COLUMNS = ("id", "client_name", "client_email", "client_phone", "status", "inquiry_date")
LEGACY_DATE_COLUMN = "created_at"

SortKey = Union[str, int]


def _get(obj, name, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def to_timestamp(value: Any) -> float:
    """Seconds since the epoch; 0 for empty or unparsable values. Naive values are taken as UTC."""
    if value is None or value == "":
        return 0
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def field_id_from_key(key: SortKey) -> Optional[int]:
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.strip().isdigit():
        return int(key)
    return None


def typed_value(raw: Any, field_type: Optional[str]):
    """Interpret a stored text value according to the field's declared type."""
    if field_type == "number":
        return to_number(raw)
    if field_type == "date":
        return to_timestamp(raw)
    return str(raw or "").lower()


def sort_value(inquiry, key: SortKey, fields: Iterable) -> Any:
    if key == "id":
        return _get(inquiry, "id") or 0
    if key == "inquiry_date":
        return to_timestamp(_get(inquiry, "inquiry_date") or _get(inquiry, "created_at"))
    if key in SORTABLE_STANDARD_COLUMNS:
        return str(_get(inquiry, key) or "").lower()

    field_id = field_id_from_key(key)
    if field_id is None:
        return ""
    field = next((f for f in fields if _get(f, "id") == field_id), None)
    if field is None:
        return ""
    values = _get(inquiry, "customFieldValues") or {}
    raw = values.get(field_id, values.get(str(field_id), ""))
    return typed_value(raw, _get(field, "field_type"))


def sort_inquiries(inquiries: List, key: Optional[SortKey], direction: str = "asc", fields: Iterable = ()) -> List:
    """Stable single-key sort. No key keeps the incoming order."""
    if key is None or key == "":
        return list(inquiries)
    fields = list(fields)
    return sorted(
        inquiries,
        key=lambda inquiry: sort_value(inquiry, key, fields),
        reverse=(direction == "desc"),
    )


def toggle_sort(current: Optional[Dict[str, Any]], column: SortKey) -> Dict[str, Any]:
    # Same column while ascending flips to descending; everything else starts ascending.
    if current and current.get("column") == column and current.get("direction") == "asc":
        return {"column": column, "direction": "desc"}
    return {"column": column, "direction": "asc"}


def order_fields(fields: Iterable, field_order: Optional[List[int]]) -> List:
    """Order by position in field_order; ids missing from it go last, keeping their relative order."""
    positions = {fid: i for i, fid in enumerate(field_order or [])}
    fields = list(fields)
    return sorted(fields, key=lambda f: (0, positions[_get(f, "id")]) if _get(f, "id") in positions else (1, 0))


def visible_fields(fields: Iterable, preferences: Dict[str, Any]) -> List:
    visible = set(preferences.get("visibleFields") or [])
    return order_fields([f for f in fields if _get(f, "id") in visible], preferences.get("fieldOrder"))


def visible_standard_columns(preferences: Dict[str, Any]) -> List[str]:
    columns = preferences.get("standardColumns") or {}
    order = preferences.get("standardColumnOrder") or STANDARD_COLUMNS
    return [key for key in order if columns.get(key)]


def migrate_standard_columns(columns: Optional[Dict[str, bool]]) -> Dict[str, bool]:
    """Return a copy with the legacy created-date key moved onto inquiry_date."""
    columns = dict(columns or {})
    if LEGACY_DATE_COLUMN in columns and "inquiry_date" not in columns:
        columns["inquiry_date"] = columns.pop(LEGACY_DATE_COLUMN)
    return columns
