from io import BytesIO
from typing import Dict, List, Tuple
import pandas as pd

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"
EXPORT_FORMATS = ("xlsx", "csv")
SHEET_NAME = "Inquiries"

BASE_COLUMNS = [
    "ID",
    "Client Name",
    "Client Email",
    "Client Phone",
    "Inquiry Text",
    "Status",
    "Inquiry Date",
    "Created At",
    "Updated At",
]


def _fmt_datetime(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def field_headers(fields) -> Dict[int, str]:
    """Header per field id. A label already taken gets the field name appended, then a counter."""
    taken = set(BASE_COLUMNS)
    headers = {}
    for f in fields:
        header = f.field_label
        if header in taken:
            header = f"{f.field_label} ({f.field_name})"
        candidate, n = header, 2
        while candidate in taken:
            candidate = f"{header} {n}"
            n += 1
        taken.add(candidate)
        headers[f.id] = candidate
    return headers


def build_rows(inquiries, fields, values: Dict[int, Dict[int, str]]) -> Tuple[List[str], List[dict]]:
    """
    One row per inquiry: fixed columns, then one column per field labelled
    with field_label and holding the stored value or "".
    """
    headers = field_headers(fields)
    columns = BASE_COLUMNS + [headers[f.id] for f in fields]
    rows = []
    for inq in inquiries:
        row = {
            "ID": inq.id,
            "Client Name": inq.client_name,
            "Client Email": inq.client_email,
            "Client Phone": inq.client_phone or "",
            "Inquiry Text": inq.inquiry_text or "",
            "Status": inq.status or "",
            "Inquiry Date": inq.inquiry_date.isoformat() if inq.inquiry_date else "",
            "Created At": _fmt_datetime(inq.created_at),
            "Updated At": _fmt_datetime(inq.updated_at),
        }
        inquiry_values = values.get(inq.id, {})
        for f in fields:
            value = inquiry_values.get(f.id)
            row[headers[f.id]] = value if value is not None else ""
        rows.append(row)
    return columns, rows


def to_csv(columns: List[str], rows: List[dict]) -> bytes:
    df = pd.DataFrame(rows, columns=columns)
    return df.to_csv(index=False).encode("utf-8")


def to_xlsx(columns: List[str], rows: List[dict]) -> bytes:
    df = pd.DataFrame(rows, columns=columns)
    output = BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)

        # Auto-adjust columns width
        worksheet = writer.sheets[SHEET_NAME]
        for i, col in enumerate(df.columns):
            longest = df[col].astype(str).map(len).max() if len(df) else 0
            worksheet.set_column(i, i, max(longest, len(col)) + 2)

    output.seek(0)
    return output.getvalue()
