# routers/reports.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy import Date, func
from sqlalchemy.orm import Session

from db.init import get_db
from models.inquiry import Inquiry
from routers.inquiries import active_fields, values_by_inquiry
from utils.deps import get_current_user
from utils.errors import ValidationError
from utils.export import EXPORT_FORMATS, CSV_MEDIA_TYPE, XLSX_MEDIA_TYPE, build_rows, to_csv, to_xlsx
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

created_day = func.date(Inquiry.created_at, type_=Date)


def _date_filtered(q, startDate: Optional[date], endDate: Optional[date]):
    if startDate:
        q = q.filter(created_day >= startDate)
    if endDate:
        q = q.filter(created_day <= endDate)
    return q


# ---------------------------
# Export (xlsx / csv)
# ---------------------------
@router.get("/export")
def export_inquiries(
    db: Session = Depends(get_db),
    payload=Depends(get_current_user),
    status: Optional[str] = None,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
    format: str = "xlsx",
):
    if format not in EXPORT_FORMATS:
        raise ValidationError(f"Unsupported export format '{format}'")

    q = db.query(Inquiry)
    if status:
        q = q.filter(Inquiry.status == status)
    q = _date_filtered(q, startDate, endDate)
    inquiries = q.order_by(Inquiry.created_at.desc(), Inquiry.id.desc()).all()

    fields = active_fields(db)
    values = values_by_inquiry(db, [inq.id for inq in inquiries])
    columns, rows = build_rows(inquiries, fields, values)

    filename = f"inquiries_{date.today().isoformat()}.{format}"
    if format == "csv":
        content, media_type = to_csv(columns, rows), CSV_MEDIA_TYPE
    else:
        content, media_type = to_xlsx(columns, rows), XLSX_MEDIA_TYPE

    logger.info(f"Exported {len(rows)} inquiries as {format}")
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ---------------------------
# Stats (dashboard cards)
# ---------------------------
@router.get("/stats")
def stats(
    db: Session = Depends(get_db),
    payload=Depends(get_current_user),
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
):
    total = _date_filtered(db.query(func.count(Inquiry.id)), startDate, endDate).scalar() or 0

    status_rows = (
        _date_filtered(db.query(Inquiry.status, func.count(Inquiry.id)), startDate, endDate)
        .group_by(Inquiry.status)
        .order_by(Inquiry.status.asc())
        .all()
    )

    date_rows = (
        _date_filtered(db.query(created_day.label("day"), func.count(Inquiry.id)), startDate, endDate)
        .group_by(created_day)
        .order_by(created_day.desc())
        .all()
    )

    return {
        "total": total,
        "statusCounts": [{"status": s, "count": c} for s, c in status_rows],
        "dateCounts": [{"date": d.isoformat() if d else None, "count": c} for d, c in date_rows],
    }
