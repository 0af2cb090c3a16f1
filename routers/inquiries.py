from datetime import date
from typing import Optional, List, Dict, Any

from fastapi import APIRouter, Depends, status
from sqlalchemy import Date, func, or_
from sqlalchemy.orm import Session

from db.init import get_db
from models.field import CustomField
from models.inquiry import Inquiry, InquiryFieldValue, InquiryPayload, INQUIRY_STATUSES
from routers.fields import serialize_field
from utils.columns import sort_inquiries
from utils.deps import get_current_user
from utils.errors import ValidationError, NotFoundError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# Calendar date an inquiry belongs to: its inquiry_date, or the day it was created.
effective_date = func.date(func.coalesce(Inquiry.inquiry_date, Inquiry.created_at), type_=Date)


def serialize_inquiry(inq: Inquiry) -> Dict[str, Any]:
    return {
        "id": inq.id,
        "client_name": inq.client_name,
        "client_email": inq.client_email,
        "client_phone": inq.client_phone,
        "inquiry_text": inq.inquiry_text,
        "status": inq.status,
        "inquiry_date": inq.inquiry_date,
        "created_at": inq.created_at,
        "updated_at": inq.updated_at,
    }


def _check_payload(data: InquiryPayload):
    if not data.client_name or not data.client_email:
        raise ValidationError("Client name and email are required")
    if data.status is not None and data.status not in INQUIRY_STATUSES:
        raise ValidationError(f"Invalid status '{data.status}'")


def active_fields(db: Session) -> List[CustomField]:
    return (
        db.query(CustomField)
        .filter(CustomField.is_active.is_(True))
        .order_by(CustomField.display_order.asc(), CustomField.id.asc())
        .all()
    )


def values_by_inquiry(db: Session, inquiry_ids: List[int]) -> Dict[int, Dict[int, str]]:
    """One batch query for all field values, grouped as {inquiry_id: {field_id: value}}."""
    grouped: Dict[int, Dict[int, str]] = {iid: {} for iid in inquiry_ids}
    if not inquiry_ids:
        return grouped
    rows = (
        db.query(InquiryFieldValue.inquiry_id, InquiryFieldValue.field_id, InquiryFieldValue.field_value)
        .filter(InquiryFieldValue.inquiry_id.in_(inquiry_ids))
        .order_by(InquiryFieldValue.id.asc())
        .all()
    )
    for inquiry_id, field_id, value in rows:
        grouped[inquiry_id][field_id] = value
    return grouped


@router.get("/")
def get_all(
    db: Session = Depends(get_db),
    payload=Depends(get_current_user),
    status: Optional[str] = None,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
    search: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortDir: str = "asc",
):
    q = db.query(Inquiry)

    if status:
        q = q.filter(Inquiry.status == status)
    if startDate:
        q = q.filter(effective_date >= startDate)
    if endDate:
        q = q.filter(effective_date <= endDate)
    if search:
        # Literal substring match: % and _ in the term are not wildcards.
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        q = q.filter(
            or_(
                Inquiry.client_name.ilike(pattern, escape="\\"),
                Inquiry.client_email.ilike(pattern, escape="\\"),
                Inquiry.inquiry_text.ilike(pattern, escape="\\"),
            )
        )

    inquiries = q.order_by(func.coalesce(Inquiry.inquiry_date, Inquiry.created_at).desc(), Inquiry.id.desc()).all()
    fields = active_fields(db)
    values = values_by_inquiry(db, [inq.id for inq in inquiries])

    rows = []
    for inq in inquiries:
        row = serialize_inquiry(inq)
        row["customFieldValues"] = values[inq.id]
        rows.append(row)

    if sortBy:
        # Sorting may target any field, not only the active ones.
        all_fields = db.query(CustomField).all()
        rows = sort_inquiries(rows, sortBy, sortDir, all_fields)

    return {"inquiries": rows, "fields": [serialize_field(f) for f in fields]}


@router.get("/{id}")
def get_by_id(id: int, db: Session = Depends(get_db), payload=Depends(get_current_user)):
    inq = db.get(Inquiry, id)
    if not inq:
        raise NotFoundError("Inquiry not found")

    rows = (
        db.query(InquiryFieldValue)
        .filter(InquiryFieldValue.inquiry_id == id)
        .order_by(InquiryFieldValue.id.asc())
        .all()
    )
    inquiry = serialize_inquiry(inq)
    inquiry["customFields"] = [{"field_id": r.field_id, "value": r.field_value} for r in rows]
    return {"inquiry": inquiry}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create(data: InquiryPayload, db: Session = Depends(get_db), payload=Depends(get_current_user)):
    _check_payload(data)

    inq = Inquiry(
        client_name=data.client_name,
        client_email=data.client_email,
        client_phone=data.client_phone or None,
        inquiry_text=data.inquiry_text or None,
        status=data.status or "new",
        inquiry_date=data.inquiry_date or date.today(),
    )
    db.add(inq)
    db.flush()  # assigns inq.id without committing

    # Empty values are not stored on create.
    for entry in data.custom_fields or []:
        if entry.field_id and entry.value:
            db.add(InquiryFieldValue(inquiry_id=inq.id, field_id=entry.field_id, field_value=str(entry.value)))

    db.commit()
    logger.info(f"Created inquiry {inq.id}")
    return {"message": "Inquiry created successfully", "id": inq.id}


@router.put("/{id}")
def update(id: int, data: InquiryPayload, db: Session = Depends(get_db), payload=Depends(get_current_user)):
    inq = db.get(Inquiry, id)
    if not inq:
        raise NotFoundError("Inquiry not found")
    _check_payload(data)

    # Full overwrite: omitted optional columns become null.
    inq.client_name = data.client_name
    inq.client_email = data.client_email
    inq.client_phone = data.client_phone or None
    inq.inquiry_text = data.inquiry_text or None
    inq.status = data.status
    inq.inquiry_date = data.inquiry_date
    db.commit()

    if data.custom_fields is not None:
        # Replace, not merge. Unlike create, an empty string is stored.
        db.query(InquiryFieldValue).filter(InquiryFieldValue.inquiry_id == id).delete(synchronize_session=False)
        db.commit()
        for entry in data.custom_fields:
            if entry.field_id and entry.value is not None:
                db.add(InquiryFieldValue(inquiry_id=id, field_id=entry.field_id, field_value=str(entry.value)))
        db.commit()

    logger.info(f"Updated inquiry {id}")
    return {"message": "Inquiry updated successfully"}


@router.delete("/{id}")
def delete(id: int, db: Session = Depends(get_db), payload=Depends(get_current_user)):
    db.query(InquiryFieldValue).filter(InquiryFieldValue.inquiry_id == id).delete(synchronize_session=False)
    db.query(Inquiry).filter(Inquiry.id == id).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Deleted inquiry {id}")
    return {"message": "Inquiry deleted successfully"}
