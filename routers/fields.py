from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from db.init import get_db
from models.field import CustomField, FieldCreate, FieldUpdate, FieldReorderRequest, FIELD_TYPES
from models.inquiry import InquiryFieldValue
from utils.deps import role_required, get_current_user
from utils.errors import ValidationError, NotFoundError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

NON_NULLABLE_ATTRIBUTES = ("field_name", "field_type", "field_label", "is_required", "is_active", "display_order")


def serialize_field(f: CustomField) -> dict:
    return {
        "id": f.id,
        "field_name": f.field_name,
        "field_type": f.field_type,
        "field_label": f.field_label,
        "is_required": bool(f.is_required),
        "is_active": bool(f.is_active),
        "display_order": f.display_order,
        "field_options": f.field_options,
        "created_at": f.created_at,
    }


def normalize_field_name(name: str) -> str:
    return "_".join(name.strip().lower().split())


@router.get("/")
def get_all(db: Session = Depends(get_db), payload=Depends(get_current_user)):
    fields = db.query(CustomField).order_by(CustomField.display_order.asc(), CustomField.id.asc()).all()
    return {"fields": [serialize_field(f) for f in fields]}


@router.post(
    "/",
    dependencies=[Depends(role_required("admin"))],
    status_code=status.HTTP_201_CREATED,
)
def create(data: FieldCreate, db: Session = Depends(get_db)):
    if not data.field_name or not data.field_type or not data.field_label:
        raise ValidationError("Field name, type, and label are required")
    if data.field_type not in FIELD_TYPES:
        raise ValidationError(f"Invalid field type '{data.field_type}'")
    if data.field_type == "select" and not data.field_options:
        raise ValidationError("Dropdown options are required for select field type")

    field_name = normalize_field_name(data.field_name)
    if db.query(CustomField.id).filter(CustomField.field_name == field_name).first():
        raise ValidationError(f"Field name '{field_name}' already exists")

    max_order = db.query(func.max(CustomField.display_order)).scalar()

    f = CustomField(
        field_name=field_name,
        field_type=data.field_type,
        field_label=data.field_label,
        is_required=data.is_required,
        is_active=data.is_active,
        display_order=(max_order or 0) + 1,
        field_options=list(data.field_options) if data.field_type == "select" else None,
    )
    db.add(f)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Conflict: field name already exists") from e
    db.refresh(f)

    logger.info(f"Created field {f.id} ({f.field_name}, {f.field_type})")
    return {"message": "Field created successfully", "id": f.id}


# Declared before "/{id}" routes so "reorder" is never taken for an id.
@router.post("/reorder", dependencies=[Depends(role_required("admin"))])
def reorder(data: FieldReorderRequest, db: Session = Depends(get_db)):
    # Each pair is applied as given; duplicates, gaps and unknown ids are not checked.
    for item in data.fieldOrders:
        db.query(CustomField).filter(CustomField.id == item.id).update(
            {CustomField.display_order: item.display_order}, synchronize_session=False
        )
    db.commit()
    return {"message": "Field order updated successfully"}


@router.put("/{id}", dependencies=[Depends(role_required("admin"))])
def update(id: int, data: FieldUpdate, db: Session = Depends(get_db)):
    f = db.get(CustomField, id)
    if not f:
        raise NotFoundError("Field not found")

    changes = data.model_dump(exclude_unset=True)
    nulls = [k for k in NON_NULLABLE_ATTRIBUTES if k in changes and changes[k] is None]
    if nulls:
        raise ValidationError(f"{', '.join(nulls)} cannot be null")

    if "field_type" in changes and changes["field_type"] not in FIELD_TYPES:
        raise ValidationError(f"Invalid field type '{changes['field_type']}'")

    field_type = changes.get("field_type", f.field_type)
    options = changes["field_options"] if "field_options" in changes else f.field_options
    if field_type == "select" and not options:
        raise ValidationError("Dropdown options are required for select field type")

    # field_name uniqueness is only checked on create.
    for k, v in changes.items():
        setattr(f, k, v)
    if field_type != "select":
        f.field_options = None

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Conflict: field name already exists") from e

    logger.info(f"Updated field {id}: {sorted(changes)}")
    return {"message": "Field updated successfully"}


@router.delete("/{id}", dependencies=[Depends(role_required("admin"))])
def delete(id: int, db: Session = Depends(get_db)):
    # Values first, then the definition; an unknown id is not an error.
    db.query(InquiryFieldValue).filter(InquiryFieldValue.field_id == id).delete(synchronize_session=False)
    db.query(CustomField).filter(CustomField.id == id).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Deleted field {id}")
    return {"message": "Field deleted successfully"}
