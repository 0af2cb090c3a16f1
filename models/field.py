from sqlalchemy import Column, Integer, String, Boolean, JSON, DateTime, func
from db.init import Base
from pydantic import BaseModel, Field
from typing import List, Optional

FIELD_TYPES = ("text", "number", "email", "date", "textarea", "select")


class CustomField(Base):
    __tablename__ = "custom_fields"

    id = Column(Integer, primary_key=True, index=True)
    field_name = Column(String(100), unique=True, nullable=False)
    field_type = Column(String(20), nullable=False)
    field_label = Column(String(150), nullable=False)
    is_required = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    field_options = Column(JSON, nullable=True)  # list of strings, select only
    created_at = Column(DateTime, server_default=func.now())


class FieldCreate(BaseModel):
    field_name: Optional[str] = None
    field_type: Optional[str] = None
    field_label: Optional[str] = None
    is_required: bool = False
    is_active: bool = True
    field_options: Optional[List[str]] = None


class FieldUpdate(BaseModel):
    field_name: Optional[str] = None
    field_type: Optional[str] = None
    field_label: Optional[str] = None
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None
    field_options: Optional[List[str]] = None


class FieldOrder(BaseModel):
    id: int
    display_order: int


class FieldReorderRequest(BaseModel):
    fieldOrders: List[FieldOrder] = Field(default_factory=list)
