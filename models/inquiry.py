from sqlalchemy import Column, Integer, String, Text, Date, DateTime, func
from db.init import Base
from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import Any, List, Optional

INQUIRY_STATUSES = ("new", "contacted", "quoted", "won", "lost", "cancelled")


class Inquiry(Base):
    __tablename__ = "inquiries"

    id = Column(Integer, primary_key=True, index=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(50))
    inquiry_text = Column(Text)
    status = Column(String(20), default="new")
    inquiry_date = Column(Date)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class InquiryFieldValue(Base):
    # No FK cascade and no unique (inquiry_id, field_id); rows are managed by the routers.
    __tablename__ = "inquiry_field_values"

    id = Column(Integer, primary_key=True, index=True)
    inquiry_id = Column(Integer, nullable=False, index=True)
    field_id = Column(Integer, nullable=False, index=True)
    field_value = Column(Text)


class CustomFieldEntry(BaseModel):
    field_id: Optional[int] = None
    value: Any = None


class InquiryPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    inquiry_text: Optional[str] = None
    status: Optional[str] = None
    inquiry_date: Optional[date] = None
    custom_fields: Optional[List[CustomFieldEntry]] = Field(default=None, alias="customFields")
