from sqlalchemy import Column, Integer, String, Text, DateTime, func
from db.init import Base
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

PREFERENCES_KEY = "column_preferences"


class AppSetting(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, index=True)
    setting_key = Column(String(100), unique=True, nullable=False)
    setting_value = Column(Text)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PreferenceDocument(BaseModel):
    visibleFields: List[int] = Field(default_factory=list)
    fieldOrder: List[int] = Field(default_factory=list)
    standardColumns: Dict[str, bool] = Field(default_factory=dict)
    standardColumnOrder: Optional[List[str]] = None


class AppSettingsUpdate(BaseModel):
    settings: Dict[str, Optional[str]] = Field(default_factory=dict)
