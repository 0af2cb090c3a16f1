from sqlalchemy import Column, Integer, String, DateTime, func
from db.init import Base
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

USER_ROLES = ("admin", "user")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150))
    email = Column(String(150), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), default="user", nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserCreate(RegisterRequest):
    role: str = "user"
