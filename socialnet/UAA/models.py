# socialnet/UAA/models.py
from sqlmodel import SQLModel, Field, Column
from typing import Optional
from datetime import datetime
import uuid
from pydantic import EmailStr
from sqlalchemy import String

from socialnet.models.post import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    name: str = Field(max_length=255)
    email: EmailStr = Field(sa_column=Column(String(255), unique=True, index=True, nullable=False))
    avatar: str = Field(default="", max_length=255)
    provider: str = Field(max_length=50)  # google or microsoft
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None
