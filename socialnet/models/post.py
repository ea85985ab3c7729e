# socialnet/models/post.py
from sqlmodel import SQLModel, Field, Column
from typing import List, Optional
import uuid
from datetime import datetime, timezone
from sqlalchemy import Index, JSON, Text, text


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(SQLModel, table=True):
    __tablename__ = "posts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    author_id: str = Field(index=True, max_length=36)
    author_name: str = Field(default="", max_length=255)
    author_avatar: str = Field(default="", max_length=255)
    content: str = Field(sa_column=Column(Text, nullable=False))
    visibility: str = Field(default="public", max_length=16)  # public, private
    group_id: Optional[str] = Field(default=None, index=True, max_length=36)
    group_name: Optional[str] = Field(default=None, max_length=255)
    media: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    likes_count: int = Field(default=0)
    comments_count: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = None


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    post_id: str = Field(foreign_key="posts.id", ondelete="CASCADE", index=True, max_length=36)
    author_id: str = Field(index=True, max_length=36)
    author_name: str = Field(default="", max_length=255)
    author_avatar: str = Field(default="", max_length=255)
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = None


class Like(SQLModel, table=True):
    __tablename__ = "likes"
    # one live like per (post, user); tombstoned rows do not count
    __table_args__ = (
        Index(
            "uq_likes_post_user_live",
            "post_id",
            "user_id",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    post_id: str = Field(foreign_key="posts.id", ondelete="CASCADE", index=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None
