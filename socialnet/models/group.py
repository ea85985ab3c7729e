# socialnet/models/group.py
from sqlmodel import SQLModel, Field, Column
from typing import Optional
from datetime import datetime
from sqlalchemy import Index, Text, text

from socialnet.models.post import new_id, utcnow

ROLE_CREATOR = "creator"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


class Group(SQLModel, table=True):
    __tablename__ = "groups"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(index=True, max_length=255)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    avatar: str = Field(default="", max_length=255)
    creator_id: str = Field(index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = None


class GroupMember(SQLModel, table=True):
    __tablename__ = "group_members"
    __table_args__ = (
        Index(
            "uq_group_members_group_user_live",
            "group_id",
            "user_id",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    group_id: str = Field(foreign_key="groups.id", ondelete="CASCADE", index=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    role: str = Field(default=ROLE_MEMBER, max_length=16)  # creator, admin, member
    joined_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None


class GroupPost(SQLModel, table=True):
    __tablename__ = "group_posts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    group_id: str = Field(foreign_key="groups.id", ondelete="CASCADE", index=True, max_length=36)
    author_id: str = Field(index=True, max_length=36)
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = None


class GroupPostMedia(SQLModel, table=True):
    __tablename__ = "group_post_media"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    post_id: str = Field(foreign_key="group_posts.id", ondelete="CASCADE", index=True, max_length=36)
    media_url: str = Field(max_length=1024)
    position: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None


class GroupPostLike(SQLModel, table=True):
    __tablename__ = "group_post_likes"
    __table_args__ = (
        Index(
            "uq_group_post_likes_post_user_live",
            "post_id",
            "user_id",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    post_id: str = Field(foreign_key="group_posts.id", ondelete="CASCADE", index=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None


class GroupPostComment(SQLModel, table=True):
    __tablename__ = "group_post_comments"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    post_id: str = Field(foreign_key="group_posts.id", ondelete="CASCADE", index=True, max_length=36)
    author_id: str = Field(index=True, max_length=36)
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None
