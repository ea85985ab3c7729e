# socialnet/models/friend.py
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import Index, text

from socialnet.models.post import new_id, utcnow

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"


class FriendRequest(SQLModel, table=True):
    __tablename__ = "friend_requests"
    # a pair keeps its row after rejection, so it cannot be re-requested
    __table_args__ = (
        Index(
            "uq_friend_requests_sender_receiver_live",
            "sender_id",
            "receiver_id",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    sender_id: str = Field(index=True, max_length=36)
    receiver_id: str = Field(index=True, max_length=36)
    status: str = Field(default=STATUS_PENDING, index=True, max_length=16)  # pending, accepted, rejected
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None


class Friendship(SQLModel, table=True):
    __tablename__ = "friendships"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    friend_id: str = Field(index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = None


class BlockedUser(SQLModel, table=True):
    __tablename__ = "blocked_users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    blocked_user_id: str = Field(index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow)
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = None
