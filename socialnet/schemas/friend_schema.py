# socialnet/schemas/friend_schema.py
from pydantic import BaseModel

from socialnet.schemas.common import rfc3339
from socialnet.services.friend_service import BlockedInfo, FriendInfo, FriendRequestView


class FriendRequestCreate(BaseModel):
    receiver_id: str


class FriendRequestRead(BaseModel):
    id: str
    sender_id: str
    sender_name: str
    sender_avatar: str
    receiver_id: str
    receiver_name: str
    receiver_avatar: str
    status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_view(cls, view: FriendRequestView) -> "FriendRequestRead":
        r = view.request
        return cls(
            id=r.id,
            sender_id=r.sender_id,
            sender_name=view.sender_name,
            sender_avatar=view.sender_avatar,
            receiver_id=r.receiver_id,
            receiver_name=view.receiver_name,
            receiver_avatar=view.receiver_avatar,
            status=r.status,
            created_at=rfc3339(r.created_at),
            updated_at=rfc3339(r.updated_at),
        )


class FriendRead(BaseModel):
    user_id: str
    name: str
    avatar: str
    email: str
    friends_since: str

    @classmethod
    def from_info(cls, info: FriendInfo) -> "FriendRead":
        return cls(
            user_id=info.user_id,
            name=info.name,
            avatar=info.avatar,
            email=info.email,
            friends_since=rfc3339(info.friends_since),
        )


class BlockedUserRead(BaseModel):
    user_id: str
    name: str
    avatar: str
    blocked_at: str

    @classmethod
    def from_info(cls, info: BlockedInfo) -> "BlockedUserRead":
        return cls(user_id=info.user_id, name=info.name, avatar=info.avatar, blocked_at=rfc3339(info.blocked_at))


class FriendshipStatusRead(BaseModel):
    status: str  # self, friends, pending, blocked, none
    request_id: str = ""
