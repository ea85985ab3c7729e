# socialnet/schemas/group_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional

from socialnet.models.group import Group
from socialnet.schemas.common import rfc3339
from socialnet.services.group_service import GroupDetails, GroupPostView, MemberInfo


class GroupCreate(BaseModel):
    name: str
    description: str = ""
    avatar: str = ""


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    avatar: Optional[str] = None


class GroupRead(BaseModel):
    id: str
    name: str
    description: str
    avatar: str
    creator_id: str
    created_at: str
    updated_at: str

    @classmethod
    def from_group(cls, group: Group) -> "GroupRead":
        return cls(
            id=group.id,
            name=group.name,
            description=group.description,
            avatar=group.avatar,
            creator_id=group.creator_id,
            created_at=rfc3339(group.created_at),
            updated_at=rfc3339(group.updated_at),
        )


class GroupDetailsRead(GroupRead):
    members_count: int
    posts_count: int
    is_member: bool
    creator_name: str

    @classmethod
    def from_details(cls, details: GroupDetails) -> "GroupDetailsRead":
        base = GroupRead.from_group(details.group).model_dump()
        return cls(
            **base,
            members_count=details.members_count,
            posts_count=details.posts_count,
            is_member=details.is_member,
            creator_name=details.creator_name,
        )


class MembersCountResponse(BaseModel):
    success: bool = True
    members_count: int


class MemberRead(BaseModel):
    user_id: str
    name: str
    avatar: str
    role: str
    joined_at: str

    @classmethod
    def from_info(cls, info: MemberInfo) -> "MemberRead":
        return cls(
            user_id=info.user_id,
            name=info.name,
            avatar=info.avatar,
            role=info.role,
            joined_at=rfc3339(info.joined_at),
        )


class GroupPostCreate(BaseModel):
    content: str
    media: List[str] = Field(default_factory=list)


class GroupCommentRead(BaseModel):
    id: str
    author_id: str
    author_name: str
    author_avatar: str
    content: str
    created_at: str


class GroupPostRead(BaseModel):
    id: str
    group_id: str
    author_id: str
    author_name: str
    author_avatar: str
    content: str
    media: List[str]
    likes_count: int
    is_liked: bool
    comments_count: int
    comments: List[GroupCommentRead]
    created_at: str

    @classmethod
    def from_view(cls, view: GroupPostView) -> "GroupPostRead":
        post = view.post
        return cls(
            id=post.id,
            group_id=post.group_id,
            author_id=post.author_id,
            author_name=view.author_name,
            author_avatar=view.author_avatar,
            content=post.content,
            media=view.media,
            likes_count=view.likes_count,
            is_liked=view.is_liked,
            comments_count=view.comments_count,
            comments=[
                GroupCommentRead(
                    id=c.id,
                    author_id=c.author_id,
                    author_name=c.author_name,
                    author_avatar=c.author_avatar,
                    content=c.content,
                    created_at=rfc3339(c.created_at),
                )
                for c in view.comments
            ],
            created_at=rfc3339(post.created_at),
        )
