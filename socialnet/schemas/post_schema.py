# socialnet/schemas/post_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional

from socialnet.models.post import Post, Comment
from socialnet.schemas.common import rfc3339


class PostCreate(BaseModel):
    content: str
    visibility: str = "public"  # public or private
    group_id: Optional[str] = None
    media: List[str] = Field(default_factory=list)  # urls, already uploaded


class PostUpdate(BaseModel):
    content: str
    visibility: Optional[str] = None
    media: Optional[List[str]] = None


class PostRead(BaseModel):
    id: str
    author_id: str
    author_name: str
    author_avatar: str
    content: str
    visibility: str
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    media: List[str]
    likes_count: int
    comments_count: int
    is_liked: bool = False
    created_at: str
    updated_at: str

    @classmethod
    def from_post(cls, post: Post, is_liked: bool = False) -> "PostRead":
        return cls(
            id=post.id,
            author_id=post.author_id,
            author_name=post.author_name,
            author_avatar=post.author_avatar,
            content=post.content,
            visibility=post.visibility,
            group_id=post.group_id,
            group_name=post.group_name,
            media=list(post.media or []),
            likes_count=post.likes_count,
            comments_count=post.comments_count,
            is_liked=is_liked,
            created_at=rfc3339(post.created_at),
            updated_at=rfc3339(post.updated_at),
        )


class CommentCreate(BaseModel):
    content: str


class CommentRead(BaseModel):
    id: str
    post_id: str
    author_id: str
    author_name: str
    author_avatar: str
    content: str
    created_at: str

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentRead":
        return cls(
            id=comment.id,
            post_id=comment.post_id,
            author_id=comment.author_id,
            author_name=comment.author_name,
            author_avatar=comment.author_avatar,
            content=comment.content,
            created_at=rfc3339(comment.created_at),
        )


class LikeResponse(BaseModel):
    success: bool = True
    likes_count: int
