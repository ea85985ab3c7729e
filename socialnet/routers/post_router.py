# socialnet/routers/post_router.py
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from socialnet.dependencies.db import get_session_dep
from socialnet.dependencies.auth import Principal, Viewer, get_current_principal, get_viewer
from socialnet.dependencies.paging import PageParams, get_page_params
from socialnet.schemas.common import Page, SuccessResponse
from socialnet.schemas.post_schema import (
    CommentCreate,
    CommentRead,
    LikeResponse,
    PostCreate,
    PostRead,
    PostUpdate,
)
from socialnet.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=Page[PostRead])
async def list_posts(
    author_id: Optional[str] = None,
    group_id: Optional[str] = None,
    visibility: Optional[str] = None,
    paging: PageParams = Depends(get_page_params),
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session_dep),
):
    svc = PostService(session)
    items, count, pg = await svc.get_posts(
        viewer_id=viewer.user_id,
        author_id=author_id,
        group_id=group_id,
        visibility=visibility,
        page=paging.page,
        limit=paging.limit,
        friend_ids=viewer.friend_ids,
    )
    return Page[PostRead].build([PostRead.from_post(p, liked) for p, liked in items], count, pg)


@router.post("", response_model=PostRead, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    post = await PostService(session).create_post(
        author_id=principal.user_id,
        content=payload.content,
        visibility=payload.visibility,
        group_id=payload.group_id,
        media=payload.media,
    )
    return PostRead.from_post(post)


@router.get("/{post_id}", response_model=PostRead)
async def get_post(post_id: str, viewer: Viewer = Depends(get_viewer), session: AsyncSession = Depends(get_session_dep)):
    post, is_liked = await PostService(session).get_post(post_id, viewer.user_id, viewer.friend_ids)
    return PostRead.from_post(post, is_liked)


@router.put("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    svc = PostService(session)
    post = await svc.update_post(post_id, principal.user_id, payload.content, payload.visibility, payload.media)
    return PostRead.from_post(post, await svc.is_liked(post.id, principal.user_id))


@router.delete("/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    await PostService(session).delete_post(post_id, principal.user_id)
    return SuccessResponse(message="post deleted")


@router.get("/{post_id}/comments", response_model=Page[CommentRead])
async def list_comments(
    post_id: str,
    paging: PageParams = Depends(get_page_params),
    session: AsyncSession = Depends(get_session_dep),
):
    items, count, pg = await PostService(session).get_comments(post_id, paging.page, paging.limit)
    return Page[CommentRead].build([CommentRead.from_comment(c) for c in items], count, pg)


@router.post("/{post_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    payload: CommentCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    comment = await PostService(session).add_comment(post_id, principal.user_id, payload.content)
    return CommentRead.from_comment(comment)


@router.delete("/{post_id}/comments/{comment_id}", response_model=SuccessResponse)
async def delete_comment(
    post_id: str,
    comment_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    await PostService(session).delete_comment(comment_id, post_id, principal.user_id)
    return SuccessResponse(message="comment deleted")


@router.post("/{post_id}/like", response_model=LikeResponse)
async def like_post(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    likes_count = await PostService(session).like_post(post_id, principal.user_id)
    return LikeResponse(likes_count=likes_count)


@router.delete("/{post_id}/like", response_model=LikeResponse)
async def unlike_post(
    post_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    likes_count = await PostService(session).unlike_post(post_id, principal.user_id)
    return LikeResponse(likes_count=likes_count)
