# socialnet/routers/friend_router.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from socialnet.dependencies.db import get_session_dep
from socialnet.dependencies.auth import Principal, get_current_principal
from socialnet.dependencies.paging import PageParams, get_page_params
from socialnet.schemas.common import Page, SuccessResponse
from socialnet.schemas.friend_schema import (
    BlockedUserRead,
    FriendRead,
    FriendRequestCreate,
    FriendRequestRead,
    FriendshipStatusRead,
)
from socialnet.services.friend_service import FriendService

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=Page[FriendRead])
async def list_friends(
    paging: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    friends, count, pg = await FriendService(session).get_friends(principal.user_id, paging.page, paging.limit)
    return Page[FriendRead].build([FriendRead.from_info(f) for f in friends], count, pg)


@router.get("/requests", response_model=Page[FriendRequestRead])
async def list_friend_requests(
    status_filter: str = Query("", alias="status"),
    paging: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    svc = FriendService(session)
    views, count, pg = await svc.get_friend_requests(principal.user_id, status_filter, paging.page, paging.limit)
    return Page[FriendRequestRead].build([FriendRequestRead.from_view(v) for v in views], count, pg)


@router.post("/requests", response_model=FriendRequestRead, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    payload: FriendRequestCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    view = await FriendService(session).send_friend_request(principal.user_id, payload.receiver_id)
    return FriendRequestRead.from_view(view)


@router.put("/requests/{request_id}/accept", response_model=FriendRequestRead)
async def accept_friend_request(
    request_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    view = await FriendService(session).accept_friend_request(request_id, principal.user_id)
    return FriendRequestRead.from_view(view)


@router.put("/requests/{request_id}/reject", response_model=FriendRequestRead)
async def reject_friend_request(
    request_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    view = await FriendService(session).reject_friend_request(request_id, principal.user_id)
    return FriendRequestRead.from_view(view)


@router.get("/status/{user_id}", response_model=FriendshipStatusRead)
async def friendship_status(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    state, request_id = await FriendService(session).check_friendship(principal.user_id, user_id)
    return FriendshipStatusRead(status=state, request_id=request_id)


@router.get("/blocked", response_model=Page[BlockedUserRead])
async def list_blocked(
    paging: PageParams = Depends(get_page_params),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    rows, count, pg = await FriendService(session).get_blocked_users(principal.user_id, paging.page, paging.limit)
    return Page[BlockedUserRead].build([BlockedUserRead.from_info(b) for b in rows], count, pg)


@router.post("/block/{user_id}", response_model=SuccessResponse)
async def block_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    await FriendService(session).block_user(principal.user_id, user_id)
    return SuccessResponse(message="user blocked")


@router.delete("/block/{user_id}", response_model=SuccessResponse)
async def unblock_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    await FriendService(session).unblock_user(principal.user_id, user_id)
    return SuccessResponse(message="user unblocked")


@router.delete("/{friend_id}", response_model=SuccessResponse)
async def remove_friend(
    friend_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    await FriendService(session).remove_friend(principal.user_id, friend_id)
    return SuccessResponse(message="friend removed")
