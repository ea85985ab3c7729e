# socialnet/routers/group_router.py
from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from socialnet.dependencies.db import get_session_dep
from socialnet.dependencies.auth import Principal, Viewer, get_current_principal, get_viewer
from socialnet.dependencies.paging import PageParams, get_page_params
from socialnet.schemas.common import Page, SuccessResponse
from socialnet.schemas.group_schema import (
    GroupCreate,
    GroupDetailsRead,
    GroupPostCreate,
    GroupPostRead,
    GroupRead,
    GroupUpdate,
    MemberRead,
    MembersCountResponse,
)
from socialnet.services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=Page[GroupRead])
async def list_groups(
    query: str = "",
    paging: PageParams = Depends(get_page_params),
    session: AsyncSession = Depends(get_session_dep),
):
    groups, count, pg = await GroupService(session).get_groups(query, paging.page, paging.limit)
    return Page[GroupRead].build([GroupRead.from_group(g) for g in groups], count, pg)


@router.post("", response_model=GroupRead, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    group = await GroupService(session).create_group(
        principal.user_id, payload.name, payload.description, payload.avatar
    )
    return GroupRead.from_group(group)


@router.get("/{group_id}", response_model=GroupDetailsRead)
async def get_group(group_id: str, viewer: Viewer = Depends(get_viewer), session: AsyncSession = Depends(get_session_dep)):
    details = await GroupService(session).get_group(group_id, viewer.user_id)
    return GroupDetailsRead.from_details(details)


@router.put("/{group_id}", response_model=GroupRead)
async def update_group(
    group_id: str,
    payload: GroupUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    group = await GroupService(session).update_group(
        group_id, principal.user_id, payload.name, payload.description, payload.avatar
    )
    return GroupRead.from_group(group)


@router.delete("/{group_id}", response_model=SuccessResponse)
async def delete_group(
    group_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    await GroupService(session).delete_group(group_id, principal.user_id)
    return SuccessResponse(message="group deleted")


@router.get("/{group_id}/members", response_model=Page[MemberRead])
async def list_members(
    group_id: str,
    paging: PageParams = Depends(get_page_params),
    session: AsyncSession = Depends(get_session_dep),
):
    members, count, pg = await GroupService(session).get_group_members(group_id, paging.page, paging.limit)
    return Page[MemberRead].build([MemberRead.from_info(m) for m in members], count, pg)


@router.post("/{group_id}/members", response_model=MembersCountResponse)
async def join_group(
    group_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    members_count = await GroupService(session).join_group(group_id, principal.user_id)
    return MembersCountResponse(members_count=members_count)


@router.delete("/{group_id}/members", response_model=MembersCountResponse)
async def leave_group(
    group_id: str,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    members_count = await GroupService(session).leave_group(group_id, principal.user_id)
    return MembersCountResponse(members_count=members_count)


@router.get("/{group_id}/posts", response_model=Page[GroupPostRead])
async def list_group_posts(
    group_id: str,
    paging: PageParams = Depends(get_page_params),
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_session_dep),
):
    posts, count, pg = await GroupService(session).get_group_posts(group_id, viewer.user_id, paging.page, paging.limit)
    return Page[GroupPostRead].build([GroupPostRead.from_view(p) for p in posts], count, pg)


@router.post("/{group_id}/posts", response_model=GroupPostRead, status_code=status.HTTP_201_CREATED)
async def create_group_post(
    group_id: str,
    payload: GroupPostCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_session_dep),
):
    view = await GroupService(session).create_group_post(group_id, principal.user_id, payload.content, payload.media)
    return GroupPostRead.from_view(view)
