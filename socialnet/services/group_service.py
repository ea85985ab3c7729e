# socialnet/services/group_service.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import structlog
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from socialnet.models.group import (
    Group,
    GroupMember,
    GroupPost,
    GroupPostMedia,
    ROLE_ADMIN,
    ROLE_CREATOR,
    ROLE_MEMBER,
)
from socialnet.infrastructure.groups_repo import GroupsRepository
from socialnet.UAA.repository import UserRepository
from socialnet.services.errors import AlreadyExists, Internal, InvalidArgument, NotFound, PermissionDenied
from socialnet.services.pagination import Pagination

logger = structlog.get_logger(__name__)

# comments attached to each post in a group feed
GROUP_POST_COMMENTS_LIMIT = 100


@dataclass
class GroupDetails:
    group: Group
    members_count: int
    posts_count: int
    is_member: bool
    creator_name: str


@dataclass
class MemberInfo:
    user_id: str
    name: str
    avatar: str
    role: str
    joined_at: datetime


@dataclass
class CommentInfo:
    id: str
    author_id: str
    author_name: str
    author_avatar: str
    content: str
    created_at: datetime


@dataclass
class GroupPostView:
    post: GroupPost
    author_name: str
    author_avatar: str
    media: List[str] = field(default_factory=list)
    likes_count: int = 0
    is_liked: bool = False
    comments_count: int = 0
    comments: List[CommentInfo] = field(default_factory=list)


class GroupService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = GroupsRepository(session)
        self.users = UserRepository(session)

    async def _get_group(self, group_id: str) -> Group:
        group = await self.repo.get_group(group_id)
        if not group:
            raise NotFound("group not found")
        return group

    async def _store(self, coro, event: str, **kw):
        try:
            return await coro
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception(event, error=str(e), **kw)
            raise Internal("storage error")

    async def create_group(self, creator_id: str, name: str, description: str = "", avatar: str = "") -> Group:
        if not creator_id:
            raise InvalidArgument("creator id is required")
        if not name:
            raise InvalidArgument("group name is required")

        group = Group(name=name, description=description or "", avatar=avatar or "", creator_id=creator_id)
        created = await self._store(self.repo.create_group(group), "group_create_failed", creator_id=creator_id)
        group_id = created.id
        # a failed enrollment rolls back and would expire the loaded row
        self.session.expunge(created)

        try:
            await self.repo.add_member(GroupMember(group_id=group_id, user_id=creator_id, role=ROLE_CREATOR))
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("group_creator_enroll_failed", group_id=group_id, error=str(e))

        logger.info("group_created", group_id=group_id, creator_id=creator_id)
        return created

    async def get_group(self, group_id: str, viewer_id: Optional[str] = None) -> GroupDetails:
        group = await self._get_group(group_id)
        members_count = await self.repo.count_members(group_id)
        posts_count = await self.repo.count_posts(group_id)
        is_member = bool(viewer_id) and await self.repo.is_member(group_id, viewer_id)
        creator = await self.users.get_by_id(group.creator_id)
        return GroupDetails(
            group=group,
            members_count=members_count,
            posts_count=posts_count,
            is_member=is_member,
            creator_name=creator.name if creator else "",
        )

    async def get_groups(
        self, query: str = "", page: Optional[int] = None, limit: Optional[int] = None
    ) -> Tuple[List[Group], int, Pagination]:
        pg = Pagination.from_request(page, limit)
        groups, count = await self.repo.list_groups(query or "", pg.offset, pg.limit)
        return groups, count, pg

    async def update_group(
        self,
        group_id: str,
        requester_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> Group:
        group = await self._get_group(group_id)
        member = await self.repo.get_member(group_id, requester_id)
        if not member or member.role not in (ROLE_ADMIN, ROLE_CREATOR):
            raise PermissionDenied("not authorized to update this group")

        if name:
            group.name = name
        if description:
            group.description = description
        if avatar:
            group.avatar = avatar
        updated = await self._store(self.repo.update_group(group), "group_update_failed", group_id=group_id)
        logger.info("group_updated", group_id=group_id)
        return updated

    async def delete_group(self, group_id: str, requester_id: str) -> bool:
        group = await self._get_group(group_id)
        if group.creator_id != requester_id:
            raise PermissionDenied("only the group creator can delete this group")
        await self._store(self.repo.soft_delete_group(group), "group_delete_failed", group_id=group_id)
        logger.info("group_deleted", group_id=group_id)
        return True

    async def join_group(self, group_id: str, user_id: str) -> int:
        await self._get_group(group_id)
        if await self.repo.is_member(group_id, user_id):
            raise AlreadyExists("already a member of this group")
        try:
            await self.repo.add_member(GroupMember(group_id=group_id, user_id=user_id, role=ROLE_MEMBER))
        except IntegrityError:
            await self.session.rollback()
            raise AlreadyExists("already a member of this group")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("group_join_failed", group_id=group_id, error=str(e))
            raise Internal("storage error")
        logger.info("group_joined", group_id=group_id, user_id=user_id)
        return await self.repo.count_members(group_id)

    async def leave_group(self, group_id: str, user_id: str) -> int:
        await self._get_group(group_id)
        member = await self.repo.get_member(group_id, user_id)
        if not member:
            raise NotFound("not a member of this group")
        if member.role == ROLE_CREATOR:
            raise PermissionDenied("creator cannot leave the group")
        await self._store(self.repo.remove_member(group_id, user_id), "group_leave_failed", group_id=group_id)
        logger.info("group_left", group_id=group_id, user_id=user_id)
        return await self.repo.count_members(group_id)

    async def get_group_members(
        self, group_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> Tuple[List[MemberInfo], int, Pagination]:
        await self._get_group(group_id)
        pg = Pagination.from_request(page, limit)
        members, count = await self.repo.list_members(group_id, pg.offset, pg.limit)
        users = await self.users.get_many(m.user_id for m in members)
        items = []
        for m in members:
            user = users.get(m.user_id)
            items.append(
                MemberInfo(
                    user_id=m.user_id,
                    name=user.name if user else "",
                    avatar=user.avatar if user else "",
                    role=m.role,
                    joined_at=m.joined_at,
                )
            )
        return items, count, pg

    async def create_group_post(
        self, group_id: str, requester_id: str, content: str, media: Optional[Sequence[str]] = None
    ) -> GroupPostView:
        await self._get_group(group_id)
        if not await self.repo.is_member(group_id, requester_id):
            raise PermissionDenied("only group members can post")
        if not content:
            raise InvalidArgument("content is required")

        post = await self._store(
            self.repo.create_post(GroupPost(group_id=group_id, author_id=requester_id, content=content)),
            "group_post_create_failed",
            group_id=group_id,
        )
        post_id = post.id
        self.session.expunge(post)
        stored_media = []
        for position, url in enumerate(media or []):
            try:
                await self.repo.add_post_media(GroupPostMedia(post_id=post_id, media_url=url, position=position))
                stored_media.append(url)
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error("group_post_media_failed", post_id=post_id, position=position, error=str(e))

        author = await self.users.get_by_id(requester_id)
        logger.info("group_post_created", group_id=group_id, post_id=post_id)
        return GroupPostView(
            post=post,
            author_name=author.name if author else "",
            author_avatar=author.avatar if author else "",
            media=stored_media,
        )

    async def get_group_posts(
        self,
        group_id: str,
        requester_id: Optional[str],
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[GroupPostView], int, Pagination]:
        await self._get_group(group_id)
        if not requester_id or not await self.repo.is_member(group_id, requester_id):
            raise PermissionDenied("only group members can view posts")

        pg = Pagination.from_request(page, limit)
        posts, count = await self.repo.list_posts(group_id, pg.offset, pg.limit)

        views = []
        for post in posts:
            media = await self.repo.get_post_media(post.id)
            likes = await self.repo.get_post_likes(post.id)
            comments, comments_count = await self.repo.get_post_comments(post.id, 0, GROUP_POST_COMMENTS_LIMIT)
            views.append((post, media, likes, comments, comments_count))

        author_ids = {p.author_id for p, *_ in views}
        for _, _, _, comments, _ in views:
            author_ids.update(c.author_id for c in comments)
        users = await self.users.get_many(author_ids)

        def card(user_id: str) -> Tuple[str, str]:
            user = users.get(user_id)
            return (user.name, user.avatar) if user else ("", "")

        items = []
        for post, media, likes, comments, comments_count in views:
            name, avatar = card(post.author_id)
            items.append(
                GroupPostView(
                    post=post,
                    author_name=name,
                    author_avatar=avatar,
                    media=[m.media_url for m in media],
                    likes_count=len(likes),
                    is_liked=any(like.user_id == requester_id for like in likes),
                    comments_count=comments_count,
                    comments=[
                        CommentInfo(
                            id=c.id,
                            author_id=c.author_id,
                            author_name=card(c.author_id)[0],
                            author_avatar=card(c.author_id)[1],
                            content=c.content,
                            created_at=c.created_at,
                        )
                        for c in comments
                    ],
                )
            )
        return items, count, pg
