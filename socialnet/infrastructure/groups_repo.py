# socialnet/infrastructure/groups_repo.py
from typing import List, Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select, col
from sqlalchemy import func, update, and_

from socialnet.models.post import utcnow
from socialnet.models.group import (
    Group,
    GroupMember,
    GroupPost,
    GroupPostMedia,
    GroupPostLike,
    GroupPostComment,
)


class GroupsRepository:
    """
    Repository for groups, their memberships and group-scoped posts.
    All methods are async and expect an AsyncSession to be injected from the outside.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _count(self, model, where) -> int:
        q = select(func.count()).select_from(model).where(where)
        return (await self.session.execute(q)).scalar_one()

    # --- groups ---
    async def create_group(self, group: Group) -> Group:
        self.session.add(group)
        await self.session.commit()
        await self.session.refresh(group)
        return group

    async def get_group(self, group_id: str) -> Optional[Group]:
        q = select(Group).where(Group.id == group_id, Group.is_deleted == False)  # noqa: E712
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list_groups(self, query: str, offset: int, limit: int) -> Tuple[List[Group], int]:
        where = Group.is_deleted == False  # noqa: E712
        if query:
            where = and_(where, col(Group.name).icontains(query, autoescape=True))
        count = await self._count(Group, where)
        q = select(Group).where(where).order_by(col(Group.created_at).desc()).offset(offset).limit(limit)
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    async def update_group(self, group: Group) -> Group:
        group.updated_at = utcnow()
        self.session.add(group)
        await self.session.commit()
        await self.session.refresh(group)
        return group

    async def soft_delete_group(self, group: Group) -> None:
        """Tombstone the group, its memberships and its posts."""
        now = utcnow()
        group.is_deleted = True
        group.deleted_at = now
        self.session.add(group)
        for model in (GroupMember, GroupPost):
            await self.session.execute(
                update(model)
                .where(model.group_id == group.id, model.is_deleted == False)  # noqa: E712
                .values(is_deleted=True, deleted_at=now)
            )
        await self.session.commit()

    # --- members ---
    def _live_member(self, group_id: str, user_id: str):
        return and_(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
            GroupMember.is_deleted == False,  # noqa: E712
        )

    async def add_member(self, member: GroupMember) -> GroupMember:
        self.session.add(member)
        await self.session.commit()
        await self.session.refresh(member)
        return member

    async def get_member(self, group_id: str, user_id: str) -> Optional[GroupMember]:
        res = await self.session.execute(select(GroupMember).where(self._live_member(group_id, user_id)))
        return res.scalar_one_or_none()

    async def is_member(self, group_id: str, user_id: str) -> bool:
        return await self._count(GroupMember, self._live_member(group_id, user_id)) > 0

    async def remove_member(self, group_id: str, user_id: str) -> None:
        await self.session.execute(
            update(GroupMember)
            .where(self._live_member(group_id, user_id))
            .values(is_deleted=True, deleted_at=utcnow())
        )
        await self.session.commit()

    async def count_members(self, group_id: str) -> int:
        return await self._count(
            GroupMember,
            and_(GroupMember.group_id == group_id, GroupMember.is_deleted == False),  # noqa: E712
        )

    async def list_members(self, group_id: str, offset: int, limit: int) -> Tuple[List[GroupMember], int]:
        where = and_(GroupMember.group_id == group_id, GroupMember.is_deleted == False)  # noqa: E712
        count = await self._count(GroupMember, where)
        q = (
            select(GroupMember)
            .where(where)
            .order_by(col(GroupMember.joined_at).asc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    # --- group posts ---
    async def create_post(self, post: GroupPost) -> GroupPost:
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        return post

    async def count_posts(self, group_id: str) -> int:
        return await self._count(
            GroupPost,
            and_(GroupPost.group_id == group_id, GroupPost.is_deleted == False),  # noqa: E712
        )

    async def list_posts(self, group_id: str, offset: int, limit: int) -> Tuple[List[GroupPost], int]:
        where = and_(GroupPost.group_id == group_id, GroupPost.is_deleted == False)  # noqa: E712
        count = await self._count(GroupPost, where)
        q = (
            select(GroupPost)
            .where(where)
            .order_by(col(GroupPost.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    async def add_post_media(self, media: GroupPostMedia) -> GroupPostMedia:
        self.session.add(media)
        await self.session.commit()
        await self.session.refresh(media)
        return media

    async def get_post_media(self, post_id: str) -> List[GroupPostMedia]:
        q = (
            select(GroupPostMedia)
            .where(GroupPostMedia.post_id == post_id, GroupPostMedia.is_deleted == False)  # noqa: E712
            .order_by(col(GroupPostMedia.position).asc())
        )
        res = await self.session.execute(q)
        return list(res.scalars().all())

    async def get_post_likes(self, post_id: str) -> List[GroupPostLike]:
        q = select(GroupPostLike).where(
            GroupPostLike.post_id == post_id, GroupPostLike.is_deleted == False  # noqa: E712
        )
        res = await self.session.execute(q)
        return list(res.scalars().all())

    async def get_post_comments(
        self, post_id: str, offset: int, limit: int
    ) -> Tuple[List[GroupPostComment], int]:
        where = and_(GroupPostComment.post_id == post_id, GroupPostComment.is_deleted == False)  # noqa: E712
        count = await self._count(GroupPostComment, where)
        q = (
            select(GroupPostComment)
            .where(where)
            .order_by(col(GroupPostComment.created_at).asc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

