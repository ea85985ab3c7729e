# socialnet/infrastructure/friends_repo.py
from typing import List, Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select, col
from sqlalchemy import func, update, and_, or_

from socialnet.models.friend import FriendRequest, Friendship, BlockedUser, STATUS_PENDING
from socialnet.models.post import utcnow


class FriendsRepository:
    """
    Repository for friend requests, friendships and blocks.
    All methods are async and expect an AsyncSession to be injected from the outside.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _count(self, model, where) -> int:
        q = select(func.count()).select_from(model).where(where)
        return (await self.session.execute(q)).scalar_one()

    # --- requests ---
    async def create_request(self, request: FriendRequest) -> FriendRequest:
        self.session.add(request)
        await self.session.commit()
        await self.session.refresh(request)
        return request

    async def get_request(self, request_id: str) -> Optional[FriendRequest]:
        q = select(FriendRequest).where(
            FriendRequest.id == request_id, FriendRequest.is_deleted == False  # noqa: E712
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_request_for_pair(self, sender_id: str, receiver_id: str) -> Optional[FriendRequest]:
        """Any live request from sender to receiver, whatever its status."""
        q = select(FriendRequest).where(
            FriendRequest.sender_id == sender_id,
            FriendRequest.receiver_id == receiver_id,
            FriendRequest.is_deleted == False,  # noqa: E712
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list_received_requests(
        self, receiver_id: str, status: str, offset: int, limit: int
    ) -> Tuple[List[FriendRequest], int]:
        where = and_(FriendRequest.receiver_id == receiver_id, FriendRequest.is_deleted == False)  # noqa: E712
        if status:
            where = and_(where, FriendRequest.status == status)
        count = await self._count(FriendRequest, where)
        q = (
            select(FriendRequest)
            .where(where)
            .order_by(col(FriendRequest.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    async def update_request_status(self, request: FriendRequest, status: str) -> FriendRequest:
        request.status = status
        request.updated_at = utcnow()
        self.session.add(request)
        await self.session.commit()
        await self.session.refresh(request)
        return request

    # --- friendships ---
    async def create_friendship_pair(self, user_id: str, friend_id: str) -> None:
        self.session.add(Friendship(user_id=user_id, friend_id=friend_id))
        self.session.add(Friendship(user_id=friend_id, friend_id=user_id))
        await self.session.commit()

    async def are_friends(self, user_id: str, friend_id: str) -> bool:
        return await self._count(
            Friendship,
            and_(
                Friendship.user_id == user_id,
                Friendship.friend_id == friend_id,
                Friendship.is_deleted == False,  # noqa: E712
            ),
        ) > 0

    async def delete_friendship_pair(self, user_id: str, friend_id: str) -> None:
        await self.session.execute(
            update(Friendship)
            .where(
                or_(
                    and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
                    and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
                ),
                Friendship.is_deleted == False,  # noqa: E712
            )
            .values(is_deleted=True, deleted_at=utcnow())
        )
        await self.session.commit()

    async def list_friendships(self, user_id: str, offset: int, limit: int) -> Tuple[List[Friendship], int]:
        where = and_(Friendship.user_id == user_id, Friendship.is_deleted == False)  # noqa: E712
        count = await self._count(Friendship, where)
        q = (
            select(Friendship)
            .where(where)
            .order_by(col(Friendship.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    async def friend_ids(self, user_id: str) -> List[str]:
        q = select(Friendship.friend_id).where(
            Friendship.user_id == user_id, Friendship.is_deleted == False  # noqa: E712
        )
        res = await self.session.execute(q)
        return list(res.scalars().all())

    # --- blocks ---
    async def block(self, blocked: BlockedUser) -> BlockedUser:
        self.session.add(blocked)
        await self.session.commit()
        await self.session.refresh(blocked)
        return blocked

    async def is_blocked(self, user_id: str, blocked_user_id: str) -> bool:
        return await self._count(
            BlockedUser,
            and_(
                BlockedUser.user_id == user_id,
                BlockedUser.blocked_user_id == blocked_user_id,
                BlockedUser.is_deleted == False,  # noqa: E712
            ),
        ) > 0

    async def unblock(self, user_id: str, blocked_user_id: str) -> None:
        await self.session.execute(
            update(BlockedUser)
            .where(
                BlockedUser.user_id == user_id,
                BlockedUser.blocked_user_id == blocked_user_id,
                BlockedUser.is_deleted == False,  # noqa: E712
            )
            .values(is_deleted=True, deleted_at=utcnow())
        )
        await self.session.commit()

    async def list_blocked(self, user_id: str, offset: int, limit: int) -> Tuple[List[BlockedUser], int]:
        where = and_(BlockedUser.user_id == user_id, BlockedUser.is_deleted == False)  # noqa: E712
        count = await self._count(BlockedUser, where)
        q = (
            select(BlockedUser)
            .where(where)
            .order_by(col(BlockedUser.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    # --- classification ---
    async def check_friendship(self, user_id: str, friend_id: str) -> Tuple[str, str]:
        """
        Classify the relation between two users as friends, pending, blocked or none.
        For a pending request (in either direction) the request id is returned too.
        """
        if await self.are_friends(user_id, friend_id):
            return "friends", ""

        q = select(FriendRequest).where(
            or_(
                and_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == friend_id),
                and_(FriendRequest.sender_id == friend_id, FriendRequest.receiver_id == user_id),
            ),
            FriendRequest.status == STATUS_PENDING,
            FriendRequest.is_deleted == False,  # noqa: E712
        )
        res = await self.session.execute(q)
        pending = res.scalars().first()
        if pending:
            return "pending", pending.id

        if await self.is_blocked(user_id, friend_id) or await self.is_blocked(friend_id, user_id):
            return "blocked", ""

        return "none", ""
