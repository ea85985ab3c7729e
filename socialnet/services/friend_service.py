# socialnet/services/friend_service.py
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

import structlog
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from socialnet.models.friend import (
    BlockedUser,
    FriendRequest,
    STATUS_ACCEPTED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from socialnet.infrastructure.friends_repo import FriendsRepository
from socialnet.UAA.repository import UserRepository
from socialnet.services.errors import AlreadyExists, Internal, InvalidArgument, NotFound, PermissionDenied
from socialnet.services.pagination import Pagination

logger = structlog.get_logger(__name__)

STATUS_SELF = "self"


@dataclass
class FriendRequestView:
    request: FriendRequest
    sender_name: str
    sender_avatar: str
    receiver_name: str
    receiver_avatar: str


@dataclass
class FriendInfo:
    user_id: str
    name: str
    avatar: str
    email: str
    friends_since: datetime


@dataclass
class BlockedInfo:
    user_id: str
    name: str
    avatar: str
    blocked_at: datetime


class FriendService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = FriendsRepository(session)
        self.users = UserRepository(session)

    async def _store(self, coro, event: str, **kw):
        try:
            return await coro
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception(event, error=str(e), **kw)
            raise Internal("storage error")

    async def _views(self, requests: List[FriendRequest]) -> List[FriendRequestView]:
        ids = set()
        for r in requests:
            ids.update((r.sender_id, r.receiver_id))
        users = await self.users.get_many(ids)

        def card(user_id):
            user = users.get(user_id)
            return (user.name, user.avatar) if user else ("", "")

        views = []
        for r in requests:
            sender_name, sender_avatar = card(r.sender_id)
            receiver_name, receiver_avatar = card(r.receiver_id)
            views.append(FriendRequestView(r, sender_name, sender_avatar, receiver_name, receiver_avatar))
        return views

    async def send_friend_request(self, sender_id: str, receiver_id: str) -> FriendRequestView:
        if not sender_id or not receiver_id:
            raise InvalidArgument("sender and receiver are required")
        if sender_id == receiver_id:
            raise InvalidArgument("cannot send friend request to yourself")
        if await self.repo.are_friends(sender_id, receiver_id):
            raise AlreadyExists("already friends")

        status, _ = await self.repo.check_friendship(sender_id, receiver_id)
        if status == STATUS_PENDING:
            raise AlreadyExists("friend request already pending")
        if await self.repo.is_blocked(sender_id, receiver_id) or await self.repo.is_blocked(receiver_id, sender_id):
            raise PermissionDenied("cannot send friend request to this user")
        if await self.repo.get_request_for_pair(sender_id, receiver_id):
            raise AlreadyExists("friend request already exists")

        try:
            created = await self.repo.create_request(FriendRequest(sender_id=sender_id, receiver_id=receiver_id))
        except IntegrityError:
            await self.session.rollback()
            raise AlreadyExists("friend request already exists")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("friend_request_create_failed", sender_id=sender_id, error=str(e))
            raise Internal("storage error")

        logger.info("friend_request_sent", request_id=created.id, sender_id=sender_id, receiver_id=receiver_id)
        return (await self._views([created]))[0]

    async def get_friend_requests(
        self, user_id: str, status: str = "", page: Optional[int] = None, limit: Optional[int] = None
    ) -> Tuple[List[FriendRequestView], int, Pagination]:
        pg = Pagination.from_request(page, limit)
        requests, count = await self.repo.list_received_requests(user_id, status or "", pg.offset, pg.limit)
        return await self._views(requests), count, pg

    async def _pending_for_receiver(self, request_id: str, user_id: str) -> FriendRequest:
        request = await self.repo.get_request(request_id)
        if not request:
            raise NotFound("friend request not found")
        if request.receiver_id != user_id:
            raise PermissionDenied("not authorized to respond to this request")
        if request.status != STATUS_PENDING:
            raise InvalidArgument("friend request is not pending")
        return request

    async def accept_friend_request(self, request_id: str, user_id: str) -> FriendRequestView:
        request = await self._pending_for_receiver(request_id, user_id)
        try:
            await self.repo.create_friendship_pair(request.sender_id, request.receiver_id)
            request = await self.repo.update_request_status(request, STATUS_ACCEPTED)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("friend_request_accept_failed", request_id=request_id, error=str(e))
            raise Internal("storage error")
        logger.info("friend_request_accepted", request_id=request_id)
        return (await self._views([request]))[0]

    async def reject_friend_request(self, request_id: str, user_id: str) -> FriendRequestView:
        request = await self._pending_for_receiver(request_id, user_id)
        request = await self._store(
            self.repo.update_request_status(request, STATUS_REJECTED),
            "friend_request_reject_failed",
            request_id=request_id,
        )
        logger.info("friend_request_rejected", request_id=request_id)
        return (await self._views([request]))[0]

    async def get_friends(
        self, user_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> Tuple[List[FriendInfo], int, Pagination]:
        pg = Pagination.from_request(page, limit)
        rows, count = await self.repo.list_friendships(user_id, pg.offset, pg.limit)
        users = await self.users.get_many(r.friend_id for r in rows)
        items = []
        for r in rows:
            user = users.get(r.friend_id)
            items.append(
                FriendInfo(
                    user_id=r.friend_id,
                    name=user.name if user else "",
                    avatar=user.avatar if user else "",
                    email=user.email if user else "",
                    friends_since=r.created_at,
                )
            )
        return items, count, pg

    async def remove_friend(self, user_id: str, friend_id: str) -> bool:
        if not await self.repo.are_friends(user_id, friend_id):
            raise NotFound("not friends")
        await self._store(
            self.repo.delete_friendship_pair(user_id, friend_id), "friend_remove_failed", user_id=user_id
        )
        logger.info("friend_removed", user_id=user_id, friend_id=friend_id)
        return True

    async def block_user(self, user_id: str, blocked_user_id: str) -> bool:
        if user_id == blocked_user_id:
            raise InvalidArgument("cannot block yourself")
        if await self.repo.is_blocked(user_id, blocked_user_id):
            raise AlreadyExists("user already blocked")

        if await self.repo.are_friends(user_id, blocked_user_id):
            await self._store(
                self.repo.delete_friendship_pair(user_id, blocked_user_id), "friend_remove_failed", user_id=user_id
            )
        try:
            await self.repo.block(BlockedUser(user_id=user_id, blocked_user_id=blocked_user_id))
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("user_block_failed", user_id=user_id, error=str(e))
            raise Internal("storage error")
        logger.info("user_blocked", user_id=user_id, blocked_user_id=blocked_user_id)
        return True

    async def unblock_user(self, user_id: str, blocked_user_id: str) -> bool:
        if not await self.repo.is_blocked(user_id, blocked_user_id):
            raise NotFound("user is not blocked")
        await self._store(self.repo.unblock(user_id, blocked_user_id), "user_unblock_failed", user_id=user_id)
        logger.info("user_unblocked", user_id=user_id, blocked_user_id=blocked_user_id)
        return True

    async def get_blocked_users(
        self, user_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> Tuple[List[BlockedInfo], int, Pagination]:
        pg = Pagination.from_request(page, limit)
        rows, count = await self.repo.list_blocked(user_id, pg.offset, pg.limit)
        users = await self.users.get_many(r.blocked_user_id for r in rows)
        items = []
        for r in rows:
            user = users.get(r.blocked_user_id)
            items.append(
                BlockedInfo(
                    user_id=r.blocked_user_id,
                    name=user.name if user else "",
                    avatar=user.avatar if user else "",
                    blocked_at=r.created_at,
                )
            )
        return items, count, pg

    async def check_friendship(self, user_id: str, friend_id: str) -> Tuple[str, str]:
        if user_id == friend_id:
            return STATUS_SELF, ""
        return await self.repo.check_friendship(user_id, friend_id)

    async def friend_ids(self, user_id: str) -> List[str]:
        if not user_id:
            return []
        return await self.repo.friend_ids(user_id)
