# socialnet/services/post_service.py
from typing import Iterable, List, Optional, Sequence, Tuple

import structlog
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from socialnet.models.post import Post, Comment, Like
from socialnet.infrastructure.posts_repo import PostRepository, CommentRepository, LikeRepository
from socialnet.infrastructure.groups_repo import GroupsRepository
from socialnet.UAA.repository import UserRepository
from socialnet.services.errors import AlreadyExists, Internal, InvalidArgument, NotFound, PermissionDenied
from socialnet.services.pagination import Pagination
from socialnet.services.visibility import PUBLIC, VISIBILITIES, is_visible

logger = structlog.get_logger(__name__)


class PostService:
    """
    Posts, comments and likes.

    Every read is passed through the visibility resolver; writes are checked
    against the requester before anything is stored. Like and comment counters
    are maintained after the primary commit and never fail the request.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.posts = PostRepository(session)
        self.comments = CommentRepository(session)
        self.likes = LikeRepository(session)
        self.users = UserRepository(session)
        self.groups = GroupsRepository(session)

    async def _author_card(self, user_id: str) -> Tuple[str, str]:
        user = await self.users.get_by_id(user_id)
        if not user:
            return f"User {user_id}", ""
        return user.name, user.avatar

    async def _get_live_post(self, post_id: str) -> Post:
        post = await self.posts.get_by_id(post_id)
        if not post:
            raise NotFound("post not found")
        return post

    async def _commit_or_internal(self, coro, event: str, **kw):
        try:
            return await coro
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception(event, error=str(e), **kw)
            raise Internal("storage error")

    async def _adjust_counter(self, op, post_id: str, counter: str) -> None:
        try:
            await op(post_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("post_counter_update_failed", post_id=post_id, counter=counter, error=str(e))

    # --- posts ---
    async def create_post(
        self,
        author_id: str,
        content: str,
        visibility: str = PUBLIC,
        group_id: Optional[str] = None,
        media: Optional[Sequence[str]] = None,
    ) -> Post:
        if not author_id:
            raise InvalidArgument("author id is required")
        if not content:
            raise InvalidArgument("content is required")
        visibility = visibility or PUBLIC
        if visibility not in VISIBILITIES:
            raise InvalidArgument("invalid visibility")

        author_name, author_avatar = await self._author_card(author_id)
        group_name = None
        if group_id:
            group = await self.groups.get_group(group_id)
            if group:
                group_name = group.name

        post = Post(
            author_id=author_id,
            author_name=author_name,
            author_avatar=author_avatar,
            content=content,
            visibility=visibility,
            group_id=group_id or None,
            group_name=group_name,
            media=list(media or []),
        )
        created = await self._commit_or_internal(self.posts.create(post), "post_create_failed", author_id=author_id)
        logger.info("post_created", post_id=created.id, author_id=author_id, visibility=visibility)
        return created

    async def get_post(
        self, post_id: str, viewer_id: Optional[str] = None, friend_ids: Optional[Iterable[str]] = None
    ) -> Tuple[Post, bool]:
        post = await self._get_live_post(post_id)
        if not is_visible(post.visibility, post.author_id, post.group_id, viewer_id, friend_ids):
            raise PermissionDenied("you don't have permission to view this post")
        is_liked = False
        if viewer_id:
            is_liked = await self.likes.get_by_post_and_user(post.id, viewer_id) is not None
        return post, is_liked

    async def get_posts(
        self,
        viewer_id: Optional[str] = None,
        author_id: Optional[str] = None,
        group_id: Optional[str] = None,
        visibility: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        friend_ids: Optional[Sequence[str]] = None,
    ) -> Tuple[List[Tuple[Post, bool]], int, Pagination]:
        """
        List posts for a viewer. Exactly one listing is used: by author, by
        group, public only (anonymous viewer or visibility=public) or everything
        the viewer may see. The page is then filtered through the resolver, so
        total_count can exceed the number of returned items.
        """
        pg = Pagination.from_request(page, limit)
        friend_ids = list(friend_ids or [])

        if author_id:
            posts, count = await self.posts.list_by_author(author_id, pg.offset, pg.limit)
        elif group_id:
            posts, count = await self.posts.list_by_group(group_id, pg.offset, pg.limit)
        elif not viewer_id or visibility == PUBLIC:
            posts, count = await self.posts.list_public(pg.offset, pg.limit)
        else:
            posts, count = await self.posts.list_visible(viewer_id, friend_ids, pg.offset, pg.limit)

        visible = [p for p in posts if is_visible(p.visibility, p.author_id, p.group_id, viewer_id, friend_ids)]
        liked = set()
        if viewer_id:
            liked = await self.likes.liked_post_ids(viewer_id, [p.id for p in visible])
        return [(p, p.id in liked) for p in visible], count, pg

    async def update_post(
        self,
        post_id: str,
        requester_id: str,
        content: str,
        visibility: Optional[str] = None,
        media: Optional[Sequence[str]] = None,
    ) -> Post:
        if not content:
            raise InvalidArgument("content is required")
        if visibility and visibility not in VISIBILITIES:
            raise InvalidArgument("invalid visibility")
        post = await self._get_live_post(post_id)
        if post.author_id != requester_id:
            raise PermissionDenied("you can only update your own posts")

        post.content = content
        if visibility:
            post.visibility = visibility
        if media is not None:
            post.media = list(media)
        updated = await self._commit_or_internal(self.posts.update(post), "post_update_failed", post_id=post_id)
        logger.info("post_updated", post_id=post_id)
        return updated

    async def delete_post(self, post_id: str, requester_id: str) -> bool:
        post = await self._get_live_post(post_id)
        if post.author_id != requester_id:
            raise PermissionDenied("you can only delete your own posts")
        await self._commit_or_internal(self.posts.soft_delete(post), "post_delete_failed", post_id=post_id)
        logger.info("post_deleted", post_id=post_id)
        return True

    # --- comments ---
    async def add_comment(self, post_id: str, user_id: str, content: str) -> Comment:
        if not post_id or not user_id or not content:
            raise InvalidArgument("post id, user id and content are required")
        await self._get_live_post(post_id)

        author_name, author_avatar = await self._author_card(user_id)
        comment = Comment(
            post_id=post_id,
            author_id=user_id,
            author_name=author_name,
            author_avatar=author_avatar,
            content=content,
        )
        created = await self._commit_or_internal(
            self.comments.create(comment), "comment_create_failed", post_id=post_id
        )
        # a failed counter update rolls back and would expire the loaded row
        self.session.expunge(created)
        await self._adjust_counter(self.posts.increment_comments, post_id, "comments_count")
        logger.info("comment_added", post_id=post_id, comment_id=created.id)
        return created

    async def get_comments(
        self, post_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> Tuple[List[Comment], int, Pagination]:
        pg = Pagination.from_request(page, limit)
        items, count = await self.comments.list_by_post(post_id, pg.offset, pg.limit)
        return items, count, pg

    async def delete_comment(self, comment_id: str, post_id: str, requester_id: str) -> bool:
        comment = await self.comments.get_by_id(comment_id)
        if not comment:
            raise NotFound("comment not found")
        post = await self._get_live_post(post_id)
        if comment.post_id != post.id:
            raise InvalidArgument("comment does not belong to this post")
        if requester_id not in (comment.author_id, post.author_id):
            raise PermissionDenied("you can only delete your own comments or comments on your posts")

        await self._commit_or_internal(
            self.comments.soft_delete(comment), "comment_delete_failed", comment_id=comment_id
        )
        await self._adjust_counter(self.posts.decrement_comments, post_id, "comments_count")
        logger.info("comment_deleted", post_id=post_id, comment_id=comment_id)
        return True

    # --- likes ---
    async def _likes_count(self, post_id: str, estimate: int) -> int:
        try:
            post = await self.posts.get_by_id(post_id, fresh=True)
        except SQLAlchemyError as e:
            logger.warning("post_refetch_failed", post_id=post_id, error=str(e))
            return max(0, estimate)
        return post.likes_count if post else max(0, estimate)

    async def like_post(self, post_id: str, user_id: str) -> int:
        if not post_id or not user_id:
            raise InvalidArgument("post id and user id are required")
        post = await self._get_live_post(post_id)
        if await self.likes.get_by_post_and_user(post_id, user_id):
            raise AlreadyExists("post already liked")
        before = post.likes_count

        try:
            await self.likes.create(Like(post_id=post_id, user_id=user_id))
        except IntegrityError:
            # lost a race against a concurrent like for the same pair
            await self.session.rollback()
            raise AlreadyExists("post already liked")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("like_create_failed", post_id=post_id, error=str(e))
            raise Internal("storage error")

        await self._adjust_counter(self.posts.increment_likes, post_id, "likes_count")
        logger.info("post_liked", post_id=post_id, user_id=user_id)
        return await self._likes_count(post_id, before + 1)

    async def unlike_post(self, post_id: str, user_id: str) -> int:
        if not post_id or not user_id:
            raise InvalidArgument("post id and user id are required")
        post = await self._get_live_post(post_id)
        like = await self.likes.get_by_post_and_user(post_id, user_id)
        if not like:
            raise NotFound("like not found")
        before = post.likes_count

        await self._commit_or_internal(self.likes.soft_delete(like), "like_delete_failed", post_id=post_id)
        await self._adjust_counter(self.posts.decrement_likes, post_id, "likes_count")
        logger.info("post_unliked", post_id=post_id, user_id=user_id)
        return await self._likes_count(post_id, before - 1)

    async def is_liked(self, post_id: str, user_id: str) -> bool:
        if not post_id or not user_id:
            return False
        return await self.likes.get_by_post_and_user(post_id, user_id) is not None
