# socialnet/infrastructure/posts_repo.py
from typing import List, Optional, Sequence, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select, col
from sqlalchemy import func, update, or_, and_

from socialnet.models.post import Post, Comment, Like, utcnow


class PostRepository:
    """
    Repository for Post entities.
    All methods are async and expect an AsyncSession to be injected from the outside.
    Tombstoned rows (is_deleted) are excluded from every query.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, post: Post) -> Post:
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        return post

    async def get_by_id(self, post_id: str, fresh: bool = False) -> Optional[Post]:
        """fresh=True reloads the row over any copy already in the session (used after counter updates)."""
        q = select(Post).where(Post.id == post_id, Post.is_deleted == False)  # noqa: E712
        if fresh:
            q = q.execution_options(populate_existing=True)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def _page(self, where, offset: int, limit: int) -> Tuple[List[Post], int]:
        live = and_(Post.is_deleted == False, where)  # noqa: E712
        count_q = select(func.count()).select_from(Post).where(live)
        count = (await self.session.execute(count_q)).scalar_one()
        q = (
            select(Post)
            .where(live)
            .order_by(col(Post.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    async def list_by_author(self, author_id: str, offset: int, limit: int) -> Tuple[List[Post], int]:
        return await self._page(Post.author_id == author_id, offset, limit)

    async def list_by_group(self, group_id: str, offset: int, limit: int) -> Tuple[List[Post], int]:
        return await self._page(Post.group_id == group_id, offset, limit)

    async def list_public(self, offset: int, limit: int) -> Tuple[List[Post], int]:
        return await self._page(Post.visibility == "public", offset, limit)

    async def list_visible(
        self, viewer_id: str, friend_ids: Sequence[str], offset: int, limit: int
    ) -> Tuple[List[Post], int]:
        """Public posts plus private posts written by the viewer or one of their friends."""
        authors = list(friend_ids) + [viewer_id]
        where = or_(
            Post.visibility == "public",
            and_(Post.visibility == "private", col(Post.author_id).in_(authors)),
        )
        return await self._page(where, offset, limit)

    async def update(self, post: Post) -> Post:
        post.updated_at = utcnow()
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        return post

    async def soft_delete(self, post: Post) -> None:
        """Tombstone the post together with its comments and likes."""
        now = utcnow()
        post.is_deleted = True
        post.deleted_at = now
        self.session.add(post)
        for model in (Comment, Like):
            await self.session.execute(
                update(model)
                .where(model.post_id == post.id, model.is_deleted == False)  # noqa: E712
                .values(is_deleted=True, deleted_at=now)
            )
        await self.session.commit()

    async def _bump(self, post_id: str, column, delta: int) -> None:
        expr = column + delta
        stmt = update(Post).where(Post.id == post_id)
        if delta < 0:
            stmt = stmt.where(column > 0)
        await self.session.execute(stmt.values({column.key: expr}))
        await self.session.commit()

    async def increment_likes(self, post_id: str) -> None:
        await self._bump(post_id, col(Post.likes_count), 1)

    async def decrement_likes(self, post_id: str) -> None:
        await self._bump(post_id, col(Post.likes_count), -1)

    async def increment_comments(self, post_id: str) -> None:
        await self._bump(post_id, col(Post.comments_count), 1)

    async def decrement_comments(self, post_id: str) -> None:
        await self._bump(post_id, col(Post.comments_count), -1)


class CommentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, comment: Comment) -> Comment:
        self.session.add(comment)
        await self.session.commit()
        await self.session.refresh(comment)
        return comment

    async def get_by_id(self, comment_id: str) -> Optional[Comment]:
        q = select(Comment).where(Comment.id == comment_id, Comment.is_deleted == False)  # noqa: E712
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list_by_post(self, post_id: str, offset: int, limit: int) -> Tuple[List[Comment], int]:
        live = and_(Comment.post_id == post_id, Comment.is_deleted == False)  # noqa: E712
        count = (await self.session.execute(select(func.count()).select_from(Comment).where(live))).scalar_one()
        q = select(Comment).where(live).order_by(col(Comment.created_at).asc()).offset(offset).limit(limit)
        res = await self.session.execute(q)
        return list(res.scalars().all()), count

    async def soft_delete(self, comment: Comment) -> None:
        comment.is_deleted = True
        comment.deleted_at = utcnow()
        self.session.add(comment)
        await self.session.commit()


class LikeRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, like: Like) -> Like:
        self.session.add(like)
        await self.session.commit()
        await self.session.refresh(like)
        return like

    async def get_by_post_and_user(self, post_id: str, user_id: str) -> Optional[Like]:
        q = select(Like).where(
            Like.post_id == post_id,
            Like.user_id == user_id,
            Like.is_deleted == False,  # noqa: E712
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def liked_post_ids(self, user_id: str, post_ids: Sequence[str]) -> set:
        if not post_ids:
            return set()
        q = select(Like.post_id).where(
            Like.user_id == user_id,
            col(Like.post_id).in_(list(post_ids)),
            Like.is_deleted == False,  # noqa: E712
        )
        res = await self.session.execute(q)
        return set(res.scalars().all())

    async def soft_delete(self, like: Like) -> None:
        like.is_deleted = True
        like.deleted_at = utcnow()
        self.session.add(like)
        await self.session.commit()
