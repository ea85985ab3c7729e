"""
PostService: posts, comments, likes and visibility-scoped listing
"""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from socialnet.models.group import Group
from socialnet.infrastructure.groups_repo import GroupsRepository
from socialnet.services.errors import AlreadyExists, InvalidArgument, NotFound, PermissionDenied
from socialnet.services.post_service import PostService


@pytest.fixture
def svc(session):
    return PostService(session)


async def test_create_post_copies_author_card(svc, make_user):
    author = await make_user(name="Alice", avatar="https://img.example.com/a.png")
    post = await svc.create_post(author.id, "hello", "public", media=["https://m.example.com/1.png"])

    assert post.author_name == "Alice"
    assert post.author_avatar == "https://img.example.com/a.png"
    assert post.likes_count == 0
    assert post.comments_count == 0
    assert post.media == ["https://m.example.com/1.png"]


async def test_create_post_unknown_author_gets_placeholder_name(svc):
    post = await svc.create_post("ghost", "boo")
    assert post.author_name == "User ghost"
    assert post.visibility == "public"


async def test_create_post_copies_group_name(svc, session, make_user):
    author = await make_user()
    group = await GroupsRepository(session).create_group(Group(name="Hikers", creator_id=author.id))
    post = await svc.create_post(author.id, "trail report", group_id=group.id)
    assert post.group_name == "Hikers"


@pytest.mark.parametrize(
    "author_id, content, visibility",
    [("", "x", "public"), ("a", "", "public"), ("a", "x", "friends-only")],
)
async def test_create_post_validation(svc, author_id, content, visibility):
    with pytest.raises(InvalidArgument):
        await svc.create_post(author_id, content, visibility)


async def test_get_post_private_rules(svc):
    post = await svc.create_post("a", "secret", "private")

    with pytest.raises(PermissionDenied):
        await svc.get_post(post.id, "c", [])
    with pytest.raises(PermissionDenied):
        await svc.get_post(post.id, None)

    found, is_liked = await svc.get_post(post.id, "b", ["a"])
    assert found.id == post.id
    assert is_liked is False
    found, _ = await svc.get_post(post.id, "a")
    assert found.id == post.id


async def test_get_post_missing(svc):
    with pytest.raises(NotFound):
        await svc.get_post("nope")


async def test_get_public_post_anonymously_is_repeatable(svc):
    post = await svc.create_post("a", "hi")
    first, _ = await svc.get_post(post.id)
    second, _ = await svc.get_post(post.id)
    assert (first.id, first.content, first.likes_count) == (second.id, second.content, second.likes_count)


async def test_get_posts_branches(svc):
    await svc.create_post("a", "a public")
    await svc.create_post("a", "a private", "private")
    await svc.create_post("b", "b private", "private")
    await svc.create_post("c", "c private", "private")

    items, count, pg = await svc.get_posts()
    assert count == 1
    assert [p.content for p, _ in items] == ["a public"]

    items, count, _ = await svc.get_posts(viewer_id="b", friend_ids=["a"])
    assert count == 3
    assert {p.content for p, _ in items} == {"a public", "a private", "b private"}

    items, count, _ = await svc.get_posts(viewer_id="b", friend_ids=["a"], visibility="public")
    assert [p.content for p, _ in items] == ["a public"]

    # author listing counts every post but only returns what the viewer may see
    items, count, _ = await svc.get_posts(viewer_id="c", author_id="a")
    assert count == 2
    assert [p.content for p, _ in items] == ["a public"]


async def test_get_posts_by_group_and_paging(svc):
    for i in range(3):
        await svc.create_post("a", f"g{i}", "private", group_id="g1")
    await svc.create_post("a", "elsewhere")

    items, count, pg = await svc.get_posts(viewer_id="z", group_id="g1", page=1, limit=2)
    assert count == 3
    assert len(items) == 2
    assert pg.total_pages(count) == 2


async def test_update_post(svc):
    post = await svc.create_post("a", "v1")
    updated = await svc.update_post(post.id, "a", "v2", "private", ["https://m.example.com/x.png"])
    assert updated.content == "v2"
    assert updated.visibility == "private"
    assert updated.media == ["https://m.example.com/x.png"]

    with pytest.raises(PermissionDenied):
        await svc.update_post(post.id, "b", "hijack")
    with pytest.raises(InvalidArgument):
        await svc.update_post(post.id, "a", "")
    with pytest.raises(InvalidArgument):
        await svc.update_post(post.id, "a", "v3", "everyone")
    with pytest.raises(NotFound):
        await svc.update_post("nope", "a", "v3")


async def test_delete_post_cascades(svc):
    post = await svc.create_post("a", "bye")
    comment = await svc.add_comment(post.id, "b", "nice")
    await svc.like_post(post.id, "b")

    with pytest.raises(PermissionDenied):
        await svc.delete_post(post.id, "b")
    assert await svc.delete_post(post.id, "a") is True

    with pytest.raises(NotFound):
        await svc.get_post(post.id)
    assert await svc.comments.get_by_id(comment.id) is None
    assert await svc.is_liked(post.id, "b") is False


async def test_comments_lifecycle(svc, make_user):
    commenter = await make_user(name="Bea")
    post = await svc.create_post("a", "topic")

    first = await svc.add_comment(post.id, commenter.id, "first")
    await svc.add_comment(post.id, "a", "second")
    assert first.author_name == "Bea"

    refreshed, _ = await svc.get_post(post.id)
    assert refreshed.comments_count == 2

    comments, count, _ = await svc.get_comments(post.id)
    assert count == 2
    assert [c.content for c in comments] == ["first", "second"]

    # the post author may remove other people's comments
    assert await svc.delete_comment(first.id, post.id, "a") is True
    refreshed, _ = await svc.get_post(post.id)
    assert refreshed.comments_count == 1


async def test_comment_errors(svc):
    post = await svc.create_post("a", "topic")
    other = await svc.create_post("a", "other")
    comment = await svc.add_comment(post.id, "b", "hey")

    with pytest.raises(InvalidArgument):
        await svc.add_comment(post.id, "b", "")
    with pytest.raises(NotFound):
        await svc.add_comment("nope", "b", "hey")
    with pytest.raises(NotFound):
        await svc.delete_comment("nope", post.id, "b")
    with pytest.raises(InvalidArgument):
        await svc.delete_comment(comment.id, other.id, "b")
    with pytest.raises(PermissionDenied):
        await svc.delete_comment(comment.id, post.id, "c")


async def test_like_unlike_flow(svc):
    post = await svc.create_post("a", "hello")

    assert await svc.like_post(post.id, "b") == 1
    with pytest.raises(AlreadyExists):
        await svc.like_post(post.id, "b")
    assert await svc.is_liked(post.id, "b") is True

    _, is_liked = await svc.get_post(post.id, "b")
    assert is_liked is True

    assert await svc.unlike_post(post.id, "b") == 0
    with pytest.raises(NotFound):
        await svc.unlike_post(post.id, "b")

    # a tombstoned like does not block liking again
    assert await svc.like_post(post.id, "b") == 1


async def test_like_missing_post(svc):
    with pytest.raises(NotFound):
        await svc.like_post("nope", "b")


async def test_get_posts_reports_is_liked(svc):
    liked = await svc.create_post("a", "liked")
    await svc.create_post("a", "plain")
    await svc.like_post(liked.id, "b")

    items, _, _ = await svc.get_posts(viewer_id="b")
    flags = {p.content: flag for p, flag in items}
    assert flags == {"liked": True, "plain": False}


def failing_write(session):
    """A repository call that opens a transaction and then hits a storage error."""

    async def _fail(*args, **kwargs):
        await session.execute(text("SELECT 1"))
        raise OperationalError("UPDATE posts", {}, Exception("disk I/O error"))

    return _fail


async def test_comment_survives_counter_failure(svc, session, monkeypatch):
    post = await svc.create_post("a", "topic")
    monkeypatch.setattr(svc.posts, "increment_comments", failing_write(session))

    comment = await svc.add_comment(post.id, "b", "still here")
    assert comment.id
    assert comment.content == "still here"
    assert comment.post_id == post.id

    refreshed, _ = await svc.get_post(post.id)
    assert refreshed.comments_count == 0
    comments, count, _ = await svc.get_comments(post.id)
    assert count == 1
    assert comments[0].id == comment.id


async def test_like_survives_counter_failure(svc, session, monkeypatch):
    post = await svc.create_post("a", "hello")
    monkeypatch.setattr(svc.posts, "increment_likes", failing_write(session))

    assert await svc.like_post(post.id, "b") == 0
    assert await svc.is_liked(post.id, "b") is True
