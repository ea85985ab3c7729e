"""
FriendService: requests, friendships and blocks
"""
import pytest

from socialnet.models.friend import STATUS_ACCEPTED, STATUS_REJECTED
from socialnet.services.errors import AlreadyExists, InvalidArgument, NotFound, PermissionDenied
from socialnet.services.friend_service import FriendService


@pytest.fixture
def svc(session):
    return FriendService(session)


async def test_accept_creates_symmetric_friendship(svc):
    view = await svc.send_friend_request("a", "b")
    assert view.request.status == "pending"

    accepted = await svc.accept_friend_request(view.request.id, "b")
    assert accepted.request.status == STATUS_ACCEPTED

    assert await svc.check_friendship("a", "b") == ("friends", "")
    assert await svc.check_friendship("b", "a") == ("friends", "")
    assert await svc.friend_ids("a") == ["b"]
    assert await svc.friend_ids("b") == ["a"]


async def test_reject_leaves_no_friendship(svc):
    view = await svc.send_friend_request("a", "b")
    rejected = await svc.reject_friend_request(view.request.id, "b")

    assert rejected.request.status == STATUS_REJECTED
    assert await svc.check_friendship("a", "b") == ("none", "")
    assert await svc.friend_ids("a") == []

    # the pair cannot be re-requested once rejected
    with pytest.raises(AlreadyExists):
        await svc.send_friend_request("a", "b")


async def test_send_request_errors(svc):
    with pytest.raises(InvalidArgument):
        await svc.send_friend_request("a", "a")

    await svc.send_friend_request("a", "b")
    with pytest.raises(AlreadyExists):
        await svc.send_friend_request("a", "b")
    with pytest.raises(AlreadyExists):
        await svc.send_friend_request("b", "a")


async def test_send_request_between_friends(svc):
    view = await svc.send_friend_request("a", "b")
    await svc.accept_friend_request(view.request.id, "b")
    with pytest.raises(AlreadyExists):
        await svc.send_friend_request("b", "a")


async def test_blocked_users_cannot_request(svc):
    await svc.block_user("b", "a")
    with pytest.raises(PermissionDenied):
        await svc.send_friend_request("a", "b")
    with pytest.raises(PermissionDenied):
        await svc.send_friend_request("b", "a")


async def test_respond_errors(svc):
    view = await svc.send_friend_request("a", "b")

    with pytest.raises(NotFound):
        await svc.accept_friend_request("nope", "b")
    with pytest.raises(PermissionDenied):
        await svc.accept_friend_request(view.request.id, "a")
    with pytest.raises(PermissionDenied):
        await svc.reject_friend_request(view.request.id, "c")

    await svc.accept_friend_request(view.request.id, "b")
    with pytest.raises(InvalidArgument):
        await svc.reject_friend_request(view.request.id, "b")


async def test_pending_status_carries_request_id(svc):
    view = await svc.send_friend_request("a", "b")
    assert await svc.check_friendship("a", "b") == ("pending", view.request.id)
    assert await svc.check_friendship("b", "a") == ("pending", view.request.id)
    assert await svc.check_friendship("a", "a") == ("self", "")


async def test_get_friend_requests_filters_by_status(svc, make_user):
    sender = await make_user(name="Sam")
    receiver = await make_user(name="Rae")
    other = await make_user()
    first = await svc.send_friend_request(sender.id, receiver.id)
    await svc.send_friend_request(other.id, receiver.id)
    await svc.reject_friend_request(first.request.id, receiver.id)

    views, count, _ = await svc.get_friend_requests(receiver.id)
    assert count == 2

    views, count, _ = await svc.get_friend_requests(receiver.id, "pending")
    assert count == 1
    assert views[0].request.sender_id == other.id

    views, count, _ = await svc.get_friend_requests(receiver.id, "rejected")
    assert count == 1
    assert views[0].sender_name == "Sam"
    assert views[0].receiver_name == "Rae"

    _, count, _ = await svc.get_friend_requests(sender.id)
    assert count == 0


async def test_get_friends_includes_user_info(svc, make_user):
    a = await make_user(name="Ada", email="ada@example.com")
    b = await make_user(name="Bo", email="bo@example.com")
    view = await svc.send_friend_request(a.id, b.id)
    await svc.accept_friend_request(view.request.id, b.id)

    friends, count, pg = await svc.get_friends(a.id)
    assert count == 1
    assert pg.total_pages(count) == 1
    assert friends[0].user_id == b.id
    assert friends[0].name == "Bo"
    assert friends[0].email == "bo@example.com"
    assert friends[0].friends_since is not None


async def test_remove_friend(svc):
    view = await svc.send_friend_request("a", "b")
    await svc.accept_friend_request(view.request.id, "b")

    assert await svc.remove_friend("a", "b") is True
    assert await svc.check_friendship("a", "b") == ("none", "")
    assert await svc.check_friendship("b", "a") == ("none", "")

    with pytest.raises(NotFound, match="not friends"):
        await svc.remove_friend("a", "b")


async def test_block_removes_friendship(svc):
    view = await svc.send_friend_request("a", "b")
    await svc.accept_friend_request(view.request.id, "b")

    assert await svc.block_user("a", "b") is True
    assert await svc.friend_ids("a") == []
    assert await svc.check_friendship("b", "a") == ("blocked", "")

    with pytest.raises(AlreadyExists):
        await svc.block_user("a", "b")
    with pytest.raises(InvalidArgument):
        await svc.block_user("a", "a")


async def test_unblock_and_list(svc, make_user):
    target = await make_user(name="Tess")
    await svc.block_user("a", target.id)

    blocked, count, _ = await svc.get_blocked_users("a")
    assert count == 1
    assert blocked[0].user_id == target.id
    assert blocked[0].name == "Tess"

    assert await svc.unblock_user("a", target.id) is True
    with pytest.raises(NotFound, match="user is not blocked"):
        await svc.unblock_user("a", target.id)
    _, count, _ = await svc.get_blocked_users("a")
    assert count == 0
