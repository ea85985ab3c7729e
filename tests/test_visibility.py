"""
Visibility resolver rules
"""
from socialnet.services.visibility import is_visible


def test_public_is_visible_to_anyone():
    assert is_visible("public", "a", None, None)
    assert is_visible("public", "a", None, "b", [])


def test_author_sees_own_private_post():
    assert is_visible("private", "a", None, "a")


def test_private_visible_to_friend_only():
    assert is_visible("private", "a", None, "b", ["a"])
    assert not is_visible("private", "a", None, "c", ["x", "y"])
    assert not is_visible("private", "a", None, None)


def test_empty_viewer_is_not_the_author():
    assert not is_visible("private", "", None, "")


def test_group_post_is_visible():
    # membership is enforced by the group feed, not here
    assert is_visible("private", "a", "g1", "c")
    assert is_visible("private", "a", "g1", None)
