# socialnet/services/visibility.py
from typing import Iterable, Optional

PUBLIC = "public"
PRIVATE = "private"
VISIBILITIES = (PUBLIC, PRIVATE)


def is_visible(
    visibility: str,
    author_id: str,
    group_id: Optional[str],
    viewer_id: Optional[str],
    friend_ids: Optional[Iterable[str]] = None,
) -> bool:
    """
    Decide whether a viewer may see a post.

    Rules are checked in order: public content, the author themself, a private
    post whose author is in the viewer's friend list, then any group-associated
    post. An empty viewer id means an anonymous caller.
    """
    if visibility == PUBLIC:
        return True

    if viewer_id and viewer_id == author_id:
        return True

    if visibility == PRIVATE and friend_ids and author_id in set(friend_ids):
        return True

    # group posts are not membership-checked here; GetGroupPosts enforces membership separately
    if group_id:
        return True

    return False
