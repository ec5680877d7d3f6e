from collections.abc import Iterable, Sequence

from smart_bookmarks.models.bookmark import Bookmark


def rank_bookmarks(bookmarks: Iterable[Bookmark]) -> list[Bookmark]:
    """Order bookmarks for display.

    Most visited first. Equal visit counts are ordered by the most recent
    activity, which is the last visit or, for never visited bookmarks, the
    creation time. Entries with equal keys keep their collection order.

    Args:
        bookmarks: The bookmark collection in collection order

    Returns:
        A new list containing every input bookmark in display order
    """
    # sorted() is stable, also with reverse=True
    return sorted(
        bookmarks,
        key=lambda b: (b.visit_count, b.last_activity_at),
        reverse=True,
    )


def recommend(ranked: Sequence[Bookmark]) -> Bookmark | None:
    """Pick the recommended next bookmark from a ranked list.

    Only the top two entries are considered. The second one wins only with a
    strictly greater visit count.

    Args:
        ranked: Bookmarks as returned by `rank_bookmarks`

    Returns:
        The recommended bookmark, or None for an empty list
    """
    if not ranked:
        return None
    first = ranked[0]
    if len(ranked) > 1 and ranked[1].visit_count > first.visit_count:
        return ranked[1]
    return first
