from collections.abc import Iterable

from smart_bookmarks.models.bookmark import Bookmark

ALL = "All"
DEV_TOOLS = "Dev Tools"
PRODUCTIVITY = "Productivity"
ENTERTAINMENT = "Entertainment"
GENERAL = "General"

# Checked in order, first match wins. Matching is case-sensitive.
CATEGORY_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        DEV_TOOLS,
        (
            "github",
            "gitlab",
            "bitbucket",
            "stackoverflow",
            "stackexchange",
            "api.",
            "developer.",
            "npmjs",
            "pypi.org",
            "vercel",
        ),
    ),
    (
        PRODUCTIVITY,
        (
            "google",
            "docs.",
            "notion",
            "slack",
            "trello",
            "asana",
            "figma",
            "dropbox",
            "office.com",
        ),
    ),
    (
        ENTERTAINMENT,
        (
            "youtube",
            "youtu.be",
            "netflix",
            "spotify",
            "twitch",
            "reddit",
            "twitter",
            "//x.com",
            "instagram",
            "facebook",
            "tiktok",
        ),
    ),
)

LABELS: tuple[str, ...] = tuple(label for label, _ in CATEGORY_RULES) + (GENERAL,)


def classify(url: str) -> str:
    """Map a URL to one of the fixed category labels.

    Args:
        url: The bookmark URL

    Returns:
        "Dev Tools", "Productivity", "Entertainment" or "General"
    """
    for label, keywords in CATEGORY_RULES:
        if any(keyword in url for keyword in keywords):
            return label
    return GENERAL


def available_categories(bookmarks: Iterable[Bookmark]) -> list[str]:
    """Filter categories for the current collection.

    Returns "All" followed by the labels present in the collection, in the
    fixed label order. Labels with no bookmark are left out.
    """
    present = {classify(bookmark.url) for bookmark in bookmarks}
    return [ALL] + [label for label in LABELS if label in present]


def filter_by_category(bookmarks: Iterable[Bookmark], category: str) -> list[Bookmark]:
    if category == ALL:
        return list(bookmarks)
    return [bookmark for bookmark in bookmarks if classify(bookmark.url) == category]
