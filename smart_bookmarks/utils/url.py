from urllib.parse import urlsplit

MIN_TITLE_LENGTH = 3


class ParseFailure(ValueError):
    """Exception raised when a URL has no usable host name."""

    pass


def host_name(url: str) -> str:
    """Return the host of an absolute URL without a leading "www.".

    Raises:
        ParseFailure: If the URL cannot be parsed or has no host
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError as e:
        raise ParseFailure(f"Invalid URL {url!r}: {str(e)}")
    if not hostname:
        raise ParseFailure(f"URL {url!r} has no host")
    return hostname.removeprefix("www.")


def derive_title(title: str, url: str) -> str:
    """Replace a too-short title with the URL host.

    Titles of three or more characters are returned unchanged. A short title
    is also kept when the URL has no parsable host.
    """
    if len(title) >= MIN_TITLE_LENGTH:
        return title
    try:
        return host_name(url)
    except ParseFailure:
        return title
