from typing import Optional
from urllib.parse import urlsplit

# substring of the host -> display name, first match wins
KNOWN_SOURCES = [
    ("x.com", "X"),
    ("twitter.com", "X"),
    ("linkedin.com", "LinkedIn"),
    ("greenhouse.io", "Greenhouse"),
    ("lever.co", "Lever"),
]


def url_host(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def is_valid_url(value: str) -> bool:
    if not isinstance(value, str) or not value:
        return False

    if any(ch.isspace() for ch in value):
        return False

    try:
        parts = urlsplit(value)
        parts.port
    except ValueError:
        return False

    return bool(parts.scheme and parts.netloc and parts.hostname)


def infer_source(url: str) -> Optional[str]:
    host = url_host(url)
    if not host:
        return None

    host = host.lower()
    for needle, name in KNOWN_SOURCES:
        if needle in host:
            return name

    return host


def title_from_url(url: str) -> str:
    host = url_host(url)
    if not host:
        return "Job link"

    if host.startswith("www."):
        host = host[len("www."):]
    return f"Job link ({host})"
