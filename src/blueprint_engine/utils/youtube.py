"""YouTube URL parsing and validation."""

import re
from urllib.parse import parse_qs, urlsplit

TRUSTED_YOUTUBE_HOSTS = frozenset(
    {
        "youtube.com",
        "www.youtube.com",
        "m.youtube.com",
        "music.youtube.com",
        "youtu.be",
        "www.youtu.be",
    }
)

_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def is_trusted_youtube_host(host: str) -> bool:
    return host.lower().rstrip(".") in TRUSTED_YOUTUBE_HOSTS


def is_valid_video_id(video_id: str) -> bool:
    return bool(_VIDEO_ID.match(video_id))


def extract_video_id(url: str) -> str | None:
    """Extract the video id from a watch, short, embed or shorts URL.

    Only URLs on a trusted YouTube host are accepted, so look-alike hosts
    and redirect parameters pointing at YouTube are rejected.
    """
    if not url or not url.strip():
        return None

    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parts = urlsplit(candidate)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None
    if not is_trusted_youtube_host(parts.hostname):
        return None

    segments = [segment for segment in parts.path.split("/") if segment]

    if parts.hostname.endswith("youtu.be"):
        video_id = segments[0] if segments else None
    elif segments[:1] == ["watch"]:
        video_id = parse_qs(parts.query).get("v", [None])[0]
    elif len(segments) >= 2 and segments[0] in ("embed", "shorts", "live", "v"):
        video_id = segments[1]
    else:
        video_id = None

    if video_id and is_valid_video_id(video_id):
        return video_id
    return None


def is_valid_youtube_url(url: str) -> bool:
    return extract_video_id(url) is not None


def normalize_youtube_url(url: str) -> str | None:
    """Canonical ``watch?v=`` form of a YouTube URL, or None if invalid."""
    video_id = extract_video_id(url)
    if video_id is None:
        return None
    return f"https://www.youtube.com/watch?v={video_id}"
