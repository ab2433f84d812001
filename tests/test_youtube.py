"""Tests for YouTube URL handling."""

import pytest

from blueprint_engine.utils.youtube import extract_video_id, is_valid_youtube_url, normalize_youtube_url


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtube.com/watch?v=dQw4w9WgXcQ&t=30s",
        "http://m.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        "https://music.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "youtu.be/dQw4w9WgXcQ?si=abc",
        "https://www.youtube.com/shorts/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
    ],
)
def test_accepts_trusted_urls(url: str) -> None:
    assert extract_video_id(url) == "dQw4w9WgXcQ"
    assert normalize_youtube_url(url) == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "https://youtube.com.evil.com/watch?v=dQw4w9WgXcQ",
        "https://evil.com/redirect?to=https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/watch?v=short",
        "https://www.youtube.com/channel/UC123",
        "ftp://youtube.com/watch?v=dQw4w9WgXcQ",
    ],
)
def test_rejects_untrusted_or_malformed_urls(url: str) -> None:
    assert extract_video_id(url) is None
    assert is_valid_youtube_url(url) is False
    assert normalize_youtube_url(url) is None
