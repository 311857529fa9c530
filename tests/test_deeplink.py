from urllib.parse import quote

import pytest
from pydantic import ValidationError

from linkguard.config.settings import DeepLinkConfig
from linkguard.models.internal import (
    AudioEnqueueOptions,
    ExternalLinkRequest,
    LinkAction,
    LinkTarget,
    RouteTarget,
    VideoEnqueueOptions,
)
from linkguard.services.deeplink import (
    DeepLinkParser,
    is_trusted_external_source,
    is_youtube_url,
    normalize_external_video_url,
    parse_external_deep_link,
    resolve_external_route_target,
)


def deep_link(target_url: str, **params: str) -> str:
    extra = "".join(f"&{key}={value}" for key, value in params.items())
    return f"youwee://download?v=1&url={quote(target_url, safe='')}{extra}"


def test_minimal_link_uses_defaults():
    request = parse_external_deep_link("youwee://download?v=1&url=https://youtube.com/watch?v=abc123")

    assert request is not None
    assert request.target == LinkTarget.AUTO
    assert request.action == LinkAction.DOWNLOAD_NOW
    assert request.enqueue_options == VideoEnqueueOptions(quality="best")
    assert "v=abc123" in request.url
    assert "list" not in request.url
    assert "index" not in request.url
    assert request.source is None


def test_playlist_params_are_stripped_from_single_item_links():
    request = parse_external_deep_link(
        deep_link("https://www.youtube.com/watch?v=abc&list=PL123&index=4&t=30")
    )
    assert request.url == "https://www.youtube.com/watch?v=abc&t=30"


def test_normalized_url_is_stable():
    request = parse_external_deep_link(
        deep_link("https://m.youtube.com/watch?v=abc&list=PL1&feature=share")
    )
    assert normalize_external_video_url(request.url) == request.url


@pytest.mark.parametrize("url,expected", [
    ("https://youtu.be/abc?list=PL1&t=5", "https://youtu.be/abc?t=5"),
    ("https://www.youtube.com/playlist?list=PL1", "https://www.youtube.com/playlist?list=PL1"),
    ("https://vimeo.com/123?list=keep", "https://vimeo.com/123?list=keep"),
    ("not a url", "not a url"),
])
def test_normalize_external_video_url(url, expected):
    assert normalize_external_video_url(url) == expected


@pytest.mark.parametrize("raw", [
    "",
    "youwee://download?v=1&url=https://example.com/" + "a" * 4096,
    "https://download?v=1&url=https://example.com/",
    "youwee://upload?v=1&url=https://example.com/",
    "youwee://download?v=2&url=https://example.com/",
    "youwee://download?url=https://example.com/",
    "youwee://download?v=1",
    "youwee://download?v=1&url=%20%20",
    "youwee://download?v=1&url=http://192.168.1.5/video.mp4",
    "youwee://download?v=1&url=http://localhost:3000/",
    "youwee://download?v=1&url=http://2130706433/",
    "youwee://download?v=1&url=http://[0:0:0:0:0:0:0:1]:8080/x",
    "youwee://download?v=1&url=http://ｌｏｃａｌｈｏｓｔ/",
    "youwee://download?v=1&url=ftp://example.com/file",
    "youwee://download?v=1&url=javascript:alert(1)",
    "youwee://download?v=1&url=https://exa%20mple.com/",
    "youwee://download?v=1&url=https://example.com/%252e%252e/secret",
])
def test_rejected_links_return_none(raw):
    assert parse_external_deep_link(raw) is None


def test_explicit_options_are_honoured():
    request = parse_external_deep_link(
        deep_link(
            "https://example.com/video.mp4",
            target="youtube",
            action="queue_only",
            quality="720",
            source="%20EXT-Chromium%20",
        )
    )
    assert request.target == LinkTarget.YOUTUBE
    assert request.action == LinkAction.QUEUE_ONLY
    assert request.enqueue_options == VideoEnqueueOptions(quality="720")
    assert request.source == "ext-chromium"


@pytest.mark.parametrize("params,expected", [
    ({"target": "vimeo"}, LinkTarget.AUTO),
    ({"target": "YOUTUBE"}, LinkTarget.AUTO),
    ({"target": "universal"}, LinkTarget.UNIVERSAL),
])
def test_unknown_target_falls_back_to_auto(params, expected):
    assert parse_external_deep_link(deep_link("https://example.com/", **params)).target == expected


def test_unknown_action_means_download_now():
    request = parse_external_deep_link(deep_link("https://example.com/", action="later"))
    assert request.action == LinkAction.DOWNLOAD_NOW


@pytest.mark.parametrize("quality,bitrate", [("128", "128"), ("320", "auto"), ("", "auto")])
def test_audio_options(quality, bitrate):
    request = parse_external_deep_link(deep_link("https://example.com/", media="audio", quality=quality))
    assert request.enqueue_options == AudioEnqueueOptions(audio_bitrate=bitrate)
    assert request.enqueue_options.quality == "audio"


@pytest.mark.parametrize("quality,expected", [("8k", "8k"), ("360", "360"), ("999", "best"), ("audio", "best")])
def test_video_quality_falls_back_to_best(quality, expected):
    request = parse_external_deep_link(deep_link("https://example.com/", media="video", quality=quality))
    assert request.enqueue_options == VideoEnqueueOptions(quality=expected)


def test_untrusted_source_is_dropped():
    request = parse_external_deep_link(deep_link("https://example.com/", source="evil-extension"))
    assert request.source is None
    assert is_trusted_external_source("ext-firefox") is True
    assert is_trusted_external_source("evil-extension") is False
    assert is_trusted_external_source(None) is False


def test_parser_uses_injected_allow_sets():
    parser = DeepLinkParser(DeepLinkConfig(
        trusted_sources=frozenset({"Companion"}),
        video_qualities=frozenset({"best", "1440"}),
        platform_hosts=frozenset({"videos.example.org"}),
        short_link_hosts=frozenset(),
    ))
    request = parser.parse(deep_link(
        "https://videos.example.org/watch?v=1&list=2",
        quality="1440",
        source="companion",
    ))

    assert request.url == "https://videos.example.org/watch?v=1"
    assert request.enqueue_options == VideoEnqueueOptions(quality="1440")
    assert request.source == "companion"
    assert parser.resolve_route_target(request.target, request.url) == RouteTarget.YOUTUBE
    assert parser.resolve_route_target(LinkTarget.AUTO, "https://youtube.com/watch?v=1") == RouteTarget.UNIVERSAL


@pytest.mark.parametrize("preferred,url,expected", [
    ("auto", "https://youtu.be/abc", RouteTarget.YOUTUBE),
    ("auto", "https://music.youtube.com/watch?v=1", RouteTarget.YOUTUBE),
    ("auto", "https://vimeo.com/1", RouteTarget.UNIVERSAL),
    (LinkTarget.UNIVERSAL, "https://www.youtube.com/watch?v=1", RouteTarget.UNIVERSAL),
    (LinkTarget.YOUTUBE, "https://vimeo.com/1", RouteTarget.YOUTUBE),
])
def test_resolve_external_route_target(preferred, url, expected):
    assert resolve_external_route_target(preferred, url) == expected


def test_is_youtube_url():
    assert is_youtube_url("https://WWW.YouTube.com/watch?v=1") is True
    assert is_youtube_url("https://youtube.com.evil.test/") is False
    assert is_youtube_url("garbage") is False


def test_request_cannot_be_built_around_the_host_gate():
    with pytest.raises(ValidationError):
        ExternalLinkRequest(raw="x", url="http://10.0.0.8/admin")
