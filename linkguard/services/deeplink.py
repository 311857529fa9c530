import logging
from typing import Dict, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlunsplit

from linkguard.config.settings import DeepLinkConfig, config
from linkguard.core.security import is_public_http_url, is_safe_url, split_url
from linkguard.models.internal import (
    AudioEnqueueOptions,
    EnqueueOptions,
    ExternalLinkRequest,
    LinkAction,
    LinkTarget,
    RouteTarget,
    VideoEnqueueOptions,
)
from linkguard.utils.hash import hash_stable
from linkguard.utils.url import safe_url_for_log

logger = logging.getLogger(__name__)


def _first_params(query: str) -> Dict[str, str]:
    """Query parameters, first occurrence wins, blank values kept"""
    params: Dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        params.setdefault(key, value)
    return params


class DeepLinkParser:
    """
    Turn untrusted deep links into validated download requests.

    Every rejection returns None with no reason attached; the reason is only
    logged at DEBUG under a hash of the link.
    """

    def __init__(self, deeplink_config: DeepLinkConfig):
        self.config = deeplink_config

    def _reject(self, raw: str, reason: str) -> None:
        logger.debug(f"Deep link {hash_stable(raw)} rejected: {reason}")
        return None

    def parse(self, raw: str) -> Optional[ExternalLinkRequest]:
        if not raw or len(raw) > self.config.max_length:
            return self._reject(raw or "", "empty or too long")

        parsed = split_url(raw)
        if parsed is None:
            return self._reject(raw, "unparseable")

        if parsed.scheme != self.config.scheme or parsed.netloc != self.config.host:
            return self._reject(raw, "unrecognized scheme or host")

        params = _first_params(parsed.query)
        if params.get("v") != self.config.version:
            return self._reject(raw, "unsupported version")

        candidate = params.get("url", "").strip()
        if not candidate or not is_safe_url(candidate):
            return self._reject(raw, "missing or unsafe url")

        normalized_url = self.normalize_video_url(candidate)
        if not is_safe_url(normalized_url) or not is_public_http_url(normalized_url):
            return self._reject(raw, "target is not a public http(s) url")

        target_param = params.get("target")
        if target_param in (LinkTarget.YOUTUBE.value, LinkTarget.UNIVERSAL.value):
            target = LinkTarget(target_param)
        else:
            target = LinkTarget.AUTO

        if params.get("action") == LinkAction.QUEUE_ONLY.value:
            action = LinkAction.QUEUE_ONLY
        else:
            action = LinkAction.DOWNLOAD_NOW

        request = ExternalLinkRequest(
            raw=raw,
            url=normalized_url,
            target=target,
            action=action,
            enqueue_options=self.parse_enqueue_options(params),
            source=self.normalize_source(params.get("source")),
        )
        logger.info(
            f"Deep link {hash_stable(raw)} accepted for {safe_url_for_log(normalized_url)}"
        )
        return request

    def parse_enqueue_options(self, params: Dict[str, str]) -> EnqueueOptions:
        """Unknown media or quality values fall back instead of failing the link"""
        quality = params.get("quality") or ""

        if params.get("media") == "audio":
            bitrate = quality if quality in self.config.audio_bitrates else "auto"
            return AudioEnqueueOptions(audio_bitrate=bitrate)

        if quality not in self.config.video_qualities:
            quality = "best"
        return VideoEnqueueOptions(quality=quality)

    def normalize_source(self, source: Optional[str]) -> Optional[str]:
        normalized = (source or "").strip().lower()
        if not normalized:
            return None
        return normalized if normalized in self.config.trusted_sources else None

    def is_trusted_source(self, source: Optional[str]) -> bool:
        return bool(source) and source in self.config.trusted_sources

    def is_platform_url(self, url: str) -> bool:
        parsed = split_url(url)
        if parsed is None:
            return False
        return (parsed.hostname or "").lower() in self.config.platform_hosts

    def normalize_video_url(self, url: str) -> str:
        """
        Drop playlist companions from single-item platform links so one video
        never expands into a playlist and equal items compare equal.
        """
        parsed = split_url(url)
        if parsed is None:
            return url

        host = (parsed.hostname or "").lower()
        if host not in self.config.platform_hosts:
            return url

        query = parse_qsl(parsed.query, keep_blank_values=True)
        has_item = host in self.config.short_link_hosts or any(
            key == self.config.item_param for key, _ in query
        )
        if not has_item:
            return url

        kept = [(key, value) for key, value in query if key not in self.config.playlist_params]
        return urlunsplit(parsed._replace(query=urlencode(kept)))

    def resolve_route_target(
        self,
        preferred_target: Union[LinkTarget, str],
        url: str,
    ) -> RouteTarget:
        """Explicit target wins, otherwise route by the final URL's host"""
        value = preferred_target.value if isinstance(preferred_target, LinkTarget) else preferred_target
        if value in (RouteTarget.YOUTUBE.value, RouteTarget.UNIVERSAL.value):
            return RouteTarget(value)
        return RouteTarget.YOUTUBE if self.is_platform_url(url) else RouteTarget.UNIVERSAL


deeplink_parser = DeepLinkParser(config.deeplink)


def parse_external_deep_link(raw: str) -> Optional[ExternalLinkRequest]:
    return deeplink_parser.parse(raw)


def normalize_external_video_url(url: str) -> str:
    return deeplink_parser.normalize_video_url(url)


def resolve_external_route_target(preferred_target: Union[LinkTarget, str], url: str) -> RouteTarget:
    return deeplink_parser.resolve_route_target(preferred_target, url)


def is_youtube_url(url: str) -> bool:
    return deeplink_parser.is_platform_url(url)


def is_trusted_external_source(source: Optional[str]) -> bool:
    return deeplink_parser.is_trusted_source(source)
