import logging
import threading
from typing import Iterable, List, Optional

from linkguard.config.settings import DeepLinkConfig, config

logger = logging.getLogger(__name__)

QUOTE_CHARS = "\"'"


def looks_like_external_link(link: str, deeplink_config: Optional[DeepLinkConfig] = None) -> bool:
    """
    Cheap shape check for links arriving from the OS.
    Not a trust decision: the parser still validates every consumed link.
    """
    cfg = deeplink_config or config.deeplink
    trimmed = (link or "").strip()
    if not trimmed or len(trimmed) > cfg.max_length:
        return False
    if not trimmed.startswith(cfg.link_prefix):
        return False
    return f"v={cfg.version}" in trimmed and "url=" in trimmed


def extract_link_from_arg(arg: str, deeplink_config: Optional[DeepLinkConfig] = None) -> Optional[str]:
    cfg = deeplink_config or config.deeplink
    scheme_prefix = f"{cfg.scheme}://"
    trimmed = (arg or "").strip().strip(QUOTE_CHARS)

    if trimmed.startswith(scheme_prefix):
        return trimmed if looks_like_external_link(trimmed, cfg) else None

    start = trimmed.find(scheme_prefix)
    if start < 0:
        return None
    candidate = trimmed[start:].strip(QUOTE_CHARS)
    return candidate if looks_like_external_link(candidate, cfg) else None


def extract_external_links_from_argv(
    argv: Iterable[str],
    deeplink_config: Optional[DeepLinkConfig] = None,
) -> List[str]:
    """Deep links found in process arguments, deduplicated in arrival order"""
    links: List[str] = []
    for arg in argv:
        link = extract_link_from_arg(arg, deeplink_config)
        if link and link not in links:
            links.append(link)
    return links


class PendingLinkInbox:
    """
    Links received before the UI listener is ready.
    Bounded: the oldest entries are dropped once max_pending is exceeded.
    """

    def __init__(self, max_pending: int = 100, deeplink_config: Optional[DeepLinkConfig] = None):
        self.max_pending = max_pending
        self.deeplink_config = deeplink_config or config.deeplink
        self._links: List[str] = []
        self._lock = threading.Lock()

    def enqueue(self, links: Iterable[str]) -> int:
        """Add links, returns how many were newly queued"""
        added = 0
        with self._lock:
            for link in links:
                if not looks_like_external_link(link, self.deeplink_config):
                    continue
                if link in self._links:
                    continue
                self._links.append(link)
                added += 1
                if len(self._links) > self.max_pending:
                    overflow = len(self._links) - self.max_pending
                    del self._links[:overflow]
                    logger.warning(f"Pending link inbox full, dropped {overflow} oldest link(s)")
        return added

    def take(self) -> List[str]:
        with self._lock:
            links, self._links = self._links, []
        return links

    def __len__(self) -> int:
        with self._lock:
            return len(self._links)
