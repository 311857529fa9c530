from dataclasses import dataclass, field

from linkguard.config.settings import config
from linkguard.services.pending import PendingLinkInbox


@dataclass
class RuntimeState:
    """Centralized runtime state"""
    pending_links: PendingLinkInbox = field(
        default_factory=lambda: PendingLinkInbox(max_pending=config.pending.max_pending)
    )
    listener_ready: bool = False


state = RuntimeState()
