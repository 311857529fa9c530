from typing import List, Optional

from pydantic import BaseModel

from linkguard.models.internal import ExternalLinkRequest, RouteTarget


class ParseLinkResponse(BaseModel):
    """Rejected links come back as request=None, never as an error"""
    request: Optional[ExternalLinkRequest] = None
    route: Optional[RouteTarget] = None


class QueuedLinksResponse(BaseModel):
    queued: int
    pending: int


class PendingLinksResponse(BaseModel):
    links: List[str]
