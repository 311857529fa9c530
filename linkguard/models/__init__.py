from .internal import (
    AudioEnqueueOptions,
    ClassificationOutcome,
    ErrorClassification,
    ExternalLinkRequest,
    LinkAction,
    LinkTarget,
    RetryPlan,
    RouteTarget,
    VideoEnqueueOptions,
)
from .request import ParseLinkRequest, PendingLinksRequest, RetryPlanRequest
from .response import ParseLinkResponse, PendingLinksResponse, QueuedLinksResponse

__all__ = [
    "AudioEnqueueOptions",
    "ClassificationOutcome",
    "ErrorClassification",
    "ExternalLinkRequest",
    "LinkAction",
    "LinkTarget",
    "ParseLinkRequest",
    "ParseLinkResponse",
    "PendingLinksRequest",
    "PendingLinksResponse",
    "QueuedLinksResponse",
    "RetryPlan",
    "RetryPlanRequest",
    "RouteTarget",
    "VideoEnqueueOptions",
]
