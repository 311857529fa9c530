from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from linkguard.core.security import is_public_http_url


class LinkTarget(str, Enum):
    AUTO = "auto"
    YOUTUBE = "youtube"
    UNIVERSAL = "universal"


class LinkAction(str, Enum):
    DOWNLOAD_NOW = "download_now"
    QUEUE_ONLY = "queue_only"


class RouteTarget(str, Enum):
    """Resolved download handler, never auto"""
    YOUTUBE = "youtube"
    UNIVERSAL = "universal"


class AudioEnqueueOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    media_type: Literal["audio"] = "audio"
    quality: Literal["audio"] = "audio"
    audio_bitrate: str = "auto"


class VideoEnqueueOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    media_type: Literal["video"] = "video"
    quality: str = "best"


EnqueueOptions = Annotated[
    Union[AudioEnqueueOptions, VideoEnqueueOptions],
    Field(discriminator="media_type"),
]


class ExternalLinkRequest(BaseModel):
    """
    Validated deep-link request.
    The url is re-checked on construction so no code path can build one
    that points at a private or non-HTTP(S) target.
    """
    model_config = ConfigDict(frozen=True)

    raw: str = Field(..., description="Original deep link, for logging only")
    url: str = Field(..., description="Normalized public HTTP(S) target")
    target: LinkTarget = LinkTarget.AUTO
    action: LinkAction = LinkAction.DOWNLOAD_NOW
    enqueue_options: EnqueueOptions = Field(default_factory=VideoEnqueueOptions)
    source: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_public_url(cls, v):
        if not is_public_http_url(v):
            raise ValueError("url must be a public http(s) URL")
        return v


class ClassificationOutcome(str, Enum):
    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"
    UNKNOWN = "unknown"


class ErrorClassification(BaseModel):
    """Outcome of matching a download error against the retry rules"""
    model_config = ConfigDict(frozen=True)

    outcome: ClassificationOutcome
    category: Optional[str] = None
    message: str = ""

    @property
    def should_retry(self) -> bool:
        return self.outcome == ClassificationOutcome.RETRYABLE


class RetryPlan(BaseModel):
    """Classification plus clamped limits for the caller's retry loop"""
    classification: ErrorClassification
    should_retry: bool
    max_attempts: int
    delay_seconds: int
