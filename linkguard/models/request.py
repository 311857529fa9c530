from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ParseLinkRequest(BaseModel):
    link: str = Field(..., description="Raw deep link as received from the OS")


class PendingLinksRequest(BaseModel):
    argv: List[str] = Field(default_factory=list, description="Process arguments that may carry deep links")
    urls: List[str] = Field(default_factory=list, description="Deep links delivered by the OS open-url event")


class RetryPlanRequest(BaseModel):
    error: Any = Field(None, description="Error value reported by the download subprocess")
    max_attempts: Optional[Any] = Field(None, description="Configured attempt count, clamped before use")
    delay_seconds: Optional[Any] = Field(None, description="Configured retry delay, clamped before use")
