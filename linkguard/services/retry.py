import asyncio
import logging
import math
import re
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Iterable, NamedTuple, Optional, Pattern

from linkguard.config.settings import IntRange, RetryConfig, config
from linkguard.models.internal import ClassificationOutcome, ErrorClassification, RetryPlan

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"
MESSAGE_MAX_LENGTH = 280


class ClassificationRule(NamedTuple):
    pattern: Pattern[str]
    outcome: ClassificationOutcome
    category: str


def _rule(regex: str, outcome: ClassificationOutcome, category: str) -> ClassificationRule:
    return ClassificationRule(re.compile(regex, re.IGNORECASE), outcome, category)


_NON = ClassificationOutcome.NON_RETRYABLE
_RETRY = ClassificationOutcome.RETRYABLE

NON_RETRYABLE_RULES = (
    _rule(r"private video", _NON, "private"),
    _rule(r"video unavailable", _NON, "unavailable"),
    _rule(r"this video is not available", _NON, "unavailable"),
    _rule(r"copyright", _NON, "copyright"),
    _rule(r"geo(?:-|\s)?restricted", _NON, "geo_restricted"),
    _rule(r"not available in your country", _NON, "geo_restricted"),
    _rule(r"sign in", _NON, "authentication"),
    _rule(r"login required", _NON, "authentication"),
    _rule(r"unsupported url", _NON, "unsupported"),
    _rule(r"unsupported site", _NON, "unsupported"),
    _rule(r"drm", _NON, "drm"),
    _rule(r"permission denied", _NON, "filesystem"),
    _rule(r"no such file or directory", _NON, "filesystem"),
    _rule(r"invalid url", _NON, "unsupported"),
)

RETRYABLE_RULES = (
    _rule(r"timed?\s*out", _RETRY, "timeout"),
    _rule(r"timeout", _RETRY, "timeout"),
    _rule(r"connection (?:reset|aborted|closed|refused)", _RETRY, "network"),
    _rule(r"network(?:\s+is)?\s+unreachable", _RETRY, "network"),
    _rule(r"temporar(?:ily|y)\s+unavailable", _RETRY, "unavailable"),
    _rule(r"try again", _RETRY, "rate_limit"),
    _rule(r"too many requests", _RETRY, "rate_limit"),
    _rule(r"\b429\b", _RETRY, "rate_limit"),
    _rule(r"\b5\d{2}\b", _RETRY, "server"),
    _rule(r"http error 5\d{2}", _RETRY, "server"),
    _rule(r"live (?:stream )?(?:ended|interrupted|is offline)", _RETRY, "live"),
    _rule(r"fragment.*(?:failed|error)", _RETRY, "fragment"),
    _rule(r"unable to download video data", _RETRY, "network"),
    _rule(r"remote end closed connection", _RETRY, "network"),
    _rule(r"tls|ssl", _RETRY, "tls"),
)

DEFAULT_RULES = NON_RETRYABLE_RULES + RETRYABLE_RULES

# Lower value is checked first.
OUTCOME_PRECEDENCE = {
    ClassificationOutcome.NON_RETRYABLE: 0,
    ClassificationOutcome.RETRYABLE: 1,
    ClassificationOutcome.UNKNOWN: 2,
}


def normalize_error_message(error: Any) -> str:
    """Display string for any error value. Never raises."""
    if isinstance(error, str):
        return error

    try:
        if isinstance(error, Mapping):
            maybe_message = error.get("message")
        else:
            maybe_message = getattr(error, "message", None)
    except Exception:
        maybe_message = None
    if isinstance(maybe_message, str) and maybe_message.strip():
        return maybe_message

    try:
        raw = str(error)
    except Exception:
        return UNKNOWN_ERROR
    return raw or UNKNOWN_ERROR


def clamp_to_range(value: Any, limit: IntRange) -> int:
    """
    Falsy, NaN or non-numeric values take the default. The number is clamped
    into [min, max] before being floored, so inf -> max and 0.5 -> min.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    except OverflowError:
        number = math.inf if value > 0 else -math.inf
    if not number or math.isnan(number):
        number = limit.default
    return math.floor(max(limit.min, min(limit.max, number)))


def _short(text: str) -> str:
    short = text.replace("\r", " ").replace("\n", " ")
    if len(short) > MESSAGE_MAX_LENGTH:
        short = f"{short[:MESSAGE_MAX_LENGTH - 1]}..."
    return short


class RetryPolicy:
    """
    Decide whether a failed download is worth another attempt.

    Rules are plain data evaluated in precedence order: every non-retryable
    rule is tried before any retryable one, whatever order they are given in.
    Messages matching nothing are UNKNOWN and never retried.
    """

    def __init__(
        self,
        rules: Iterable[ClassificationRule] = DEFAULT_RULES,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.rules = tuple(sorted(rules, key=lambda rule: OUTCOME_PRECEDENCE[rule.outcome]))
        self.limits = retry_config or config.retry

    def classify(self, message: str) -> ErrorClassification:
        text = (message or "").strip()
        if not text:
            return ErrorClassification(outcome=ClassificationOutcome.UNKNOWN)

        for rule in self.rules:
            if rule.pattern.search(text):
                return ErrorClassification(
                    outcome=rule.outcome,
                    category=rule.category,
                    message=_short(text),
                )

        return ErrorClassification(outcome=ClassificationOutcome.UNKNOWN, message=_short(text))

    def is_non_retryable_error(self, message: str) -> bool:
        return self.classify(message).outcome == ClassificationOutcome.NON_RETRYABLE

    def is_retryable_error(self, message: str) -> bool:
        return self.classify(message).outcome == ClassificationOutcome.RETRYABLE

    def clamp_max_attempts(self, value: Any) -> int:
        return clamp_to_range(value, self.limits.max_attempts)

    def clamp_delay_seconds(self, value: Any) -> int:
        return clamp_to_range(value, self.limits.delay_seconds)

    def plan(
        self,
        error: Any,
        max_attempts: Any = None,
        delay_seconds: Any = None,
    ) -> RetryPlan:
        """Classify an error and pair it with clamped limits for the caller's loop"""
        classification = self.classify(normalize_error_message(error))
        if classification.outcome == ClassificationOutcome.UNKNOWN and classification.message:
            logger.debug(f"Unclassified download error treated as final: {classification.message}")

        return RetryPlan(
            classification=classification,
            should_retry=classification.should_retry,
            max_attempts=self.clamp_max_attempts(max_attempts),
            delay_seconds=self.clamp_delay_seconds(delay_seconds),
        )


def _whole_seconds(ms: Any) -> int:
    try:
        seconds = math.ceil(float(ms) / 1000)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, seconds)


async def wait_with_cancellation(
    ms: float,
    is_cancelled: Callable[[], bool],
    on_tick: Optional[Callable[[int], None]] = None,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> bool:
    """
    Count down ceil(ms / 1000) seconds, one second at a time.

    Cancellation is polled before every second and once more at the end;
    returns True only if the whole duration elapsed uncancelled. on_tick
    receives the remaining whole seconds before each second is slept.
    """
    for remaining in range(_whole_seconds(ms), 0, -1):
        if is_cancelled():
            logger.debug(f"Retry wait cancelled with {remaining}s remaining")
            return False
        if on_tick is not None:
            on_tick(remaining)
        await sleep(1)

    return not is_cancelled()


retry_policy = RetryPolicy()

AUTO_RETRY_LIMITS = retry_policy.limits


def classify_error_message(message: str) -> ErrorClassification:
    return retry_policy.classify(message)


def is_non_retryable_error(message: str) -> bool:
    return retry_policy.is_non_retryable_error(message)


def is_retryable_error(message: str) -> bool:
    return retry_policy.is_retryable_error(message)


def clamp_auto_retry_max_attempts(value: Any) -> int:
    return retry_policy.clamp_max_attempts(value)


def clamp_auto_retry_delay_seconds(value: Any) -> int:
    return retry_policy.clamp_delay_seconds(value)
