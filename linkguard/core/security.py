import ipaddress
import re
from enum import Enum, auto
from typing import Optional
from urllib.parse import SplitResult, unquote, urlsplit

import idna

ALLOWED_SCHEMES = frozenset({"http", "https"})

LOCAL_HOSTS = frozenset({"localhost", "0.0.0.0", "::", "::1"})
LOCAL_SUFFIXES = (".localhost", ".local", ".internal")

# Prefix matches on purpose: anything textually starting with these is rejected.
PRIVATE_IPV4_PATTERNS = (
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^169\.254\."),
    re.compile(r"^172\.(1[6-9]|2\d|3[0-1])\."),
)
PRIVATE_IPV6_PREFIXES = ("fe80:", "fc", "fd")

UNSAFE_CHARS = re.compile(r'[\x00-\x20\x7f\\<>"`]')
ENCODED_TRAVERSAL = re.compile(r"%2e%2e|\.\.%2f|%2e\.|\.%2e|\.\.%5c", re.IGNORECASE)


class UrlValidationResult(Enum):
    """URL validation result without throwing exceptions"""
    OK = auto()
    BLOCKED = auto()
    INVALID = auto()


def split_url(url: str) -> Optional[SplitResult]:
    """Split a URL, returning None where a browser URL parser would fail"""
    try:
        parsed = urlsplit(url)
        parsed.port  # raises on a malformed port
    except ValueError:
        return None
    if not parsed.scheme:
        return None
    return parsed


def _parse_ipv4_part(part: str) -> Optional[int]:
    if part[:2] in ("0x", "0X"):
        digits, base = part[2:], 16
    elif len(part) > 1 and part.startswith("0"):
        digits, base = part[1:], 8
    else:
        digits, base = part, 10
    if not digits:
        return 0
    try:
        return int(digits, base)
    except ValueError:
        return None


def canonicalize_ipv4(host: str) -> Optional[str]:
    """
    Rewrite numeric IPv4 spellings (2130706433, 0x7f.1, 0177.0.0.1) to dotted-quad.
    Hosts that do not end in a number are returned unchanged; numeric hosts that
    cannot be an address return None.
    """
    parts = host.split(".")
    if len(parts) > 1 and parts[-1] == "":
        parts = parts[:-1]
    last = parts[-1]
    if not (last.isdigit() or re.fullmatch(r"0[xX][0-9a-fA-F]*", last)):
        return host
    if len(parts) > 4:
        return None

    numbers = []
    for part in parts:
        if not part:
            return None
        number = _parse_ipv4_part(part)
        if number is None:
            return None
        numbers.append(number)

    if any(n > 255 for n in numbers[:-1]):
        return None
    if numbers[-1] >= 256 ** (5 - len(numbers)):
        return None

    address = numbers[-1]
    for index, n in enumerate(numbers[:-1]):
        address += n * 256 ** (3 - index)
    return str(ipaddress.IPv4Address(address))


def canonicalize_ipv6(host: str) -> Optional[str]:
    """Compressed lowercase form ([0:0::1] -> ::1). Zone ids are refused."""
    if "%" in host:
        return None
    try:
        return ipaddress.IPv6Address(host).compressed
    except ValueError:
        return None


def map_domain(host: str) -> Optional[str]:
    """UTS-46 map a non-ASCII host to its ASCII form (ｌｏｃａｌｈｏｓｔ -> localhost)"""
    if host.isascii():
        return host
    try:
        return idna.encode(host, uts46=True).decode("ascii")
    except (idna.IDNAError, UnicodeError):
        return None


def extract_hostname(parsed: SplitResult) -> Optional[str]:
    """
    Hostname as the classifier should see it: percent-decoded, IPv6 compressed,
    Unicode mapped to ASCII, lowercased, trailing dot removed and numeric IPv4
    forms canonicalized. None if unusable.
    """
    host = unquote(parsed.hostname or "")
    if ":" in host:
        return canonicalize_ipv6(host)
    host = map_domain(host)
    if host is None:
        return None
    host = host.lower().rstrip(".")
    if not host:
        return ""
    return canonicalize_ipv4(host)


def is_private_or_local_host(hostname: str) -> bool:
    """True when the host names a loopback, private, link-local or local-only target"""
    host = hostname.lower()
    if host.startswith("["):
        host = host[1:]
    if host.endswith("]"):
        host = host[:-1]
    if not host:
        return True

    if host in LOCAL_HOSTS or host.endswith(LOCAL_SUFFIXES):
        return True

    if any(pattern.match(host) for pattern in PRIVATE_IPV4_PATTERNS):
        return True

    if ":" in host:
        return host.startswith(PRIVATE_IPV6_PREFIXES)

    return False


def is_safe_url(url: str) -> bool:
    """String-level pre-filter applied before any URL parsing"""
    if not url or not url.strip():
        return False
    if UNSAFE_CHARS.search(url):
        return False
    if ENCODED_TRAVERSAL.search(url):
        return False
    return True


class SecurityValidator:
    """
    Validate URL security without throwing exceptions.
    Returns result enum so callers decide how much of the reason to expose.
    """

    @staticmethod
    def validate_url(url: str) -> UrlValidationResult:
        """
        Gate an untrusted URL before it may be fetched.
        No DNS resolution: only the literal host is inspected.
        """
        parsed = split_url(url)
        if parsed is None or parsed.scheme.lower() not in ALLOWED_SCHEMES:
            return UrlValidationResult.INVALID

        hostname = extract_hostname(parsed)
        if hostname is None:
            return UrlValidationResult.INVALID

        if is_private_or_local_host(hostname):
            return UrlValidationResult.BLOCKED

        return UrlValidationResult.OK


def is_public_http_url(url: str) -> bool:
    return SecurityValidator.validate_url(url) == UrlValidationResult.OK
