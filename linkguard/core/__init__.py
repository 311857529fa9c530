from .security import SecurityValidator, UrlValidationResult, is_private_or_local_host, is_public_http_url, is_safe_url

__all__ = ["SecurityValidator", "UrlValidationResult", "is_private_or_local_host", "is_public_http_url", "is_safe_url"]
