from linkguard.config.settings import config
from linkguard.core.security import split_url


def safe_url_for_log(url: str) -> str:
    """Safe URL for logging: no userinfo, no query values"""
    parsed = split_url(url)
    if parsed is None:
        return "invalid_url"

    host = parsed.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parsed.port is not None:
        host = f"{host}:{parsed.port}"
    base_url = f"{parsed.scheme}://{host}{parsed.path}"

    if config.logging.level == "DEBUG" and parsed.query:
        return f"{base_url}?..."

    return base_url
