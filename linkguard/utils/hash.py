import hashlib


def hash_stable(data: str, length: int = 12) -> str:
    """Short stable SHA256 digest, used to correlate log lines without the raw value"""
    return hashlib.sha256(data.encode("utf-8", errors="replace")).hexdigest()[:length]
