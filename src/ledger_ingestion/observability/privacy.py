import hashlib


def hash_payload(value: bytes | str | None) -> str:
    """
    Return a stable SHA-256 digest identifying an upload without logging its contents.
    """

    if value is None:
        normalized = b"null"
    elif isinstance(value, str):
        normalized = value.encode("utf-8")
    else:
        normalized = value
    return hashlib.sha256(normalized).hexdigest()
