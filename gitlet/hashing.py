import hashlib


def sha1_hex(*parts: str | bytes) -> str:
    """
    Hex SHA-1 of the concatenation of `parts`.

    Strings are UTF-8 encoded. Undecodable bytes that the OS handed back as
    surrogates (file names that are not valid UTF-8) are encoded back to the
    original bytes.
    """
    digest = hashlib.sha1()
    for part in parts:
        if isinstance(part, str):
            part = part.encode("utf-8", "surrogateescape")
        digest.update(part)
    return digest.hexdigest()


def blob_digest(content: bytes, context: str | None = None) -> str:
    # the path is part of the key, so equal content under two names is two blobs
    return sha1_hex(content, context or "")
