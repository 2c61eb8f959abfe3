Blob = bytes


class ContentStore:
    """
    Content-addressable storage of immutable byte payloads.

    The key of every payload is derived from the payload itself (plus an
    optional context such as the path it was read from), so identical
    content is stored exactly once and never updated in place.
    """

    def put(self, content: Blob, context: str | None = None) -> str:
        """Store `content` and return its digest. Storing an existing key is a no-op."""
        raise NotImplementedError()

    def get(self, digest: str) -> Blob:
        """Retrieve a payload by digest. Raises NotFoundError if absent."""
        raise NotImplementedError()

    def contains(self, digest: str) -> bool:
        """Check whether a payload with the given digest is stored."""
        raise NotImplementedError()

    def __contains__(self, digest: object) -> bool:
        return isinstance(digest, str) and self.contains(digest)

    def close(self) -> None:
        """Release any resources held by the backend."""
