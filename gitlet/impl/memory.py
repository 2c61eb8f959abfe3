from typing import Any

from gitlet.base import Blob, ContentStore
from gitlet.errors import NotFoundError
from gitlet.hashing import blob_digest

MemoryStoreData = dict[str, Blob]


class MemoryContentStore(ContentStore):
    def __init__(self, data: MemoryStoreData) -> None:
        self.data = data

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("MemoryContentStore(...)")
        else:
            with p.group(4, "MemoryContentStore(", ")"):
                p.breakable()
                p.text(f"blobs={len(self.data)},")
                p.breakable()

    def put(self, content: Blob, context: str | None = None) -> str:
        digest = blob_digest(content, context)
        if digest not in self.data:
            self.data[digest] = bytes(content)
        return digest

    def get(self, digest: str) -> Blob:
        try:
            return self.data[digest]
        except KeyError:
            raise NotFoundError(f"No object with id {digest}.") from None

    def contains(self, digest: str) -> bool:
        return digest in self.data


def create_memory_content_store(data: MemoryStoreData | None = None) -> ContentStore:
    return MemoryContentStore(data if data is not None else {})
