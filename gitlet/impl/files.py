from pathlib import Path
from typing import Any

from loguru import logger

from gitlet.base import Blob, ContentStore
from gitlet.errors import NotFoundError
from gitlet.hashing import blob_digest


class FileContentStore(ContentStore):
    def __init__(self, objects_path: Path) -> None:
        self.objects_path = objects_path

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("FileContentStore(...)")
        else:
            p.text(f"FileContentStore(path={self.objects_path})")

    def _object_path(self, digest: str) -> Path:
        return self.objects_path / digest

    def put(self, content: Blob, context: str | None = None) -> str:
        digest = blob_digest(content, context)
        path = self._object_path(digest)
        if not path.exists():
            self.objects_path.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_bytes(content)
            tmp_path.replace(path)
            logger.debug(f"Stored object {digest[:6]} ({len(content)} bytes)")
        return digest

    def get(self, digest: str) -> Blob:
        path = self._object_path(digest)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"No object with id {digest}.") from None

    def contains(self, digest: str) -> bool:
        return self._object_path(digest).is_file()


def create_file_content_store(objects_path: str | Path) -> ContentStore:
    return FileContentStore(Path(objects_path))
