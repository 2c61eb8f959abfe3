from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterator, Mapping

from gitlet.base import Blob, ContentStore
from gitlet.errors import StateError, ValidationError
from gitlet.hashing import sha1_hex

if TYPE_CHECKING:
    from gitlet.stage import StagingArea

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
INITIAL_COMMIT_MESSAGE = "initial commit"
SHORT_ID_LENGTH = 6


def _compute_digest(
    message: str,
    timestamp: datetime,
    parents: tuple[str, ...],
    files: Mapping[str, str],
) -> str:
    parts = [message, timestamp.isoformat(), *parents]
    parts.extend(f"{path}\0{files[path]}" for path in sorted(files))
    return sha1_hex("\n".join(parts))


def format_date(timestamp: datetime) -> str:
    local = timestamp.astimezone()
    return f"{local:%a %b} {local.day} {local:%H:%M:%S %Y %z}"


class Commit:
    """
    Immutable snapshot of the tracked files at one point in history.

    `files` maps each tracked path to the digest of its content in the
    content store. The digest of the commit covers the message, timestamp,
    parents and every (path, content digest) pair.
    """

    def __init__(
        self,
        message: str,
        timestamp: datetime,
        files: Mapping[str, str],
        parent: "Commit | None" = None,
        merge_parent: str | None = None,
    ) -> None:
        if not message:
            raise ValidationError("Please enter a commit message.")

        self._message = message
        self._timestamp = timestamp
        self._files = dict(files)
        self._parent = parent
        self._merge_parent = merge_parent
        self._digest = _compute_digest(message, timestamp, self.parents, self._files)

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("Commit(...)")
        else:
            with p.group(4, "Commit(", ")"):
                p.breakable()
                p.text(f"id={self.short_id},")
                p.breakable()
                p.text(f"message={self._message!r},")
                p.breakable()
                p.text("files=")
                p.pretty(self._files)
                p.breakable()

    def __repr__(self) -> str:
        return f"Commit(id={self.short_id}, message={self._message!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Commit) and other._digest == self._digest

    def __hash__(self) -> int:
        return hash(self._digest)

    @property
    def message(self) -> str:
        return self._message

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def parent(self) -> "Commit | None":
        return self._parent

    @property
    def merge_parent(self) -> str | None:
        return self._merge_parent

    @property
    def is_merge(self) -> bool:
        return self._merge_parent is not None

    @property
    def parents(self) -> tuple[str, ...]:
        parents = []
        if self._parent is not None:
            parents.append(self._parent.digest)
        if self._merge_parent is not None:
            parents.append(self._merge_parent)
        return tuple(parents)

    @property
    def digest(self) -> str:
        return self._digest

    @property
    def short_id(self) -> str:
        return self._digest[:SHORT_ID_LENGTH]

    @property
    def files(self) -> Mapping[str, str]:
        return MappingProxyType(self._files)

    def contains(self, path: str) -> bool:
        return path in self._files

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def get_content(self, path: str, store: ContentStore) -> Blob | None:
        """Content of `path` as of this commit, or None if it is not tracked."""
        digest = self._files.get(path)
        if digest is None:
            return None
        return store.get(digest)

    def history(self) -> Iterator["Commit"]:
        commit: Commit | None = self
        while commit is not None:
            yield commit
            commit = commit.parent

    def log_entry(self) -> str:
        lines = [f"commit {self._digest}"]
        if self.is_merge:
            first, second = self.parents
            lines.append(
                f"Merge: {first[:SHORT_ID_LENGTH]} {second[:SHORT_ID_LENGTH]}"
            )
        lines.append(f"Date: {format_date(self._timestamp)}")
        lines.append(self._message)
        return "\n".join(lines) + "\n\n"

    def to_record(self) -> dict[str, Any]:
        return {
            "digest": self._digest,
            "message": self._message,
            "timestamp": self._timestamp.isoformat(),
            "parent": self._parent.digest if self._parent else None,
            "merge_parent": self._merge_parent,
            "files": dict(self._files),
        }

    @classmethod
    def from_record(
        cls, record: Mapping[str, Any], parent: "Commit | None"
    ) -> "Commit":
        commit = cls(
            message=record["message"],
            timestamp=datetime.fromisoformat(record["timestamp"]),
            files=record["files"],
            parent=parent,
            merge_parent=record.get("merge_parent"),
        )
        if commit.digest != record["digest"]:
            raise StateError(f"Commit record {record['digest']} is corrupt.")
        return commit


def create_commit(
    message: str,
    stage: "StagingArea | None" = None,
    merge_parent: str | None = None,
    merge: bool = False,
) -> Commit:
    """
    Build a commit from a staging area.

    Without a stage this is the canonical root commit: no files and a
    timestamp of the Unix epoch, so its digest is the same in every
    repository.
    """
    if stage is None:
        return Commit(message, EPOCH, {})

    return Commit(
        message,
        datetime.now(timezone.utc),
        stage.staged,
        parent=stage.baseline,
        merge_parent=merge_parent if merge else None,
    )


def create_initial_commit() -> Commit:
    return create_commit(INITIAL_COMMIT_MESSAGE)
