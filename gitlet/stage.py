from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from gitlet.base import Blob
from gitlet.commit import Commit
from gitlet.config import StorageConfig
from gitlet.errors import NotFoundError
from gitlet.hashing import blob_digest

FILE_DOES_NOT_EXIST = "File does not exist."
NO_REASON_TO_REMOVE = "No reason to remove the file."


def _delete_file(path: Path) -> None:
    path.unlink(missing_ok=True)


class StagingArea:
    """
    Pending changes on top of a baseline commit.

    `staged` is always the baseline's files overlaid with pending adds and
    minus pending removes, so a commit can snapshot it directly. Each
    pending add owns a staged copy of the file under `area`, keyed by path.
    """

    def __init__(
        self,
        baseline: Commit,
        config: StorageConfig,
        area: Path,
        added: Iterable[str] = (),
        removed: Iterable[str] = (),
        staged: dict[str, str] | None = None,
    ) -> None:
        self.baseline = baseline
        self.config = config
        self.area = area
        self.added: list[str] = list(added)
        self.removed: list[str] = list(removed)
        self.staged: dict[str, str] = (
            dict(staged) if staged is not None else dict(baseline.files)
        )

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("StagingArea(...)")
        else:
            with p.group(4, "StagingArea(", ")"):
                p.breakable()
                p.text("baseline=")
                p.pretty(self.baseline)
                p.text(",")
                p.breakable()
                p.text(f"added={self.added},")
                p.breakable()
                p.text(f"removed={self.removed},")
                p.breakable()

    def _staged_copy(self, path: str) -> Path:
        return self.area / path

    def _working_digest(self, path: str) -> str | None:
        working = self.config.working_file(path)
        if not working.is_file():
            return None
        return blob_digest(working.read_bytes(), path)

    def _discard(self, path: str) -> None:
        """Drop a pending add and its staged copy."""
        if path in self.added:
            self.added.remove(path)
        _delete_file(self._staged_copy(path))
        self.staged.pop(path, None)

    def _restore_baseline_entry(self, path: str) -> None:
        digest = self.baseline.files.get(path)
        if digest is not None:
            self.staged[path] = digest

    def is_dirty(self) -> bool:
        return len(self.added) + len(self.removed) > 0

    def changed_file(self, path: str) -> bool:
        """Whether the working copy of `path` differs from the baseline."""
        if not self.baseline.contains(path):
            return True
        return self._working_digest(path) != self.baseline.files[path]

    def add(self, path: str) -> str | None:
        working = self.config.working_file(path)
        if not working.is_file():
            logger.warning(f"Cannot stage {path}: no such file")
            return FILE_DOES_NOT_EXIST

        content = working.read_bytes()
        digest = blob_digest(content, path)

        if path in self.removed:
            self.removed.remove(path)
            self._restore_baseline_entry(path)

        if digest == self.baseline.files.get(path):
            # content converged back to the baseline: nothing left to add
            if path in self.added:
                self._discard(path)
                self._restore_baseline_entry(path)
                logger.debug(f"Unstaged {path}, content matches baseline")
            return None

        if path not in self.added:
            self.added.append(path)
        staged_copy = self._staged_copy(path)
        staged_copy.parent.mkdir(parents=True, exist_ok=True)
        staged_copy.write_bytes(content)
        self.staged[path] = digest
        logger.debug(f"Staged {path} as {digest[:6]}")
        return None

    def remove(self, path: str) -> str | None:
        tracked = self.baseline.contains(path)
        if path not in self.added and not tracked:
            return NO_REASON_TO_REMOVE

        if path in self.added:
            self._discard(path)
            logger.debug(f"Unstaged {path}")

        if tracked:
            _delete_file(self.config.working_file(path))
            self.staged.pop(path, None)
            if path not in self.removed:
                self.removed.append(path)
            logger.debug(f"Marked {path} for removal")
        return None

    def unstage(self, path: str) -> None:
        """Return `path` to its baseline state, dropping any pending add or remove."""
        if path in self.added:
            self._discard(path)
        if path in self.removed:
            self.removed.remove(path)
        self._restore_baseline_entry(path)

    def read_staged(self, path: str) -> Blob:
        try:
            return self._staged_copy(path).read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"No staged copy of {path}.") from None

    def clear(self) -> None:
        for path in self.added:
            _delete_file(self._staged_copy(path))
        self.added.clear()
        self.removed.clear()
        self.staged = dict(self.baseline.files)

    def modifications(self, working_files: Iterable[str]) -> list[str]:
        """Tracked or staged files whose working copy changed since staging."""
        present = set(working_files)
        result = []
        for path, digest in self.staged.items():
            if path not in present:
                result.append(f"{path} (deleted)")
            elif self._working_digest(path) != digest:
                result.append(f"{path} (modified)")
        return sorted(result)

    def untracked(self, working_files: Iterable[str]) -> list[str]:
        return sorted(path for path in working_files if path not in self.staged)

    def to_record(self) -> dict[str, Any]:
        return {
            "baseline": self.baseline.digest,
            "added": list(self.added),
            "removed": list(self.removed),
            "staged": dict(self.staged),
        }
