import json
import os
import shutil
from pathlib import Path
from typing import Any, Mapping

from loguru import logger

from gitlet.base import Blob, ContentStore
from gitlet.branch import Branch
from gitlet.commit import Commit, create_commit, create_initial_commit
from gitlet.config import StorageConfig
from gitlet.errors import (
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from gitlet.impl.files import create_file_content_store
from gitlet.impl.sql import create_sql_content_store_from_url

DEFAULT_BRANCH = "master"
RECORD_VERSION = 1

ALREADY_EXISTS = (
    "A Gitlet version-control system already exists in the current directory."
)
NOT_INITIALIZED = "Not in an initialized Gitlet directory."
MISSING_MESSAGE = "Please enter a commit message."
NO_CHANGES = "No changes added to the commit."
NO_SUCH_COMMIT = "No commit with that id exists."
FILE_NOT_IN_COMMIT = "File does not exist in that commit."
NO_SUCH_BRANCH = "No such branch exists."
ALREADY_ON_BRANCH = "No need to checkout the current branch."
UNTRACKED_IN_THE_WAY = (
    "There is an untracked file in the way; delete it or add it first."
)
BRANCH_EXISTS = "A branch with that name already exists."
BRANCH_MISSING = "A branch with that name does not exist."
REMOVE_CURRENT_BRANCH = "Cannot remove the current branch."
INVALID_BRANCH_NAME = "Invalid branch name."
NO_COMMIT_WITH_MESSAGE = "Found no commit with that message."


def open_content_store(config: StorageConfig) -> ContentStore:
    if config.backend == "sql":
        return create_sql_content_store_from_url(config.database_url)
    return create_file_content_store(config.objects_path)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
    os.replace(tmp_path, path)


def _write_commit(area: Path, commit: Commit) -> None:
    path = area / f"{commit.digest}.json"
    if not path.exists():
        _write_json(path, commit.to_record())


def _validate_branch_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or os.sep in name:
        raise ValidationError(INVALID_BRANCH_NAME)


class Repository:
    """
    The aggregate root: every branch, every commit and the current branch.

    The whole aggregate is loaded at the start of an invocation with `load`,
    mutated by exactly one operation and written back with `save`. Nothing
    is persisted when an operation raises, and operations that rewrite the
    working directory check for conflicts before touching any file.
    """

    def __init__(
        self,
        config: StorageConfig,
        store: ContentStore,
        current_branch: str = DEFAULT_BRANCH,
    ) -> None:
        self.config = config
        self.store = store
        self.commits: dict[str, Commit] = {}
        self.messages: dict[str, list[Commit]] = {}
        self.branches: dict[str, Branch] = {}
        self.current_branch_name = current_branch

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("Repository(...)")
        else:
            with p.group(4, "Repository(", ")"):
                p.breakable()
                p.text(f"path={self.config.work_path},")
                p.breakable()
                p.text(f"commits={len(self.commits)},")
                p.breakable()
                p.text("branch=")
                p.pretty(self.current_branch)
                p.breakable()

    @classmethod
    def init(
        cls, config: StorageConfig, store: ContentStore | None = None
    ) -> "Repository":
        if config.root.exists():
            raise StateError(ALREADY_EXISTS)

        for area in config.areas():
            area.mkdir(parents=True, exist_ok=True)

        repo = cls(config, store or open_content_store(config))
        initial = create_initial_commit()
        repo._index(initial)
        repo.branches[DEFAULT_BRANCH] = Branch(DEFAULT_BRANCH, initial, config)
        repo.save()

        logger.info(f"Initialized repository in {config.root}")
        return repo

    @classmethod
    def load(
        cls, config: StorageConfig, store: ContentStore | None = None
    ) -> "Repository":
        if not config.repo_file_path.is_file():
            raise StateError(NOT_INITIALIZED)

        try:
            record = json.loads(config.repo_file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StateError(f"Repository metadata is corrupt: {e}") from e

        opened = store or open_content_store(config)
        try:
            repo = cls.from_record(record, config, opened)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            if store is None:
                opened.close()
            raise StateError(f"Repository metadata is corrupt: {e!r}") from e
        logger.debug(
            f"Loaded repository with {len(repo.commits)} commits "
            f"on branch {repo.current_branch_name}"
        )
        return repo

    def save(self) -> None:
        for area in self.config.areas():
            area.mkdir(parents=True, exist_ok=True)

        for commit in self.commits.values():
            _write_commit(self.config.commits_path, commit)

        for branch in self.branches.values():
            area = self.config.branch_area(branch.name)
            area.mkdir(parents=True, exist_ok=True)
            for commit in branch.history():
                _write_commit(area, commit)

        for stale in self.config.branches_path.iterdir():
            if stale.is_dir() and stale.name not in self.branches:
                shutil.rmtree(stale)

        _write_json(self.config.repo_file_path, self.to_record())
        logger.debug(f"Saved repository to {self.config.repo_file_path}")

    def close(self) -> None:
        self.store.close()

    def to_record(self) -> dict[str, Any]:
        return {
            "version": RECORD_VERSION,
            "current_branch": self.current_branch_name,
            "commits": {
                digest: commit.to_record() for digest, commit in self.commits.items()
            },
            "messages": {
                message: [commit.digest for commit in commits]
                for message, commits in self.messages.items()
            },
            "branches": {
                name: branch.to_record() for name, branch in self.branches.items()
            },
        }

    @classmethod
    def from_record(
        cls, record: Mapping[str, Any], config: StorageConfig, store: ContentStore
    ) -> "Repository":
        repo = cls(config, store, current_branch=record["current_branch"])

        records = record["commits"]
        for digest in records:
            # parents must exist before their children
            chain = []
            current = digest
            while current is not None and current not in repo.commits:
                if current not in records:
                    raise StateError(f"Commit {current} is missing from the index.")
                chain.append(current)
                current = records[current]["parent"]
            for pending in reversed(chain):
                parent_digest = records[pending]["parent"]
                parent = repo.commits[parent_digest] if parent_digest else None
                repo.commits[pending] = Commit.from_record(records[pending], parent)

        for message, digests in record["messages"].items():
            repo.messages[message] = [repo.commits[digest] for digest in digests]

        for name, branch_record in record["branches"].items():
            repo.branches[name] = Branch.from_record(branch_record, repo.commits, config)

        if repo.current_branch_name not in repo.branches:
            raise StateError(f"Current branch {repo.current_branch_name} is missing.")
        return repo

    @property
    def current_branch(self) -> Branch:
        return self.branches[self.current_branch_name]

    @property
    def head(self) -> Commit:
        return self.current_branch.head

    def _index(self, commit: Commit) -> None:
        self.commits[commit.digest] = commit
        self.messages.setdefault(commit.message, []).append(commit)

    def _write_working(self, path: str, content: Blob) -> None:
        working = self.config.working_file(path)
        working.parent.mkdir(parents=True, exist_ok=True)
        working.write_bytes(content)

    def _delete_working(self, path: str) -> None:
        working = self.config.working_file(path)
        working.unlink(missing_ok=True)
        tree = self.config.tree_path
        parent = working.parent
        while parent != tree and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def _in_the_way(self, current: Commit, path: str) -> bool:
        """Whether writing `path` would clobber something `current` does not track."""
        working = self.config.working_file(path)
        if working.is_dir():
            return any(not current.contains(f) for f in self._walk(working))
        if working.exists():
            return not current.contains(path)
        for parent in Path(path).parents:
            name = parent.as_posix()
            if name != "." and self.config.working_file(name).is_file():
                return not current.contains(name)
        return False

    def _check_untracked(self, current: Commit, target: Commit) -> None:
        for path in target.files:
            if self._in_the_way(current, path):
                logger.warning(f"Untracked file {path} would be overwritten")
                raise ConflictError(UNTRACKED_IN_THE_WAY)

    def _replace_working_tree(self, current: Commit, target: Commit) -> None:
        """Make the working directory match `target`, starting from `current`."""
        self._check_untracked(current, target)
        contents = {path: target.get_content(path, self.store) for path in target.files}

        for path in current.files:
            if not target.contains(path):
                self._delete_working(path)

        for path, content in contents.items():
            assert content is not None
            self._write_working(path, content)

    def resolve(self, commit_id: str) -> Commit:
        """Find a commit by full digest or by a unique digest prefix."""
        if commit_id in self.commits:
            return self.commits[commit_id]

        matches = [
            commit
            for digest, commit in self.commits.items()
            if commit_id and digest.startswith(commit_id)
        ]
        if len(matches) != 1:
            raise NotFoundError(NO_SUCH_COMMIT)
        return matches[0]

    def add(self, path: str) -> str | None:
        return self.current_branch.add(path)

    def remove(self, path: str) -> str | None:
        return self.current_branch.remove(path)

    def commit(self, message: str) -> Commit:
        if not message:
            raise ValidationError(MISSING_MESSAGE)

        branch = self.current_branch
        stage = branch.stage
        if not stage.is_dirty():
            raise ValidationError(NO_CHANGES)

        for path in stage.added:
            self.store.put(stage.read_staged(path), path)

        commit = create_commit(message, stage)
        branch.set_head(commit)
        branch.reset_stage()
        self._index(commit)

        logger.info(f"Committed {commit.short_id} on {branch.name}: {message}")
        return commit

    def checkout_file(self, path: str) -> None:
        content = self.head.get_content(path, self.store)
        if content is None:
            raise NotFoundError(FILE_NOT_IN_COMMIT)

        self._write_working(path, content)
        self.current_branch.stage.unstage(path)

    def checkout_file_from_commit(self, commit_id: str, path: str) -> None:
        commit = self.resolve(commit_id)
        content = commit.get_content(path, self.store)
        if content is None:
            raise NotFoundError(FILE_NOT_IN_COMMIT)

        self._write_working(path, content)

    def checkout_branch(self, name: str) -> None:
        if name == self.current_branch_name:
            raise ValidationError(ALREADY_ON_BRANCH)
        if name not in self.branches:
            raise NotFoundError(NO_SUCH_BRANCH)

        self._replace_working_tree(self.head, self.branches[name].head)
        self.current_branch_name = name
        logger.info(f"Switched to branch {name}")

    def reset(self, commit_id: str) -> None:
        target = self.resolve(commit_id)
        branch = self.current_branch

        self._replace_working_tree(branch.head, target)
        branch.set_head(target)
        branch.reset_stage()
        logger.info(f"Reset {branch.name} to {target.short_id}")

    def branch(self, name: str) -> Branch:
        _validate_branch_name(name)
        if name in self.branches:
            raise ValidationError(BRANCH_EXISTS)

        branch = Branch(name, self.head, self.config)
        self.branches[name] = branch
        logger.info(f"Created branch {name} at {branch.head.short_id}")
        return branch

    def rm_branch(self, name: str) -> None:
        if name not in self.branches:
            raise NotFoundError(BRANCH_MISSING)
        if name == self.current_branch_name:
            raise ValidationError(REMOVE_CURRENT_BRANCH)

        branch = self.branches.pop(name)
        branch.stage.clear()
        shutil.rmtree(branch.stage.area, ignore_errors=True)
        logger.info(f"Removed branch {name}")

    def find(self, message: str) -> list[str]:
        commits = self.messages.get(message)
        if not commits:
            raise NotFoundError(NO_COMMIT_WITH_MESSAGE)
        return [commit.digest for commit in commits]

    def log(self) -> str:
        return "".join(f"===\n{commit.log_entry()}" for commit in self.head.history())

    def global_log(self) -> str:
        return "".join(f"===\n{commit.log_entry()}" for commit in self.commits.values())

    def _walk(self, top: Path) -> list[str]:
        tree = self.config.tree_path
        result = []
        for dirpath, dirnames, filenames in os.walk(top):
            current = Path(dirpath)
            if current == tree:
                dirnames[:] = [d for d in dirnames if d != self.config.dir_name]
            for filename in filenames:
                path = current / filename
                result.append(path.relative_to(tree).as_posix())
        return sorted(result)

    def working_files(self) -> list[str]:
        return self._walk(self.config.tree_path)

    def status(self) -> str:
        stage = self.current_branch.stage
        working = self.working_files()
        branches = [
            f"*{name}" if name == self.current_branch_name else name
            for name in sorted(self.branches)
        ]
        sections = [
            ("Branches", branches),
            ("Staged Files", sorted(stage.added)),
            ("Removed Files", sorted(stage.removed)),
            ("Modifications Not Staged For Commit", stage.modifications(working)),
            ("Untracked Files", stage.untracked(working)),
        ]
        return "".join(
            f"=== {title} ===\n" + "".join(f"{item}\n" for item in items) + "\n"
            for title, items in sections
        )


def create_repository(
    work_path: str | Path | None = None,
    store: ContentStore | None = None,
    **overrides: str,
) -> Repository:
    return Repository.init(StorageConfig.create(work_path, **overrides), store)


def open_repository(
    work_path: str | Path | None = None,
    store: ContentStore | None = None,
    **overrides: str,
) -> Repository:
    return Repository.load(StorageConfig.create(work_path, **overrides), store)
