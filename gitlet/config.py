import os
from dataclasses import dataclass
from pathlib import Path

from gitlet.errors import ConfigError, ValidationError

BACKENDS = ("files", "sql")

OUTSIDE_WORKING_TREE = "File is outside the working directory."


@dataclass(frozen=True)
class StorageConfig:
    """
    Where a repository lives and how its storage areas are named.

    One value is built per invocation and passed to every component that
    touches the disk, so no component hard-codes a location.
    """

    work_path: Path
    dir_name: str = ".gitlet"
    objects_dir: str = "objects"
    staged_dir: str = "staged"
    branches_dir: str = "branches"
    commits_dir: str = "commits"
    repo_dir: str = "repo"
    repo_file: str = "gitlet.json"
    backend: str = "files"
    db_url: str | None = None

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"Unknown storage backend {self.backend!r}, "
                f"expected one of: {', '.join(BACKENDS)}"
            )

    @classmethod
    def create(
        cls, work_path: str | Path | None = None, **overrides: str
    ) -> "StorageConfig":
        """Build a config for `work_path`, honouring GITLET_* environment overrides."""
        env = {
            "dir_name": os.environ.get("GITLET_DIR"),
            "backend": os.environ.get("GITLET_BACKEND"),
            "db_url": os.environ.get("GITLET_DATABASE_URL"),
        }
        values = {k: v for k, v in env.items() if v}
        values.update({k: v for k, v in overrides.items() if v is not None})

        path = Path(work_path) if work_path is not None else Path.cwd()
        return cls(work_path=Path(os.path.abspath(path)), **values)

    @property
    def tree_path(self) -> Path:
        return Path(os.path.normpath(self.work_path))

    @property
    def root(self) -> Path:
        return self.work_path / self.dir_name

    @property
    def objects_path(self) -> Path:
        return self.root / self.objects_dir

    @property
    def staged_path(self) -> Path:
        return self.root / self.staged_dir

    @property
    def branches_path(self) -> Path:
        return self.root / self.branches_dir

    @property
    def commits_path(self) -> Path:
        return self.root / self.commits_dir

    @property
    def repo_path(self) -> Path:
        return self.root / self.repo_dir

    @property
    def repo_file_path(self) -> Path:
        return self.repo_path / self.repo_file

    @property
    def database_url(self) -> str:
        return self.db_url or f"sqlite:///{self.root / 'objects.db'}"

    def areas(self) -> list[Path]:
        return [
            self.objects_path,
            self.staged_path,
            self.branches_path,
            self.commits_path,
            self.repo_path,
        ]

    def working_file(self, path: str) -> Path:
        """
        Location of `path` in the working tree.

        Paths that leave the working tree, or that point into the metadata
        directory, are refused.
        """
        tree = self.tree_path
        working = Path(os.path.normpath(tree / path))
        if (
            working == tree
            or not working.is_relative_to(tree)
            or working.is_relative_to(tree / self.dir_name)
        ):
            raise ValidationError(OUTSIDE_WORKING_TREE)
        return working

    def branch_area(self, name: str) -> Path:
        return self.branches_path / name

    def stage_area(self, branch: str) -> Path:
        return self.staged_path / branch
