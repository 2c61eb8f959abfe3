from typing import Any, Iterator, Mapping

from gitlet.commit import Commit
from gitlet.config import StorageConfig
from gitlet.stage import StagingArea


class Branch:
    """
    A named, movable pointer to a head commit, plus the staging area of
    changes pending on top of that head.
    """

    def __init__(
        self,
        name: str,
        head: Commit,
        config: StorageConfig,
        stage: StagingArea | None = None,
    ) -> None:
        self.name = name
        self.head = head
        self.config = config
        self.stage = stage or StagingArea(head, config, config.stage_area(name))

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("Branch(...)")
        else:
            with p.group(4, "Branch(", ")"):
                p.breakable()
                p.text(f"name={self.name},")
                p.breakable()
                p.text("head=")
                p.pretty(self.head)
                p.text(",")
                p.breakable()
                p.text("stage=")
                p.pretty(self.stage)
                p.breakable()

    def add(self, path: str) -> str | None:
        return self.stage.add(path)

    def remove(self, path: str) -> str | None:
        return self.stage.remove(path)

    def set_head(self, head: Commit) -> None:
        self.head = head

    def get_head(self) -> Commit:
        return self.head

    def reset_stage(self) -> None:
        """Discard pending changes and start a fresh stage on the current head."""
        self.stage.clear()
        area = self.config.stage_area(self.name)
        self.stage = StagingArea(self.head, self.config, area)

    def history(self) -> Iterator[Commit]:
        return self.head.history()

    def to_record(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "head": self.head.digest,
            "stage": self.stage.to_record(),
        }

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        commits: Mapping[str, Commit],
        config: StorageConfig,
    ) -> "Branch":
        name = record["name"]
        stage_record = record["stage"]
        stage = StagingArea(
            commits[stage_record["baseline"]],
            config,
            config.stage_area(name),
            added=stage_record["added"],
            removed=stage_record["removed"],
            staged=stage_record["staged"],
        )
        return cls(name, commits[record["head"]], config, stage=stage)
