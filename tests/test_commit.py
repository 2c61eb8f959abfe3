from datetime import datetime, timezone
from pathlib import Path

import pytest

from gitlet.commit import EPOCH, Commit, create_commit, create_initial_commit
from gitlet.config import StorageConfig
from gitlet.errors import StateError, ValidationError
from gitlet.hashing import blob_digest
from gitlet.impl.memory import create_memory_content_store
from gitlet.stage import StagingArea


def make_stage(tmp_path: Path, baseline: Commit) -> StagingArea:
    config = StorageConfig(work_path=tmp_path)
    return StagingArea(baseline, config, config.stage_area("master"))


def test_initial_commit_is_canonical():
    commit = create_initial_commit()

    assert commit.message == "initial commit"
    assert commit.timestamp == EPOCH
    assert dict(commit.files) == {}
    assert commit.parent is None
    assert commit.parents == ()
    assert commit.is_merge is False
    assert commit.digest == create_initial_commit().digest, "Root commit id must be deterministic"
    assert len(commit.digest) == 40
    assert commit.short_id == commit.digest[:6]


def test_empty_message_is_rejected(tmp_path: Path):
    with pytest.raises(ValidationError, match="Please enter a commit message."):
        create_commit("")
    with pytest.raises(ValidationError):
        create_commit("", make_stage(tmp_path, create_initial_commit()))


def test_commit_snapshots_staged_mapping(tmp_path: Path):
    initial = create_initial_commit()
    stage = make_stage(tmp_path, initial)
    (tmp_path / "f.txt").write_text("wug")
    stage.add("f.txt")

    commit = create_commit("added wug", stage)

    assert dict(commit.files) == stage.staged
    assert commit.parent is initial
    assert commit.parents == (initial.digest,)
    assert commit.timestamp > EPOCH
    assert "f.txt" in commit
    assert commit.contains("f.txt")
    assert not commit.contains("g.txt")


def test_files_view_is_read_only(tmp_path: Path):
    commit = Commit("snapshot", EPOCH, {"a.txt": "1" * 40})

    with pytest.raises(TypeError):
        commit.files["b.txt"] = "2" * 40  # type: ignore[index]
    assert dict(commit.files) == {"a.txt": "1" * 40}


def test_files_are_copied_from_the_source_mapping():
    source = {"a.txt": "1" * 40}
    commit = Commit("snapshot", EPOCH, source)
    source["b.txt"] = "2" * 40

    assert "b.txt" not in commit


def test_identity_covers_content_digests():
    when = datetime(2020, 5, 17, 12, 0, tzinfo=timezone.utc)
    one = Commit("same", when, {"f.txt": blob_digest(b"one", "f.txt")})
    two = Commit("same", when, {"f.txt": blob_digest(b"two", "f.txt")})

    assert one.digest != two.digest


def test_identity_covers_parent():
    when = datetime(2020, 5, 17, 12, 0, tzinfo=timezone.utc)
    root = create_initial_commit()
    orphan = Commit("same", when, {})
    child = Commit("same", when, {}, parent=root)

    assert orphan.digest != child.digest


def test_log_entry():
    commit = create_initial_commit()
    entry = commit.log_entry()

    lines = entry.split("\n")
    assert lines[0] == f"commit {commit.digest}"
    assert lines[1].startswith("Date: ")
    assert lines[2] == "initial commit"
    assert entry.endswith("initial commit\n\n")
    assert "Merge:" not in entry


def test_merge_log_entry():
    root = create_initial_commit()
    other = "abcdef0123456789abcdef0123456789abcdef01"
    merged = Commit(
        "Merged dev into master.",
        datetime(2021, 1, 1, tzinfo=timezone.utc),
        {},
        parent=root,
        merge_parent=other,
    )

    assert merged.is_merge is True
    assert merged.parents == (root.digest, other)
    assert merged.log_entry().split("\n")[1] == f"Merge: {root.short_id} abcdef"


def test_get_content(tmp_path: Path):
    store = create_memory_content_store()
    digest = store.put(b"wug", "f.txt")
    commit = Commit("with file", EPOCH, {"f.txt": digest})

    assert commit.get_content("f.txt", store) == b"wug"
    assert commit.get_content("missing.txt", store) is None


def test_history_walks_to_root():
    root = create_initial_commit()
    middle = Commit("middle", datetime(2020, 1, 1, tzinfo=timezone.utc), {}, parent=root)
    top = Commit("top", datetime(2020, 1, 2, tzinfo=timezone.utc), {}, parent=middle)

    assert [c.message for c in top.history()] == ["top", "middle", "initial commit"]


def test_corrupt_record_is_rejected():
    record = create_initial_commit().to_record()
    record["message"] = "tampered"

    with pytest.raises(StateError):
        Commit.from_record(record, None)


def test_record_reload_keeps_identity():
    root = create_initial_commit()
    child = Commit("child", datetime(2022, 3, 4, 5, 6, 7, 89, tzinfo=timezone.utc), {}, parent=root)

    reloaded = Commit.from_record(child.to_record(), root)

    assert reloaded.digest == child.digest
    assert reloaded == child
    assert reloaded.timestamp == child.timestamp
