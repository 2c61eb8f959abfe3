import os
import sys
from pathlib import Path

import pytest

from gitlet.cli import main
from gitlet.config import StorageConfig
from gitlet.repository import Repository


def run(capsys: pytest.CaptureFixture[str], work_path: Path, *args: str) -> str:
    assert main(list(args), work_path=work_path) == 0, "Exit status is always 0"
    return capsys.readouterr().out


def test_no_command(tmp_path: Path, capsys):
    assert run(capsys, tmp_path) == "Please enter a command.\n"


def test_unknown_command(tmp_path: Path, capsys):
    assert run(capsys, tmp_path, "push") == "No command with that name exists.\n"


def test_requires_init(tmp_path: Path, capsys):
    assert run(capsys, tmp_path, "status") == "Not in an initialized Gitlet directory.\n"


def test_init(tmp_path: Path, capsys):
    assert run(capsys, tmp_path, "init") == ""
    assert (tmp_path / ".gitlet" / "repo" / "gitlet.json").is_file()

    assert run(capsys, tmp_path, "init") == (
        "A Gitlet version-control system already exists in the current directory.\n"
    )


def test_operand_validation(tmp_path: Path, capsys):
    run(capsys, tmp_path, "init")

    assert run(capsys, tmp_path, "add") == "Incorrect operands.\n"
    assert run(capsys, tmp_path, "log", "extra") == "Incorrect operands.\n"
    assert run(capsys, tmp_path, "checkout", "abc", "++", "f.txt") == "Incorrect operands.\n"
    assert run(capsys, tmp_path, "checkout", "++", "f.txt") == "Incorrect operands.\n"
    assert run(capsys, tmp_path, "commit") == "Please enter a commit message.\n"
    assert run(capsys, tmp_path, "commit", "") == "Please enter a commit message.\n"


def test_add_commit_log_find(tmp_path: Path, capsys):
    run(capsys, tmp_path, "init")
    (tmp_path / "f.txt").write_text("wug")

    assert run(capsys, tmp_path, "add", "f.txt") == ""
    assert run(capsys, tmp_path, "add", "ghost.txt") == "File does not exist.\n"
    assert run(capsys, tmp_path, "commit", "added wug") == ""
    assert run(capsys, tmp_path, "commit", "again") == "No changes added to the commit.\n"

    log = run(capsys, tmp_path, "log")
    assert log.count("===\n") == 2
    assert "added wug\n" in log
    assert "initial commit\n" in log

    digest = log.split("\n")[1].removeprefix("commit ")
    assert run(capsys, tmp_path, "find", "added wug") == f"{digest}\n"
    assert run(capsys, tmp_path, "find", "nope") == "Found no commit with that message.\n"
    assert f"commit {digest}" in run(capsys, tmp_path, "global-log")


def test_checkout_forms(tmp_path: Path, capsys):
    run(capsys, tmp_path, "init")
    f = tmp_path / "f.txt"
    f.write_text("one")
    run(capsys, tmp_path, "add", "f.txt")
    run(capsys, tmp_path, "commit", "one")
    first = run(capsys, tmp_path, "find", "one").strip()
    f.write_text("two")
    run(capsys, tmp_path, "add", "f.txt")
    run(capsys, tmp_path, "commit", "two")

    f.write_text("scratch")
    assert run(capsys, tmp_path, "checkout", "--", "f.txt") == ""
    assert f.read_text() == "two"

    assert run(capsys, tmp_path, "checkout", first[:10], "--", "f.txt") == ""
    assert f.read_text() == "one"

    assert run(capsys, tmp_path, "checkout", "dev") == "No such branch exists.\n"
    run(capsys, tmp_path, "branch", "dev")
    assert run(capsys, tmp_path, "checkout", "dev") == ""
    assert run(capsys, tmp_path, "checkout", "dev") == (
        "No need to checkout the current branch.\n"
    )


def test_branch_status_and_reset(tmp_path: Path, capsys):
    run(capsys, tmp_path, "init")
    initial = run(capsys, tmp_path, "find", "initial commit").strip()
    (tmp_path / "f.txt").write_text("wug")
    run(capsys, tmp_path, "add", "f.txt")
    run(capsys, tmp_path, "commit", "added wug")
    run(capsys, tmp_path, "branch", "dev")

    status = run(capsys, tmp_path, "status")
    assert status.startswith("=== Branches ===\ndev\n*master\n\n")

    assert run(capsys, tmp_path, "rm-branch", "master") == "Cannot remove the current branch.\n"
    assert run(capsys, tmp_path, "rm-branch", "dev") == ""
    assert "dev" not in run(capsys, tmp_path, "status")

    assert run(capsys, tmp_path, "reset", initial) == ""
    assert not (tmp_path / "f.txt").exists()
    assert run(capsys, tmp_path, "rm", "f.txt") == "No reason to remove the file.\n"


def test_failed_command_does_not_persist(tmp_path: Path, capsys):
    run(capsys, tmp_path, "init")
    run(capsys, tmp_path, "branch", "dev")
    before = (tmp_path / ".gitlet" / "repo" / "gitlet.json").read_text()

    assert run(capsys, tmp_path, "branch", "dev") == "A branch with that name already exists.\n"

    assert (tmp_path / ".gitlet" / "repo" / "gitlet.json").read_text() == before


def test_sql_backend(tmp_path: Path, capsys, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GITLET_BACKEND", "sql")
    run(capsys, tmp_path, "init")
    (tmp_path / "f.txt").write_text("wug")
    run(capsys, tmp_path, "add", "f.txt")
    run(capsys, tmp_path, "commit", "added wug")
    (tmp_path / "f.txt").write_text("changed")

    run(capsys, tmp_path, "checkout", "--", "f.txt")

    assert (tmp_path / "f.txt").read_text() == "wug"
    assert (tmp_path / ".gitlet" / "objects.db").is_file()
    assert list((tmp_path / ".gitlet" / "objects").iterdir()) == []

    repo = Repository.load(StorageConfig.create(tmp_path))
    try:
        assert repo.head.message == "added wug"
    finally:
        repo.close()


def test_add_outside_working_directory(tmp_path: Path, capsys):
    work_path = tmp_path / "work"
    work_path.mkdir()
    run(capsys, work_path, "init")
    (tmp_path / "secret.txt").write_text("secret")

    assert run(capsys, work_path, "add", "../secret.txt") == (
        "File is outside the working directory.\n"
    )


@pytest.mark.skipif(sys.platform != "linux", reason="needs arbitrary bytes in file names")
def test_file_name_that_is_not_utf8(tmp_path: Path, capsys):
    run(capsys, tmp_path, "init")
    name = os.fsdecode(b"caf\xe9.txt")
    (tmp_path / name).write_text("latin-1 name")

    assert "=== Untracked Files ===\ncaf\\udce9.txt\n" in run(capsys, tmp_path, "status")
    assert run(capsys, tmp_path, "add", name) == ""
    assert run(capsys, tmp_path, "commit", "odd name") == ""
    (tmp_path / name).write_text("changed")

    assert run(capsys, tmp_path, "checkout", "--", name) == ""
    assert (tmp_path / name).read_text() == "latin-1 name"
    assert "odd name" in run(capsys, tmp_path, "log")
