import sys
from pathlib import Path
from typing import Callable, Sequence

from loguru import logger

from gitlet.config import StorageConfig
from gitlet.errors import GitletError, UsageError
from gitlet.log import configure_logging
from gitlet.repository import MISSING_MESSAGE, Repository

NO_COMMAND = "Please enter a command."
UNKNOWN_COMMAND = "No command with that name exists."
INCORRECT_OPERANDS = "Incorrect operands."

Handler = Callable[[Repository, list[str]], str | None]


def _add(repo: Repository, operands: list[str]) -> str | None:
    return repo.add(operands[0])


def _commit(repo: Repository, operands: list[str]) -> str | None:
    repo.commit(operands[0])
    return None


def _rm(repo: Repository, operands: list[str]) -> str | None:
    return repo.remove(operands[0])


def _log(repo: Repository, operands: list[str]) -> str | None:
    return repo.log()


def _global_log(repo: Repository, operands: list[str]) -> str | None:
    return repo.global_log()


def _find(repo: Repository, operands: list[str]) -> str | None:
    return "".join(f"{digest}\n" for digest in repo.find(operands[0]))


def _status(repo: Repository, operands: list[str]) -> str | None:
    return repo.status()


def _checkout(repo: Repository, operands: list[str]) -> str | None:
    if len(operands) == 3:
        commit_id, separator, path = operands
        if separator != "--":
            raise UsageError(INCORRECT_OPERANDS)
        repo.checkout_file_from_commit(commit_id, path)
    elif len(operands) == 2:
        separator, path = operands
        if separator != "--":
            raise UsageError(INCORRECT_OPERANDS)
        repo.checkout_file(path)
    else:
        repo.checkout_branch(operands[0])
    return None


def _branch(repo: Repository, operands: list[str]) -> str | None:
    repo.branch(operands[0])
    return None


def _rm_branch(repo: Repository, operands: list[str]) -> str | None:
    repo.rm_branch(operands[0])
    return None


def _reset(repo: Repository, operands: list[str]) -> str | None:
    repo.reset(operands[0])
    return None


# command -> (handler, accepted operand counts)
COMMANDS: dict[str, tuple[Handler, tuple[int, ...]]] = {
    "add": (_add, (1,)),
    "commit": (_commit, (1,)),
    "rm": (_rm, (1,)),
    "log": (_log, (0,)),
    "global-log": (_global_log, (0,)),
    "find": (_find, (1,)),
    "status": (_status, (0,)),
    "checkout": (_checkout, (1, 2, 3)),
    "branch": (_branch, (1,)),
    "rm-branch": (_rm_branch, (1,)),
    "reset": (_reset, (1,)),
}


def run(args: Sequence[str], config: StorageConfig) -> str | None:
    """
    Execute one command against the repository described by `config`.

    Returns the text to show the user, if any. The repository is saved only
    when the command succeeds.
    """
    if not args:
        raise UsageError(NO_COMMAND)

    command, operands = args[0], list(args[1:])

    if command == "init":
        if operands:
            raise UsageError(INCORRECT_OPERANDS)
        Repository.init(config).close()
        return None

    if command not in COMMANDS:
        raise UsageError(UNKNOWN_COMMAND)

    handler, arities = COMMANDS[command]
    if command == "commit" and not operands:
        raise UsageError(MISSING_MESSAGE)
    if len(operands) not in arities:
        raise UsageError(INCORRECT_OPERANDS)

    repo = Repository.load(config)
    try:
        output = handler(repo, operands)
        repo.save()
    finally:
        repo.close()
    return output


def printable(text: str) -> str:
    """Escape file names that are not valid UTF-8 so they can be shown."""
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def main(argv: Sequence[str] | None = None, work_path: str | Path | None = None) -> int:
    """Command-line entry point. Errors are reported as text; the exit status is always 0."""
    configure_logging()
    args = list(sys.argv[1:] if argv is None else argv)

    try:
        output = run(args, StorageConfig.create(work_path))
    except GitletError as e:
        logger.debug(f"Command {args[:1]} failed: {e}")
        print(printable(str(e)))
        return 0

    if output:
        output = printable(output)
        print(output, end="" if output.endswith("\n") else "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
