class GitletError(Exception):
    """Base exception for repository operations.

    The message is the text shown to the user at the command boundary.
    """


class UsageError(GitletError):
    """Raised when a command is malformed."""


class ConfigError(GitletError):
    """Raised when the storage configuration is invalid."""


class StateError(GitletError):
    """Raised when the repository is missing, already exists or is corrupt."""


class ValidationError(GitletError):
    """Raised when an operation's arguments or preconditions are invalid."""


class NotFoundError(GitletError):
    """Raised when a commit, branch, blob or tracked path does not exist."""


class ConflictError(GitletError):
    """Raised when an operation would overwrite an untracked working file."""
